# courier_app/modules/tracking/__init__.py
"""
Módulo Tracking - Posición del repartidor

Envía la ubicación del dispositivo al backend mientras hay una entrega
en reparto.

Arquitectura:
- service.py: Sincronización de ubicación (best-effort)
- providers.py: Interfaz de la fuente de posiciones
- schemas.py: LocationSample y estados de permiso
"""

from .service import LocationSyncService
from .providers import PositionObserver
from .schemas import LocationSample, PermissionState

__all__ = [
    "LocationSyncService",
    "PositionObserver",
    "LocationSample",
    "PermissionState"
]
