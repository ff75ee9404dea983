# courier_app/modules/deliveries/__init__.py
"""
Módulo Deliveries - Entregas del repartidor

Este módulo implementa el ciclo de vida de las entregas asignadas:
- Consulta de entregas del repartidor
- Registro local con conteos, búsqueda y puntos de mapa
- Máquina de estados: preparing -> out_for_delivery -> delivered / cancelled

Arquitectura:
- service.py: Transiciones de estado y refresco desde el backend
- repository.py: Registro en memoria de entregas confirmadas
- schemas.py: Modelos del wire (Delivery, Order, LineItem)
"""

from .repository import DeliveryRegistry
from .service import DeliveryService, ALLOWED_TRANSITIONS, can_transition

__all__ = [
    "DeliveryRegistry",
    "DeliveryService",
    "ALLOWED_TRANSITIONS",
    "can_transition"
]
