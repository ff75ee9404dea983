# courier_app/__init__.py
"""
Cliente del repartidor de SeeU Cafe.

Autenticación del repartidor, entregas asignadas, transiciones de estado y
sincronización de ubicación contra el backend REST.
"""

from courier_app.main import CourierApp, build_app, courier_app_lifespan

__all__ = [
    "CourierApp",
    "build_app",
    "courier_app_lifespan"
]
