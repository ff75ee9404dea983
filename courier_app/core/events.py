# courier_app/core/events.py
from collections import defaultdict
from typing import Any, Callable, Dict, List
import logging

logger = logging.getLogger(__name__)

# Eventos emitidos por el núcleo
SESSION_CHANGED = "session_changed"
DELIVERIES_CHANGED = "deliveries_changed"
DELIVERY_UPDATED = "delivery_updated"
TRACKING_CHANGED = "tracking_changed"
LOCATION_PERMISSION_DENIED = "location_permission_denied"

Handler = Callable[[Any], None]


class EventBus:
    """
    Bus de eventos síncrono.

    El núcleo emite eventos de cambio de estado y la capa de vista se
    suscribe para volver a renderizar. Un handler que falla se registra
    en el log y no interrumpe al resto.
    """

    def __init__(self):
        self._handlers: Dict[str, List[Handler]] = defaultdict(list)

    def subscribe(self, event: str, handler: Handler) -> Callable[[], None]:
        self._handlers[event].append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers[event]:
                self._handlers[event].remove(handler)

        return unsubscribe

    def emit(self, event: str, payload: Any = None) -> None:
        for handler in list(self._handlers.get(event, [])):
            try:
                handler(payload)
            except Exception:
                logger.exception(f"❌ Error en handler del evento '{event}'")
