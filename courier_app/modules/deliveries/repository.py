# courier_app/modules/deliveries/repository.py
from typing import Callable, Dict, Iterable, List, Optional, Tuple
import logging

from courier_app.core.events import EventBus, DELIVERIES_CHANGED, DELIVERY_UPDATED
from .schemas import Delivery, DeliveryLocation, DeliveryStatus, StatusCounts

logger = logging.getLogger(__name__)


class DeliveryRegistry:
    """
    Entregas del repartidor actual, indexadas por id.

    Sólo refleja estado confirmado por el servidor: la colección se
    reemplaza completa en cada consulta y las entradas individuales sólo
    cambian con la respuesta de una actualización de estado.
    """

    def __init__(self, events: Optional[EventBus] = None):
        self.events = events or EventBus()
        self._deliveries: Dict[int, Delivery] = {}

    def __len__(self) -> int:
        return len(self._deliveries)

    def __contains__(self, delivery_id: object) -> bool:
        return delivery_id in self._deliveries

    def get(self, delivery_id: int) -> Optional[Delivery]:
        return self._deliveries.get(delivery_id)

    def all(self) -> Tuple[Delivery, ...]:
        return tuple(self._deliveries.values())

    def replace(self, deliveries: Iterable[Delivery]) -> None:
        new_items: Dict[int, Delivery] = {}
        for delivery in deliveries:
            if delivery.id in new_items:
                logger.warning(f"⚠️ Entrega duplicada en la respuesta: id={delivery.id}, se usa la última")
            new_items[delivery.id] = delivery

        # Se construye aparte y se asigna de una vez
        self._deliveries = new_items
        logger.debug(f"Registro actualizado con {len(new_items)} entregas")
        self.events.emit(DELIVERIES_CHANGED, self.all())

    def clear(self) -> None:
        self.replace([])

    def apply_status_update(self, updated: Delivery) -> bool:
        if updated.id not in self._deliveries:
            logger.warning(f"⚠️ Actualización para entrega desconocida id={updated.id}, se ignora")
            return False

        self._deliveries[updated.id] = updated
        self.events.emit(DELIVERY_UPDATED, updated)
        return True

    def filter(self, predicate: Callable[[Delivery], bool]) -> Tuple[Delivery, ...]:
        return tuple(d for d in self._deliveries.values() if predicate(d))

    def active(self) -> Tuple[Delivery, ...]:
        """Entregas que todavía no terminaron"""
        return self.filter(lambda d: not d.status.is_terminal)

    def search(self, text: str) -> Tuple[Delivery, ...]:
        """Buscar por código de orden o nombre del cliente (sin distinguir mayúsculas)"""
        query = (text or "").strip().casefold()
        if not query:
            return self.all()
        return self.filter(
            lambda d: query in d.order.order_code.casefold() or query in d.customer_name.casefold()
        )

    def counts_by_status(self) -> StatusCounts:
        preparing = out_for_delivery = delivered = 0
        for delivery in self._deliveries.values():
            if delivery.status in (DeliveryStatus.PENDING, DeliveryStatus.PREPARING):
                preparing += 1
            elif delivery.status == DeliveryStatus.OUT_FOR_DELIVERY:
                out_for_delivery += 1
            elif delivery.status == DeliveryStatus.DELIVERED:
                delivered += 1
        return StatusCounts(preparing=preparing, out_for_delivery=out_for_delivery, delivered=delivered)

    def map_locations(self) -> List[DeliveryLocation]:
        """Entregas con coordenadas del cliente, para el mapa"""
        locations = []
        for delivery in self._deliveries.values():
            coordinates = delivery.coordinates
            if coordinates is None:
                continue
            latitude, longitude = coordinates
            locations.append(
                DeliveryLocation(id=delivery.id, latitude=latitude, longitude=longitude, delivery=delivery)
            )
        return locations
