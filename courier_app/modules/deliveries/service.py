# courier_app/modules/deliveries/service.py
import logging
from typing import TYPE_CHECKING, Dict, FrozenSet, Optional, Set

from courier_app.config.settings import Settings
from courier_app.core.errors import (
    InvalidTransitionError, TransitionInProgressError, UnauthorizedError,
)
from courier_app.shared.schemas.common import Pagination
from .repository import DeliveryRegistry
from .schemas import Delivery, DeliveryStatus

if TYPE_CHECKING:
    from courier_app.core.auth.service import SessionStore
    from courier_app.modules.tracking.service import LocationSyncService
    from courier_app.shared.services.api_client import DeliveryAPIClient

logger = logging.getLogger(__name__)

# Transiciones válidas: estado actual -> estados destino permitidos
ALLOWED_TRANSITIONS: Dict[DeliveryStatus, FrozenSet[DeliveryStatus]] = {
    DeliveryStatus.PENDING: frozenset({DeliveryStatus.OUT_FOR_DELIVERY, DeliveryStatus.CANCELLED}),
    DeliveryStatus.PREPARING: frozenset({DeliveryStatus.OUT_FOR_DELIVERY, DeliveryStatus.CANCELLED}),
    DeliveryStatus.OUT_FOR_DELIVERY: frozenset({DeliveryStatus.DELIVERED, DeliveryStatus.CANCELLED}),
    DeliveryStatus.DELIVERED: frozenset(),
    DeliveryStatus.CANCELLED: frozenset(),
}


def available_transitions(status: DeliveryStatus) -> FrozenSet[DeliveryStatus]:
    return ALLOWED_TRANSITIONS.get(DeliveryStatus(status), frozenset())


def can_transition(current: DeliveryStatus, target: DeliveryStatus) -> bool:
    return DeliveryStatus(target) in available_transitions(current)


class DeliveryService:
    def __init__(
        self,
        api: "DeliveryAPIClient",
        session: "SessionStore",
        registry: DeliveryRegistry,
        tracking: "LocationSyncService",
        config: Settings,
    ):
        self.api = api
        self.session = session
        self.registry = registry
        self.tracking = tracking
        self.config = config
        self._in_flight: Set[int] = set()

    async def refresh(self, status: Optional[DeliveryStatus] = None) -> Optional[Pagination]:
        """Consultar las entregas del repartidor y reemplazar el registro"""
        courier_id = self.session.courier_id
        if not self.session.is_authenticated or courier_id is None:
            raise UnauthorizedError("Debe iniciar sesión para consultar entregas")

        response = await self.api.fetch_deliveries(courier_id, status)
        self.registry.replace(response.data)

        logger.info(f"📦 {len(response.data)} entregas cargadas para repartidor {courier_id}")
        return response.pagination

    def is_updating(self, delivery_id: int) -> bool:
        return delivery_id in self._in_flight

    async def request_transition(
        self,
        delivery: Delivery,
        target: DeliveryStatus,
        notes: Optional[str] = None,
    ) -> Delivery:
        """
        Solicitar un cambio de estado al servidor.

        La transición se valida localmente antes de cualquier llamada. El
        registro sólo cambia con la respuesta confirmada del servidor; si la
        llamada falla el error se propaga y el registro queda igual.
        """
        target = DeliveryStatus(target)
        if not can_transition(delivery.status, target):
            raise InvalidTransitionError(delivery.status, target)
        if delivery.id in self._in_flight:
            raise TransitionInProgressError(delivery.id)

        if notes is None and target == DeliveryStatus.DELIVERED:
            notes = self.config.delivered_note

        self._in_flight.add(delivery.id)
        try:
            updated = await self.api.update_status(delivery.id, target, notes)
        except Exception:
            logger.error(f"❌ Falló la actualización de la entrega {delivery.id} a '{target.value}'")
            raise
        finally:
            self._in_flight.discard(delivery.id)

        self.registry.apply_status_update(updated)
        logger.info(f"✅ Entrega {delivery.id}: {delivery.status.value} -> {updated.status.value}")

        if target == DeliveryStatus.OUT_FOR_DELIVERY:
            self.tracking.begin(delivery.id)
        elif target.is_terminal:
            self.tracking.end(delivery.id)

        return updated

    async def start_delivery(self, delivery: Delivery) -> Delivery:
        """Recoger el pedido y salir a reparto"""
        return await self.request_transition(delivery, DeliveryStatus.OUT_FOR_DELIVERY)

    async def complete_delivery(self, delivery: Delivery, notes: Optional[str] = None) -> Delivery:
        return await self.request_transition(delivery, DeliveryStatus.DELIVERED, notes)

    async def cancel_delivery(self, delivery: Delivery, notes: Optional[str] = None) -> Delivery:
        return await self.request_transition(delivery, DeliveryStatus.CANCELLED, notes)
