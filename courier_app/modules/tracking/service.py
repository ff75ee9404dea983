# courier_app/modules/tracking/service.py
import asyncio
import logging
import time
from typing import TYPE_CHECKING, Callable, Optional

from courier_app.config.settings import Settings
from courier_app.core.errors import APIError
from courier_app.core.events import EventBus, LOCATION_PERMISSION_DENIED, TRACKING_CHANGED
from .providers import PositionObserver
from .schemas import LocationSample, PermissionState

if TYPE_CHECKING:
    from courier_app.shared.services.api_client import DeliveryAPIClient

logger = logging.getLogger(__name__)


class LocationSyncService:
    """
    Envío de la posición del repartidor al backend durante una entrega.

    Hay un único flujo de posiciones. Cada muestra se envía o se descarta:
    no hay cola ni reintentos, y un fallo de red sólo se registra en el log.
    """

    def __init__(
        self,
        api: "DeliveryAPIClient",
        observer: PositionObserver,
        config: Settings,
        events: Optional[EventBus] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.api = api
        self.observer = observer
        self.min_interval = config.location_min_interval
        self.events = events or EventBus()
        self._clock = clock

        self._tracking_enabled = False
        self._active_delivery_id: Optional[int] = None
        self._streaming = False
        self._denied_reported = False
        self._last_sample: Optional[LocationSample] = None
        self._last_sent_at: Optional[float] = None
        self._pending: Optional[asyncio.Task] = None

    @property
    def tracking_enabled(self) -> bool:
        return self._tracking_enabled

    @property
    def active_delivery_id(self) -> Optional[int]:
        return self._active_delivery_id

    @property
    def is_streaming(self) -> bool:
        return self._streaming

    @property
    def permission(self) -> PermissionState:
        return self.observer.authorization_status()

    @property
    def last_sample(self) -> Optional[LocationSample]:
        return self._last_sample

    # ------------------------------------------------------------------
    # Activación por la máquina de estados
    # ------------------------------------------------------------------

    def begin(self, delivery_id: int) -> None:
        """Activar tracking para una entrega que salió a reparto"""
        self._tracking_enabled = True
        self._active_delivery_id = delivery_id
        logger.info(f"📍 Tracking activado para entrega {delivery_id}")
        self.events.emit(TRACKING_CHANGED, delivery_id)
        self.start()

    def end(self, delivery_id: Optional[int] = None) -> None:
        """Desactivar tracking; con delivery_id sólo si es la entrega activa"""
        if delivery_id is not None and delivery_id != self._active_delivery_id:
            logger.debug(f"Entrega {delivery_id} no es la activa, tracking sin cambios")
            return

        was_enabled = self._tracking_enabled
        self._tracking_enabled = False
        self._active_delivery_id = None
        self.stop()

        if was_enabled:
            logger.info("📍 Tracking desactivado")
            self.events.emit(TRACKING_CHANGED, None)

    # ------------------------------------------------------------------
    # Flujo de posiciones
    # ------------------------------------------------------------------

    def start(self) -> bool:
        if self._streaming:
            return True

        state = self.observer.authorization_status()
        if state == PermissionState.NOT_DETERMINED:
            state = self.observer.request_authorization()

        if state != PermissionState.AUTHORIZED:
            if not self._denied_reported:
                self._denied_reported = True
                logger.warning("🚫 Acceso a la ubicación denegado")
                self.events.emit(LOCATION_PERMISSION_DENIED, state)
            return False

        self._denied_reported = False
        self.observer.start(self.on_position)
        self._streaming = True
        return True

    def stop(self) -> None:
        if not self._streaming:
            return
        self.observer.stop()
        self._streaming = False

    def on_position(self, sample: LocationSample) -> None:
        """Callback de la plataforma; nunca bloquea ni lanza"""
        self._last_sample = sample

        if not self._tracking_enabled or self._active_delivery_id is None:
            return
        if self.observer.authorization_status() != PermissionState.AUTHORIZED:
            return
        if self._pending is not None and not self._pending.done():
            logger.debug("Envío de posición en curso, muestra descartada")
            return

        now = self._clock()
        if self._last_sent_at is not None and now - self._last_sent_at < self.min_interval:
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("⚠️ Posición recibida fuera del event loop, se descarta")
            return

        self._last_sent_at = now
        self._pending = loop.create_task(self._send(self._active_delivery_id, sample))

    async def _send(self, delivery_id: int, sample: LocationSample) -> None:
        try:
            await self.api.update_location(delivery_id, sample.latitude, sample.longitude, sample.note)
            logger.debug(f"Posición enviada para entrega {delivery_id}: {sample.latitude}, {sample.longitude}")
        except APIError as e:
            logger.warning(f"⚠️ No se pudo enviar la posición de la entrega {delivery_id}: {e.message}")
        except Exception:
            logger.exception(f"❌ Error inesperado enviando la posición de la entrega {delivery_id}")

    async def wait_idle(self) -> None:
        """Esperar a que termine el envío en curso, si lo hay"""
        if self._pending is not None:
            await self._pending
