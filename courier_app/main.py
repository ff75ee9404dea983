# courier_app/main.py
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Optional
import logging

import httpx

from courier_app.config.settings import Settings, configure_logging, settings as default_settings
from courier_app.core.auth.service import SessionStore
from courier_app.core.events import EventBus
from courier_app.core.storage import JsonFileStorage, KeyValueStorage
from courier_app.modules.deliveries import DeliveryRegistry, DeliveryService
from courier_app.modules.tracking import LocationSyncService, PositionObserver
from courier_app.shared.services.api_client import DeliveryAPIClient

logger = logging.getLogger(__name__)


@dataclass
class CourierApp:
    """Componentes del núcleo, construidos explícitamente y compartidos con la vista"""
    settings: Settings
    events: EventBus
    storage: KeyValueStorage
    api: DeliveryAPIClient
    session: SessionStore
    registry: DeliveryRegistry
    tracking: LocationSyncService
    deliveries: DeliveryService

    def logout(self) -> None:
        """Cerrar sesión y descartar el estado del repartidor"""
        self.tracking.end()
        self.registry.clear()
        self.session.logout()


def build_app(
    config: Optional[Settings] = None,
    *,
    observer: PositionObserver,
    storage: Optional[KeyValueStorage] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    events: Optional[EventBus] = None,
) -> CourierApp:
    config = config or default_settings
    events = events or EventBus()
    storage = storage if storage is not None else JsonFileStorage(config.session_file)

    api = DeliveryAPIClient(config, transport=transport)
    session = SessionStore(api, storage, config, events)
    registry = DeliveryRegistry(events)
    tracking = LocationSyncService(api, observer, config, events)
    deliveries = DeliveryService(api, session, registry, tracking, config)

    return CourierApp(
        settings=config,
        events=events,
        storage=storage,
        api=api,
        session=session,
        registry=registry,
        tracking=tracking,
        deliveries=deliveries,
    )


@asynccontextmanager
async def courier_app_lifespan(app: CourierApp) -> AsyncIterator[CourierApp]:
    # Startup
    configure_logging(app.settings)
    logger.info(f"🚀 {app.settings.app_name} v{app.settings.version} iniciando")
    logger.info(f"🌍 Backend: {app.settings.api_root}")
    if app.session.restore():
        logger.info("🔐 Sesión previa restaurada")

    try:
        yield app
    finally:
        # Shutdown
        try:
            app.tracking.stop()
            await app.tracking.wait_idle()
        finally:
            await app.api.aclose()
            logger.info(f"🛑 {app.settings.app_name} detenido")
