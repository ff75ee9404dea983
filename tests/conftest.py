# tests/conftest.py
from typing import Optional

import pytest

from courier_app.config.settings import Settings
from courier_app.core.storage import MemoryStorage
from courier_app.main import build_app
from courier_app.modules.deliveries.schemas import Delivery
from courier_app.modules.tracking.providers import PositionCallback
from courier_app.modules.tracking.schemas import LocationSample, PermissionState
from courier_app.shared.services.api_client import DeliveryAPIClient

from .fake_backend import BASE_URL, FakeBackend, RecordingTransport, make_delivery


class FakePositionObserver:
    """Fuente de posiciones determinista"""

    def __init__(self, permission: PermissionState = PermissionState.AUTHORIZED, grant_on_request: bool = True):
        self.permission = permission
        self.grant_on_request = grant_on_request
        self.callback: Optional[PositionCallback] = None
        self.start_calls = 0
        self.stop_calls = 0
        self.authorization_requests = 0

    def authorization_status(self) -> PermissionState:
        return self.permission

    def request_authorization(self) -> PermissionState:
        self.authorization_requests += 1
        self.permission = PermissionState.AUTHORIZED if self.grant_on_request else PermissionState.DENIED
        return self.permission

    def start(self, callback: PositionCallback) -> None:
        self.start_calls += 1
        self.callback = callback

    def stop(self) -> None:
        self.stop_calls += 1
        self.callback = None

    def emit(self, latitude: float, longitude: float, note: Optional[str] = None) -> None:
        if self.callback is not None:
            self.callback(LocationSample(latitude=latitude, longitude=longitude, note=note))


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        api_base_url=BASE_URL,
        session_file=str(tmp_path / "session.json"),
        location_min_interval=0,
        request_timeout=5,
    )


@pytest.fixture
def backend() -> FakeBackend:
    fake = FakeBackend()
    fake.add(
        make_delivery(501, status="preparing"),
        make_delivery(502, status="out_for_delivery", customer_first_name="Bounmy", order_code="ORD-BX-77"),
        make_delivery(503, status="delivered"),
        make_delivery(504, status="pending", latitude=None, longitude=None, customer_first_name=None),
        make_delivery(601, status="preparing", employee_id=8),
    )
    return fake


@pytest.fixture
def transport(backend) -> RecordingTransport:
    return RecordingTransport(backend.app)


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def observer() -> FakePositionObserver:
    return FakePositionObserver()


@pytest.fixture
async def api(settings, transport):
    client = DeliveryAPIClient(settings, transport=transport)
    yield client
    await client.aclose()


@pytest.fixture
async def courier_app(settings, transport, storage, observer):
    app = build_app(settings, observer=observer, storage=storage, transport=transport)
    yield app
    await app.tracking.wait_idle()
    await app.api.aclose()


@pytest.fixture
async def logged_in_app(courier_app):
    await courier_app.session.login("1044")
    await courier_app.deliveries.refresh()
    return courier_app


def delivery_from(payload) -> Delivery:
    return Delivery.model_validate(payload)
