# courier_app/modules/tracking/providers.py
from typing import Callable, Protocol

from .schemas import LocationSample, PermissionState

PositionCallback = Callable[[LocationSample], None]


class PositionObserver(Protocol):
    """
    Fuente de posiciones del dispositivo.

    La plataforma entrega las posiciones llamando al callback registrado en
    start(); stop() detiene el flujo.
    """

    def authorization_status(self) -> PermissionState: ...

    def request_authorization(self) -> PermissionState: ...

    def start(self, callback: PositionCallback) -> None: ...

    def stop(self) -> None: ...
