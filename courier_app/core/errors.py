# courier_app/core/errors.py
from typing import Optional


class CourierAppError(Exception):
    """Error base de la aplicación del repartidor"""

    retryable: bool = False

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class APIError(CourierAppError):
    """Fallo en la comunicación con el backend"""


class BadURLError(APIError):
    """No se pudo construir la URL del endpoint"""


class EncodingError(APIError):
    """No se pudo serializar el cuerpo de la petición"""


class TransportError(APIError):
    """Error de conectividad o timeout"""

    retryable = True


class DecodingError(APIError):
    """La respuesta no tiene la forma esperada"""


class ServerRejectedError(APIError):
    """Respuesta no-2xx o success:false"""

    def __init__(self, message: str = "", status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code

    @property
    def retryable(self) -> bool:
        return self.status_code is not None and self.status_code >= 500


class UnauthorizedError(APIError):
    """Token ausente, inválido o expirado"""

    def __init__(self, message: str = "Sesión no autorizada", status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class AuthenticationError(CourierAppError):
    """Login rechazado (validación local o success:false del servidor)"""


class InvalidTransitionError(CourierAppError):
    """Transición de estado no permitida por la máquina de estados"""

    def __init__(self, current, target):
        current_value = getattr(current, "value", current)
        target_value = getattr(target, "value", target)
        super().__init__(f"Transición de estado inválida: {current_value} -> {target_value}")
        self.current = current
        self.target = target


class TransitionInProgressError(CourierAppError):
    """Ya hay una transición en curso para la misma entrega"""

    def __init__(self, delivery_id: int):
        super().__init__(f"La entrega {delivery_id} ya tiene una actualización de estado en curso")
        self.delivery_id = delivery_id
