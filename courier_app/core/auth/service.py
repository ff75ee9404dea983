# courier_app/core/auth/service.py
import logging
from typing import Optional

from pydantic import ValidationError

from courier_app.config.settings import Settings
from courier_app.core.errors import AuthenticationError
from courier_app.core.events import EventBus, SESSION_CHANGED
from courier_app.core.storage import KeyValueStorage
from courier_app.shared.services.api_client import DeliveryAPIClient
from .schemas import Courier

logger = logging.getLogger(__name__)

TOKEN_KEY = "auth_token"
AUTHENTICATED_KEY = "is_authenticated"
COURIER_KEY = "current_employee"


class SessionStore:
    """Sesión del repartidor autenticado"""

    def __init__(
        self,
        api: DeliveryAPIClient,
        storage: KeyValueStorage,
        config: Settings,
        events: Optional[EventBus] = None,
    ):
        self.api = api
        self.storage = storage
        self.config = config
        self.events = events or EventBus()
        self._courier: Optional[Courier] = None
        self._token: Optional[str] = None
        self._is_authenticated = False

    @property
    def courier(self) -> Optional[Courier]:
        return self._courier

    @property
    def token(self) -> Optional[str]:
        return self._token

    @property
    def is_authenticated(self) -> bool:
        return self._is_authenticated

    @property
    def courier_id(self) -> Optional[int]:
        return self._courier.id if self._courier else None

    async def login(self, employee_code: str) -> Courier:
        """
        Iniciar sesión con el código de empleado.

        Si el login falla el estado de la sesión no cambia. Los errores de
        red o de decodificación se propagan sin modificar.
        """
        code = (employee_code or "").strip()
        if len(code) < self.config.min_employee_code_length:
            raise AuthenticationError(
                f"El código de empleado debe tener al menos {self.config.min_employee_code_length} caracteres"
            )

        response = await self.api.login(code)

        if not response.success:
            logger.warning(f"🔐 Login rechazado para {code}: {response.message}")
            raise AuthenticationError(response.message or "Código de empleado inválido")
        if response.employee is None:
            raise AuthenticationError("El servidor no devolvió el perfil del empleado")

        courier = response.employee
        # El backend todavía no emite tokens en el login
        token = response.token or f"dummy_token_{code}"

        try:
            self._save(courier, token)
        except Exception as e:
            logger.error(f"❌ No se pudo guardar la sesión de {code}: {e}")
            self._clear_quietly()
            raise

        self._courier = courier
        self._token = token
        self._is_authenticated = True
        self.api.set_token(token)

        logger.info(f"✅ Login exitoso: {self._courier.full_name} (id={self._courier.id})")
        self.events.emit(SESSION_CHANGED, self._courier)
        return self._courier

    def logout(self) -> None:
        had_session = self._is_authenticated or self._courier is not None or self._token is not None

        self._courier = None
        self._token = None
        self._is_authenticated = False
        self.api.set_token(None)
        self._clear()

        if had_session:
            logger.info("👋 Sesión cerrada")
            self.events.emit(SESSION_CHANGED, None)

    def restore(self) -> bool:
        """Recuperar la sesión persistida; si no existe o está corrupta se inicia sin sesión"""
        try:
            token = self.storage.get(TOKEN_KEY)
            is_authenticated = bool(self.storage.get(AUTHENTICATED_KEY))
            raw_courier = self.storage.get(COURIER_KEY)
        except Exception as e:
            logger.warning(f"⚠️ No se pudo leer la sesión guardada: {e}")
            return False

        if not (token and is_authenticated and raw_courier):
            return False

        try:
            courier = Courier.model_validate(raw_courier)
        except ValidationError as e:
            logger.warning(f"⚠️ Perfil guardado corrupto, se ignora: {e}")
            return False

        self._courier = courier
        self._token = str(token)
        self._is_authenticated = True
        self.api.set_token(self._token)

        logger.info(f"🔄 Sesión restaurada: {courier.full_name} (id={courier.id})")
        self.events.emit(SESSION_CHANGED, courier)
        return True

    def _save(self, courier: Courier, token: str) -> None:
        self.storage.set(TOKEN_KEY, token)
        self.storage.set(COURIER_KEY, courier.model_dump(by_alias=True, mode="json"))
        # Se escribe al final: sin esta clave restore() ignora lo guardado
        self.storage.set(AUTHENTICATED_KEY, True)

    def _clear(self) -> None:
        for key in (TOKEN_KEY, AUTHENTICATED_KEY, COURIER_KEY):
            self.storage.remove(key)

    def _clear_quietly(self) -> None:
        """Retirar una escritura parcial sin tapar el error original"""
        try:
            self._clear()
        except Exception as e:
            logger.warning(f"⚠️ No se pudo limpiar la sesión parcial: {e}")
