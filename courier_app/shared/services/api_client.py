# courier_app/shared/services/api_client.py
import httpx
import logging
import time
from typing import Any, Dict, Optional, Type, TypeVar

from pydantic import ValidationError

from courier_app.config.settings import Settings
from courier_app.core.auth.schemas import LoginRequest, LoginResponse
from courier_app.core.errors import (
    BadURLError, DecodingError, EncodingError, ServerRejectedError,
    TransportError, UnauthorizedError,
)
from courier_app.modules.deliveries.schemas import (
    Delivery, DeliveryListResponse, DeliveryStatus, StatusUpdateRequest,
)
from courier_app.modules.tracking.schemas import LocationUpdateRequest
from courier_app.shared.schemas.common import WireModel

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=WireModel)


class DeliveryAPIClient:
    """Cliente HTTP del backend de entregas"""

    def __init__(self, config: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = config.api_root
        self.timeout = config.request_timeout
        self._token: Optional[str] = None
        self._client = httpx.AsyncClient(timeout=self.timeout, transport=transport)

    async def __aenter__(self) -> "DeliveryAPIClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Token
    # ------------------------------------------------------------------

    @property
    def token(self) -> Optional[str]:
        return self._token

    def set_token(self, token: Optional[str]) -> None:
        self._token = token

    def _get_headers(self, auth_required: bool = False) -> Dict[str, str]:
        """Headers JSON con autenticación Bearer si hay token"""
        headers = {"Content-Type": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        elif auth_required:
            raise UnauthorizedError("Se requiere iniciar sesión para esta operación")
        return headers

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _build_url(self, path: str) -> str:
        raw = f"{self.base_url}{path}"
        try:
            url = httpx.URL(raw)
        except httpx.InvalidURL as e:
            raise BadURLError(f"URL inválida '{raw}': {e}") from e
        if url.scheme not in ("http", "https") or not url.host:
            raise BadURLError(f"URL inválida '{raw}'")
        return raw

    @staticmethod
    def _encode(model_cls: Type[ModelT], **fields: Any) -> Dict[str, Any]:
        try:
            return model_cls(**fields).to_wire()
        except (ValidationError, TypeError, ValueError) as e:
            raise EncodingError(f"No se pudo serializar {model_cls.__name__}: {e}") from e

    @staticmethod
    def _decode(model_cls: Type[ModelT], response: httpx.Response) -> ModelT:
        try:
            payload = response.json()
        except ValueError as e:
            raise DecodingError(f"Respuesta no es JSON válido: {e}") from e
        try:
            return model_cls.model_validate(payload)
        except ValidationError as e:
            raise DecodingError(f"Respuesta inesperada para {model_cls.__name__}: {e}") from e

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text or f"HTTP {response.status_code}"
        if isinstance(body, dict):
            for key in ("message", "detail", "error"):
                if body.get(key):
                    return str(body[key])
        return f"HTTP {response.status_code}"

    def _check_status(self, response: httpx.Response) -> None:
        if response.is_success:
            return
        message = self._error_message(response)
        if response.status_code in (401, 403):
            raise UnauthorizedError(message, status_code=response.status_code)
        raise ServerRejectedError(message, status_code=response.status_code)

    async def _request(
        self,
        method: str,
        path: str,
        *,
        auth_required: bool = False,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> httpx.Response:
        url = self._build_url(path)
        headers = self._get_headers(auth_required)
        start_time = time.time()
        try:
            response = await self._client.request(method, url, json=json, params=params, headers=headers)
        except httpx.InvalidURL as e:
            raise BadURLError(f"URL inválida '{url}': {e}") from e
        except httpx.TimeoutException as e:
            logger.error(f"⏰ Timeout en {method} {path}")
            raise TransportError(f"Timeout comunicándose con el servidor: {e}") from e
        except httpx.DecodingError as e:
            logger.error(f"❌ Cuerpo ilegible en {method} {path}: {e}")
            raise DecodingError(f"No se pudo decodificar la respuesta: {e}") from e
        except httpx.RequestError as e:
            logger.error(f"❌ Error de red en {method} {path}: {e}")
            raise TransportError(f"Error de conexión con el servidor: {e}") from e

        process_time = time.time() - start_time
        logger.info(
            f"{method} {path} - "
            f"Status: {response.status_code} - "
            f"Time: {process_time:.4f}s"
        )
        return response

    # ------------------------------------------------------------------
    # Endpoints
    # ------------------------------------------------------------------

    async def login(self, employee_code: str) -> LoginResponse:
        """POST /auth/employee-login"""
        body = self._encode(LoginRequest, employee_id=employee_code)
        response = await self._request("POST", "/auth/employee-login", json=body)

        if not response.is_success:
            # El backend responde {success:false, message} también con códigos 4xx
            try:
                rejected = LoginResponse.model_validate(response.json())
            except (ValueError, ValidationError):
                rejected = None
            if rejected is not None and not rejected.success:
                return rejected
            self._check_status(response)

        return self._decode(LoginResponse, response)

    async def fetch_deliveries(
        self,
        courier_id: int,
        status: Optional[DeliveryStatus] = None,
    ) -> DeliveryListResponse:
        """GET /deliveries?employeeId=&status="""
        params: Dict[str, Any] = {"employeeId": str(courier_id)}
        if status is not None:
            params["status"] = DeliveryStatus(status).value

        response = await self._request("GET", "/deliveries", params=params)
        self._check_status(response)
        return self._decode(DeliveryListResponse, response)

    async def update_status(
        self,
        delivery_id: int,
        status: DeliveryStatus,
        notes: Optional[str] = None,
    ) -> Delivery:
        """PATCH /deliveries/{id}/status"""
        body = self._encode(StatusUpdateRequest, status=status, notes=notes)
        response = await self._request(
            "PATCH", f"/deliveries/{delivery_id}/status", auth_required=True, json=body
        )
        self._check_status(response)
        return self._decode(Delivery, response)

    async def update_location(
        self,
        delivery_id: int,
        latitude: float,
        longitude: float,
        note: Optional[str] = None,
    ) -> None:
        """PATCH /deliveries/{id}/location (el cuerpo de la respuesta se ignora)"""
        body = self._encode(
            LocationUpdateRequest,
            latitude=latitude,
            longitude=longitude,
            location_note=note,
            notify_customer=True,
        )
        response = await self._request(
            "PATCH", f"/deliveries/{delivery_id}/location", auth_required=True, json=body
        )
        self._check_status(response)
