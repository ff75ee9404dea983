# tests/test_api_client.py
import httpx
import pytest

from courier_app.config.settings import Settings
from courier_app.core.errors import (
    BadURLError, DecodingError, ServerRejectedError, TransportError, UnauthorizedError,
)
from courier_app.modules.deliveries.schemas import DeliveryStatus
from courier_app.shared.services.api_client import DeliveryAPIClient

from .fake_backend import BASE_URL


async def test_login_sends_employee_id_and_decodes_profile(api, transport):
    response = await api.login("1044")

    assert response.success is True
    assert response.employee.id == 7
    assert response.employee.employee_code == "1044"
    assert response.employee.photo_url == "https://cdn.seeucafe.la/staff/7.jpg"
    assert response.employee.full_name == "Somchai Vongsa"

    request = transport.requests[-1]
    assert request.method == "POST"
    assert request.path == "/api/auth/employee-login"
    assert request.body == {"employeeId": "1044"}
    assert request.authorization is None


async def test_login_rejection_is_returned_with_server_message(api):
    response = await api.login("9999")

    assert response.success is False
    assert response.employee is None
    assert response.message == "ບໍ່ພົບລະຫັດພະນັກງານ"


async def test_fetch_deliveries_maps_wire_fields(api, transport):
    api.set_token("dummy_token_1044")
    result = await api.fetch_deliveries(7)

    assert [d.id for d in result.data] == [501, 502, 503, 504]
    assert result.pagination.total_count == 4
    assert result.pagination.has_next_page is False

    delivery = result.data[0]
    assert delivery.status == DeliveryStatus.PREPARING
    assert delivery.delivery_code == "DLV-501"
    assert delivery.address == "Ban Xieng Mouane, Luang Prabang"
    assert delivery.location_note == "ປະຕູສີຂຽວ"
    assert delivery.phone == "02055550000"
    assert delivery.assigned_courier_id == 7
    assert delivery.fee == 15000.0
    assert delivery.estimated_time == "2025-06-01T10:30:00Z"
    assert delivery.order.order_code == "ORD-501"
    assert delivery.order.user_id == 31
    assert delivery.order.created_at == "2025-06-01T09:45:00Z"
    assert [item.product_name for item in delivery.order.line_items] == ["Khao Soi", "Lao Coffee"]
    assert delivery.order.line_items[0].unit_price == 25000.0

    request = transport.requests[-1]
    assert request.params == {"employeeId": "7"}
    assert request.authorization == "Bearer dummy_token_1044"


async def test_fetch_deliveries_sends_status_filter(api, transport):
    result = await api.fetch_deliveries(7, DeliveryStatus.OUT_FOR_DELIVERY)

    assert [d.id for d in result.data] == [502]
    assert transport.requests[-1].params == {"employeeId": "7", "status": "out_for_delivery"}


async def test_fetch_deliveries_without_results_is_empty(api):
    result = await api.fetch_deliveries(42)

    assert result.data == []


async def test_update_status_requires_token_before_any_request(api, transport):
    with pytest.raises(UnauthorizedError):
        await api.update_status(501, DeliveryStatus.OUT_FOR_DELIVERY)

    assert transport.requests == []


async def test_update_status_sends_body_and_decodes_delivery(api, transport):
    api.set_token("dummy_token_1044")
    updated = await api.update_status(501, DeliveryStatus.DELIVERED, "ສົ່ງສຳເລັດແລ້ວ")

    assert updated.id == 501
    assert updated.status == DeliveryStatus.DELIVERED
    assert updated.actual_delivery_time == "2025-06-01T10:42:00Z"

    request = transport.requests[-1]
    assert request.method == "PATCH"
    assert request.path == "/api/deliveries/501/status"
    assert request.body == {"status": "delivered", "notes": "ສົ່ງສຳເລັດແລ້ວ"}


async def test_update_status_omits_missing_notes(api, transport):
    api.set_token("dummy_token_1044")
    await api.update_status(501, DeliveryStatus.OUT_FOR_DELIVERY)

    assert transport.requests[-1].body == {"status": "out_for_delivery"}


async def test_update_location_body_matches_wire_contract(api, transport, backend):
    api.set_token("dummy_token_1044")
    result = await api.update_location(502, 19.89, 102.14, "near the bridge")

    assert result is None
    request = transport.requests[-1]
    assert request.path == "/api/deliveries/502/location"
    assert request.body == {
        "latitude": 19.89,
        "longitude": 102.14,
        "locationNote": "near the bridge",
        "notifyCustomer": True,
    }
    assert backend.locations[-1]["delivery_id"] == 502


async def test_update_location_without_note(api, transport):
    api.set_token("dummy_token_1044")
    await api.update_location(502, 19.89, 102.14)

    assert transport.requests[-1].body == {"latitude": 19.89, "longitude": 102.14, "notifyCustomer": True}


async def test_server_error_is_rejected_and_retryable(api, backend):
    api.set_token("dummy_token_1044")
    backend.status_failure = 503

    with pytest.raises(ServerRejectedError) as exc_info:
        await api.update_status(501, DeliveryStatus.OUT_FOR_DELIVERY)

    assert exc_info.value.status_code == 503
    assert exc_info.value.message == "No se pudo actualizar el estado"
    assert exc_info.value.retryable is True


async def test_not_found_is_rejected_and_not_retryable(api):
    api.set_token("dummy_token_1044")

    with pytest.raises(ServerRejectedError) as exc_info:
        await api.update_status(999, DeliveryStatus.OUT_FOR_DELIVERY)

    assert exc_info.value.status_code == 404
    assert exc_info.value.retryable is False


async def test_expired_token_maps_to_unauthorized(api, backend):
    api.set_token("dummy_token_1044")
    backend.revoked = True

    with pytest.raises(UnauthorizedError) as exc_info:
        await api.update_status(501, DeliveryStatus.OUT_FOR_DELIVERY)

    assert exc_info.value.status_code == 401


async def test_unexpected_response_shape_is_decoding_error(api, backend):
    backend.broken_list = True

    with pytest.raises(DecodingError):
        await api.fetch_deliveries(7)


async def test_network_failure_is_transport_error(api, transport):
    transport.offline = True

    with pytest.raises(TransportError) as exc_info:
        await api.fetch_deliveries(7)

    assert exc_info.value.retryable is True


async def test_malformed_base_url_is_bad_url(transport):
    async with DeliveryAPIClient(Settings(api_base_url="not a url"), transport=transport) as client:
        with pytest.raises(BadURLError):
            await client.login("1044")

    assert transport.requests == []
    assert client._client.is_closed


async def test_undecodable_body_is_decoding_error():
    def corrupt_gzip(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, headers={"Content-Encoding": "gzip"}, content=b"not gzip")

    async with DeliveryAPIClient(
        Settings(api_base_url=BASE_URL), transport=httpx.MockTransport(corrupt_gzip)
    ) as client:
        client.set_token("dummy_token_1044")
        with pytest.raises(DecodingError) as exc_info:
            await client.update_location(502, 19.88, 102.13)

    assert exc_info.value.retryable is False


async def test_unexpected_httpx_failure_is_transport_error():
    def redirect_loop(request: httpx.Request) -> httpx.Response:
        raise httpx.TooManyRedirects("Exceeded maximum allowed redirects.", request=request)

    async with DeliveryAPIClient(
        Settings(api_base_url=BASE_URL), transport=httpx.MockTransport(redirect_loop)
    ) as client:
        with pytest.raises(TransportError):
            await client.fetch_deliveries(7)
