from datetime import datetime, timezone

import httpx
import pytest
import pytest_asyncio

from api.dependencies import get_pos_service
from application.services.pos_service import PosTransactionService
from domain.common.exceptions import GatewayUnavailableException
from main import app


@pytest_asyncio.fixture
async def client(service):
    async def _override() -> PosTransactionService:
        return service

    app.dependency_overrides[get_pos_service] = _override
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


def test_pos_routes_registered():
    expected = {
        "create_transaction": "/api/v1/pos/transaction",
        "cancel_transaction": "/api/v1/pos/cancel",
        "void_transaction": "/api/v1/pos/void",
        "query_transaction": "/api/v1/pos/query",
        "reverse_transaction": "/api/v1/pos/reverse",
    }
    for name, path in expected.items():
        assert app.url_path_for(name) == path


@pytest.mark.asyncio
async def test_sale_returns_outcome_with_diagnostics(client, store, gateway, order_factory):
    store.add(order_factory(1))
    gateway.queue({"ResponseCode": 0, "TransactionId": 42, "STransactionId": "42"})

    resp = await client.post("/api/v1/pos/transaction", json={"amount": 1500.50, "order_id": 1})

    assert resp.status_code == 200
    body = resp.json()
    assert body["code"] == 0
    data = body["data"]
    assert data["isCompleted"] is True
    assert data["statusCode"] == 0
    assert data["statusMessage"] == "Resultado OK"
    assert data["transactionId"] == 42
    assert '"Amount":"150050"' in data["requestJson"]
    assert data["response"] == '{"ResponseCode": 0, "TransactionId": 42, "STransactionId": "42"}'
    assert resp.headers["X-Request-ID"]


@pytest.mark.asyncio
async def test_request_id_is_echoed(client, gateway):
    gateway.queue({"ResponseCode": 0})
    resp = await client.post(
        "/api/v1/pos/transaction",
        json={"amount": 10},
        headers={"X-Request-ID": "req-123"},
    )
    assert resp.headers["X-Request-ID"] == "req-123"


@pytest.mark.asyncio
async def test_pending_sale_maps_to_202(client, gateway):
    gateway.queue({"ResponseCode": 10})

    resp = await client.post("/api/v1/pos/transaction", json={"amount": 10})

    assert resp.status_code == 202
    body = resp.json()
    assert body["code"] == 61002
    assert body["error"]["type"] == "GatewayPending"
    assert body["error"]["details"]["request_json"]


@pytest.mark.asyncio
async def test_rejected_sale_maps_to_502(client, gateway):
    gateway.queue({"ResponseCode": 109})

    resp = await client.post("/api/v1/pos/transaction", json={"amount": 10})

    assert resp.status_code == 502
    assert resp.json()["message"] == "Moneda ingresada no válida"


@pytest.mark.asyncio
async def test_unreachable_terminal_maps_to_503(client, gateway):
    gateway.queue(GatewayUnavailableException("timeout"))
    resp = await client.post("/api/v1/pos/transaction", json={"amount": 10})
    assert resp.status_code == 503
    assert resp.json()["code"] == 61000


@pytest.mark.asyncio
async def test_terminal_http_error_maps_to_502(client, gateway):
    gateway.queue(GatewayUnavailableException("HTTP 500", status=500, body="boom"))
    resp = await client.post("/api/v1/pos/transaction", json={"amount": 10})
    assert resp.status_code == 502
    assert resp.json()["error"]["details"]["body"] == "boom"


@pytest.mark.asyncio
async def test_invalid_amount_maps_to_422(client, gateway):
    resp = await client.post("/api/v1/pos/transaction", json={"amount": 0})
    assert resp.status_code == 422
    assert resp.json()["code"] == 10003
    assert gateway.calls == []


@pytest.mark.asyncio
async def test_unknown_order_maps_to_404(client):
    resp = await client.post("/api/v1/pos/void", json={"amount": 10, "order_id": 404})
    assert resp.status_code == 404
    assert resp.json()["error"]["type"] == "OrderNotFound"


@pytest.mark.asyncio
async def test_duplicate_refund_maps_to_409(client, store, gateway, order_factory):
    store.add(order_factory(1, pos_transaction_id=555, pos_refunded_at=datetime(2025, 3, 1, tzinfo=timezone.utc)))

    resp = await client.post("/api/v1/pos/cancel", json={"amount": 10, "order_id": 1})

    assert resp.status_code == 409
    assert resp.json()["code"] == 60010
    assert gateway.calls == []


@pytest.mark.asyncio
async def test_missing_ticket_maps_to_422(client, store, order_factory):
    store.add(order_factory(1))
    resp = await client.post("/api/v1/pos/cancel", json={"amount": 10, "order_id": 1})
    assert resp.status_code == 422
    assert resp.json()["error"]["field"] == "ticket_number"


@pytest.mark.asyncio
async def test_query_reports_pending_as_success(client, gateway):
    gateway.queue({"ResponseCode": 11, "RemainingExpirationTime": 25})

    resp = await client.post("/api/v1/pos/query", json={"transaction_id": 42})

    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["isPending"] is True
    assert data["remainingExpirationTime"] == 25


@pytest.mark.asyncio
async def test_query_wait_polls_until_settled(client, service, gateway):
    service.settings = service.settings.model_copy(update={"poll": service.settings.poll.model_copy(update={"interval_seconds": 0})})
    gateway.queue({"ResponseCode": 11}, {"ResponseCode": 0, "TransactionId": 42})

    resp = await client.post("/api/v1/pos/query?wait=true", json={"transaction_id": 42})

    assert resp.status_code == 200
    assert resp.json()["data"]["isCompleted"] is True
    assert len(gateway.calls) == 2


@pytest.mark.asyncio
async def test_reverse_route(client, store, gateway, order_factory):
    store.add(order_factory(1, pos_transaction_id=555, pos_transaction_datetime="20250311093000123"))
    gateway.queue({"ResponseCode": 0, "TransactionId": 555})

    resp = await client.post("/api/v1/pos/reverse", json={"order_id": 1})

    assert resp.status_code == 200
    assert resp.json()["data"]["transactionDateTime"] == "20250311093000123"
    assert store.orders[1].is_reversed()
