import asyncio
import time
from decimal import Decimal

import httpx
import pytest
import respx

from application.ports.pos_gateway import PosGateway
from application.services.pos_service import PosTransactionService
from domain.common.exceptions import GatewayUnavailableException
from infrastructure.external.pos import get_pos_gateway
from infrastructure.external.pos.itd_client import ItdPosClient


SALE_URL = "https://poslink.hm.opos.com.uy/itdServer/processFinancialPurchase"


def test_factory_returns_itd_client():
    assert isinstance(get_pos_gateway(), ItdPosClient)
    assert isinstance(get_pos_gateway("POSLINK"), ItdPosClient)
    with pytest.raises(ValueError):
        get_pos_gateway("unknown")


def test_client_satisfies_port():
    assert isinstance(ItdPosClient(), PosGateway)


@pytest.mark.asyncio
async def test_send_posts_raw_json_body():
    client = ItdPosClient(timeout=5)
    with respx.mock:
        route = respx.post(SALE_URL).mock(return_value=httpx.Response(200, text='{"ResponseCode":0}'))
        status, text = await client.send(SALE_URL, '{"PosID":"1","Amount":"100"}')
    await client.aclose()

    assert status == 200
    assert text == '{"ResponseCode":0}'
    request = route.calls.last.request
    assert request.content == b'{"PosID":"1","Amount":"100"}'
    assert request.headers["content-type"] == "application/json; charset=UTF-8"


@pytest.mark.asyncio
async def test_non_success_status_raises_with_body():
    client = ItdPosClient()
    with respx.mock:
        respx.post(SALE_URL).mock(return_value=httpx.Response(500, text="Internal error"))
        with pytest.raises(GatewayUnavailableException) as exc:
            await client.send(SALE_URL, "{}")
    await client.aclose()

    assert exc.value.status == 500
    assert exc.value.body == "Internal error"
    assert exc.value.details["endpoint"] == SALE_URL


@pytest.mark.asyncio
async def test_timeout_raises_unavailable_without_status():
    client = ItdPosClient(timeout=0.1)
    with respx.mock:
        route = respx.post(SALE_URL).mock(side_effect=httpx.ReadTimeout("timed out"))
        with pytest.raises(GatewayUnavailableException) as exc:
            await client.send(SALE_URL, "{}")
    await client.aclose()

    assert exc.value.status is None
    # A timed out financial request is never resent
    assert route.call_count == 1


@pytest.mark.asyncio
async def test_slow_body_is_cut_at_overall_deadline():
    async def trickle(reader, writer):
        await reader.read(65536)
        writer.write(b"HTTP/1.1 200 OK\r\nContent-Type: application/json\r\nContent-Length: 40\r\n\r\n")
        await writer.drain()
        try:
            for _ in range(40):
                writer.write(b" ")
                await writer.drain()
                await asyncio.sleep(0.3)
        except (ConnectionError, OSError):
            pass
        finally:
            writer.close()

    server = await asyncio.start_server(trickle, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    client = ItdPosClient(timeout=1.0)
    started = time.monotonic()
    try:
        with pytest.raises(GatewayUnavailableException) as exc:
            await client.send(f"http://127.0.0.1:{port}/itdServer/processFinancialPurchase", "{}")
        elapsed = time.monotonic() - started
    finally:
        await client.aclose()
        server.close()
        await server.wait_closed()

    assert exc.value.status is None
    assert elapsed < 2.5


@pytest.mark.asyncio
async def test_connection_error_raises_unavailable():
    client = ItdPosClient()
    with respx.mock:
        respx.post(SALE_URL).mock(side_effect=httpx.ConnectError("refused"))
        with pytest.raises(GatewayUnavailableException):
            await client.send(SALE_URL, "{}")
    await client.aclose()


@pytest.mark.asyncio
async def test_sale_end_to_end_over_http(store, gateway_config, order_factory, fixed_now):
    store.add(order_factory(1))
    client = ItdPosClient()
    service = PosTransactionService(client, store, gateway_config, clock=lambda: fixed_now)
    with respx.mock:
        route = respx.post(SALE_URL).mock(
            return_value=httpx.Response(200, json={"ResponseCode": 0, "TransactionId": 42, "STransactionId": "42"})
        )
        outcome = await service.sale(Decimal("1500.50"), order_id=1)
    await service.aclose()

    assert outcome.is_completed
    assert b'"Amount":"150050"' in route.calls.last.request.content
    assert store.orders[1].pos_transaction_id == 42
