import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from paystatus.exceptions import PaymentsApiError
from paystatus.schemas import OrderStatus
from paystatus.services.payments_api import get_order_status, create_payment, simulate_callback

SEEN = web.AppKey("seen", list)


async def _order_status(request: web.Request):
    order_id = request.match_info["order_id"]
    if order_id == "ORD-500":
        return web.json_response({"error": "internal"}, status=500)
    if order_id == "ORD-BROKEN":
        return web.Response(text="<html>oops</html>", content_type="text/html")
    if order_id == "ORD-LIST":
        return web.json_response([1, 2, 3])
    return web.json_response({
        "found": True,
        "status": "SUCCESS",
        "merchantOrderId": order_id,
        "reference": "REF123",
        "amount": 150000,
        "paymentMethod": "VC",
        "statusMessage": "OK",
    })

async def _create_payment(request: web.Request):
    body = await request.json()
    request.app[SEEN].append(body)
    if body["price"] <= 0:
        return web.json_response({"error": "bad price"}, status=400)
    return web.json_response({"merchantOrderId": "ORD-9", "paymentUrl": "https://pay.example/ORD-9"})

async def _simulate(request: web.Request):
    body = await request.json()
    request.app[SEEN].append(body)
    return web.json_response({"message": "Status updated"})


@pytest.fixture
async def server():
    app = web.Application()
    app[SEEN] = []
    app.router.add_get("/api/order_status/{order_id}", _order_status)
    app.router.add_post("/api/create_payment", _create_payment)
    app.router.add_post("/api/simulate_callback", _simulate)
    srv = TestServer(app)
    await srv.start_server()
    yield srv
    await srv.close()


def _base(srv: TestServer) -> str:
    return str(srv.make_url("")).rstrip("/")


async def test_get_order_status_parses_body(server):
    data = await get_order_status("ORD-1", base=_base(server))

    assert data.found is True
    assert data.status is OrderStatus.SUCCESS
    assert data.merchant_order_id == "ORD-1"
    assert data.reference == "REF123"
    assert data.amount == 150000
    assert data.payment_method == "VC"
    assert data.status_message == "OK"

async def test_http_error_raises(server):
    with pytest.raises(PaymentsApiError) as exc:
        await get_order_status("ORD-500", base=_base(server))
    assert exc.value.status == 500
    assert "internal" in str(exc.value)

async def test_malformed_body_raises(server):
    with pytest.raises(PaymentsApiError):
        await get_order_status("ORD-BROKEN", base=_base(server))
    with pytest.raises(PaymentsApiError):
        await get_order_status("ORD-LIST", base=_base(server))

async def test_transport_error_raises(unused_tcp_port):
    with pytest.raises(PaymentsApiError) as exc:
        await get_order_status("ORD-1", base=f"http://127.0.0.1:{unused_tcp_port}")
    assert exc.value.status is None

async def test_create_payment(server):
    result = await create_payment("Landing page", 150000, base=_base(server))

    assert result.merchant_order_id == "ORD-9"
    assert result.payment_url == "https://pay.example/ORD-9"
    assert server.app[SEEN] == [{"productName": "Landing page", "price": 150000}]

async def test_create_payment_error(server):
    with pytest.raises(PaymentsApiError) as exc:
        await create_payment("Landing page", 0, base=_base(server))
    assert exc.value.status == 400

async def test_simulate_callback_body(server):
    resp = await simulate_callback("ORD-1", "00", base=_base(server))

    assert resp.message == "Status updated"
    assert server.app[SEEN] == [{"merchantOrderId": "ORD-1", "resultCode": "00"}]
