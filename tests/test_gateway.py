"""Tests for the payment gateway clients"""

import base64
import json

import httpx
import pytest

from app.config import Settings
from app.errors import GatewayError
from app.services import gateway as gateway_module
from app.services.gateway import MockPaymentGateway, RazorpayGateway, get_payment_gateway

TEST_SETTINGS = Settings(
    razorpay_key_id="rzp_test_abc",
    razorpay_key_secret="shh",
    razorpay_base_url="https://razorpay.test",
    gateway_timeout_seconds=2.0,
)


def razorpay_with(handler):
    return RazorpayGateway(TEST_SETTINGS, transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_razorpay_create_order():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["host"] = request.url.host
        seen["auth"] = request.headers["authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(
            200,
            json={
                "id": "order_EKwxwAgItmmXdp",
                "entity": "order",
                "amount": 65790,
                "currency": "INR",
                "receipt": seen["body"]["receipt"],
                "status": "created",
            },
        )

    order = await razorpay_with(handler).create_order(
        65790, "INR", receipt="ORD-20240115-9F2C41AB", notes={"order_id": "42"}
    )

    assert order.id == "order_EKwxwAgItmmXdp"
    assert order.amount == 65790
    assert order.currency == "INR"
    assert order.status == "created"
    assert order.receipt == "ORD-20240115-9F2C41AB"

    assert seen["host"] == "razorpay.test"
    assert seen["path"] == "/v1/orders"
    assert seen["auth"] == "Basic " + base64.b64encode(b"rzp_test_abc:shh").decode()
    assert seen["body"] == {
        "amount": 65790,
        "currency": "INR",
        "receipt": "ORD-20240115-9F2C41AB",
        "notes": {"order_id": "42"},
    }


@pytest.mark.asyncio
async def test_razorpay_public_key_only():
    gateway = RazorpayGateway(TEST_SETTINGS)
    assert gateway.provider_name == "razorpay"
    assert gateway.public_key_id == "rzp_test_abc"


@pytest.mark.asyncio
async def test_razorpay_rejection():
    def handler(request):
        return httpx.Response(400, json={"error": {"code": "BAD_REQUEST_ERROR"}})

    with pytest.raises(GatewayError) as exc_info:
        await razorpay_with(handler).create_order(65790, "INR", receipt="r1")

    assert "400" in exc_info.value.message
    assert exc_info.value.status_code == 503


@pytest.mark.asyncio
async def test_razorpay_timeout():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(GatewayError) as exc_info:
        await razorpay_with(handler).create_order(65790, "INR", receipt="r1")

    assert exc_info.value.message == "Payment gateway timed out"
    assert isinstance(exc_info.value.cause, httpx.TimeoutException)


@pytest.mark.asyncio
async def test_razorpay_connection_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(GatewayError):
        await razorpay_with(handler).create_order(65790, "INR", receipt="r1")


@pytest.mark.asyncio
async def test_razorpay_malformed_body():
    def handler(request):
        return httpx.Response(200, content=b"<html>maintenance</html>")

    with pytest.raises(GatewayError):
        await razorpay_with(handler).create_order(65790, "INR", receipt="r1")


@pytest.mark.asyncio
async def test_razorpay_response_without_id():
    def handler(request):
        return httpx.Response(200, json={"amount": 65790, "currency": "INR"})

    with pytest.raises(GatewayError):
        await razorpay_with(handler).create_order(65790, "INR", receipt="r1")


@pytest.mark.asyncio
async def test_razorpay_amount_mismatch():
    def handler(request):
        return httpx.Response(200, json={"id": "order_1", "amount": 65700, "currency": "INR"})

    with pytest.raises(GatewayError):
        await razorpay_with(handler).create_order(65790, "INR", receipt="r1")


@pytest.mark.asyncio
async def test_mock_gateway():
    gateway = MockPaymentGateway(key_id="rzp_test_key", record=True)

    first = await gateway.create_order(100, "INR", receipt="ORD-1")
    second = await gateway.create_order(200, "INR", receipt="ORD-2")

    assert first.id.startswith("order_mock_")
    assert first.id != second.id
    assert [o.receipt for o in gateway.created] == ["ORD-1", "ORD-2"]
    assert gateway.public_key_id == "rzp_test_key"


@pytest.mark.asyncio
async def test_mock_gateway_forced_failure():
    gateway = MockPaymentGateway(fail_with="gateway down", record=True)

    with pytest.raises(GatewayError) as exc_info:
        await gateway.create_order(100, "INR", receipt="ORD-1")

    assert exc_info.value.message == "gateway down"
    assert gateway.created == []


@pytest.mark.asyncio
async def test_mock_gateway_keeps_nothing_by_default():
    gateway = MockPaymentGateway()

    await gateway.create_order(100, "INR", receipt="ORD-1")

    assert gateway.created == []


@pytest.mark.parametrize(
    "name,expected",
    [("mock", MockPaymentGateway), ("razorpay", RazorpayGateway)],
)
def test_gateway_factory(monkeypatch, name, expected):
    monkeypatch.setattr(gateway_module, "get_settings", lambda: Settings(payment_gateway=name))
    get_payment_gateway.cache_clear()
    try:
        assert isinstance(get_payment_gateway(), expected)
    finally:
        get_payment_gateway.cache_clear()


def test_gateway_factory_rejects_unknown(monkeypatch):
    monkeypatch.setattr(gateway_module, "get_settings", lambda: Settings(payment_gateway="paypal"))
    get_payment_gateway.cache_clear()
    try:
        with pytest.raises(ValueError):
            get_payment_gateway()
    finally:
        get_payment_gateway.cache_clear()
