"""Integration tests for the full order and payment flow over HTTP"""

import json
from decimal import Decimal
from uuid import uuid4

import pytest
from httpx import AsyncClient

from app.services.signatures import payment_signature, webhook_signature


def order_payload(restaurant, address, item, quantity=2):
    return {
        "restaurant_id": str(restaurant.id),
        "delivery_address_id": str(address.id),
        "items": [{"menu_item_id": str(item.id), "quantity": quantity}],
        "delivery_instructions": "Leave at the door",
    }


@pytest.mark.asyncio
async def test_full_order_flow(
    client: AsyncClient,
    auth_headers,
    settings,
    customer,
    restaurant,
    restaurant_owner,
    delivery_partner,
    menu_items,
    address,
):
    """
    Integration test simulating a full order flow:
    1. Customer places an order for two biryanis
    2. Customer pays: intent, then checkout verification
    3. The capture webhook arrives late and changes nothing
    4. Restaurant prepares, assigns a rider, rider delivers
    """
    customer_headers = auth_headers(customer)
    owner_headers = auth_headers(restaurant_owner)
    rider_headers = auth_headers(delivery_partner)

    # Step 1: Place order
    response = await client.post(
        "/orders",
        json=order_payload(restaurant, address, menu_items["biryani"]),
        headers=customer_headers,
    )
    assert response.status_code == 201
    order = response.json()
    assert order["status"] == "placed"
    assert Decimal(order["subtotal"]) == Decimal("598.00")
    assert Decimal(order["tax"]) == Decimal("29.90")
    assert Decimal(order["delivery_fee"]) == Decimal("30.00")
    assert Decimal(order["total_amount"]) == Decimal("657.90")
    assert order["delivery_address"] == "12 MG Road, Bengaluru, Karnataka - 560001"
    order_id = order["id"]

    # Step 2: Pay
    response = await client.post(f"/payments/create/{order_id}", headers=customer_headers)
    assert response.status_code == 201
    intent = response.json()
    assert intent["amount_minor"] == 65790
    assert intent["currency"] == "INR"
    assert intent["key_id"] == "rzp_test_key"
    gateway_order_id = intent["gateway_order_id"]

    response = await client.post(
        "/payments/verify",
        json={
            "razorpay_order_id": gateway_order_id,
            "razorpay_payment_id": "pay_29QQoUBi66xm2f",
            "razorpay_signature": payment_signature(
                settings.razorpay_key_secret, gateway_order_id, "pay_29QQoUBi66xm2f"
            ),
        },
        headers=customer_headers,
    )
    assert response.status_code == 200
    assert response.json()["status"] == "success"

    response = await client.get(f"/orders/{order_id}", headers=customer_headers)
    assert response.json()["status"] == "confirmed"
    assert response.json()["payment"]["status"] == "success"

    # Step 3: Late webhook
    body = json.dumps(
        {
            "event": "payment.captured",
            "payload": {"payment": {"entity": {"id": "pay_29QQoUBi66xm2f", "order_id": gateway_order_id}}},
        }
    ).encode("utf-8")
    response = await client.post(
        "/webhooks/razorpay",
        content=body,
        headers={
            "Content-Type": "application/json",
            "X-Razorpay-Signature": webhook_signature(settings.razorpay_webhook_secret, body),
        },
    )
    assert response.status_code == 200
    assert response.json()["status"] == "duplicate"

    # Step 4: Fulfilment
    response = await client.patch(
        f"/orders/{order_id}/status", json={"status": "preparing"}, headers=owner_headers
    )
    assert response.status_code == 200
    assert response.json()["status"] == "preparing"

    response = await client.patch(
        f"/orders/{order_id}/assign-delivery",
        json={"delivery_partner_id": str(delivery_partner.id)},
        headers=owner_headers,
    )
    assert response.status_code == 200
    assert response.json()["delivery_partner_name"] == "Ravi Kumar"

    response = await client.get("/orders/assigned", headers=rider_headers)
    assert [o["id"] for o in response.json()["items"]] == [order_id]

    for status in ("out_for_delivery", "delivered"):
        response = await client.patch(
            f"/orders/{order_id}/status", json={"status": status}, headers=rider_headers
        )
        assert response.status_code == 200
        assert response.json()["status"] == status

    assert response.json()["actual_delivery_time"] is not None


@pytest.mark.asyncio
async def test_requires_authentication(client: AsyncClient):
    response = await client.get("/orders")
    assert response.status_code == 401

    response = await client.get("/orders", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_current_user(client: AsyncClient, auth_headers, customer):
    response = await client.get("/auth/me", headers=auth_headers(customer))
    assert response.status_code == 200
    assert response.json()["email"] == "asha@example.com"
    assert response.json()["role"] == "customer"


@pytest.mark.asyncio
async def test_below_minimum_is_400(client: AsyncClient, auth_headers, customer, restaurant, menu_items, address):
    response = await client.post(
        "/orders",
        json=order_payload(restaurant, address, menu_items["lassi"], quantity=1),
        headers=auth_headers(customer),
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Minimum order amount is ₹200.00"

    response = await client.get("/orders", headers=auth_headers(customer))
    assert response.json()["total"] == 0


@pytest.mark.asyncio
async def test_error_statuses(client: AsyncClient, auth_headers, customer, other_customer, placed_order):
    response = await client.get(f"/orders/{uuid4()}", headers=auth_headers(customer))
    assert response.status_code == 404

    response = await client.get(f"/orders/{placed_order.id}", headers=auth_headers(other_customer))
    assert response.status_code == 403

    response = await client.post(f"/orders/{placed_order.id}/cancel", headers=auth_headers(customer))
    assert response.status_code == 200
    assert response.json()["status"] == "cancelled"

    response = await client.post(f"/orders/{placed_order.id}/cancel", headers=auth_headers(customer))
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_invalid_transition_is_409(client: AsyncClient, auth_headers, restaurant_owner, placed_order):
    response = await client.patch(
        f"/orders/{placed_order.id}/status",
        json={"status": "delivered"},
        headers=auth_headers(restaurant_owner),
    )
    assert response.status_code == 409
    assert response.json()["detail"] == "Invalid status transition from placed to delivered"


@pytest.mark.asyncio
async def test_get_by_number_and_restaurant_listing(
    client: AsyncClient, auth_headers, customer, restaurant, restaurant_owner, placed_order
):
    response = await client.get(
        f"/orders/number/{placed_order.order_number}", headers=auth_headers(customer)
    )
    assert response.status_code == 200
    assert response.json()["id"] == str(placed_order.id)

    response = await client.get(f"/orders/restaurant/{restaurant.id}", headers=auth_headers(restaurant_owner))
    assert response.status_code == 200
    assert response.json()["total"] == 1

    response = await client.get(f"/orders/restaurant/{restaurant.id}", headers=auth_headers(customer))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_forged_verification_is_402(client: AsyncClient, auth_headers, customer, payment_intent):
    response = await client.post(
        "/payments/verify",
        json={
            "razorpay_order_id": payment_intent.gateway_order_id,
            "razorpay_payment_id": "pay_1",
            "razorpay_signature": "0" * 64,
        },
        headers=auth_headers(customer),
    )
    assert response.status_code == 402

    response = await client.get(f"/payments/order/{payment_intent.order_id}", headers=auth_headers(customer))
    assert response.json()["status"] == "failed"
    assert response.json()["failure_reason"] == "signature verification failed"


@pytest.mark.asyncio
async def test_unknown_intent_verification_looks_like_bad_signature(client: AsyncClient, auth_headers, customer):
    response = await client.post(
        "/payments/verify",
        json={
            "razorpay_order_id": "order_does_not_exist",
            "razorpay_payment_id": "pay_1",
            "razorpay_signature": "0" * 64,
        },
        headers=auth_headers(customer),
    )
    assert response.status_code == 402
    assert response.json()["detail"] == "Payment verification failed"


@pytest.mark.asyncio
async def test_webhook_bad_signature_is_403(client: AsyncClient):
    response = await client.post(
        "/webhooks/razorpay",
        content=b'{"event": "payment.captured"}',
        headers={"X-Razorpay-Signature": "bogus"},
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_already_paid_is_409(client: AsyncClient, auth_headers, settings, customer, payment_intent):
    gateway_order_id = payment_intent.gateway_order_id
    await client.post(
        "/payments/verify",
        json={
            "razorpay_order_id": gateway_order_id,
            "razorpay_payment_id": "pay_1",
            "razorpay_signature": payment_signature(settings.razorpay_key_secret, gateway_order_id, "pay_1"),
        },
        headers=auth_headers(customer),
    )

    response = await client.post(f"/payments/create/{payment_intent.order_id}", headers=auth_headers(customer))
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


@pytest.mark.asyncio
async def test_token_url_points_at_identity_service(client: AsyncClient, settings):
    response = await client.get("/openapi.json")
    assert response.status_code == 200

    schemes = response.json()["components"]["securitySchemes"]
    assert schemes["OAuth2PasswordBearer"]["flows"]["password"]["tokenUrl"] == settings.identity_token_url
