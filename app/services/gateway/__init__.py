"""
Payment gateway factory.

Usage:
    from app.services.gateway import get_payment_gateway

    gateway = get_payment_gateway()  # MockPaymentGateway or RazorpayGateway
    intent = await gateway.create_order(65790, "INR", receipt="ORD-...")

PAYMENT_GATEWAY=mock selects the in-process double, PAYMENT_GATEWAY=razorpay
the real REST client.
"""

from functools import lru_cache

import structlog

from app.config import get_settings
from app.services.gateway.base import BasePaymentGateway, GatewayOrder
from app.services.gateway.mock import MockPaymentGateway
from app.services.gateway.razorpay import RazorpayGateway

logger = structlog.get_logger()


@lru_cache()
def get_payment_gateway() -> BasePaymentGateway:
    """Return the configured gateway (cached for the process lifetime)"""
    settings = get_settings()

    if settings.payment_gateway == "razorpay":
        logger.info("Payment gateway: razorpay", base_url=settings.razorpay_base_url)
        return RazorpayGateway(settings)

    if settings.payment_gateway != "mock":
        raise ValueError(
            f"Unknown payment_gateway {settings.payment_gateway!r}, expected 'mock' or 'razorpay'"
        )

    logger.info("Payment gateway: mock")
    return MockPaymentGateway(key_id=settings.razorpay_key_id)


__all__ = [
    "get_payment_gateway",
    "BasePaymentGateway",
    "GatewayOrder",
    "MockPaymentGateway",
    "RazorpayGateway",
]
