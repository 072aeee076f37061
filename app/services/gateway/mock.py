"""
Mock payment gateway.

Used in development (PAYMENT_GATEWAY=mock) and in tests. Generates
Razorpay-like ids without any network call. ``fail_with`` makes every call
raise a GatewayError, to exercise the no-partial-state path. ``record``
keeps every created order in ``created`` for assertions; it is off by default
because the factory caches one instance for the process lifetime.
"""

import uuid
from typing import Dict, List, Optional

import structlog

from app.errors import GatewayError
from app.services.gateway.base import BasePaymentGateway, GatewayOrder

logger = structlog.get_logger()


class MockPaymentGateway(BasePaymentGateway):
    """In-process gateway double"""

    def __init__(
        self,
        key_id: str = "rzp_test_mock",
        fail_with: Optional[str] = None,
        record: bool = False,
    ):
        self.key_id = key_id
        self.fail_with = fail_with
        self.record = record
        self.created: List[GatewayOrder] = []

    @property
    def provider_name(self) -> str:
        return "mock"

    @property
    def public_key_id(self) -> str:
        return self.key_id

    async def create_order(
        self,
        amount_minor: int,
        currency: str,
        receipt: str,
        notes: Optional[Dict[str, str]] = None,
    ) -> GatewayOrder:
        if self.fail_with:
            logger.warning("Mock gateway failure", receipt=receipt, reason=self.fail_with)
            raise GatewayError(self.fail_with)

        order = GatewayOrder(
            id=f"order_mock_{uuid.uuid4().hex[:14]}",
            amount=amount_minor,
            currency=currency,
            receipt=receipt,
            raw={"notes": notes or {}},
        )
        if self.record:
            self.created.append(order)

        logger.debug("Mock gateway order created", gateway_order_id=order.id, amount=amount_minor)
        return order
