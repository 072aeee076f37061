"""Razorpay payment gateway client"""

from typing import Dict, Optional

import httpx
import structlog

from app.config import Settings, settings as default_settings
from app.errors import GatewayError
from app.services.gateway.base import BasePaymentGateway, GatewayOrder

logger = structlog.get_logger()


class RazorpayGateway(BasePaymentGateway):
    """Creates Razorpay orders over the REST API.

    Only order creation is needed here: payment completion reaches us through
    the client's signed proof and through webhooks.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = settings or default_settings
        self.key_id = settings.razorpay_key_id
        self._key_secret = settings.razorpay_key_secret
        self.base_url = settings.razorpay_base_url.rstrip("/")
        self.timeout = settings.gateway_timeout_seconds
        self._transport = transport

    @property
    def provider_name(self) -> str:
        return "razorpay"

    @property
    def public_key_id(self) -> str:
        return self.key_id

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            auth=(self.key_id, self._key_secret),
            timeout=self.timeout,
            transport=self._transport,
        )

    async def create_order(
        self,
        amount_minor: int,
        currency: str,
        receipt: str,
        notes: Optional[Dict[str, str]] = None,
    ) -> GatewayOrder:
        """Create a Razorpay order (payment intent)"""
        payload = {
            "amount": amount_minor,
            "currency": currency,
            "receipt": receipt,
            "notes": notes or {},
        }

        logger.debug("Razorpay request", receipt=receipt, amount=amount_minor, currency=currency)

        try:
            async with self._client() as client:
                response = await client.post("/v1/orders", json=payload)
                response.raise_for_status()
                data = response.json()
        except httpx.TimeoutException as e:
            logger.error("Razorpay request timed out", receipt=receipt, timeout=self.timeout)
            raise GatewayError("Payment gateway timed out", cause=e) from e
        except httpx.HTTPStatusError as e:
            logger.error(
                "Razorpay rejected order",
                receipt=receipt,
                status_code=e.response.status_code,
            )
            raise GatewayError(
                f"Failed to create payment order: gateway returned {e.response.status_code}",
                cause=e,
            ) from e
        except httpx.HTTPError as e:
            logger.error("Razorpay transport error", receipt=receipt, error=str(e))
            raise GatewayError("Failed to create payment order", cause=e) from e
        except ValueError as e:
            raise GatewayError("Malformed response from payment gateway", cause=e) from e

        try:
            order = GatewayOrder(
                id=data["id"],
                amount=int(data.get("amount", amount_minor)),
                currency=data.get("currency", currency),
                status=data.get("status", "created"),
                receipt=data.get("receipt", receipt),
                raw=data,
            )
        except (KeyError, TypeError, ValueError) as e:
            raise GatewayError("Malformed response from payment gateway", cause=e) from e

        if order.amount != amount_minor:
            raise GatewayError(
                f"Gateway echoed amount {order.amount}, expected {amount_minor}"
            )

        logger.info("Razorpay order created", gateway_order_id=order.id, receipt=receipt)
        return order
