"""Base payment gateway interface"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, Optional


@dataclass(frozen=True)
class GatewayOrder:
    """
    A payment intent created on the gateway side.

    Attributes:
        id: Opaque intent id (Razorpay "order_xxx")
        amount: Amount in minor units, as echoed by the gateway
        currency: Three-letter currency code
        status: Gateway-side status ("created" for a fresh intent)
        receipt: Our reference attached to the intent (the order number)
    """
    id: str
    amount: int
    currency: str
    status: str = "created"
    receipt: Optional[str] = None
    raw: Dict = field(default_factory=dict)


class BasePaymentGateway(ABC):
    """Abstract base class for payment gateways"""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Provider name, e.g. "mock" or "razorpay" """

    @property
    @abstractmethod
    def public_key_id(self) -> str:
        """Publishable key the client checkout needs; never the secret"""

    @abstractmethod
    async def create_order(
        self,
        amount_minor: int,
        currency: str,
        receipt: str,
        notes: Optional[Dict[str, str]] = None,
    ) -> GatewayOrder:
        """
        Create a payment intent for the given amount.

        Raises:
            GatewayError: transport failure, timeout, or provider rejection
        """
