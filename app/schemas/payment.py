"""Payment schemas"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional
from uuid import UUID
from pydantic import BaseModel

from app.models.payment import PaymentStatus


class PaymentIntentResponse(BaseModel):
    """Everything the client checkout needs to collect the payment"""
    payment_id: UUID
    order_id: UUID
    order_number: str
    gateway_order_id: str
    amount: Decimal
    amount_minor: int
    currency: str
    status: PaymentStatus
    key_id: str  # Publishable key only
    customer_name: Optional[str]
    customer_email: Optional[str]
    customer_phone: Optional[str]


class VerifyPaymentRequest(BaseModel):
    """Proof of payment as returned by the Razorpay checkout"""
    razorpay_order_id: str
    razorpay_payment_id: str
    razorpay_signature: str


class PaymentResponse(BaseModel):
    """Payment response"""
    id: UUID
    order_id: UUID
    attempt: int
    gateway_order_id: str
    gateway_payment_id: Optional[str]
    amount: Decimal
    currency: str
    status: PaymentStatus
    failure_reason: Optional[str]
    created_at: datetime
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True


class WebhookPaymentEntity(BaseModel):
    """payload.payment.entity of a Razorpay payment event"""
    id: str
    order_id: str
    error_description: Optional[str] = None


class WebhookEvent(BaseModel):
    """Razorpay webhook envelope; only ``event`` is required for unhandled events"""
    event: str
    payload: Dict[str, Any] = {}


class WebhookOutcome(BaseModel):
    """What a webhook delivery did: processed, duplicate (replay) or ignored"""
    status: str
    event: str
    gateway_order_id: Optional[str] = None
