"""Pydantic schemas for request/response validation"""

from app.schemas.order import (
    OrderCreate,
    OrderItemCreate,
    OrderStatusUpdate,
    AssignDeliveryRequest,
    OrderItemResponse,
    PaymentInfo,
    OrderResponse,
    OrderListResponse,
)
from app.schemas.payment import (
    PaymentIntentResponse,
    VerifyPaymentRequest,
    PaymentResponse,
    WebhookEvent,
    WebhookPaymentEntity,
    WebhookOutcome,
)

__all__ = [
    "OrderCreate",
    "OrderItemCreate",
    "OrderStatusUpdate",
    "AssignDeliveryRequest",
    "OrderItemResponse",
    "PaymentInfo",
    "OrderResponse",
    "OrderListResponse",
    "PaymentIntentResponse",
    "VerifyPaymentRequest",
    "PaymentResponse",
    "WebhookEvent",
    "WebhookPaymentEntity",
    "WebhookOutcome",
]
