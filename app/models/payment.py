"""Payment model for gateway settlement"""

import enum
import uuid
from datetime import datetime
from sqlalchemy import (
    Column, String, DateTime, ForeignKey, Integer, Numeric, Enum, Uuid, Index, UniqueConstraint, text,
)
from sqlalchemy.orm import relationship

from app.database import Base


class PaymentStatus(str, enum.Enum):
    CREATED = "created"
    SUCCESS = "success"
    FAILED = "failed"
    REFUNDED = "refunded"  # Reachable only from SUCCESS, handled outside this service


# Statuses a verified capture may move from. A failed row (e.g. a forged proof)
# can still be settled by a genuine capture, unless another attempt for the
# same order has already succeeded.
SETTLEABLE_STATUSES = frozenset({PaymentStatus.CREATED, PaymentStatus.FAILED})


class Payment(Base):
    """One payment attempt for an order; the successful attempt, else the latest, governs"""
    __tablename__ = "payments"
    __table_args__ = (
        UniqueConstraint("order_id", "attempt", name="uq_payments_order_attempt"),
        # At most one successful payment per order
        Index(
            "uq_payments_order_success",
            "order_id",
            unique=True,
            postgresql_where=text("status = 'SUCCESS'"),
            sqlite_where=text("status = 'SUCCESS'"),
        ),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    order_id = Column(Uuid, ForeignKey("orders.id"), nullable=False, index=True)
    attempt = Column(Integer, nullable=False, default=1)

    # Gateway references
    gateway_order_id = Column(String(64), unique=True, nullable=False)  # Payment intent id
    gateway_payment_id = Column(String(64), index=True)
    gateway_signature = Column(String(128))

    # Fixed at creation
    amount = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="INR")

    status = Column(Enum(PaymentStatus), nullable=False, default=PaymentStatus.CREATED)
    failure_reason = Column(String(500))

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    order = relationship("Order", back_populates="payments")


def governing_payment(payments):
    """The attempt that decides an order's payment state: the settled one if any, else the latest"""
    for payment in payments:
        if payment.status in (PaymentStatus.SUCCESS, PaymentStatus.REFUNDED):
            return payment
    return payments[-1] if payments else None
