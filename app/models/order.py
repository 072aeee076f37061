"""Order aggregate: orders, their lines, and the status state machine"""

import enum
import uuid
from datetime import datetime
from typing import Dict, FrozenSet

from sqlalchemy import Column, String, DateTime, ForeignKey, Integer, Numeric, Text, Enum, Uuid
from sqlalchemy.orm import relationship

from app.database import Base
from app.errors import InvalidTransitionError


class OrderStatus(str, enum.Enum):
    """Order lifecycle states"""
    PLACED = "placed"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


# current status -> statuses it may move to
ORDER_TRANSITIONS: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    OrderStatus.PLACED: frozenset({OrderStatus.CONFIRMED, OrderStatus.CANCELLED}),
    OrderStatus.CONFIRMED: frozenset({OrderStatus.PREPARING, OrderStatus.CANCELLED}),
    OrderStatus.PREPARING: frozenset({OrderStatus.OUT_FOR_DELIVERY}),
    OrderStatus.OUT_FOR_DELIVERY: frozenset({OrderStatus.DELIVERED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

CANCELLABLE_STATUSES = frozenset({OrderStatus.PLACED, OrderStatus.CONFIRMED})
TERMINAL_STATUSES = frozenset(
    status for status, allowed in ORDER_TRANSITIONS.items() if not allowed
)


def can_transition(current: OrderStatus, requested: OrderStatus) -> bool:
    return requested in ORDER_TRANSITIONS.get(current, frozenset())


def validate_transition(current: OrderStatus, requested: OrderStatus) -> None:
    """Raise InvalidTransitionError unless the table allows current -> requested"""
    if not can_transition(current, requested):
        raise InvalidTransitionError(current, requested)


def generate_order_number() -> str:
    """Human-readable order reference, e.g. ORD-20240115-9F2C41AB"""
    now = datetime.utcnow()
    return f"ORD-{now:%Y%m%d}-{uuid.uuid4().hex[:8].upper()}"


class Order(Base):
    """Customer delivery orders"""
    __tablename__ = "orders"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    order_number = Column(String(32), unique=True, nullable=False, default=generate_order_number)

    customer_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    restaurant_id = Column(Uuid, ForeignKey("restaurants.id"), nullable=False, index=True)
    delivery_address_id = Column(Uuid, ForeignKey("addresses.id"), nullable=False)
    delivery_partner_id = Column(Uuid, ForeignKey("users.id"), index=True)

    # Pricing, fixed at creation
    subtotal = Column(Numeric(10, 2), nullable=False)
    tax = Column(Numeric(10, 2), nullable=False)
    delivery_fee = Column(Numeric(10, 2), nullable=False)
    total_amount = Column(Numeric(10, 2), nullable=False)

    # Status
    status = Column(Enum(OrderStatus), nullable=False, default=OrderStatus.PLACED, index=True)

    # Delivery
    delivery_instructions = Column(Text)
    estimated_delivery_time = Column(DateTime)
    actual_delivery_time = Column(DateTime)

    # Metadata
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    customer = relationship("User", foreign_keys=[customer_id])
    delivery_partner = relationship("User", foreign_keys=[delivery_partner_id])
    restaurant = relationship("Restaurant")
    delivery_address = relationship("Address")
    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.position",
    )
    payments = relationship("Payment", back_populates="order", order_by="Payment.attempt")

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def is_cancellable(self) -> bool:
        return self.status in CANCELLABLE_STATUSES


class OrderItem(Base):
    """Order lines, price-snapshotted when the order is placed and never updated"""
    __tablename__ = "order_items"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    order_id = Column(Uuid, ForeignKey("orders.id"), nullable=False, index=True)
    menu_item_id = Column(Uuid, ForeignKey("menu_items.id"), nullable=False)
    position = Column(Integer, nullable=False, default=0)

    # Snapshots, independent of later catalog changes
    menu_item_name = Column(String(255), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)
    total_price = Column(Numeric(10, 2), nullable=False)

    special_instructions = Column(Text)

    # Relationships
    order = relationship("Order", back_populates="items")
