"""Database models"""

from app.models.user import User, UserRole
from app.models.menu import Restaurant, MenuItem
from app.models.address import Address
from app.models.order import Order, OrderItem, OrderStatus
from app.models.payment import Payment, PaymentStatus
from app.models.audit import AuditLog

__all__ = [
    "User",
    "UserRole",
    "Restaurant",
    "MenuItem",
    "Address",
    "Order",
    "OrderItem",
    "OrderStatus",
    "Payment",
    "PaymentStatus",
    "AuditLog",
]
