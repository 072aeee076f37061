"""Order and payment services"""

from app.services.orders import OrderService, order_to_response
from app.services.payments import PaymentService

__all__ = ["OrderService", "PaymentService", "order_to_response"]
