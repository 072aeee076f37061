"""Repositories: explicit database access for the order and payment services"""

from app.repositories.audit import AuditRepository
from app.repositories.catalog import CatalogRepository
from app.repositories.orders import OrderRepository
from app.repositories.payments import PaymentRepository

__all__ = [
    "AuditRepository",
    "CatalogRepository",
    "OrderRepository",
    "PaymentRepository",
]
