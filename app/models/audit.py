"""Audit log model"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, JSON, Uuid

from app.database import Base


class AuditLog(Base):
    """Audit trail for order transitions and payment events"""
    __tablename__ = "audit_logs"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    # Actor information
    actor_id = Column(Uuid)  # User ID or null for gateway/system
    actor_type = Column(String(50))  # user, gateway, system

    # Action details
    action = Column(String(100), nullable=False)  # order_created, order_status_changed, etc.
    resource_type = Column(String(50))  # order, payment
    resource_id = Column(Uuid, index=True)

    # Change data
    data_json = Column(JSON)  # {"from": "placed", "to": "confirmed", ...}

    created_at = Column(DateTime, default=datetime.utcnow)
