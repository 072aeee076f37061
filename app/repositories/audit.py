"""Audit trail writes"""

from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.audit import AuditLog


class AuditRepository:

    def __init__(self, db: AsyncSession):
        self.db = db

    def record(
        self,
        action: str,
        resource_type: str,
        resource_id: UUID,
        actor_id: Optional[UUID] = None,
        actor_type: str = "user",
        data: Optional[Dict[str, Any]] = None,
    ) -> AuditLog:
        """Stage an audit row in the current transaction"""
        entry = AuditLog(
            actor_id=actor_id,
            actor_type=actor_type,
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
            data_json=data or {},
        )
        self.db.add(entry)
        return entry

    async def for_resource(self, resource_id: UUID, action: Optional[str] = None) -> List[AuditLog]:
        query = select(AuditLog).where(AuditLog.resource_id == resource_id)
        if action:
            query = query.where(AuditLog.action == action)
        result = await self.db.execute(query.order_by(AuditLog.created_at))
        return list(result.scalars().all())
