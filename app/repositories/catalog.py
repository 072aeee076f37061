"""Read-only lookups into collaborator data: restaurants, menu items, addresses, users"""

from typing import Dict, Iterable, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.address import Address
from app.models.menu import MenuItem, Restaurant
from app.models.user import User


class CatalogRepository:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_restaurant(self, restaurant_id: UUID) -> Optional[Restaurant]:
        result = await self.db.execute(
            select(Restaurant).where(Restaurant.id == restaurant_id, Restaurant.is_active == True)
        )
        return result.scalar_one_or_none()

    async def get_menu_items(self, item_ids: Iterable[UUID]) -> Dict[UUID, MenuItem]:
        """Fetch all requested items in one query, keyed by id"""
        item_ids = set(item_ids)
        if not item_ids:
            return {}
        result = await self.db.execute(select(MenuItem).where(MenuItem.id.in_(item_ids)))
        return {item.id: item for item in result.scalars().all()}

    async def get_address(self, address_id: UUID) -> Optional[Address]:
        result = await self.db.execute(select(Address).where(Address.id == address_id))
        return result.scalar_one_or_none()

    async def get_user(self, user_id: UUID) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()
