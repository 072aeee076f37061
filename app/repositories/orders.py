"""Order persistence"""

from typing import Iterable, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.order import TERMINAL_STATUSES, Order, OrderStatus


def _order_query():
    """Order select with every relationship the response mapping touches loaded up front"""
    return select(Order).options(
        selectinload(Order.items),
        selectinload(Order.customer),
        selectinload(Order.restaurant),
        selectinload(Order.delivery_address),
        selectinload(Order.delivery_partner),
        selectinload(Order.payments),
    )


class OrderRepository:
    """Explicit, eagerly-loading order lookups and conditional status writes"""

    def __init__(self, db: AsyncSession):
        self.db = db

    def add(self, order: Order) -> None:
        self.db.add(order)

    async def get(self, order_id: UUID) -> Optional[Order]:
        result = await self.db.execute(
            _order_query()
            .where(Order.id == order_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_by_number(self, order_number: str) -> Optional[Order]:
        result = await self.db.execute(
            _order_query()
            .where(Order.order_number == order_number)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_status(self, order_id: UUID) -> Optional[OrderStatus]:
        result = await self.db.execute(select(Order.status).where(Order.id == order_id))
        return result.scalar_one_or_none()

    async def list_page(
        self,
        page: int,
        page_size: int,
        customer_id: Optional[UUID] = None,
        restaurant_id: Optional[UUID] = None,
        delivery_partner_id: Optional[UUID] = None,
    ) -> Tuple[List[Order], int]:
        """Newest-first page of orders matching the filters, plus the total count"""
        conditions = []
        if customer_id is not None:
            conditions.append(Order.customer_id == customer_id)
        if restaurant_id is not None:
            conditions.append(Order.restaurant_id == restaurant_id)
        if delivery_partner_id is not None:
            conditions.append(Order.delivery_partner_id == delivery_partner_id)

        count_query = select(func.count(Order.id))
        query = _order_query()
        if conditions:
            count_query = count_query.where(*conditions)
            query = query.where(*conditions)

        count_result = await self.db.execute(count_query)
        total = count_result.scalar()

        offset = (page - 1) * page_size
        result = await self.db.execute(
            query
            .order_by(Order.created_at.desc())
            .offset(offset)
            .limit(page_size)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all()), total

    async def compare_and_set_status(
        self,
        order_id: UUID,
        expected: Iterable[OrderStatus],
        new_status: OrderStatus,
        **values,
    ) -> bool:
        """
        Move an order to ``new_status`` only if it is still in one of ``expected``.

        Returns True when this call performed the transition. A False result
        means another writer moved the order first; nothing was changed.
        """
        expected = list(expected)
        result = await self.db.execute(
            update(Order)
            .where(Order.id == order_id, Order.status.in_(expected))
            .values(status=new_status, **values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def set_delivery_partner(self, order_id: UUID, partner_id: UUID) -> bool:
        """Assign a delivery partner unless the order reached a terminal state meanwhile"""
        result = await self.db.execute(
            update(Order)
            .where(
                Order.id == order_id,
                Order.status.notin_(list(TERMINAL_STATUSES)),
            )
            .values(delivery_partner_id=partner_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1
