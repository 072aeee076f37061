"""Payment persistence"""

from typing import Iterable, Optional
from uuid import UUID

from sqlalchemy import exists, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from app.models.payment import Payment, PaymentStatus, governing_payment


class PaymentRepository:
    """Payment lookups and conditional status writes"""

    def __init__(self, db: AsyncSession):
        self.db = db

    def add(self, payment: Payment) -> None:
        self.db.add(payment)

    async def get(self, payment_id: UUID) -> Optional[Payment]:
        result = await self.db.execute(
            select(Payment)
            .where(Payment.id == payment_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_by_gateway_order_id(self, gateway_order_id: str) -> Optional[Payment]:
        result = await self.db.execute(
            select(Payment)
            .where(Payment.gateway_order_id == gateway_order_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def latest_for_order(self, order_id: UUID) -> Optional[Payment]:
        result = await self.db.execute(
            select(Payment)
            .where(Payment.order_id == order_id)
            .order_by(Payment.attempt.desc())
            .limit(1)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def governing_for_order(self, order_id: UUID) -> Optional[Payment]:
        result = await self.db.execute(
            select(Payment)
            .where(Payment.order_id == order_id)
            .order_by(Payment.attempt)
            .execution_options(populate_existing=True)
        )
        return governing_payment(result.scalars().all())

    async def next_attempt(self, order_id: UUID) -> int:
        result = await self.db.execute(
            select(func.max(Payment.attempt)).where(Payment.order_id == order_id)
        )
        return (result.scalar() or 0) + 1

    async def has_successful_payment(self, order_id: UUID) -> bool:
        result = await self.db.execute(
            select(
                exists().where(
                    Payment.order_id == order_id,
                    Payment.status == PaymentStatus.SUCCESS,
                )
            )
        )
        return bool(result.scalar())

    async def compare_and_set_status(
        self,
        payment_id: UUID,
        expected: Iterable[PaymentStatus],
        new_status: PaymentStatus,
        **values,
    ) -> bool:
        """Move a payment to ``new_status`` only if it is still in one of ``expected``"""
        expected = list(expected)
        result = await self.db.execute(
            update(Payment)
            .where(Payment.id == payment_id, Payment.status.in_(expected))
            .values(status=new_status, **values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def mark_succeeded(
        self,
        payment: Payment,
        expected: Iterable[PaymentStatus],
        **values,
    ) -> bool:
        """
        Move a payment to SUCCESS if it is still in one of ``expected`` and no
        other attempt for the same order has succeeded.
        """
        other = aliased(Payment)
        already_paid = (
            select(other.id)
            .where(other.order_id == payment.order_id, other.status == PaymentStatus.SUCCESS)
            .exists()
        )
        result = await self.db.execute(
            update(Payment)
            .where(
                Payment.id == payment.id,
                Payment.status.in_(list(expected)),
                ~already_paid,
            )
            .values(status=PaymentStatus.SUCCESS, **values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1
