"""
Order repository.

Data access layer for Order model (the order ledger).
"""

from datetime import datetime
from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.enums import FulfillmentStatus, OrderStatus, PaymentType
from app.models.order import Order
from app.models.user_order import UserOrder
from app.repositories.base import BaseRepository

# Statuses from which an order can still be paid or expire
OPEN_STATUSES = (OrderStatus.CREATED, OrderStatus.AWAITING_PAYMENT)


class OrderRepository(BaseRepository[Order]):
    """Order repository with lifecycle queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize order repository."""
        super().__init__(Order, session)

    async def get_by_external_payment_id(
        self, external_payment_id: str
    ) -> Order | None:
        """
        Get order by provider reference.

        Args:
            external_payment_id: Invoice payload / transfer comment

        Returns:
            Order or None
        """
        return await self.get_by(external_payment_id=external_payment_id)

    async def get_ids_past_expiry(
        self, now: datetime, limit: int
    ) -> list[int]:
        """
        Get IDs of open orders whose validity window has ended.

        Args:
            now: Reference time
            limit: Max number of IDs

        Returns:
            Order IDs, earliest expiry first
        """
        stmt = (
            select(Order.id)
            .where(Order.status.in_(OPEN_STATUSES), Order.expire_at < now)
            .order_by(Order.expire_at.asc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return [row[0] for row in result.all()]

    async def get_open_for_polling(
        self,
        limit: int,
        payment_type: PaymentType | None = None,
    ) -> list[Order]:
        """
        Get open orders to check against the payment provider.

        Orders never checked come first, then the least recently checked.

        Args:
            limit: Max number of orders
            payment_type: Optional payment type filter

        Returns:
            List of orders
        """
        stmt = select(Order).where(Order.status.in_(OPEN_STATUSES))
        if payment_type is not None:
            stmt = stmt.where(Order.payment_type == payment_type)
        stmt = stmt.order_by(
            Order.last_checked_at.asc().nulls_first(), Order.id.asc()
        ).limit(limit)

        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count_open_for_product(self, user_id: int, product_id: int) -> int:
        """
        Count a user's open orders for one product.

        Args:
            user_id: User ID
            product_id: Product ID

        Returns:
            Number of orders in CREATED / AWAITING_PAYMENT
        """
        stmt = (
            select(func.count(Order.id))
            .join(UserOrder, UserOrder.order_id == Order.id)
            .where(
                Order.user_id == user_id,
                UserOrder.product_id == product_id,
                Order.status.in_(OPEN_STATUSES),
            )
        )
        result = await self.session.execute(stmt)
        return result.scalar() or 0

    async def get_ids_awaiting_fulfillment(self, limit: int) -> list[int]:
        """
        Get IDs of paid orders whose product is not delivered yet.

        Args:
            limit: Max number of IDs

        Returns:
            Order IDs, oldest payment first
        """
        stmt = (
            select(Order.id)
            .join(UserOrder, UserOrder.order_id == Order.id)
            .where(
                Order.status == OrderStatus.PAID,
                UserOrder.status == FulfillmentStatus.PENDING,
            )
            .order_by(Order.paid_at.asc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return [row[0] for row in result.all()]

    async def record_check(
        self,
        order_id: int,
        now: datetime,
        payment_data: dict[str, Any] | None,
    ) -> bool:
        """
        Store a provider check without touching status or version.

        Args:
            order_id: Order ID
            now: Check time
            payment_data: Provider snapshot

        Returns:
            True if the order exists
        """
        stmt = (
            update(Order)
            .where(Order.id == order_id)
            .values(last_checked_at=now, payment_data=payment_data)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1
