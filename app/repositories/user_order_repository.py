"""
User order repository.

Data access layer for UserOrder model (fulfillment records).
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user_order import UserOrder
from app.repositories.base import BaseRepository


class UserOrderRepository(BaseRepository[UserOrder]):
    """User order repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize user order repository."""
        super().__init__(UserOrder, session)

    async def get_by_order_id(
        self, order_id: int, for_update: bool = False
    ) -> UserOrder | None:
        """
        Get the order line of an order.

        Args:
            order_id: Order ID
            for_update: Lock the row until the transaction ends

        Returns:
            UserOrder or None
        """
        stmt = select(UserOrder).where(UserOrder.order_id == order_id)
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()
