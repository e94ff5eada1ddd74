"""
Order status history repository.

Append-only access to OrderStatusHistory: rows are added and read, never
updated or deleted.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.enums import OrderStatus
from app.models.order_status_history import OrderStatusHistory
from app.repositories.base import BaseRepository


class OrderStatusHistoryRepository(BaseRepository[OrderStatusHistory]):
    """Order status history repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize history repository."""
        super().__init__(OrderStatusHistory, session)

    async def get_for_order(self, order_id: int) -> list[OrderStatusHistory]:
        """
        Get the transition log of an order in recording order.

        Args:
            order_id: Order ID

        Returns:
            History entries, oldest first
        """
        stmt = (
            select(OrderStatusHistory)
            .where(OrderStatusHistory.order_id == order_id)
            .order_by(OrderStatusHistory.id.asc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count_transitions_to(self, order_id: int, status: OrderStatus) -> int:
        """Count entries of an order that entered the given status."""
        return await self.count(order_id=order_id, to_status=status)
