"""
Order status history recorder.

Appends one row per applied transition, in the caller's transaction.
"""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.enums import OrderStatus
from app.models.order_status_history import OrderStatusHistory
from app.repositories.order_status_history_repository import (
    OrderStatusHistoryRepository,
)
from app.utils.datetime_utils import utc_now


class StatusHistoryRecorder:
    """Append-only writer and reader of order transitions."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize recorder."""
        self.session = session
        self.history_repo = OrderStatusHistoryRepository(session)

    async def record(
        self,
        order_id: int,
        from_status: OrderStatus | None,
        to_status: OrderStatus,
        metadata: dict[str, Any] | None = None,
    ) -> OrderStatusHistory:
        """
        Record a transition. Flushes only; the caller commits.

        Args:
            order_id: Order ID
            from_status: Previous status (None for the creation entry)
            to_status: New status
            metadata: JSON-serializable context (transaction id, reason, ...)

        Returns:
            Created history entry
        """
        return await self.history_repo.create(
            order_id=order_id,
            from_status=from_status,
            to_status=to_status,
            changed_at=utc_now(),
            transition_metadata=metadata,
        )

    async def history(self, order_id: int) -> list[OrderStatusHistory]:
        """Get the transitions of an order, oldest first."""
        return await self.history_repo.get_for_order(order_id)
