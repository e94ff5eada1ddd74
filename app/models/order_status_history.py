"""
Order status history model.

Append-only audit log of order status transitions.
"""

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import DateTime, Enum, ForeignKey, Integer
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base
from app.models.enums import OrderStatus
from app.models.types import JsonType

if TYPE_CHECKING:
    from app.models.order import Order


class OrderStatusHistory(Base):
    """
    One recorded order transition.

    from_status is NULL for the row written when the order is created.
    Rows are never updated or deleted.
    """

    __tablename__ = "order_status_history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    order_id: Mapped[int] = mapped_column(
        ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True
    )

    from_status: Mapped[OrderStatus | None] = mapped_column(
        Enum(OrderStatus, native_enum=False, length=32), nullable=True
    )
    to_status: Mapped[OrderStatus] = mapped_column(
        Enum(OrderStatus, native_enum=False, length=32), nullable=False
    )
    changed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )

    # "metadata" is reserved on declarative classes
    transition_metadata: Mapped[dict[str, Any] | None] = mapped_column(
        "metadata", JsonType, nullable=True
    )

    order: Mapped["Order"] = relationship(
        "Order", back_populates="status_history", lazy="raise"
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<OrderStatusHistory(order_id={self.order_id}, "
            f"{self.from_status} -> {self.to_status})>"
        )
