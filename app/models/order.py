"""
Order model.

Orders lock the exchange rate at creation and stay payable for a bounded
window (expire_at). Status changes go through OrderService.transition only.
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base
from app.models.enums import OrderStatus, PaymentType
from app.models.types import (
    CryptoMoneyType,
    ExchangeRateType,
    FiatMoneyType,
    JsonType,
)
from app.utils.datetime_utils import as_utc

if TYPE_CHECKING:
    from app.models.order_status_history import OrderStatusHistory
    from app.models.user import User
    from app.models.user_order import UserOrder


class Order(Base):
    """
    Order with locked pricing.

    Uses an optimistic version counter: a concurrent writer that flushes
    against a stale row gets StaleDataError instead of overwriting.
    """

    __tablename__ = "orders"
    __table_args__ = (
        CheckConstraint("amount >= 0", name="check_order_amount_non_negative"),
        CheckConstraint(
            "fiat_amount >= 0", name="check_order_fiat_amount_non_negative"
        ),
        CheckConstraint(
            "exchange_rate > 0", name="check_order_exchange_rate_positive"
        ),
        CheckConstraint(
            "rate_valid_seconds > 0", name="check_order_rate_window_positive"
        ),
        Index("ix_orders_status_expire_at", "status", "expire_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    # Payment
    payment_type: Mapped[PaymentType] = mapped_column(
        Enum(PaymentType, native_enum=False, length=16), nullable=False
    )
    external_payment_id: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        unique=True,
        comment="Provider-side reference (invoice payload / transfer comment)",
    )
    payment_link: Mapped[str | None] = mapped_column(String(1024), nullable=True)

    # Locked pricing
    amount: Mapped[Decimal] = mapped_column(
        CryptoMoneyType, nullable=False, comment="Amount in the payment currency"
    )
    fiat_amount: Mapped[Decimal] = mapped_column(
        FiatMoneyType, nullable=False, comment="Amount in fiat (USD)"
    )
    exchange_rate: Mapped[Decimal] = mapped_column(
        ExchangeRateType,
        nullable=False,
        comment="Payment currency units per fiat unit at creation",
    )
    rate_valid_seconds: Mapped[int] = mapped_column(Integer, nullable=False)
    custom_expiration: Mapped[int] = mapped_column(Integer, nullable=False)
    expire_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )

    # Lifecycle
    status: Mapped[OrderStatus] = mapped_column(
        Enum(OrderStatus, native_enum=False, length=32),
        nullable=False,
        default=OrderStatus.CREATED,
    )
    payment_data: Mapped[dict[str, Any] | None] = mapped_column(
        JsonType, nullable=True, comment="Opaque provider snapshot"
    )
    last_checked_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    paid_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    transaction_id: Mapped[str | None] = mapped_column(
        String(255), nullable=True
    )

    # Optimistic lock counter
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    # Relationships
    user: Mapped["User"] = relationship("User", back_populates="orders", lazy="raise")
    user_order: Mapped["UserOrder | None"] = relationship(
        "UserOrder", back_populates="order", uselist=False, lazy="raise"
    )
    status_history: Mapped[list["OrderStatusHistory"]] = relationship(
        "OrderStatusHistory",
        back_populates="order",
        order_by="OrderStatusHistory.id",
        lazy="raise",
    )

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Order("
            f"id={self.id}, "
            f"user_id={self.user_id}, "
            f"payment_type={self.payment_type}, "
            f"amount={self.amount}, "
            f"status={self.status}"
            f")>"
        )

    def is_past_expiry(self, now: datetime) -> bool:
        """
        Check whether the validity window has ended.

        Args:
            now: Reference time (UTC)

        Returns:
            True if now is strictly after expire_at
        """
        return now > as_utc(self.expire_at)
