"""
User model.

Represents a storefront customer identified by Telegram account.
"""

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base
from app.utils.datetime_utils import as_utc

if TYPE_CHECKING:
    from app.models.invite_code import InviteCode
    from app.models.order import Order


class User(Base):
    """User model - storefront customers."""

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint('coins >= 0', name='check_user_coins_non_negative'),
    )

    # Primary key
    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    # Telegram profile
    telegram_id: Mapped[int] = mapped_column(
        BigInteger, unique=True, index=True, nullable=False
    )
    username: Mapped[str | None] = mapped_column(
        String(255), nullable=True, index=True
    )
    first_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    language_code: Mapped[str | None] = mapped_column(String(16), nullable=True)

    # Virtual currency
    coins: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Membership
    is_vip: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    vip_level: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    vip_start_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    vip_expire_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, index=True
    )
    is_premium: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )

    # Direct inviter (the depth-1 ancestor; full chain lives in user_ancestors)
    invited_by_user_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

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
    invited_by: Mapped["User | None"] = relationship(
        "User", remote_side="User.id", lazy="raise"
    )
    invite_codes: Mapped[list["InviteCode"]] = relationship(
        "InviteCode",
        back_populates="owner",
        foreign_keys="InviteCode.user_id",
        lazy="raise",
    )
    orders: Mapped[list["Order"]] = relationship(
        "Order", back_populates="user", lazy="raise"
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<User(id={self.id}, telegram_id={self.telegram_id}, "
            f"username={self.username})>"
        )

    def has_active_vip(self, now: datetime) -> bool:
        """
        Check whether VIP membership is in effect.

        Args:
            now: Reference time (UTC)

        Returns:
            True if the VIP flag is set and the window has not ended
        """
        if not self.is_vip or self.vip_expire_at is None:
            return False
        return as_utc(self.vip_expire_at) > now
