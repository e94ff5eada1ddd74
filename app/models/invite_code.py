"""
Invite code model.

Single-use codes that bind a new user to the issuing inviter.
"""

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base
from app.utils.datetime_utils import as_utc

if TYPE_CHECKING:
    from app.models.user import User


class InviteCode(Base):
    """
    Invite code issued by a user.

    Lifecycle: unused -> redeemed (terminal). Expiry is computed from
    expires_at and never stored.
    """

    __tablename__ = "invite_codes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    code: Mapped[str] = mapped_column(
        String(32), unique=True, index=True, nullable=False
    )

    # Issuer
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )
    expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Redemption
    is_used: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False, index=True
    )
    used_by_user_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    used_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    owner: Mapped["User"] = relationship(
        "User",
        back_populates="invite_codes",
        foreign_keys=[user_id],
        lazy="raise",
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<InviteCode(id={self.id}, code={self.code}, "
            f"user_id={self.user_id}, is_used={self.is_used})>"
        )

    def is_expired(self, now: datetime) -> bool:
        """
        Check whether the code has passively expired.

        Args:
            now: Reference time (UTC)

        Returns:
            True if an expiry is set and now is past it
        """
        if self.expires_at is None:
            return False
        return now > as_utc(self.expires_at)
