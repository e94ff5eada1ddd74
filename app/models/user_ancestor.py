"""
User ancestry model.

Closure table of the referral graph: one row per (ancestor, descendant)
pair with the distance between them. Every user owns a (self, self, 0) row.
"""

from datetime import UTC, datetime

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base


class UserAncestor(Base):
    """
    Referral closure-table row.

    Rows are append-only: they are written once when a user joins and
    never updated. Depth 0 is the user's own row, depth 1 the direct
    inviter, and so on up the chain.
    """

    __tablename__ = "user_ancestors"
    __table_args__ = (
        UniqueConstraint(
            "ancestor_id", "descendant_id", name="uq_user_ancestors_pair"
        ),
        CheckConstraint("depth >= 0", name="check_ancestor_depth_non_negative"),
        Index("ix_user_ancestors_ancestor_depth", "ancestor_id", "depth"),
        Index("ix_user_ancestors_descendant_depth", "descendant_id", "depth"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    ancestor_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    descendant_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    depth: Mapped[int] = mapped_column(Integer, nullable=False)

    # Audit-only provenance: who initiated the join that produced this row
    owner_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        comment="Provenance of the row (audit metadata, not read for correctness)",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<UserAncestor(ancestor={self.ancestor_id}, "
            f"descendant={self.descendant_id}, depth={self.depth})>"
        )
