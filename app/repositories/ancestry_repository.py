"""
Ancestry repository.

Data access layer for the referral closure table (UserAncestor).
"""

from datetime import datetime

from sqlalchemy import DateTime, Integer, func, insert, literal, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User
from app.models.user_ancestor import UserAncestor
from app.repositories.base import BaseRepository


class AncestryRepository(BaseRepository[UserAncestor]):
    """Closure-table queries: upward/downward traversal and batch inserts."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize ancestry repository."""
        super().__init__(UserAncestor, session)

    async def has_self_row(self, user_id: int) -> bool:
        """
        Check whether the user owns its (U, U, 0) row.

        Args:
            user_id: User ID

        Returns:
            True if the self-row exists
        """
        return await self.exists(
            ancestor_id=user_id, descendant_id=user_id, depth=0
        )

    async def count_self_rows(self, user_id: int) -> int:
        """Count depth-0 rows of a user (always 0 or 1)."""
        return await self.count(descendant_id=user_id, depth=0)

    async def insert_self_row(
        self, user_id: int, now: datetime, owner_id: int | None = None
    ) -> UserAncestor:
        """
        Insert the (U, U, 0) row.

        Args:
            user_id: User ID
            now: Creation timestamp
            owner_id: Optional provenance

        Returns:
            Created row
        """
        return await self.create(
            ancestor_id=user_id,
            descendant_id=user_id,
            depth=0,
            owner_id=owner_id,
            created_at=now,
        )

    async def insert_chain(
        self,
        new_user_id: int,
        inviter_id: int,
        now: datetime,
        owner_id: int | None = None,
    ) -> int:
        """
        Copy the inviter's ancestry onto the new user in one statement.

        For every row (A, inviter, d) inserts (A, new_user, d + 1); the
        inviter's self-row yields the depth-1 link. The whole batch is a
        single INSERT ... SELECT, so it applies fully or not at all.

        Args:
            new_user_id: Joining user ID
            inviter_id: Direct inviter ID
            now: Creation timestamp
            owner_id: Optional provenance

        Returns:
            Number of rows inserted (-1 if the driver does not report it)
        """
        source = select(
            UserAncestor.ancestor_id,
            literal(new_user_id, Integer),
            UserAncestor.depth + 1,
            literal(owner_id, Integer),
            literal(now, DateTime(timezone=True)),
        ).where(UserAncestor.descendant_id == inviter_id)

        stmt = insert(UserAncestor).from_select(
            ["ancestor_id", "descendant_id", "depth", "owner_id", "created_at"],
            source,
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount

    async def get_ancestors(
        self,
        user_id: int,
        max_depth: int | None = None,
        include_self: bool = False,
    ) -> list[UserAncestor]:
        """
        Get the upward chain of a user.

        Args:
            user_id: Descendant user ID
            max_depth: Optional depth limit (inclusive)
            include_self: Include the depth-0 row

        Returns:
            Rows ordered by ascending depth
        """
        stmt = select(UserAncestor).where(UserAncestor.descendant_id == user_id)
        if not include_self:
            stmt = stmt.where(UserAncestor.depth > 0)
        if max_depth is not None:
            stmt = stmt.where(UserAncestor.depth <= max_depth)
        stmt = stmt.order_by(UserAncestor.depth.asc())

        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_descendants(
        self,
        ancestor_id: int,
        max_depth: int | None = None,
        include_self: bool = False,
    ) -> list[UserAncestor]:
        """
        Get everyone transitively invited by a user.

        Args:
            ancestor_id: Ancestor user ID
            max_depth: Optional depth limit (inclusive)
            include_self: Include the depth-0 row

        Returns:
            Rows ordered by ascending depth, then descendant ID
        """
        stmt = select(UserAncestor).where(UserAncestor.ancestor_id == ancestor_id)
        if not include_self:
            stmt = stmt.where(UserAncestor.depth > 0)
        if max_depth is not None:
            stmt = stmt.where(UserAncestor.depth <= max_depth)
        stmt = stmt.order_by(
            UserAncestor.depth.asc(), UserAncestor.descendant_id.asc()
        )

        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_ancestor_users(
        self, user_id: int, max_depth: int | None = None
    ) -> list[tuple[User, int]]:
        """
        Get ancestor users with their distance.

        Args:
            user_id: Descendant user ID
            max_depth: Optional depth limit (inclusive)

        Returns:
            List of (user, depth) ordered by ascending depth
        """
        stmt = (
            select(User, UserAncestor.depth)
            .join(UserAncestor, UserAncestor.ancestor_id == User.id)
            .where(
                UserAncestor.descendant_id == user_id,
                UserAncestor.depth > 0,
            )
        )
        if max_depth is not None:
            stmt = stmt.where(UserAncestor.depth <= max_depth)
        stmt = stmt.order_by(UserAncestor.depth.asc())

        result = await self.session.execute(stmt)
        return [(row[0], row[1]) for row in result.all()]

    async def get_descendant_users(
        self, ancestor_id: int, max_depth: int | None = None
    ) -> list[tuple[User, int]]:
        """
        Get descendant users with their distance.

        Args:
            ancestor_id: Ancestor user ID
            max_depth: Optional depth limit (inclusive)

        Returns:
            List of (user, depth) ordered by ascending depth
        """
        stmt = (
            select(User, UserAncestor.depth)
            .join(UserAncestor, UserAncestor.descendant_id == User.id)
            .where(
                UserAncestor.ancestor_id == ancestor_id,
                UserAncestor.depth > 0,
            )
        )
        if max_depth is not None:
            stmt = stmt.where(UserAncestor.depth <= max_depth)
        stmt = stmt.order_by(UserAncestor.depth.asc(), User.id.asc())

        result = await self.session.execute(stmt)
        return [(row[0], row[1]) for row in result.all()]

    async def get_level_counts(self, ancestor_id: int) -> dict[int, int]:
        """
        Count descendants per depth in a single query.

        Args:
            ancestor_id: Ancestor user ID

        Returns:
            Dict mapping depth to descendant count (depth > 0 only)
        """
        stmt = (
            select(UserAncestor.depth, func.count(UserAncestor.id).label("total"))
            .where(
                UserAncestor.ancestor_id == ancestor_id,
                UserAncestor.depth > 0,
            )
            .group_by(UserAncestor.depth)
            .order_by(UserAncestor.depth)
        )

        result = await self.session.execute(stmt)
        return {row.depth: row.total for row in result.all()}
