"""
Referral query management module.

Read side of the referral graph: upward and downward traversal over the
closure table.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from app.config.settings import settings
from app.models.user import User
from app.models.user_ancestor import UserAncestor
from app.repositories.ancestry_repository import AncestryRepository
from app.repositories.user_repository import UserRepository
from app.services.referral.config import DIRECT_INVITER_DEPTH


class ReferralQueryManager:
    """Manages referral graph queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize query manager."""
        self.session = session
        self.ancestry_repo = AncestryRepository(session)
        self.user_repo = UserRepository(session)

    @staticmethod
    def _depth_limit(max_depth: int | None) -> int | None:
        """Fall back to the configured query depth."""
        return max_depth if max_depth is not None else settings.referral_query_depth

    async def ancestors(
        self,
        user_id: int,
        max_depth: int | None = None,
        include_self: bool = True,
    ) -> list[UserAncestor]:
        """
        Get the upward chain of a user.

        Args:
            user_id: User ID
            max_depth: Depth limit (defaults to settings.referral_query_depth)
            include_self: Include the (U, U, 0) row (first, at depth 0)

        Returns:
            Ancestry rows ordered by ascending depth
        """
        return await self.ancestry_repo.get_ancestors(
            user_id,
            max_depth=self._depth_limit(max_depth),
            include_self=include_self,
        )

    async def descendants(
        self,
        ancestor_id: int,
        max_depth: int | None = None,
        include_self: bool = True,
    ) -> list[UserAncestor]:
        """
        Get everyone transitively invited by a user.

        Args:
            ancestor_id: User ID
            max_depth: Depth limit (defaults to settings.referral_query_depth)
            include_self: Include the (U, U, 0) row (first, at depth 0)

        Returns:
            Ancestry rows ordered by ascending depth
        """
        return await self.ancestry_repo.get_descendants(
            ancestor_id,
            max_depth=self._depth_limit(max_depth),
            include_self=include_self,
        )

    async def ancestor_users(
        self, user_id: int, max_depth: int | None = None
    ) -> list[tuple[User, int]]:
        """Get ancestor users with their depth, nearest first."""
        return await self.ancestry_repo.get_ancestor_users(
            user_id, max_depth=self._depth_limit(max_depth)
        )

    async def descendant_users(
        self, ancestor_id: int, max_depth: int | None = None
    ) -> list[tuple[User, int]]:
        """Get descendant users with their depth, nearest first."""
        return await self.ancestry_repo.get_descendant_users(
            ancestor_id, max_depth=self._depth_limit(max_depth)
        )

    async def direct_inviter(self, user_id: int) -> User | None:
        """
        Get the depth-1 ancestor of a user.

        Args:
            user_id: User ID

        Returns:
            Inviting user or None for graph roots
        """
        rows = await self.ancestry_repo.get_ancestors(
            user_id, max_depth=DIRECT_INVITER_DEPTH
        )
        if not rows:
            return None
        return await self.user_repo.get_by_id(rows[0].ancestor_id)

    async def get_referral_stats(self, user_id: int) -> dict:
        """
        Get descendant counts per level.

        Args:
            user_id: User ID

        Returns:
            Dict with "levels" (depth -> count) and "total"
        """
        levels = await self.ancestry_repo.get_level_counts(user_id)
        return {
            "levels": levels,
            "total": sum(levels.values()),
        }
