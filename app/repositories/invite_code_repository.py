"""
Invite code repository.

Data access layer for InviteCode model.
"""

from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.invite_code import InviteCode
from app.repositories.base import BaseRepository


class InviteCodeRepository(BaseRepository[InviteCode]):
    """Invite code repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize invite code repository."""
        super().__init__(InviteCode, session)

    async def get_by_code(self, code: str) -> InviteCode | None:
        """
        Get invite code by its string.

        Args:
            code: Code string

        Returns:
            InviteCode or None
        """
        return await self.get_by(code=code)

    async def code_exists(self, code: str) -> bool:
        """Check whether a code string is taken."""
        return await self.exists(code=code)

    async def get_by_owner(self, user_id: int) -> list[InviteCode]:
        """
        Get all codes issued by a user, oldest first.

        Args:
            user_id: Issuer user ID

        Returns:
            List of invite codes
        """
        return await self.find_by(user_id=user_id)

    async def get_first_unused(self, user_id: int) -> InviteCode | None:
        """
        Get the oldest unused code of a user.

        Args:
            user_id: Issuer user ID

        Returns:
            InviteCode or None
        """
        stmt = (
            select(InviteCode)
            .where(InviteCode.user_id == user_id, InviteCode.is_used.is_(False))
            .order_by(InviteCode.id.asc())
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def mark_used(
        self, code_id: int, redeemer_id: int, now: datetime
    ) -> bool:
        """
        Atomically mark a code as used.

        The WHERE clause only matches an unused row, so of two concurrent
        callers exactly one sees an updated row.

        Args:
            code_id: InviteCode ID
            redeemer_id: Redeeming user ID
            now: Redemption time

        Returns:
            True if this call flipped the flag, False if already used
        """
        stmt = (
            update(InviteCode)
            .where(InviteCode.id == code_id, InviteCode.is_used.is_(False))
            .values(is_used=True, used_by_user_id=redeemer_id, used_at=now)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1
