"""
User repository.

Data access layer for User model.
"""

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User
from app.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """User repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize user repository."""
        super().__init__(User, session)

    async def get_by_telegram_id(
        self, telegram_id: int
    ) -> User | None:
        """
        Get user by Telegram ID.

        Args:
            telegram_id: Telegram user ID

        Returns:
            User or None
        """
        return await self.get_by(telegram_id=telegram_id)

    async def find_by_keyword(self, keyword: str) -> User | None:
        """
        Find first user whose username, names or IDs contain the keyword.

        Args:
            keyword: Search string

        Returns:
            User or None
        """
        pattern = f"%{keyword}%"
        conditions = [
            User.username.ilike(pattern),
            User.first_name.ilike(pattern),
            User.last_name.ilike(pattern),
        ]
        if keyword.isdigit():
            conditions.append(User.telegram_id == int(keyword))
            conditions.append(User.id == int(keyword))

        stmt = select(User).where(or_(*conditions)).order_by(User.id).limit(1)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def increment_coins(self, user_id: int, delta: int) -> bool:
        """
        Add (or subtract) coins with a single UPDATE.

        The increment is computed in SQL so concurrent adjustments do not
        overwrite each other; the non-negative CHECK rejects overdrafts.

        Args:
            user_id: User ID
            delta: Coins to add (negative to subtract)

        Returns:
            True if the user exists
        """
        stmt = (
            update(User)
            .where(User.id == user_id)
            .values(coins=User.coins + delta)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1
