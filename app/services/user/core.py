"""
Core user service functionality.

Handles basic user retrieval.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User
from app.repositories.user_repository import UserRepository
from app.utils.exceptions import UserNotFoundError


class UserServiceCore:
    """
    Core user service.

    Provides basic user retrieval methods.
    """

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize user service core.

        Args:
            session: Database session
        """
        self.session = session
        self.user_repo = UserRepository(session)

    async def get_by_id(self, user_id: int) -> User | None:
        """
        Get user by ID.

        Args:
            user_id: User ID

        Returns:
            User or None
        """
        return await self.user_repo.get_by_id(user_id)

    async def get_or_raise(self, user_id: int) -> User:
        """
        Get user by ID.

        Args:
            user_id: User ID

        Returns:
            User

        Raises:
            UserNotFoundError: No such user
        """
        user = await self.user_repo.get_by_id(user_id)
        if user is None:
            raise UserNotFoundError(user_id=user_id)
        return user

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
        return await self.user_repo.get_by_telegram_id(telegram_id)

    async def find_by_keyword(self, keyword: str) -> User | None:
        """Find a user by username, name, Telegram ID or ID."""
        keyword = keyword.strip().lstrip("@")
        if not keyword:
            return None
        return await self.user_repo.find_by_keyword(keyword)
