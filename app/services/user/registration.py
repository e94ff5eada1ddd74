"""
User registration functionality.

Handles new user registration, either as a referral-graph root or under
the owner of an invite code.
"""

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User
from app.repositories.user_repository import UserRepository
from app.services.invite_code_service import InviteCodeService
from app.services.referral.graph_manager import ReferralGraphManager
from app.utils.db_decorators import with_rollback_on_error
from app.utils.exceptions import ConflictError


class UserRegistrationMixin:
    """
    Mixin for user registration functionality.

    Handles new user registration with invite code support.
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize user registration mixin."""
        self.session = session
        self.user_repo = UserRepository(session)
        self.invite_code_service = InviteCodeService(session)
        self.graph_manager = ReferralGraphManager(session)

    @with_rollback_on_error
    async def register_user(
        self,
        telegram_id: int,
        username: str | None = None,
        first_name: str | None = None,
        last_name: str | None = None,
        language_code: str | None = None,
        is_premium: bool = False,
        invite_code: str | None = None,
    ) -> User:
        """
        Register new user.

        Creates the user, places it in the referral graph and issues its
        own invite code, all in one transaction. Without an invite code the
        user becomes a graph root; with one, the code is redeemed and the
        user joins under the code's owner. A failed redemption aborts the
        whole registration.

        Args:
            telegram_id: Telegram user ID
            username: Telegram username (optional)
            first_name: First name (optional)
            last_name: Last name (optional)
            language_code: IETF language tag reported by Telegram
            is_premium: Telegram Premium flag
            invite_code: Invite code to redeem (optional)

        Returns:
            Created user

        Raises:
            ConflictError: Telegram ID already registered
            InviteCodeNotFoundError, AlreadyUsedError, InviteCodeExpiredError:
                The invite code cannot be redeemed
        """
        existing = await self.user_repo.get_by_telegram_id(telegram_id)
        if existing:
            raise ConflictError(
                "User already registered", telegram_id=telegram_id
            )

        user = await self.user_repo.create(
            telegram_id=telegram_id,
            username=username,
            first_name=first_name,
            last_name=last_name,
            language_code=language_code,
            is_premium=is_premium,
        )

        inviter_id = None
        if invite_code:
            inviter_id = await self.invite_code_service.redeem(
                invite_code, user.id, commit=False
            )
        else:
            await self.graph_manager.ensure_self_row(user.id)

        await self.invite_code_service.issue(user.id, commit=False)
        await self.session.refresh(user)
        await self.session.commit()

        logger.info(
            "User registered",
            extra={
                "user_id": user.id,
                "telegram_id": telegram_id,
                "inviter_id": inviter_id,
            },
        )

        return user

    async def get_or_register_user(
        self,
        telegram_id: int,
        username: str | None = None,
        first_name: str | None = None,
        last_name: str | None = None,
        language_code: str | None = None,
        is_premium: bool = False,
    ) -> tuple[User, bool]:
        """
        Get a user by Telegram ID, registering it as a graph root if new.

        Returns:
            Tuple of (user, created)
        """
        existing = await self.user_repo.get_by_telegram_id(telegram_id)
        if existing:
            return existing, False

        user = await self.register_user(
            telegram_id,
            username=username,
            first_name=first_name,
            last_name=last_name,
            language_code=language_code,
            is_premium=is_premium,
        )
        return user, True
