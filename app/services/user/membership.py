"""
User balance and membership functionality.

Coin adjustments and VIP windows. Both are used by product fulfillment
inside its transaction (commit=False) and by operators directly.
"""

from datetime import UTC, datetime, time, timedelta

from loguru import logger
from sqlalchemy import exc as sa_exc
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User
from app.repositories.user_repository import UserRepository
from app.utils.datetime_utils import as_utc, utc_now
from app.utils.db_decorators import with_rollback_on_error
from app.utils.exceptions import UserNotFoundError, ValidationError


def end_of_day(value: datetime) -> datetime:
    """Last representable instant of the UTC day containing value."""
    value = as_utc(value)
    return datetime.combine(value.date(), time.max, tzinfo=UTC)


class UserMembershipMixin:
    """Mixin for coin balance and VIP membership."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize user membership mixin."""
        self.session = session
        self.user_repo = UserRepository(session)

    @with_rollback_on_error
    async def adjust_coins(
        self, user_id: int, delta: int, commit: bool = True
    ) -> User:
        """
        Add or subtract coins.

        Args:
            user_id: User ID
            delta: Coins to add (negative to subtract)
            commit: Commit on success

        Returns:
            Refreshed user

        Raises:
            UserNotFoundError: No such user
            ValidationError: Balance would become negative
        """
        try:
            updated = await self.user_repo.increment_coins(user_id, delta)
        except sa_exc.IntegrityError as e:
            raise ValidationError(
                "Insufficient coins", user_id=user_id, delta=delta
            ) from e

        if not updated:
            raise UserNotFoundError(user_id=user_id)

        user = await self.user_repo.get_by_id(user_id)
        await self.session.refresh(user)

        if commit:
            await self.session.commit()

        logger.info(
            f"Coins adjusted for user {user_id}: {delta:+d}",
            extra={"user_id": user_id, "delta": delta, "balance": user.coins},
        )
        return user

    @with_rollback_on_error
    async def grant_vip_days(
        self, user_id: int, days: int, commit: bool = True
    ) -> User:
        """
        Extend (or cancel) VIP membership.

        The window is extended from the current expiry when it is still in
        the future, otherwise from now, and always ends at the end of a UTC
        day. The start date of an ongoing membership is kept. days=0
        cancels the membership.

        Args:
            user_id: User ID
            days: Days to add, 0 to cancel
            commit: Commit on success

        Returns:
            Updated user

        Raises:
            UserNotFoundError: No such user
            ValidationError: Negative days
        """
        if days < 0:
            raise ValidationError("VIP days cannot be negative", days=days)

        user = await self.user_repo.get_by_id_for_update(user_id)
        if user is None:
            raise UserNotFoundError(user_id=user_id)

        now = utc_now()
        if days == 0:
            user.is_vip = False
            user.vip_start_at = None
            user.vip_expire_at = None
        else:
            base = now
            if user.vip_expire_at is not None and as_utc(user.vip_expire_at) > now:
                base = as_utc(user.vip_expire_at)
            if not user.has_active_vip(now) or user.vip_start_at is None:
                user.vip_start_at = now
            user.is_vip = True
            user.vip_expire_at = end_of_day(base + timedelta(days=days))

        await self.session.flush()

        if commit:
            await self.session.commit()

        logger.info(
            f"VIP updated for user {user_id}",
            extra={
                "user_id": user_id,
                "days": days,
                "is_vip": user.is_vip,
                "vip_expire_at": user.vip_expire_at,
            },
        )
        return user
