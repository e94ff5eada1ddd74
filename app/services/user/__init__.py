"""
User service module.

Provides user management functionality: retrieval, registration into the
referral graph, coin balance and VIP membership.

Structure:
- core.py: Core user retrieval
- registration.py: User registration with invite code support
- membership.py: Coin adjustments and VIP windows

Usage:
    from app.services.user import UserService

    user_service = UserService(session)
    user = await user_service.register_user(telegram_id, invite_code="abc123defg")
    await user_service.grant_vip_days(user.id, 30)
"""

from sqlalchemy.ext.asyncio import AsyncSession

from app.services.user.core import UserServiceCore
from app.services.user.membership import UserMembershipMixin
from app.services.user.registration import UserRegistrationMixin


class UserService(
    UserServiceCore,
    UserRegistrationMixin,
    UserMembershipMixin,
):
    """
    Combined user service.

    Inherits from all user service mixins to provide complete functionality.
    """

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize user service with all mixins.

        Args:
            session: Database session
        """
        UserServiceCore.__init__(self, session)
        UserRegistrationMixin.__init__(self, session)
        UserMembershipMixin.__init__(self, session)


__all__ = ["UserService"]
