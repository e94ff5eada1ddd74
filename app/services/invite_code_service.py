"""
Invite code service.

Issues single-use invite codes and redeems them, binding the redeemer to
the issuer in the referral graph.
"""

from datetime import timedelta

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.constants import INVITE_CODE_MAX_ATTEMPTS
from app.config.settings import settings
from app.models.invite_code import InviteCode
from app.repositories.invite_code_repository import InviteCodeRepository
from app.repositories.user_repository import UserRepository
from app.services.referral.graph_manager import ReferralGraphManager
from app.utils.code_generator import generate_invite_code
from app.utils.datetime_utils import utc_now
from app.utils.db_decorators import with_rollback_on_error
from app.utils.exceptions import (
    AlreadyUsedError,
    ConflictError,
    InviteCodeExpiredError,
    InviteCodeNotFoundError,
    SelfReferralError,
    UserNotFoundError,
)


class InviteCodeService:
    """
    Invite code registry.

    States: unused -> redeemed (terminal). Expiry is a computed predicate
    (now > expires_at) and never written.
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize invite code service."""
        self.session = session
        self.invite_repo = InviteCodeRepository(session)
        self.user_repo = UserRepository(session)
        self.graph_manager = ReferralGraphManager(session)

    async def _generate_unique_code(self) -> str:
        """Generate a code string not present in the registry."""
        for _ in range(INVITE_CODE_MAX_ATTEMPTS):
            code = generate_invite_code(settings.invite_code_length)
            if not await self.invite_repo.code_exists(code):
                return code

        logger.error(
            f"Could not generate a free invite code in {INVITE_CODE_MAX_ATTEMPTS} attempts"
        )
        raise ConflictError("Could not generate a unique invite code")

    @with_rollback_on_error
    async def issue(
        self,
        owner_id: int,
        ttl: timedelta | None = None,
        commit: bool = True,
    ) -> InviteCode:
        """
        Issue a new invite code.

        Args:
            owner_id: Issuing user ID
            ttl: Lifetime of the code (defaults to settings.invite_code_ttl_seconds;
                 None there means the code never expires)
            commit: Commit on success; pass False inside an outer transaction

        Returns:
            Created invite code

        Raises:
            UserNotFoundError: Owner does not exist
        """
        if not await self.user_repo.exists(id=owner_id):
            raise UserNotFoundError(user_id=owner_id)

        if ttl is None and settings.invite_code_ttl_seconds:
            ttl = timedelta(seconds=settings.invite_code_ttl_seconds)

        now = utc_now()
        invite = await self.invite_repo.create(
            code=await self._generate_unique_code(),
            user_id=owner_id,
            created_at=now,
            expires_at=now + ttl if ttl is not None else None,
        )

        if commit:
            await self.session.commit()

        logger.info(
            f"Invite code issued for user {owner_id}",
            extra={"invite_code_id": invite.id, "expires_at": invite.expires_at},
        )
        return invite

    async def validate(self, code: str) -> InviteCode:
        """
        Check that a code can be redeemed right now.

        Args:
            code: Code string

        Returns:
            The invite code

        Raises:
            InviteCodeNotFoundError: Unknown code
            AlreadyUsedError: Code already redeemed
            InviteCodeExpiredError: Code past its expiry
        """
        invite = await self.invite_repo.get_by_code(code)
        if invite is None:
            raise InviteCodeNotFoundError(code=code)

        if invite.is_used:
            raise AlreadyUsedError(code=code)

        if invite.is_expired(utc_now()):
            raise InviteCodeExpiredError(code=code)

        return invite

    @with_rollback_on_error
    async def redeem(
        self, code: str, redeemer_id: int, commit: bool = True
    ) -> int:
        """
        Redeem a code exactly once and join the redeemer to the graph.

        The used-flag update and the closure-table join share one
        transaction: if the join fails the code stays unused.

        Args:
            code: Code string
            redeemer_id: Redeeming user ID
            commit: Commit on success; pass False inside an outer transaction

        Returns:
            Inviter (code owner) user ID

        Raises:
            InviteCodeNotFoundError: Unknown code
            AlreadyUsedError: Code already redeemed (including a lost race)
            InviteCodeExpiredError: Code past its expiry
            SelfReferralError: Redeemer owns the code
            AlreadyJoinedError: Redeemer already belongs to the graph
        """
        invite = await self.validate(code)
        inviter_id = invite.user_id

        if inviter_id == redeemer_id:
            raise SelfReferralError(
                "Cannot redeem your own invite code", code=code
            )

        if not await self.invite_repo.mark_used(invite.id, redeemer_id, utc_now()):
            logger.warning(
                f"Invite code {code} redeemed concurrently, rejecting user {redeemer_id}"
            )
            raise AlreadyUsedError(code=code)

        await self.graph_manager.join(redeemer_id, inviter_id, commit=False)
        await self.session.refresh(invite)
        if commit:
            await self.session.commit()

        logger.info(
            f"Invite code {code} redeemed",
            extra={"inviter_id": inviter_id, "redeemer_id": redeemer_id},
        )
        return inviter_id

    async def get_or_issue_primary(self, owner_id: int) -> InviteCode:
        """
        Get the user's oldest unused code, issuing one if there is none.

        Args:
            owner_id: User ID

        Returns:
            Invite code
        """
        invite = await self.invite_repo.get_first_unused(owner_id)
        if invite is not None and not invite.is_expired(utc_now()):
            return invite
        return await self.issue(owner_id)

    async def list_for_owner(self, owner_id: int) -> list[InviteCode]:
        """Get all codes issued by a user, oldest first."""
        return await self.invite_repo.get_by_owner(owner_id)
