"""
Referral graph management module.

Builds the referral closure table: registers users as graph roots and
attaches new users under their inviter.
"""

from loguru import logger
from sqlalchemy import exc as sa_exc
from sqlalchemy.ext.asyncio import AsyncSession

from app.repositories.ancestry_repository import AncestryRepository
from app.repositories.user_repository import UserRepository
from app.utils.datetime_utils import utc_now
from app.utils.db_decorators import with_rollback_on_error
from app.utils.exceptions import (
    AlreadyJoinedError,
    SelfReferralError,
    UnknownInviterError,
    UserNotFoundError,
)


class ReferralGraphManager:
    """
    Manages writes to the referral closure table.

    A user enters the graph exactly once: either as a root (self-row only,
    via ensure_self_row) or under an inviter (via join). A joining user has
    no rows yet, hence no descendants, so the graph stays acyclic without
    any cycle detection.
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize graph manager."""
        self.session = session
        self.ancestry_repo = AncestryRepository(session)
        self.user_repo = UserRepository(session)

    async def ensure_self_row(
        self, user_id: int, owner_id: int | None = None
    ) -> bool:
        """
        Create the (U, U, 0) row if the user has none.

        Flushes only; the caller commits.

        Args:
            user_id: User ID
            owner_id: Optional provenance

        Returns:
            True if a row was created, False if it already existed
        """
        if await self.ancestry_repo.has_self_row(user_id):
            return False

        await self.ancestry_repo.insert_self_row(
            user_id, now=utc_now(), owner_id=owner_id
        )
        logger.debug(
            "Ancestry self-row created",
            extra={"user_id": user_id},
        )
        return True

    @with_rollback_on_error
    async def join(
        self,
        new_user_id: int,
        inviter_id: int,
        owner_id: int | None = None,
        commit: bool = True,
    ) -> int:
        """
        Attach a new user under an inviter.

        Inserts (A, new_user, d + 1) for every ancestor row (A, inviter, d)
        of the inviter, plus the new user's self-row, and records the
        direct inviter on the user. All rows are written or none.

        Args:
            new_user_id: Joining user ID
            inviter_id: Direct inviter ID
            owner_id: Provenance stored on the rows (defaults to inviter)
            commit: Commit on success; pass False to join an outer transaction

        Returns:
            Number of upward links created, as reported by the driver

        Raises:
            SelfReferralError: new_user_id == inviter_id
            UnknownInviterError: inviter has no self-row
            UserNotFoundError: new user does not exist
            AlreadyJoinedError: new user already has ancestry rows
        """
        if new_user_id == inviter_id:
            raise SelfReferralError(
                "A user cannot invite themselves", user_id=new_user_id
            )

        if not await self.ancestry_repo.has_self_row(inviter_id):
            raise UnknownInviterError(inviter_id=inviter_id)

        # Row lock serializes concurrent joins of the same user
        new_user = await self.user_repo.get_by_id_for_update(new_user_id)
        if new_user is None:
            raise UserNotFoundError(user_id=new_user_id)

        if await self.ancestry_repo.exists(descendant_id=new_user_id):
            raise AlreadyJoinedError(
                user_id=new_user_id, inviter_id=inviter_id
            )

        now = utc_now()
        provenance = owner_id if owner_id is not None else inviter_id

        try:
            await self.ancestry_repo.insert_self_row(
                new_user_id, now=now, owner_id=provenance
            )
            inserted = await self.ancestry_repo.insert_chain(
                new_user_id, inviter_id, now=now, owner_id=provenance
            )
            new_user.invited_by_user_id = inviter_id
            await self.session.flush()
        except sa_exc.IntegrityError as e:
            # A concurrent join of the same user won the unique constraint
            logger.warning(
                f"Concurrent join detected for user {new_user_id}: {e.orig}"
            )
            raise AlreadyJoinedError(
                user_id=new_user_id, inviter_id=inviter_id
            ) from e

        if commit:
            await self.session.commit()

        logger.info(
            "Referral chain created",
            extra={
                "new_user_id": new_user_id,
                "inviter_id": inviter_id,
                "links_created": inserted,
            },
        )

        return inserted
