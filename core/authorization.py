"""
Ownership and membership checks.

Every check runs before the service writes anything, so a failed check
leaves no partial effect.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import ForbiddenError, InvalidStateError
from database.models.openings import Opening, OpeningStatus
from database.models.teams import TeamMember

logger = logging.getLogger(__name__)


def ensure_opening_owner(opening: Opening, user_id: int, action: str = "modify") -> None:
    """
    Raises:
        ForbiddenError: If the caller is not the opening's recruiter
    """
    if opening.recruiter_id != user_id:
        logger.warning(
            f"User {user_id} attempted to {action} opening {opening.id} "
            f"owned by {opening.recruiter_id}"
        )
        raise ForbiddenError(f"Only the recruiter can {action} this opening")


async def ensure_team_member(db: AsyncSession, team_id: int, user_id: int) -> TeamMember:
    """
    Check that the user holds a live membership row for the team.

    Returns:
        The TeamMember row

    Raises:
        ForbiddenError: If the user is not a member
    """
    result = await db.execute(
        select(TeamMember).where(
            TeamMember.team_id == team_id,
            TeamMember.user_id == user_id,
            TeamMember.is_deleted.is_(False),
        )
    )
    membership = result.scalar_one_or_none()

    if membership is None:
        logger.warning(f"User {user_id} attempted to access team {team_id} without membership")
        raise ForbiddenError("You are not a member of this team")

    return membership


def ensure_can_apply(opening: Opening, user_id: int) -> None:
    """
    Raises:
        InvalidStateError: If the opening is closed or the caller owns it
    """
    if opening.status != OpeningStatus.OPEN:
        raise InvalidStateError("This opening is no longer accepting applications")
    if opening.recruiter_id == user_id:
        raise InvalidStateError("You cannot apply to your own opening")


def ensure_not_self(user_id: int, peer_id: int) -> None:
    if user_id == peer_id:
        raise InvalidStateError("You cannot message yourself")
