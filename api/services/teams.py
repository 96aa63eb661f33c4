"""
Team service functions.

Team creation and membership are written only by the acceptance workflow
(``api.services.applications``); everything else here is member-only reads
and the team chat channel.
"""

import logging
import secrets
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from core.authorization import ensure_team_member
from core.config import settings
from core.errors import NotFoundError
from core.security import AuditAction, ResourceType, log_audit_event
from database.models.messages import Message
from database.models.openings import Opening
from database.models.teams import Team, TeamMember

logger = logging.getLogger(__name__)

ORIGINATOR_LABEL = "Originator"
DEFAULT_MEMBER_LABEL = "Collaborator"
CODE_ATTEMPTS = 10


async def generate_team_code(db: AsyncSession) -> str:
    """
    Pick an unused ``<prefix><4 digits>`` code.

    Falls back to an 8-hex-digit suffix once the short codes keep colliding.
    """
    for _ in range(CODE_ATTEMPTS):
        code = f"{settings.team_code_prefix}{1000 + secrets.randbelow(9000)}"
        taken = await db.scalar(select(Team.id).where(Team.code == code))
        if taken is None:
            return code

    logger.warning(f"No free 4-digit team code after {CODE_ATTEMPTS} attempts, using hex suffix")
    return f"{settings.team_code_prefix}{secrets.token_hex(4).upper()}"


async def enroll_member(
    db: AsyncSession,
    team_id: int,
    user_id: int,
    role_name: Optional[str] = None,
) -> TeamMember:
    """
    Upsert a membership row.

    An existing row, even a soft-deleted one, is revived. ``role_name``
    relabels it; when None the current label is kept (new rows get
    ``Collaborator``).
    """
    result = await db.execute(
        select(TeamMember)
        .where(TeamMember.team_id == team_id, TeamMember.user_id == user_id)
        .execution_options(populate_existing=True)
    )
    member = result.scalar_one_or_none()

    if member is None:
        member = TeamMember(
            team_id=team_id,
            user_id=user_id,
            role_name=role_name or DEFAULT_MEMBER_LABEL,
        )
        db.add(member)
    else:
        member.is_deleted = False
        if role_name:
            member.role_name = role_name

    await db.flush()
    return member


async def ensure_team(db: AsyncSession, opening: Opening) -> tuple[Team, bool]:
    """
    Return the opening's team, creating it on first use.

    A new team takes the opening's title as its name and enrols the
    recruiter as ``Originator``.

    Returns:
        (team, created)
    """
    result = await db.execute(
        select(Team)
        .where(Team.opening_id == opening.id)
        .execution_options(populate_existing=True)
    )
    team = result.scalar_one_or_none()

    if team is not None:
        if team.is_deleted:
            team.is_deleted = False
            await db.flush()
        return team, False

    team = Team(
        opening_id=opening.id,
        name=opening.title,
        code=await generate_team_code(db),
    )
    db.add(team)
    await db.flush()

    await enroll_member(db, team.id, opening.recruiter_id, ORIGINATOR_LABEL)
    logger.info(f"Team {team.id} ({team.code}) formed for opening {opening.id}")
    return team, True


async def get_team(db: AsyncSession, team_id: int) -> Team:
    team = await db.scalar(
        select(Team).where(Team.id == team_id, Team.is_deleted.is_(False))
    )
    if team is None:
        raise NotFoundError("Team not found")
    return team


def _live_members():
    return selectinload(Team.members.and_(TeamMember.is_deleted.is_(False))).selectinload(
        TeamMember.user
    )


async def list_my_teams(db: AsyncSession, user_id: int) -> list[Team]:
    """Live teams where the user holds a live membership, oldest first."""
    membership = (
        select(TeamMember.team_id)
        .where(TeamMember.user_id == user_id, TeamMember.is_deleted.is_(False))
    )
    result = await db.execute(
        select(Team)
        .options(selectinload(Team.opening), _live_members())
        .where(Team.is_deleted.is_(False), Team.id.in_(membership))
        .order_by(Team.created_at, Team.id)
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def list_team_members(db: AsyncSession, team_id: int, user_id: int) -> list[TeamMember]:
    """
    Roster for a team the caller belongs to.

    Raises:
        NotFoundError: Team missing or deleted
        ForbiddenError: Caller is not a member
    """
    await get_team(db, team_id)
    await ensure_team_member(db, team_id, user_id)

    result = await db.execute(
        select(TeamMember)
        .options(selectinload(TeamMember.user))
        .where(TeamMember.team_id == team_id, TeamMember.is_deleted.is_(False))
        .order_by(TeamMember.joined_at, TeamMember.id)
    )
    return list(result.scalars().all())


async def list_team_messages(
    db: AsyncSession,
    team_id: int,
    user_id: int,
    after: Optional[int] = None,
) -> list[Message]:
    """
    Team chat history in ``(created_at, id)`` order.

    Args:
        after: Message id cursor; only messages newer than it are returned
    """
    await get_team(db, team_id)
    await ensure_team_member(db, team_id, user_id)

    query = (
        select(Message)
        .options(selectinload(Message.sender))
        .where(Message.team_id == team_id, Message.is_deleted.is_(False))
    )
    if after is not None:
        query = query.where(Message.id > after)

    result = await db.execute(query.order_by(Message.created_at, Message.id))
    return list(result.scalars().all())


async def send_team_message(db: AsyncSession, team_id: int, user_id: int, text: str) -> Message:
    await get_team(db, team_id)
    await ensure_team_member(db, team_id, user_id)

    message = Message(team_id=team_id, sender_id=user_id, text=text)
    db.add(message)
    await db.commit()

    logger.debug(f"User {user_id} posted message {message.id} to team {team_id}")
    result = await db.execute(
        select(Message).options(selectinload(Message.sender)).where(Message.id == message.id)
    )
    return result.scalar_one()


async def log_team_formed(team: Team, recruiter_id: int) -> None:
    await log_audit_event(
        AuditAction.CREATE,
        ResourceType.TEAM,
        resource_id=team.id,
        user_id=recruiter_id,
        details={"opening_id": team.opening_id, "code": team.code},
    )
