"""Team endpoints: my teams, roster and the team chat channel."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import require_auth
from api.schemas.common import ERROR_RESPONSES
from api.schemas.teams import (
    MessageCreate,
    TeamMemberResponse,
    TeamMessageResponse,
    TeamOpening,
    TeamResponse,
    TeamRosterEntry,
)
from api.services import teams as team_service
from core.middleware.authentication import AuthContext
from database.engine import get_db
from database.models.teams import Team, TeamMember

router = APIRouter(prefix="/teams", tags=["teams"], responses=ERROR_RESPONSES)


def _team_response(team: Team) -> TeamResponse:
    return TeamResponse(
        id=team.id,
        opening_id=team.opening_id,
        name=team.name,
        code=team.code,
        created_at=team.created_at,
        opening=TeamOpening.model_validate(team.opening),
        members=[
            TeamRosterEntry(id=m.user.id, name=m.user.name, team_role=m.role_name)
            for m in team.members
        ],
    )


def _member_response(member: TeamMember) -> TeamMemberResponse:
    user = member.user
    return TeamMemberResponse(
        id=user.id,
        name=user.name,
        avatar_url=user.avatar_url,
        primary_role=user.primary_role,
        email=user.email,
        bio=user.bio,
        joined_at=member.joined_at,
        team_role=member.role_name,
    )


@router.get("", response_model=list[TeamResponse])
async def list_my_teams(
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    teams = await team_service.list_my_teams(db, auth.user_id)
    return [_team_response(team) for team in teams]


@router.get("/{team_id}/members", response_model=list[TeamMemberResponse])
async def list_team_members(
    team_id: int,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    members = await team_service.list_team_members(db, team_id, auth.user_id)
    return [_member_response(m) for m in members]


@router.get("/{team_id}/chat", response_model=list[TeamMessageResponse])
async def get_team_messages(
    team_id: int,
    after: Optional[int] = Query(None, ge=0, description="Only messages newer than this id"),
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    """Team chat history, oldest first. Poll with ``after`` for new messages."""
    messages = await team_service.list_team_messages(db, team_id, auth.user_id, after)
    return [TeamMessageResponse.model_validate(m) for m in messages]


@router.post(
    "/{team_id}/chat",
    response_model=TeamMessageResponse,
    status_code=status.HTTP_201_CREATED,
)
async def send_team_message(
    team_id: int,
    payload: MessageCreate,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    message = await team_service.send_team_message(db, team_id, auth.user_id, payload.text)
    return TeamMessageResponse.model_validate(message)
