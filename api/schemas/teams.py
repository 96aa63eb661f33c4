"""Team, roster and chat schemas."""

from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from api.schemas.common import CamelModel, UserSummary
from core.config import settings
from database.models.openings import CollaborationType


class TeamOpening(CamelModel):
    id: int
    title: str
    type: CollaborationType


class TeamRosterEntry(CamelModel):
    id: int
    name: str
    team_role: str


class TeamResponse(CamelModel):
    id: int
    opening_id: int
    name: str
    code: str
    created_at: datetime
    opening: TeamOpening
    members: list[TeamRosterEntry] = Field(default_factory=list)


class TeamMemberResponse(CamelModel):
    """Roster entry: the member's profile plus when and as what they joined."""

    id: int
    name: str
    avatar_url: Optional[str] = None
    primary_role: Optional[str] = None
    email: str
    bio: Optional[str] = None
    joined_at: datetime
    team_role: str


class MessageCreate(CamelModel):
    text: str

    @field_validator("text")
    @classmethod
    def validate_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Message text must not be empty")
        if len(v) > settings.chat_max_message_length:
            raise ValueError(
                f"Message text must be at most {settings.chat_max_message_length} characters"
            )
        return v


class TeamMessageResponse(CamelModel):
    id: int
    team_id: int
    sender_id: int
    text: str
    created_at: datetime
    sender: UserSummary


class DirectMessageResponse(CamelModel):
    id: int
    sender_id: int
    receiver_id: int
    text: str
    created_at: datetime
    sender: UserSummary
    receiver: UserSummary
