"""Opening and role schemas."""

from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from api.schemas.common import CamelModel, PortfolioProjectResponse, UserSummary
from database.models.openings import (
    CollaborationType,
    CommitmentLevel,
    LocationPreference,
    OpeningStatus,
    ProjectStage,
)


class RoleIn(CamelModel):
    name: str = Field(..., min_length=1, max_length=120)
    slots: int = Field(..., ge=1, le=1000)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        if isinstance(v, str):
            return v.strip()
        return v


class RoleUpdate(RoleIn):
    """Role entry in an edit; ``id`` targets an existing role, no id creates one."""

    id: Optional[int] = None


class RoleResponse(CamelModel):
    id: int
    name: str
    slots: int
    filled: int


class OpeningBase(CamelModel):
    title: str = Field(..., min_length=1, max_length=200)
    type: CollaborationType
    stage: ProjectStage
    description: str = Field(..., min_length=1, max_length=10000)
    timeline: Optional[str] = Field(None, max_length=200)
    commitment: CommitmentLevel
    compensation: Optional[str] = Field(None, max_length=200)
    location: LocationPreference
    tags: list[str] = Field(default_factory=list)


class OpeningCreate(OpeningBase):
    roles: list[RoleIn] = Field(..., min_length=1)


class OpeningUpdate(CamelModel):
    """Partial edit. Roles, when present, are reconciled by id."""

    title: Optional[str] = Field(None, min_length=1, max_length=200)
    type: Optional[CollaborationType] = None
    stage: Optional[ProjectStage] = None
    description: Optional[str] = Field(None, min_length=1, max_length=10000)
    timeline: Optional[str] = Field(None, max_length=200)
    commitment: Optional[CommitmentLevel] = None
    compensation: Optional[str] = Field(None, max_length=200)
    location: Optional[LocationPreference] = None
    tags: Optional[list[str]] = None
    status: Optional[OpeningStatus] = None
    roles: Optional[list[RoleUpdate]] = Field(None, min_length=1)


class RecruiterSummary(UserSummary):
    strength_score: int = 0


class RecruiterProfile(RecruiterSummary):
    bio: Optional[str] = None
    skills: list[str] = Field(default_factory=list)
    experience_level: Optional[int] = None
    portfolio: list[PortfolioProjectResponse] = Field(default_factory=list)


class OpeningResponse(OpeningBase):
    id: int
    recruiter_id: int
    status: OpeningStatus
    roles: list[RoleResponse] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class OpeningListItem(OpeningResponse):
    recruiter: RecruiterSummary


class OpeningDetailResponse(OpeningResponse):
    recruiter: RecruiterProfile


class OpeningBrief(CamelModel):
    """Opening summary embedded in profiles and application lists."""

    id: int
    title: str
    status: OpeningStatus
    type: CollaborationType
    recruiter_id: int
    created_at: datetime
