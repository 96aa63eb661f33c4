"""Application schemas."""

from datetime import datetime
from typing import Literal, Optional

from pydantic import Field

from api.schemas.common import CamelModel, PortfolioProjectResponse
from api.schemas.openings import OpeningBrief
from database.models.applications import ApplicationStatus


class ApplyRequest(CamelModel):
    cover_letter: Optional[str] = Field(None, max_length=5000)
    preferred_role_id: Optional[int] = None


class ApplicationStatusUpdate(CamelModel):
    """Recruiter decision. Accepting may name the role the applicant fills."""

    status: Literal["Accepted", "Rejected"]
    role_id: Optional[int] = None


class ApplicationResponse(CamelModel):
    id: int
    opening_id: int
    applicant_id: int
    cover_letter: Optional[str] = None
    preferred_role_id: Optional[int] = None
    status: ApplicationStatus
    created_at: datetime
    updated_at: datetime


class ApplicantProfile(CamelModel):
    id: int
    name: str
    strength_score: int = 0
    avatar_url: Optional[str] = None
    bio: Optional[str] = None
    skills: list[str] = Field(default_factory=list)
    experience_level: Optional[int] = None
    portfolio: list[PortfolioProjectResponse] = Field(default_factory=list)


class ApplicationWithApplicant(ApplicationResponse):
    applicant: ApplicantProfile


class ApplicationWithOpening(ApplicationResponse):
    opening: OpeningBrief
