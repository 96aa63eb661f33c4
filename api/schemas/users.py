"""User profile schemas."""

from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from api.schemas.common import CamelModel, PortfolioProjectResponse
from api.schemas.openings import OpeningBrief


class SocialLinks(CamelModel):
    github: Optional[str] = Field(None, max_length=500)
    linkedin: Optional[str] = Field(None, max_length=500)
    twitter: Optional[str] = Field(None, max_length=500)
    gmail: Optional[str] = Field(None, max_length=500)
    portfolio: Optional[str] = Field(None, max_length=500)


class PortfolioProjectIn(CamelModel):
    title: str = Field(..., min_length=1, max_length=200)
    url: Optional[str] = Field(None, max_length=500)
    description: Optional[str] = Field(None, max_length=5000)


class UserProfileBase(CamelModel):
    id: int
    name: str
    avatar_url: Optional[str] = None
    bio: Optional[str] = None
    skills: list[str] = Field(default_factory=list)
    primary_role: Optional[str] = None
    experience_level: Optional[int] = None
    availability: Optional[int] = None
    interests: list[str] = Field(default_factory=list)
    strength_score: int = 0
    social_links: SocialLinks = Field(default_factory=SocialLinks)
    created_at: datetime

    @field_validator("skills", "interests", mode="before")
    @classmethod
    def none_as_empty_list(cls, v):
        return [] if v is None else v

    @field_validator("social_links", mode="before")
    @classmethod
    def none_as_empty_links(cls, v):
        return {} if v is None else v


class UserPrivateResponse(UserProfileBase):
    """The caller's own account, including e-mail and portfolio."""

    email: str
    portfolio: list[PortfolioProjectResponse] = Field(default_factory=list)


class UserPublicProfile(UserProfileBase):
    """Profile as seen by anyone. Never carries the e-mail address."""

    portfolio: list[PortfolioProjectResponse] = Field(default_factory=list)
    openings: list[OpeningBrief] = Field(default_factory=list)


class UserUpdate(CamelModel):
    """Partial profile update; only fields present in the body are written."""

    name: Optional[str] = Field(None, min_length=1, max_length=120)
    bio: Optional[str] = Field(None, max_length=5000)
    skills: Optional[list[str]] = None
    experience_level: Optional[int] = Field(None, ge=1, le=10)
    availability: Optional[int] = Field(None, ge=0, le=168)
    interests: Optional[list[str]] = None
    strength_score: Optional[int] = Field(None, ge=0)
    avatar_url: Optional[str] = Field(None, max_length=500)
    primary_role: Optional[str] = Field(None, max_length=100)
    social_links: Optional[SocialLinks] = None
    portfolio: Optional[list[PortfolioProjectIn]] = None

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        if isinstance(v, str):
            return v.strip()
        return v
