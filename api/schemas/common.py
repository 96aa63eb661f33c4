"""Common Pydantic schemas shared across the API."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """
    Base for every request/response schema.

    Serialized with camelCase keys; snake_case names are accepted on input too.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class StatusMessage(CamelModel):
    message: str


class ErrorResponse(CamelModel):
    """Error response model."""

    status: int = Field(description="HTTP status code")
    code: Optional[str] = Field(None, description="Error code for programmatic handling")
    message: str = Field(description="Human-readable error message")
    path: Optional[str] = None
    method: Optional[str] = None
    details: Optional[Any] = None


class UserSummary(CamelModel):
    """Compact user card embedded in openings, messages and rosters."""

    id: int
    name: str
    avatar_url: Optional[str] = None
    primary_role: Optional[str] = None


class PortfolioProjectResponse(CamelModel):
    id: int
    title: str
    url: Optional[str] = None
    description: Optional[str] = None


# Error bodies documented on every resource router
ERROR_RESPONSES = {
    status_code: {"model": ErrorResponse}
    for status_code in (400, 401, 403, 404, 409, 422, 429)
}
