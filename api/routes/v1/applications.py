"""Application endpoints: apply, recruiter review and the accept/reject decision."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import require_auth
from api.schemas.applications import (
    ApplicationResponse,
    ApplicationStatusUpdate,
    ApplicationWithApplicant,
    ApplyRequest,
)
from api.schemas.common import ERROR_RESPONSES
from api.services import applications as application_service
from core.middleware.authentication import AuthContext
from database.engine import get_db

router = APIRouter(prefix="/applications", tags=["applications"], responses=ERROR_RESPONSES)


@router.post(
    "/openings/{opening_id}/apply",
    response_model=ApplicationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def apply_to_opening(
    opening_id: int,
    payload: ApplyRequest,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    application = await application_service.apply_to_opening(db, opening_id, auth.user_id, payload)
    return ApplicationResponse.model_validate(application)


@router.get(
    "/openings/{opening_id}/applications",
    response_model=list[ApplicationWithApplicant],
)
async def list_applications(
    opening_id: int,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    """Applicants for an opening, newest first (recruiter only)."""
    applications = await application_service.list_applications_for_opening(
        db, opening_id, auth.user_id
    )
    return [ApplicationWithApplicant.model_validate(a) for a in applications]


@router.patch(
    "/applications/{application_id}/status",
    response_model=ApplicationResponse,
)
async def update_application_status(
    application_id: int,
    payload: ApplicationStatusUpdate,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    """
    Accept or reject an application.

    Accepting fills the named role when it has room, closes the opening once
    every role is full, and forms or extends the opening's team.
    """
    application = await application_service.update_application_status(
        db, application_id, auth.user_id, payload
    )
    return ApplicationResponse.model_validate(application)
