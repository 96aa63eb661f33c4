"""Opening endpoints: public browse/detail, recruiter create/edit/delete."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import require_auth
from api.schemas.common import ERROR_RESPONSES, StatusMessage
from api.schemas.openings import (
    OpeningCreate,
    OpeningDetailResponse,
    OpeningListItem,
    OpeningUpdate,
)
from api.services import openings as opening_service
from core.middleware.authentication import AuthContext
from database.engine import get_db
from database.models.openings import (
    CollaborationType,
    CommitmentLevel,
    LocationPreference,
    OpeningStatus,
)

router = APIRouter(prefix="/openings", tags=["openings"], responses=ERROR_RESPONSES)


@router.get("", response_model=list[OpeningListItem])
async def list_openings(
    status_filter: Optional[OpeningStatus] = Query(None, alias="status"),
    type: Optional[CollaborationType] = Query(None),
    commitment: Optional[CommitmentLevel] = Query(None),
    location: Optional[LocationPreference] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """List live openings, newest first."""
    openings = await opening_service.list_openings(
        db,
        status=status_filter.value if status_filter else None,
        type=type.value if type else None,
        commitment=commitment.value if commitment else None,
        location=location.value if location else None,
    )
    return [OpeningListItem.model_validate(opening) for opening in openings]


@router.get("/{opening_id}", response_model=OpeningDetailResponse)
async def get_opening(
    opening_id: int,
    db: AsyncSession = Depends(get_db),
):
    """Opening detail with live roles and the recruiter's profile."""
    opening = await opening_service.get_opening(db, opening_id, detail=True)
    return OpeningDetailResponse.model_validate(opening)


@router.post("", response_model=OpeningListItem, status_code=status.HTTP_201_CREATED)
async def create_opening(
    payload: OpeningCreate,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    opening = await opening_service.create_opening(db, auth.user_id, payload)
    return OpeningListItem.model_validate(opening)


@router.patch("/{opening_id}", response_model=OpeningListItem)
async def update_opening(
    opening_id: int,
    payload: OpeningUpdate,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    """
    Owner edit. Roles, when present, are reconciled by id: entries with an
    id are edited in place, entries without one are added, and unlisted
    roles are removed.
    """
    opening = await opening_service.update_opening(db, opening_id, auth.user_id, payload)
    return OpeningListItem.model_validate(opening)


@router.delete("/{opening_id}", response_model=StatusMessage)
async def delete_opening(
    opening_id: int,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    await opening_service.delete_opening(db, opening_id, auth.user_id)
    return StatusMessage(message="Opening deleted successfully")
