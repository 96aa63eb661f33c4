"""User profile endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_current_user, require_auth
from api.schemas.applications import ApplicationWithOpening
from api.schemas.common import ERROR_RESPONSES
from api.schemas.users import UserPrivateResponse, UserPublicProfile, UserUpdate
from api.services import applications as application_service
from api.services import users as user_service
from core.middleware.authentication import AuthContext
from database.engine import get_db
from database.models.users import User

router = APIRouter(prefix="/users", tags=["users"], responses=ERROR_RESPONSES)


@router.get("/me", response_model=UserPrivateResponse)
async def get_me(current_user: User = Depends(get_current_user)):
    return UserPrivateResponse.model_validate(current_user)


@router.patch("/me", response_model=UserPrivateResponse)
async def update_me(
    payload: UserUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Partial profile update; a ``portfolio`` list replaces the portfolio."""
    user = await user_service.update_me(db, current_user.id, payload)
    return UserPrivateResponse.model_validate(user)


@router.get("/me/applications", response_model=list[ApplicationWithOpening])
async def my_applications(
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    applications = await application_service.list_my_applications(db, auth.user_id)
    return [ApplicationWithOpening.model_validate(a) for a in applications]


@router.get("/{user_id}", response_model=UserPublicProfile)
async def get_user_profile(
    user_id: int,
    db: AsyncSession = Depends(get_db),
):
    """Public profile with live portfolio and openings. No e-mail address."""
    user = await user_service.get_user(db, user_id, with_openings=True)
    return UserPublicProfile.model_validate(user)
