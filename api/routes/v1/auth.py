"""
Authentication endpoints.

Provides:
- Email/password registration and login
- Token refresh
- Current user lookup
"""

import logging

import jwt
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_current_user
from api.schemas.auth import AuthResponse, LoginRequest, RegisterRequest, TokenRefreshRequest
from api.schemas.common import ERROR_RESPONSES
from api.schemas.users import UserPrivateResponse
from api.services.users import authenticate_user, get_user, register_user
from core.errors import AuthenticationRequiredError, NotFoundError
from core.security import create_token_pair, verify_jwt_token
from database.engine import get_db
from database.models.users import User

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["authentication"], responses=ERROR_RESPONSES)


def _auth_response(user: User) -> AuthResponse:
    tokens = create_token_pair(user.id)
    return AuthResponse(
        access_token=tokens["access_token"],
        refresh_token=tokens["refresh_token"],
        token_type=tokens["token_type"],
        expires_in=tokens["expires_in"],
        user=UserPrivateResponse.model_validate(user),
    )


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    payload: RegisterRequest,
    db: AsyncSession = Depends(get_db),
):
    """Create an account and sign it in."""
    user = await register_user(db, payload)
    return _auth_response(user)


@router.post("/login", response_model=AuthResponse)
async def login(
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db),
):
    user = await authenticate_user(db, payload.email, payload.password)
    logger.info(f"User {user.id} logged in")
    return _auth_response(user)


@router.post("/refresh", response_model=AuthResponse)
async def refresh_token(
    payload: TokenRefreshRequest,
    db: AsyncSession = Depends(get_db),
):
    """Exchange a refresh token for a new token pair."""
    try:
        claims = verify_jwt_token(payload.refresh_token, expected_type="refresh")
    except jwt.ExpiredSignatureError:
        raise AuthenticationRequiredError("Refresh token has expired", code="TOKEN_EXPIRED")
    except jwt.InvalidTokenError:
        raise AuthenticationRequiredError("Invalid refresh token", code="TOKEN_INVALID")

    try:
        user = await get_user(db, claims["user_id"])
    except NotFoundError:
        raise AuthenticationRequiredError("User account no longer exists")

    return _auth_response(user)


@router.get("/me", response_model=UserPrivateResponse)
async def me(current_user: User = Depends(get_current_user)):
    return UserPrivateResponse.model_validate(current_user)
