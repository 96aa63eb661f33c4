"""FastAPI dependencies for dependency injection."""

from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from api.services.users import get_user
from core.errors import AuthenticationRequiredError, NotFoundError
from core.middleware.authentication import AuthContext
from core.middleware.authentication import get_auth_context as _auth_from_scope
from database.engine import get_db
from database.models.users import User


async def get_auth_context(request: Request) -> Optional[AuthContext]:
    """
    Identity set by AuthenticationMiddleware, or None for anonymous callers.
    Useful for endpoints that work both authenticated and unauthenticated.
    """
    return _auth_from_scope(request)


async def require_auth(
    auth: Optional[AuthContext] = Depends(get_auth_context),
) -> AuthContext:
    """Require a valid access token."""
    if auth is None:
        raise AuthenticationRequiredError("Authentication required")
    return auth


async def get_current_user(
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Load the authenticated user. A token for a deleted account counts as
    unauthenticated.
    """
    try:
        return await get_user(db, auth.user_id)
    except NotFoundError:
        raise AuthenticationRequiredError("User account no longer exists")
