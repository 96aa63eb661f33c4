"""
User service functions for API endpoints.

Registration, credential checks, profile reads and self-service updates.
"""

import logging

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from api.schemas.auth import RegisterRequest
from api.schemas.users import UserUpdate
from core.errors import AuthenticationRequiredError, ConflictError, NotFoundError
from core.security import (
    AuditAction,
    ResourceType,
    hash_password,
    log_audit_event,
    verify_password,
)
from database.models.openings import Opening
from database.models.users import PortfolioProject, User

logger = logging.getLogger(__name__)

# Columns a profile update may not null out
NON_NULLABLE_FIELDS = {"name", "skills", "interests", "strength_score", "social_links"}


def _live_portfolio():
    return selectinload(User.portfolio.and_(PortfolioProject.is_deleted.is_(False)))


async def get_user(db: AsyncSession, user_id: int, with_openings: bool = False) -> User:
    """
    Load a live user with their live portfolio (and live openings on request).

    Raises:
        NotFoundError: If the user is missing or soft-deleted
    """
    options = [_live_portfolio()]
    if with_openings:
        options.append(selectinload(User.openings.and_(Opening.is_deleted.is_(False))))

    result = await db.execute(
        select(User)
        .options(*options)
        .where(User.id == user_id, User.is_deleted.is_(False))
        .execution_options(populate_existing=True)
    )
    user = result.scalar_one_or_none()
    if user is None:
        raise NotFoundError("User not found")
    return user


async def register_user(db: AsyncSession, payload: RegisterRequest) -> User:
    """
    Create an account.

    Raises:
        ConflictError: E-mail already registered
    """
    existing = await db.scalar(select(User.id).where(User.email == payload.email))
    if existing is not None:
        raise ConflictError("An account with this email already exists")

    user = User(
        email=payload.email,
        password_hash=hash_password(payload.password),
        name=payload.name,
        skills=[],
        interests=[],
        social_links={},
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("An account with this email already exists")

    logger.info(f"User {user.id} registered")
    await log_audit_event(
        AuditAction.REGISTER,
        ResourceType.USER,
        resource_id=user.id,
        user_id=user.id,
        details={"email": payload.email},
        contains_pii=True,
    )
    return await get_user(db, user.id)


async def authenticate_user(db: AsyncSession, email: str, password: str) -> User:
    """
    Check credentials.

    Raises:
        AuthenticationRequiredError: Unknown e-mail, wrong password or deleted account
    """
    user = await db.scalar(
        select(User).where(User.email == email.lower(), User.is_deleted.is_(False))
    )
    if user is None or not verify_password(password, user.password_hash):
        logger.warning("Failed login attempt")
        raise AuthenticationRequiredError(
            "Invalid email or password", code="INVALID_CREDENTIALS"
        )
    return await get_user(db, user.id)


async def update_me(db: AsyncSession, user_id: int, payload: UserUpdate) -> User:
    """
    Partial profile update. A ``portfolio`` list replaces the live portfolio.
    """
    user = await get_user(db, user_id)

    fields = payload.model_dump(exclude_unset=True, exclude={"portfolio"})
    for field, value in fields.items():
        if value is None and field in NON_NULLABLE_FIELDS:
            continue
        setattr(user, field, value)

    if payload.portfolio is not None:
        await db.execute(
            update(PortfolioProject)
            .where(PortfolioProject.user_id == user_id, PortfolioProject.is_deleted.is_(False))
            .values(is_deleted=True)
            .execution_options(synchronize_session=False)
        )
        for project in payload.portfolio:
            db.add(PortfolioProject(
                user_id=user_id,
                title=project.title,
                url=project.url,
                description=project.description,
            ))

    await db.commit()

    logger.info(f"User {user_id} updated their profile")
    await log_audit_event(
        AuditAction.UPDATE,
        ResourceType.USER,
        resource_id=user_id,
        user_id=user_id,
        details={"fields": sorted(fields), "portfolio_replaced": payload.portfolio is not None},
    )
    return await get_user(db, user_id)
