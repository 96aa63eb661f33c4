"""
Opening service functions for API endpoints.

Covers listing, detail, creation, owner edits with role reconciliation,
and soft deletion.
"""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from api.schemas.openings import OpeningCreate, OpeningUpdate
from core.authorization import ensure_opening_owner
from core.errors import InvalidStateError, NotFoundError
from core.security import AuditAction, ResourceType, log_audit_event
from database.models.openings import Opening, Role
from database.models.users import PortfolioProject, User

logger = logging.getLogger(__name__)

# Columns an edit may not null out
NON_NULLABLE_FIELDS = {"title", "type", "stage", "description", "commitment", "location", "tags", "status"}


def live_roles():
    return selectinload(Opening.roles.and_(Role.is_deleted.is_(False)))


def _opening_query(detail: bool = False):
    recruiter = selectinload(Opening.recruiter)
    if detail:
        recruiter = recruiter.selectinload(
            User.portfolio.and_(PortfolioProject.is_deleted.is_(False))
        )
    return (
        select(Opening)
        .options(live_roles(), recruiter)
        .where(Opening.is_deleted.is_(False))
        .execution_options(populate_existing=True)
    )


async def get_opening(db: AsyncSession, opening_id: int, detail: bool = False) -> Opening:
    """
    Load a live opening with its live roles and recruiter.

    Raises:
        NotFoundError: If the opening is missing or soft-deleted
    """
    result = await db.execute(_opening_query(detail).where(Opening.id == opening_id))
    opening = result.scalar_one_or_none()
    if opening is None:
        raise NotFoundError("Opening not found")
    return opening


async def list_openings(
    db: AsyncSession,
    status: Optional[str] = None,
    type: Optional[str] = None,
    commitment: Optional[str] = None,
    location: Optional[str] = None,
) -> list[Opening]:
    """
    List live openings, newest first, with optional exact-match filters.

    Args:
        db: Database session
        status: Opening status filter
        type: Collaboration type filter
        commitment: Commitment level filter
        location: Location preference filter

    Returns:
        Openings with live roles and recruiter loaded
    """
    query = _opening_query()
    if status:
        query = query.where(Opening.status == status)
    if type:
        query = query.where(Opening.type == type)
    if commitment:
        query = query.where(Opening.commitment == commitment)
    if location:
        query = query.where(Opening.location == location)

    result = await db.execute(query.order_by(Opening.created_at.desc(), Opening.id.desc()))
    return list(result.scalars().all())


async def create_opening(db: AsyncSession, recruiter_id: int, payload: OpeningCreate) -> Opening:
    """Create an opening and its roles; the caller becomes the recruiter."""
    data = payload.model_dump(mode="json", exclude={"roles"})
    opening = Opening(
        recruiter_id=recruiter_id,
        **data,
        roles=[Role(name=role.name, slots=role.slots, filled=0) for role in payload.roles],
    )
    db.add(opening)
    await db.commit()

    logger.info(f"Opening {opening.id} created by user {recruiter_id}")
    await log_audit_event(
        AuditAction.CREATE,
        ResourceType.OPENING,
        resource_id=opening.id,
        user_id=recruiter_id,
        details={"title": opening.title, "roles": len(payload.roles)},
    )
    return await get_opening(db, opening.id)


def _plan_role_reconciliation(opening: Opening, entries) -> tuple[list, list[Role]]:
    """
    Validate a role edit against the opening's live roles.

    Returns:
        (updates, removals): ``updates`` pairs each entry with its existing
        Role (or None for a new role); ``removals`` are roles not listed

    Raises:
        InvalidStateError: Unknown or repeated id, or slots below filled
    """
    existing = {role.id: role for role in opening.roles}
    seen: set[int] = set()
    updates = []

    for entry in entries:
        if entry.id is None:
            updates.append((entry, None))
            continue
        role = existing.get(entry.id)
        if role is None:
            raise InvalidStateError(f"Role {entry.id} does not belong to this opening")
        if entry.id in seen:
            raise InvalidStateError(f"Role {entry.id} is listed more than once")
        if entry.slots < role.filled:
            raise InvalidStateError(
                f"Role '{role.name}' already has {role.filled} members; slots cannot be lower"
            )
        seen.add(entry.id)
        updates.append((entry, role))

    removals = [role for role_id, role in existing.items() if role_id not in seen]
    return updates, removals


async def update_opening(
    db: AsyncSession,
    opening_id: int,
    user_id: int,
    payload: OpeningUpdate,
) -> Opening:
    """
    Owner edit. Only fields present in the body are written; roles, when
    present, are reconciled by id so existing ``filled`` counts survive.

    Raises:
        NotFoundError: Opening missing or deleted
        ForbiddenError: Caller is not the recruiter
        InvalidStateError: Role reconciliation is not possible
    """
    opening = await get_opening(db, opening_id)
    ensure_opening_owner(opening, user_id, "update")

    fields = payload.model_dump(mode="json", exclude_unset=True, exclude={"roles"})
    plan = None
    if payload.roles is not None:
        plan = _plan_role_reconciliation(opening, payload.roles)

    for field, value in fields.items():
        if value is None and field in NON_NULLABLE_FIELDS:
            continue
        setattr(opening, field, value)

    if plan is not None:
        updates, removals = plan
        for entry, role in updates:
            if role is None:
                db.add(Role(opening_id=opening.id, name=entry.name, slots=entry.slots, filled=0))
            else:
                role.name = entry.name
                role.slots = entry.slots
        for role in removals:
            role.is_deleted = True

    await db.commit()

    logger.info(f"Opening {opening_id} updated by user {user_id}")
    await log_audit_event(
        AuditAction.UPDATE,
        ResourceType.OPENING,
        resource_id=opening_id,
        user_id=user_id,
        details={
            "fields": sorted(fields),
            "roles_reconciled": plan is not None,
        },
    )
    return await get_opening(db, opening_id)


async def delete_opening(db: AsyncSession, opening_id: int, user_id: int) -> None:
    """Soft delete (owner only)."""
    opening = await get_opening(db, opening_id)
    ensure_opening_owner(opening, user_id, "delete")

    opening.is_deleted = True
    await db.commit()

    logger.info(f"Opening {opening_id} deleted by user {user_id}")
    await log_audit_event(
        AuditAction.DELETE,
        ResourceType.OPENING,
        resource_id=opening_id,
        user_id=user_id,
    )
