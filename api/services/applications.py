"""
Application service functions for API endpoints.

Holds the apply flow, the recruiter's applicant list and the acceptance /
team-formation workflow.
"""

import logging
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from api.schemas.applications import ApplicationStatusUpdate, ApplyRequest
from api.services.openings import get_opening
from api.services.teams import DEFAULT_MEMBER_LABEL, enroll_member, ensure_team, log_team_formed
from core.authorization import ensure_can_apply, ensure_opening_owner
from core.config import settings
from core.errors import InvalidStateError, NotFoundError
from core.security import AuditAction, ResourceType, log_audit_event
from database.models.applications import Application, ApplicationStatus
from database.models.openings import Opening, OpeningStatus, Role
from database.models.teams import Team
from database.models.users import PortfolioProject, User

logger = logging.getLogger(__name__)


async def apply_to_opening(
    db: AsyncSession,
    opening_id: int,
    applicant_id: int,
    payload: ApplyRequest,
) -> Application:
    """
    Submit an application.

    Raises:
        NotFoundError: Opening missing or deleted
        InvalidStateError: Opening closed, caller is the recruiter, a live
            application already exists, or the preferred role is not part
            of this opening
    """
    opening = await get_opening(db, opening_id)
    ensure_can_apply(opening, applicant_id)

    existing = await db.scalar(
        select(Application.id).where(
            Application.opening_id == opening_id,
            Application.applicant_id == applicant_id,
            Application.is_deleted.is_(False),
        )
    )
    if existing is not None:
        raise InvalidStateError("You have already applied to this opening")

    if payload.preferred_role_id is not None and payload.preferred_role_id not in {
        role.id for role in opening.roles
    }:
        raise InvalidStateError("Preferred role does not belong to this opening")

    application = Application(
        opening_id=opening_id,
        applicant_id=applicant_id,
        cover_letter=payload.cover_letter,
        preferred_role_id=payload.preferred_role_id,
        status=ApplicationStatus.PENDING.value,
    )
    db.add(application)
    try:
        await db.commit()
    except IntegrityError:
        # A concurrent request won the partial unique index
        await db.rollback()
        raise InvalidStateError("You have already applied to this opening")

    logger.info(f"User {applicant_id} applied to opening {opening_id}")
    await log_audit_event(
        AuditAction.APPLY,
        ResourceType.APPLICATION,
        resource_id=application.id,
        user_id=applicant_id,
        details={"opening_id": opening_id, "preferred_role_id": payload.preferred_role_id},
    )
    return application


async def list_applications_for_opening(
    db: AsyncSession,
    opening_id: int,
    user_id: int,
) -> list[Application]:
    """Recruiter-only applicant list, newest first."""
    opening = await get_opening(db, opening_id)
    ensure_opening_owner(opening, user_id, "view applications for")

    result = await db.execute(
        select(Application)
        .options(
            selectinload(Application.applicant).selectinload(
                User.portfolio.and_(PortfolioProject.is_deleted.is_(False))
            )
        )
        .where(Application.opening_id == opening_id, Application.is_deleted.is_(False))
        .order_by(Application.created_at.desc(), Application.id.desc())
    )
    return list(result.scalars().all())


async def list_my_applications(db: AsyncSession, user_id: int) -> list[Application]:
    result = await db.execute(
        select(Application)
        .options(selectinload(Application.opening))
        .where(Application.applicant_id == user_id, Application.is_deleted.is_(False))
        .order_by(Application.created_at.desc(), Application.id.desc())
    )
    return list(result.scalars().all())


# ==================== Acceptance workflow ==================== #

async def _begin_workflow(db: AsyncSession) -> None:
    """Open the workflow transaction at the configured isolation level."""
    if db.in_transaction():
        return
    level = settings.workflow_isolation_level
    if level:
        await db.connection(execution_options={"isolation_level": level})


async def _load_application(db: AsyncSession, application_id: int) -> Application:
    result = await db.execute(
        select(Application)
        .join(Application.opening)
        .options(selectinload(Application.opening))
        .where(
            Application.id == application_id,
            Application.is_deleted.is_(False),
            Opening.is_deleted.is_(False),
        )
        .execution_options(populate_existing=True)
    )
    application = result.scalar_one_or_none()
    if application is None:
        raise NotFoundError("Application not found")
    return application


async def _load_role(db: AsyncSession, opening_id: int, role_id: int) -> Role:
    role = await db.scalar(
        select(Role)
        .where(
            Role.id == role_id,
            Role.opening_id == opening_id,
            Role.is_deleted.is_(False),
        )
        .execution_options(populate_existing=True)
    )
    if role is None:
        raise NotFoundError("Role not found")
    return role


async def _claim_role_slot(db: AsyncSession, role: Role) -> bool:
    """
    Atomically take one slot if the role is under capacity.

    Returns:
        True if a slot was taken, False if the role was already full
    """
    result = await db.execute(
        update(Role)
        .where(
            Role.id == role.id,
            Role.filled < Role.slots,
            Role.is_deleted.is_(False),
        )
        .values(filled=Role.filled + 1)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def _close_if_all_roles_full(db: AsyncSession, opening: Opening) -> bool:
    result = await db.execute(
        select(Role)
        .where(Role.opening_id == opening.id, Role.is_deleted.is_(False))
        .execution_options(populate_existing=True)
    )
    roles = list(result.scalars().all())

    if roles and all(role.is_full for role in roles):
        opening.status = OpeningStatus.CLOSED.value
        await db.flush()
        return True
    return False


async def _form_team(
    db: AsyncSession,
    application: Application,
    role_name: Optional[str],
) -> Optional[Team]:
    """Ensure the team and enrol the applicant; returns the team if it was just created."""
    team, created = await ensure_team(db, application.opening)
    await enroll_member(db, team.id, application.applicant_id, role_name)
    return team if created else None


async def update_application_status(
    db: AsyncSession,
    application_id: int,
    user_id: int,
    payload: ApplicationStatusUpdate,
) -> Application:
    """
    Accept or reject an application.

    Pending -> Accepted runs as one transaction: status write, conditional
    role-slot claim, opening close-out, team creation and member upsert.
    Accepted -> Accepted re-runs only the team steps. Rejected -> Rejected
    is a no-op. Any other move out of a decided state is refused.

    Raises:
        NotFoundError: Application, its opening or the named role is missing
        ForbiddenError: Caller is not the opening's recruiter
        InvalidStateError: Transition not allowed
    """
    target = ApplicationStatus(payload.status)

    try:
        await _begin_workflow(db)

        application = await _load_application(db, application_id)
        ensure_opening_owner(application.opening, user_id, "review applications for")

        role = None
        if payload.role_id is not None:
            role = await _load_role(db, application.opening_id, payload.role_id)

        current = ApplicationStatus(application.status)
        audit_action = None
        new_team = None

        if current == ApplicationStatus.PENDING and target == ApplicationStatus.ACCEPTED:
            application.status = target.value
            await db.flush()

            if role is not None and not await _claim_role_slot(db, role):
                logger.info(
                    f"Role {role.id} is full; accepting application {application_id} "
                    f"without taking a slot"
                )

            if await _close_if_all_roles_full(db, application.opening):
                logger.info(f"Opening {application.opening_id} closed: every role is filled")

            new_team = await _form_team(db, application, role.name if role else DEFAULT_MEMBER_LABEL)
            audit_action = AuditAction.ACCEPT

        elif current == ApplicationStatus.PENDING and target == ApplicationStatus.REJECTED:
            application.status = target.value
            audit_action = AuditAction.REJECT

        elif current == target == ApplicationStatus.ACCEPTED:
            # Retry: make sure the team side is in place, nothing else
            new_team = await _form_team(db, application, role.name if role else None)

        elif current == target == ApplicationStatus.REJECTED:
            pass

        else:
            raise InvalidStateError(
                f"Cannot change an application from {current.value} to {target.value}"
            )

        await db.commit()
    except Exception:
        await db.rollback()
        raise

    if audit_action is not None:
        logger.info(f"Application {application_id} {target.value.lower()} by user {user_id}")
        await log_audit_event(
            audit_action,
            ResourceType.APPLICATION,
            resource_id=application_id,
            user_id=user_id,
            details={"opening_id": application.opening_id, "role_id": payload.role_id},
        )

    if new_team is not None:
        await log_team_formed(new_team, user_id)

    await db.refresh(application)
    return application

