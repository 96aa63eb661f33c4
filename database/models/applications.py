from enum import Enum as PyEnum
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Index, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from database.engine import Base
from database.mixins import IdType, SoftDeleteMixin, TimestampMixin

if TYPE_CHECKING:
    from database.models.openings import Opening, Role
    from database.models.users import User


class ApplicationStatus(str, PyEnum):
    PENDING = "Pending"
    ACCEPTED = "Accepted"
    REJECTED = "Rejected"


class Application(Base, SoftDeleteMixin, TimestampMixin):
    """
    A candidate's request to join an opening.

    Pending -> Accepted | Rejected. At most one live application per
    (applicant, opening); the partial unique index backs the service check.
    """

    __tablename__: str = "applications"
    id: Mapped[int] = mapped_column(
        IdType, primary_key=True, nullable=False, autoincrement=True
    )
    opening_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("openings.id", ondelete="CASCADE"), nullable=False, index=True
    )
    applicant_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("users.id"), nullable=False, index=True
    )
    cover_letter: Mapped[str | None] = mapped_column(Text, nullable=True)
    preferred_role_id: Mapped[int | None] = mapped_column(
        IdType, ForeignKey("roles.id", ondelete="SET NULL"), nullable=True
    )
    status: Mapped[ApplicationStatus] = mapped_column(
        String(32),
        default=ApplicationStatus.PENDING,
        server_default=ApplicationStatus.PENDING.value,
        nullable=False,
        index=True,
    )

    opening: Mapped["Opening"] = relationship()
    applicant: Mapped["User"] = relationship()
    preferred_role: Mapped["Role | None"] = relationship()

    __table_args__ = (
        Index(
            "uq_applications_live_opening_applicant",
            "opening_id",
            "applicant_id",
            unique=True,
            postgresql_where=text("is_deleted = false"),
            sqlite_where=text("is_deleted = 0"),
        ),
    )
