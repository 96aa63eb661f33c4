from enum import Enum as PyEnum
from typing import TYPE_CHECKING

from sqlalchemy import JSON, CheckConstraint, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from database.engine import Base
from database.mixins import IdType, SoftDeleteMixin, TimestampMixin

if TYPE_CHECKING:
    from database.models.users import User


# ==================== Enums ===================== #
class OpeningStatus(str, PyEnum):
    OPEN = "Open"
    CLOSED = "Closed / Team Formed"


class CollaborationType(str, PyEnum):
    HACKATHON = "Hackathon"
    SIDE_PROJECT = "Side Project/Indie App"
    STARTUP = "Startup/Co-founder"
    OPEN_SOURCE = "Open Source"
    FREELANCE = "Freelance/Paid Gig"
    STUDENT = "Student/College Project"
    OTHER = "Other"


class ProjectStage(str, PyEnum):
    IDEA = "Idea Only"
    PROTOTYPE = "Prototype/MVP Built"
    SCALING = "Scaling/Growth"
    MAINTENANCE = "Maintenance/Polish"


class CommitmentLevel(str, PyEnum):
    CASUAL = "Casual/Weekends Only"
    PART_TIME = "Part-time (5-15 hrs/week)"
    FULL_TIME = "Full-time"
    ONE_OFF = "One-off Task"


class LocationPreference(str, PyEnum):
    REMOTE = "Remote/Online Only"
    MUMBAI = "Mumbai In-Person"
    HYBRID = "Hybrid"
    ANYWHERE = "Anywhere"


# ==================== Opening ===================== #
class Opening(Base, SoftDeleteMixin, TimestampMixin):
    """
    A recruiter's call for collaborators on a project.

    Status moves from Open to Closed / Team Formed once every role is full.
    """

    __tablename__: str = "openings"
    id: Mapped[int] = mapped_column(
        IdType, primary_key=True, nullable=False, autoincrement=True
    )
    recruiter_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("users.id"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    type: Mapped[CollaborationType] = mapped_column(String(32), nullable=False, index=True)
    stage: Mapped[ProjectStage] = mapped_column(String(32), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    timeline: Mapped[str | None] = mapped_column(String(200), nullable=True)
    commitment: Mapped[CommitmentLevel] = mapped_column(String(32), nullable=False, index=True)
    compensation: Mapped[str | None] = mapped_column(String(200), nullable=True)
    location: Mapped[LocationPreference] = mapped_column(String(32), nullable=False, index=True)
    tags: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    status: Mapped[OpeningStatus] = mapped_column(
        String(32),
        default=OpeningStatus.OPEN,
        server_default=OpeningStatus.OPEN.value,
        nullable=False,
        index=True,
    )

    recruiter: Mapped["User"] = relationship(back_populates="openings")
    roles: Mapped[list["Role"]] = relationship(
        back_populates="opening",
        order_by="Role.id",
    )

    __table_args__ = (
        Index("idx_openings_status_created", "status", "created_at"),
    )


# ==================== Role ===================== #
class Role(Base, SoftDeleteMixin, TimestampMixin):
    __tablename__: str = "roles"
    id: Mapped[int] = mapped_column(
        IdType, primary_key=True, nullable=False, autoincrement=True
    )
    opening_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("openings.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    slots: Mapped[int] = mapped_column(Integer, nullable=False)
    filled: Mapped[int] = mapped_column(
        Integer, default=0, server_default="0", nullable=False
    )

    opening: Mapped["Opening"] = relationship(back_populates="roles")

    # filled is only ever raised by a conditional UPDATE; these are the backstop
    __table_args__ = (
        CheckConstraint("slots >= 1", name="ck_roles_slots_positive"),
        CheckConstraint("filled >= 0", name="ck_roles_filled_non_negative"),
        CheckConstraint("filled <= slots", name="ck_roles_filled_le_slots"),
    )

    @property
    def is_full(self) -> bool:
        return self.filled >= self.slots
