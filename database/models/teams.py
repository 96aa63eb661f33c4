from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from database.engine import Base
from database.mixins import IdType, SoftDeleteMixin, TimestampMixin, utcnow

if TYPE_CHECKING:
    from database.models.openings import Opening
    from database.models.users import User


class Team(Base, SoftDeleteMixin, TimestampMixin):
    """The group formed around an opening once its first applicant is accepted."""

    __tablename__: str = "teams"
    id: Mapped[int] = mapped_column(
        IdType, primary_key=True, nullable=False, autoincrement=True
    )
    opening_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("openings.id"), unique=True, nullable=False
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    code: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)

    opening: Mapped["Opening"] = relationship()
    members: Mapped[list["TeamMember"]] = relationship(
        back_populates="team",
        order_by="TeamMember.id",
    )


class TeamMember(Base, SoftDeleteMixin, TimestampMixin):
    __tablename__: str = "team_members"
    id: Mapped[int] = mapped_column(
        IdType, primary_key=True, nullable=False, autoincrement=True
    )
    team_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("teams.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("users.id"), nullable=False, index=True
    )
    role_name: Mapped[str] = mapped_column(String(120), nullable=False)
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )

    team: Mapped["Team"] = relationship(back_populates="members")
    user: Mapped["User"] = relationship()

    __table_args__ = (
        UniqueConstraint("team_id", "user_id", name="uq_team_members_team_user"),
    )
