from typing import Any, TYPE_CHECKING

from sqlalchemy import JSON, CheckConstraint, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from database.engine import Base
from database.mixins import IdType, SoftDeleteMixin, TimestampMixin

if TYPE_CHECKING:
    from database.models.openings import Opening


# ==================== User ===================== #
class User(Base, SoftDeleteMixin, TimestampMixin):
    """
    Account and public profile.

    Created at registration, mutated only by self-service profile updates,
    never hard-deleted.
    """

    __tablename__: str = "users"
    id: Mapped[int] = mapped_column(
        IdType, primary_key=True, nullable=False, autoincrement=True
    )
    email: Mapped[str] = mapped_column(
        String(255), unique=True, nullable=False, index=True
    )
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    avatar_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    skills: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    primary_role: Mapped[str | None] = mapped_column(String(100), nullable=True)
    experience_level: Mapped[int | None] = mapped_column(
        Integer, nullable=True, comment="Self-reported, 1-10"
    )
    availability: Mapped[int | None] = mapped_column(
        Integer, nullable=True, comment="Hours per week"
    )
    interests: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    strength_score: Mapped[int] = mapped_column(
        Integer, default=0, server_default="0", nullable=False
    )
    social_links: Mapped[dict[str, Any]] = mapped_column(
        JSON, default=dict, nullable=False
    )

    portfolio: Mapped[list["PortfolioProject"]] = relationship(
        back_populates="user",
        order_by="PortfolioProject.id",
    )
    openings: Mapped[list["Opening"]] = relationship(
        back_populates="recruiter",
        order_by="Opening.created_at.desc()",
    )

    __table_args__ = (
        CheckConstraint(
            "experience_level IS NULL OR (experience_level >= 1 AND experience_level <= 10)",
            name="ck_users_experience_level",
        ),
        CheckConstraint(
            "availability IS NULL OR availability >= 0",
            name="ck_users_availability",
        ),
    )


# ==================== Portfolio ===================== #
class PortfolioProject(Base, SoftDeleteMixin, TimestampMixin):
    __tablename__: str = "portfolio_projects"
    id: Mapped[int] = mapped_column(
        IdType, primary_key=True, nullable=False, autoincrement=True
    )
    user_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    user: Mapped["User"] = relationship(back_populates="portfolio")
