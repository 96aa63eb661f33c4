"""Append-only chat records: team channel messages and direct messages."""

from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Index, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from database.engine import Base
from database.mixins import CreatedAtMixin, IdType, SoftDeleteMixin

if TYPE_CHECKING:
    from database.models.users import User


class Message(Base, SoftDeleteMixin, CreatedAtMixin):
    __tablename__: str = "messages"
    id: Mapped[int] = mapped_column(
        IdType, primary_key=True, nullable=False, autoincrement=True
    )
    team_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("teams.id", ondelete="CASCADE"), nullable=False
    )
    sender_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("users.id"), nullable=False, index=True
    )
    text: Mapped[str] = mapped_column(Text, nullable=False)

    sender: Mapped["User"] = relationship()

    __table_args__ = (
        Index("idx_messages_team_created", "team_id", "created_at", "id"),
    )


class DirectMessage(Base, SoftDeleteMixin, CreatedAtMixin):
    __tablename__: str = "direct_messages"
    id: Mapped[int] = mapped_column(
        IdType, primary_key=True, nullable=False, autoincrement=True
    )
    sender_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("users.id"), nullable=False
    )
    receiver_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("users.id"), nullable=False
    )
    text: Mapped[str] = mapped_column(Text, nullable=False)

    sender: Mapped["User"] = relationship(foreign_keys=[sender_id])
    receiver: Mapped["User"] = relationship(foreign_keys=[receiver_id])

    __table_args__ = (
        Index("idx_direct_messages_pair", "sender_id", "receiver_id", "created_at"),
        Index("idx_direct_messages_receiver", "receiver_id", "created_at"),
    )
