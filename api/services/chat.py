"""
Direct message service functions.

A conversation is every live DirectMessage between the caller and one peer.
"""

import logging
from typing import Optional

from sqlalchemy import and_, func, or_, select, union_all
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from core.authorization import ensure_not_self
from core.errors import NotFoundError
from database.models.messages import DirectMessage
from database.models.users import User

logger = logging.getLogger(__name__)


async def get_live_user(db: AsyncSession, user_id: int) -> User:
    user = await db.scalar(
        select(User).where(User.id == user_id, User.is_deleted.is_(False))
    )
    if user is None:
        raise NotFoundError("User not found")
    return user


def _between(user_id: int, peer_id: int):
    return or_(
        and_(DirectMessage.sender_id == user_id, DirectMessage.receiver_id == peer_id),
        and_(DirectMessage.sender_id == peer_id, DirectMessage.receiver_id == user_id),
    )


async def list_direct_messages(
    db: AsyncSession,
    user_id: int,
    peer_id: int,
    after: Optional[int] = None,
) -> list[DirectMessage]:
    """
    Conversation with one peer, oldest first.

    Raises:
        InvalidStateError: Peer is the caller
        NotFoundError: Peer missing or deleted
    """
    ensure_not_self(user_id, peer_id)
    await get_live_user(db, peer_id)

    query = (
        select(DirectMessage)
        .options(selectinload(DirectMessage.sender), selectinload(DirectMessage.receiver))
        .where(_between(user_id, peer_id), DirectMessage.is_deleted.is_(False))
    )
    if after is not None:
        query = query.where(DirectMessage.id > after)

    result = await db.execute(query.order_by(DirectMessage.created_at, DirectMessage.id))
    return list(result.scalars().all())


async def send_direct_message(
    db: AsyncSession,
    sender_id: int,
    receiver_id: int,
    text: str,
) -> DirectMessage:
    ensure_not_self(sender_id, receiver_id)
    await get_live_user(db, receiver_id)

    message = DirectMessage(sender_id=sender_id, receiver_id=receiver_id, text=text)
    db.add(message)
    await db.commit()

    logger.debug(f"Direct message {message.id} sent from {sender_id} to {receiver_id}")
    result = await db.execute(
        select(DirectMessage)
        .options(selectinload(DirectMessage.sender), selectinload(DirectMessage.receiver))
        .where(DirectMessage.id == message.id)
    )
    return result.scalar_one()


async def list_conversations(db: AsyncSession, user_id: int) -> list[User]:
    """Distinct live peers the user has exchanged messages with, most recent first."""
    sent = select(
        DirectMessage.receiver_id.label("peer_id"), DirectMessage.id.label("message_id")
    ).where(DirectMessage.sender_id == user_id, DirectMessage.is_deleted.is_(False))
    received = select(
        DirectMessage.sender_id.label("peer_id"), DirectMessage.id.label("message_id")
    ).where(DirectMessage.receiver_id == user_id, DirectMessage.is_deleted.is_(False))
    exchanged = union_all(sent, received).subquery()

    latest = (
        select(exchanged.c.peer_id, func.max(exchanged.c.message_id).label("last_message_id"))
        .group_by(exchanged.c.peer_id)
        .subquery()
    )

    result = await db.execute(
        select(User)
        .join(latest, User.id == latest.c.peer_id)
        .where(User.is_deleted.is_(False))
        .order_by(latest.c.last_message_id.desc())
    )
    return list(result.scalars().all())
