"""Direct message endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import require_auth
from api.schemas.common import ERROR_RESPONSES, UserSummary
from api.schemas.teams import DirectMessageResponse, MessageCreate
from api.services import chat as chat_service
from core.middleware.authentication import AuthContext
from database.engine import get_db

router = APIRouter(prefix="/chat", tags=["chat"], responses=ERROR_RESPONSES)


@router.get("/conversations", response_model=list[UserSummary])
async def list_conversations(
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    """People the caller has exchanged direct messages with, most recent first."""
    peers = await chat_service.list_conversations(db, auth.user_id)
    return [UserSummary.model_validate(peer) for peer in peers]


@router.get("/direct/{user_id}", response_model=list[DirectMessageResponse])
async def get_direct_messages(
    user_id: int,
    after: Optional[int] = Query(None, ge=0, description="Only messages newer than this id"),
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    messages = await chat_service.list_direct_messages(db, auth.user_id, user_id, after)
    return [DirectMessageResponse.model_validate(m) for m in messages]


@router.post(
    "/direct/{user_id}",
    response_model=DirectMessageResponse,
    status_code=status.HTTP_201_CREATED,
)
async def send_direct_message(
    user_id: int,
    payload: MessageCreate,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    message = await chat_service.send_direct_message(db, auth.user_id, user_id, payload.text)
    return DirectMessageResponse.model_validate(message)
