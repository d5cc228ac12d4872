"""
Campus Crush — Message history API
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import get_message_service
from app.database import get_db
from app.schemas.message import MessageResponse
from app.services.message_service import MessageService

router = APIRouter()


@router.get(
    "/messages/{other_user_id}",
    response_model=list[MessageResponse],
    summary="Conversation history between two users",
)
async def get_messages(
    other_user_id: int,
    user_id: int = Query(..., alias="userId", ge=1),
    db: AsyncSession = Depends(get_db),
    messages: MessageService = Depends(get_message_service),
) -> list[MessageResponse]:
    """Every message exchanged by the two users, oldest first."""
    history = await messages.fetch_history(db, user_id, other_user_id)
    return [MessageResponse.model_validate(m) for m in history]
