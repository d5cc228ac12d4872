"""
Campus Crush — Connections API

Swipe decisions (like / pass) and the list of mutual matches.
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import get_connection_service, get_profile_service
from app.database import get_db
from app.schemas.connection import ConnectionDecision, DecisionResult
from app.schemas.profile import CandidateResponse
from app.services.connection_service import ConnectionService
from app.services.profile_service import ProfileService, to_candidate

logger = structlog.get_logger("campus_crush.api.connections")

router = APIRouter()


# ──────────────────────────────────────────────────────────────────────────────
# POST /connections — Like or pass
# ──────────────────────────────────────────────────────────────────────────────

@router.post(
    "/connections",
    response_model=DecisionResult,
    summary="Like or pass on a user",
)
async def decide_connection(
    payload: ConnectionDecision,
    db: AsyncSession = Depends(get_db),
    connections: ConnectionService = Depends(get_connection_service),
) -> DecisionResult:
    """Record a swipe.

    Returns ``matched: true`` when the receiver had already liked the sender.
    A second decision on the same user is rejected with 409.
    """
    return await connections.decide(
        db, payload.sender_id, payload.receiver_id, payload.action
    )


# ──────────────────────────────────────────────────────────────────────────────
# GET /connections/{user_id} — Mutual matches
# ──────────────────────────────────────────────────────────────────────────────

@router.get(
    "/connections/{user_id}",
    response_model=list[CandidateResponse],
    summary="List a user's accepted connections",
)
async def list_connections(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    connections: ConnectionService = Depends(get_connection_service),
    profiles: ProfileService = Depends(get_profile_service),
) -> list[CandidateResponse]:
    matched_ids = await connections.list_accepted(db, user_id)
    matched = await profiles.list_profiles(db, matched_ids)

    logger.info("list_connections", user_id=user_id, count=len(matched))
    return [to_candidate(p) for p in matched]
