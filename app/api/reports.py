"""
Campus Crush — Reports API

Lets a user flag another user for moderator review.
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.errors import NotFoundError, ValidationError
from app.models.report import Report
from app.models.user import User
from app.schemas.report import ReportCreate
from app.schemas.user import SuccessResponse

logger = structlog.get_logger("campus_crush.api.reports")

router = APIRouter()


@router.post(
    "/reports",
    response_model=SuccessResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Report a user",
)
async def create_report(
    payload: ReportCreate,
    db: AsyncSession = Depends(get_db),
) -> SuccessResponse:
    log = logger.bind(
        reporter_id=payload.reporter_id, reported_id=payload.reported_id
    )

    reason = payload.reason.strip()
    if not reason:
        raise ValidationError("A reason is required.")
    if payload.reporter_id == payload.reported_id:
        raise ValidationError("You cannot report yourself.")

    stmt = select(User.id).where(User.id.in_((payload.reporter_id, payload.reported_id)))
    found = set((await db.execute(stmt)).scalars().all())
    for uid in (payload.reporter_id, payload.reported_id):
        if uid not in found:
            raise NotFoundError(f"User {uid} not found.")

    db.add(
        Report(
            reporter_id=payload.reporter_id,
            reported_id=payload.reported_id,
            reason=reason,
        )
    )
    await db.flush()

    log.info("report_created")
    return SuccessResponse()
