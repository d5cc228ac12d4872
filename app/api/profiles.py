"""
Campus Crush — Profiles API

Profile read, full upsert (with optional AI enhancement) and picture upload.
"""

from __future__ import annotations

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, File, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import get_gemini_service, get_profile_service
from app.database import get_db
from app.errors import NotFoundError, ValidationError
from app.models.user import User
from app.schemas.profile import (
    ProfileResponse,
    ProfileUpsert,
    ProfileUpsertResponse,
    UploadResponse,
)
from app.services.gemini_service import GeminiService
from app.services.profile_service import ProfileService
from app.utils.storage import unique_filename, upload_file

logger = structlog.get_logger("campus_crush.api.profiles")

router = APIRouter()


# ──────────────────────────────────────────────────────────────────────────────
# GET /profile/{user_id} — Profile or null
# ──────────────────────────────────────────────────────────────────────────────

@router.get(
    "/profile/{user_id}",
    response_model=Optional[ProfileResponse],
    summary="Get a user's profile",
)
async def get_profile(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    profiles: ProfileService = Depends(get_profile_service),
) -> ProfileResponse | None:
    """Return the profile, or ``null`` when the user has not onboarded yet."""
    profile = await profiles.get_profile(db, user_id)
    if profile is None:
        return None
    return ProfileResponse.model_validate(profile)


# ──────────────────────────────────────────────────────────────────────────────
# POST /profile — Create or replace a profile
# ──────────────────────────────────────────────────────────────────────────────

@router.post(
    "/profile",
    response_model=ProfileUpsertResponse,
    summary="Create or replace a profile",
)
async def upsert_profile(
    payload: ProfileUpsert,
    db: AsyncSession = Depends(get_db),
    profiles: ProfileService = Depends(get_profile_service),
    gemini: GeminiService = Depends(get_gemini_service),
) -> ProfileUpsertResponse:
    """Save every profile field at once.

    The bio and interests are first passed through the enhancement service;
    if that is unavailable the raw bio and comma-split interests are stored.
    """
    log = logger.bind(user_id=payload.user_id)
    log.info("upsert_profile_start")

    # Fail fast before spending a model call on an unknown user.
    if await db.get(User, payload.user_id) is None:
        raise NotFoundError(f"User {payload.user_id} not found.")

    enhancement = await gemini.enhance_profile(
        name=payload.name,
        bio=payload.bio,
        interests=payload.interests,
        course=payload.course,
    )
    profile = await profiles.upsert_profile(db, payload.user_id, payload, enhancement)

    log.info("upsert_profile_complete", enhanced=enhancement.enhanced)
    return ProfileUpsertResponse(
        ai_enhanced_bio=profile.ai_enhanced_bio,
        ai_tags=profile.ai_tags or [],
    )


# ──────────────────────────────────────────────────────────────────────────────
# POST /upload — Profile picture
# ──────────────────────────────────────────────────────────────────────────────

@router.post(
    "/upload",
    response_model=UploadResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload a profile picture",
)
async def upload_profile_picture(
    profile_pic: UploadFile | None = File(None, alias="profilePic", description="Image file"),
) -> UploadResponse:
    if profile_pic is None or not profile_pic.filename:
        raise ValidationError("No file uploaded.")

    file_bytes = await profile_pic.read()
    if not file_bytes:
        raise ValidationError("Uploaded file is empty.")

    filename = unique_filename("profilePic", profile_pic.filename)
    url = upload_file(
        filename,
        file_bytes,
        content_type=profile_pic.content_type or "application/octet-stream",
    )

    logger.info("profile_picture_uploaded", filename=filename, size=len(file_bytes))
    return UploadResponse(url=url)
