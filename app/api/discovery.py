"""
Campus Crush — Discovery API

Browse, swipe feed and filtered search.  All three return opposite-gender
profiles and exclude the requester.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import get_profile_service
from app.database import get_db
from app.schemas.profile import CandidateResponse
from app.services.profile_service import ProfileService, to_candidate

router = APIRouter()


@router.get(
    "/matches",
    response_model=list[CandidateResponse],
    summary="Browse every opposite-gender profile",
)
async def browse_profiles(
    user_id: int = Query(..., alias="userId", ge=1),
    db: AsyncSession = Depends(get_db),
    profiles: ProfileService = Depends(get_profile_service),
) -> list[CandidateResponse]:
    return [to_candidate(p) for p in await profiles.browse(db, user_id)]


@router.get(
    "/discover",
    response_model=list[CandidateResponse],
    summary="Swipe candidates not yet decided on",
)
async def discover_profiles(
    user_id: int = Query(..., alias="userId", ge=1),
    db: AsyncSession = Depends(get_db),
    profiles: ProfileService = Depends(get_profile_service),
) -> list[CandidateResponse]:
    """Opposite-gender profiles with no like or pass from the requester."""
    return [to_candidate(p) for p in await profiles.discover(db, user_id)]


@router.get(
    "/search",
    response_model=list[CandidateResponse],
    summary="Search profiles by department, year, city or interest",
)
async def search_profiles(
    user_id: int = Query(..., alias="userId", ge=1),
    department: Optional[str] = Query(None),
    year: Optional[str] = Query(None),
    city: Optional[str] = Query(None, description="Matches location or hometown"),
    interest: Optional[str] = Query(None, description="Matches interests or tags"),
    db: AsyncSession = Depends(get_db),
    profiles: ProfileService = Depends(get_profile_service),
) -> list[CandidateResponse]:
    results = await profiles.search(
        db,
        user_id,
        department=department,
        year=year,
        city=city,
        interest=interest,
    )
    return [to_candidate(p) for p in results]
