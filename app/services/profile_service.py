"""
Campus Crush — Profile storage & candidate queries

Profiles are written by full upsert only: every call replaces all fields of
the row (creating it on first save).  The derived ``ai_enhanced_bio`` and
``ai_tags`` come from ``GeminiService`` and are stored as opaque values.

Candidate queries (browse, discover, search) always return profiles of the
opposite gender, never the requester, and make no ordering promise beyond
being stable for a given database state.
"""

from __future__ import annotations

from typing import Any

import structlog
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.errors import NotFoundError
from app.models.connection import Connection
from app.models.profile import Profile
from app.models.user import User, opposite_gender
from app.schemas.profile import CandidateResponse, ProfileFields, ProfileResponse
from app.services.gemini_service import EnhancementResult

logger = structlog.get_logger("campus_crush.profile_service")


_LIKE_ESCAPE = "\\"


def _contains(value: str) -> str:
    """``ilike`` pattern matching ``value`` literally as a substring."""
    escaped = (
        value.replace(_LIKE_ESCAPE, _LIKE_ESCAPE * 2)
        .replace("%", _LIKE_ESCAPE + "%")
        .replace("_", _LIKE_ESCAPE + "_")
    )
    return f"%{escaped}%"


def _has_interest(profile: Profile, needle: str) -> bool:
    needle = needle.lower()
    values = list(profile.interests or []) + list(profile.ai_tags or [])
    return any(needle in str(value).lower() for value in values)


def to_candidate(profile: Profile) -> CandidateResponse:
    data = ProfileResponse.model_validate(profile).model_dump()
    return CandidateResponse(id=profile.user_id, **data)


class ProfileService:
    """Profile upsert plus the read-only discovery / search queries."""

    # ══════════════════════════════════════════════════════════════════════
    # Writes
    # ══════════════════════════════════════════════════════════════════════

    async def upsert_profile(
        self,
        db: AsyncSession,
        user_id: int,
        fields: ProfileFields,
        enhancement: EnhancementResult,
    ) -> Profile:
        """Create or fully replace the profile of ``user_id``."""
        log = logger.bind(user_id=user_id)

        if await db.get(User, user_id) is None:
            raise NotFoundError(f"User {user_id} not found.")

        values: dict[str, Any] = fields.model_dump(
            exclude={"user_id", "social_links"}
        )
        values["social_links"] = fields.social_links.model_dump()
        values["ai_enhanced_bio"] = enhancement.enhanced_bio
        values["ai_tags"] = list(enhancement.tags)

        profile = await db.get(Profile, user_id)
        if profile is None:
            profile = Profile(user_id=user_id, **values)
            db.add(profile)
            created = True
        else:
            for column, value in values.items():
                setattr(profile, column, value)
            created = False

        await db.flush()
        log.info(
            "profile_upserted",
            created=created,
            enhanced=enhancement.enhanced,
            tag_count=len(enhancement.tags),
        )
        return profile

    # ══════════════════════════════════════════════════════════════════════
    # Reads
    # ══════════════════════════════════════════════════════════════════════

    async def get_profile(self, db: AsyncSession, user_id: int) -> Profile | None:
        return await db.get(Profile, user_id)

    async def list_profiles(
        self, db: AsyncSession, user_ids: list[int]
    ) -> list[Profile]:
        """Profiles for ``user_ids`` in the given order; users without one are skipped."""
        if not user_ids:
            return []
        result = await db.execute(select(Profile).where(Profile.user_id.in_(user_ids)))
        by_id = {p.user_id: p for p in result.scalars().all()}
        return [by_id[uid] for uid in user_ids if uid in by_id]

    async def browse(self, db: AsyncSession, user_id: int) -> list[Profile]:
        """Every opposite-gender profile, decided or not."""
        stmt = await self._candidate_query(db, user_id)
        return await self._run(db, stmt)

    async def discover(self, db: AsyncSession, user_id: int) -> list[Profile]:
        """Opposite-gender profiles the requester has not yet decided on."""
        decided = select(Connection.receiver_id).where(Connection.sender_id == user_id)
        stmt = (await self._candidate_query(db, user_id)).where(
            Profile.user_id.not_in(decided)
        )
        profiles = await self._run(db, stmt)
        logger.info("discover_feed", user_id=user_id, candidate_count=len(profiles))
        return profiles

    async def search(
        self,
        db: AsyncSession,
        user_id: int,
        department: str | None = None,
        year: str | None = None,
        city: str | None = None,
        interest: str | None = None,
    ) -> list[Profile]:
        """Opposite-gender profiles matching every supplied filter.

        - ``department``: case-insensitive substring
        - ``year``: exact match
        - ``city``: substring of location or hometown
        - ``interest``: substring of the interests or the AI tags
        """
        stmt = await self._candidate_query(db, user_id)

        if department:
            stmt = stmt.where(
                Profile.department.ilike(_contains(department), escape=_LIKE_ESCAPE)
            )
        if year:
            stmt = stmt.where(Profile.year == year)
        if city:
            pattern = _contains(city)
            stmt = stmt.where(
                or_(
                    Profile.location.ilike(pattern, escape=_LIKE_ESCAPE),
                    Profile.hometown.ilike(pattern, escape=_LIKE_ESCAPE),
                )
            )

        profiles = await self._run(db, stmt)
        # Interests and tags are JSON lists, so they are matched per element
        # rather than against their serialised text.
        if interest:
            profiles = [p for p in profiles if _has_interest(p, interest)]

        logger.info(
            "search_profiles",
            user_id=user_id,
            filters={
                "department": department,
                "year": year,
                "city": city,
                "interest": interest,
            },
            result_count=len(profiles),
        )
        return profiles

    # ── Internals ─────────────────────────────────────────────────────────

    async def _candidate_query(self, db: AsyncSession, user_id: int):
        requester = await db.get(User, user_id)
        if requester is None:
            raise NotFoundError(f"User {user_id} not found.")

        return (
            select(Profile)
            .join(User, User.id == Profile.user_id)
            .where(User.gender == opposite_gender(requester.gender))
            .where(User.id != user_id)
        )

    async def _run(self, db: AsyncSession, stmt) -> list[Profile]:
        result = await db.execute(stmt.order_by(Profile.user_id))
        return list(result.scalars().all())
