"""
Campus Crush — GeminiService: profile bio & tag enhancement

Given the raw profile text a student typed during onboarding, asks Gemini to
tidy the bio and extract a list of standardised interest tags.

The call is a fallible collaborator: any failure (no API key, transport error,
empty or unparseable output) yields an ``EnhancementResult`` built from the
raw input instead (the bio unchanged, the interests split on commas), with
``enhanced=False``.  Callers never see an exception from this service.

Model fallback chain:
    GEMINI_MODEL_PRIMARY -> GEMINI_MODEL_FALLBACK
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any

import google.generativeai as genai
import structlog
from json_repair import repair_json
from tenacity import (
    AsyncRetrying,
    RetryError,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from app.config import get_settings

logger = structlog.get_logger(__name__)

_MAX_TAGS = 12
_MAX_TAG_LENGTH = 40
_RETRY_ATTEMPTS = 3


def _is_retryable_api_error(exc: BaseException) -> bool:
    """Return True if the exception signals a retryable Gemini API error.

    We retry on HTTP 429 (rate limit) and 500/503 (server-side transient)
    errors.  The google-generativeai SDK wraps these as various exception
    types, so we inspect both the type name and string representation.
    """
    exc_str = str(exc).lower()
    exc_type = type(exc).__name__.lower()

    if "429" in exc_str or "resource_exhausted" in exc_str:
        return True
    if "500" in exc_str or "503" in exc_str or "internal" in exc_str:
        return True
    if "resourceexhausted" in exc_type or "serviceunavailable" in exc_type:
        return True

    return False


def split_interests(interests: str | list[str] | None) -> list[str]:
    """Naive tag list: comma-split, trimmed, empties and duplicates dropped."""
    if interests is None:
        return []
    parts = interests.split(",") if isinstance(interests, str) else interests
    tags: list[str] = []
    seen: set[str] = set()
    for part in parts:
        tag = str(part).strip()
        if tag and tag.lower() not in seen:
            seen.add(tag.lower())
            tags.append(tag)
    return tags


@dataclass
class EnhancementResult:
    enhanced_bio: str | None
    tags: list[str] = field(default_factory=list)
    enhanced: bool = False
    model: str | None = None


class GeminiService:
    """Optional AI polish for onboarding profiles."""

    def __init__(self) -> None:
        settings = get_settings()
        self._enabled = settings.gemini_enabled

        if self._enabled:
            genai.configure(api_key=settings.GEMINI_API_KEY)

        self._model_chain: list[str] = [
            settings.GEMINI_MODEL_PRIMARY,
            settings.GEMINI_MODEL_FALLBACK,
        ]

        self._generation_config = genai.GenerationConfig(
            max_output_tokens=1024,
            response_mime_type="application/json",
        )

        logger.info(
            "gemini_service_initialised",
            enabled=self._enabled,
            model_chain=self._model_chain,
        )

    # ══════════════════════════════════════════════════════════════════
    # Public API
    # ══════════════════════════════════════════════════════════════════

    async def enhance_profile(
        self,
        name: str,
        bio: str | None,
        interests: str | list[str] | None,
        course: str | None = None,
    ) -> EnhancementResult:
        """Return an enhanced bio and tag list, or the raw fallback."""
        fallback = EnhancementResult(
            enhanced_bio=bio,
            tags=split_interests(interests),
        )

        if not self._enabled:
            return fallback

        interests_text = (
            interests if isinstance(interests, str) else ", ".join(interests or [])
        )
        prompt = self._build_prompt(name, bio or "", interests_text, course or "")

        for model_name in self._model_chain:
            try:
                raw = await self._call_gemini_with_retry(model_name, prompt)
                parsed = self._parse_json_response(raw)
            except Exception as exc:
                logger.warning(
                    "profile_enhancement_model_failed",
                    model=model_name,
                    error=str(exc),
                )
                continue

            enhanced_bio = parsed.get("enhancedBio")
            if not isinstance(enhanced_bio, str) or not enhanced_bio.strip():
                enhanced_bio = bio
            tags = self._clean_tags(parsed.get("tags")) or fallback.tags

            logger.info(
                "profile_enhanced",
                model=model_name,
                tag_count=len(tags),
            )
            return EnhancementResult(
                enhanced_bio=enhanced_bio,
                tags=tags,
                enhanced=True,
                model=model_name,
            )

        logger.warning("profile_enhancement_fallback", reason="all_models_failed")
        return fallback

    # ══════════════════════════════════════════════════════════════════
    # Gemini transport
    # ══════════════════════════════════════════════════════════════════

    async def _call_gemini_with_retry(
        self,
        model_name: str,
        prompt: str,
    ) -> str:
        """Call a specific Gemini model with tenacity retry on transient
        errors.

        Uses exponential backoff (1s initial wait, 2x multiplier, 20s max
        wait) for up to three attempts.
        """
        model = genai.GenerativeModel(model_name)

        try:
            async for attempt in AsyncRetrying(
                retry=retry_if_exception(_is_retryable_api_error),
                stop=stop_after_attempt(_RETRY_ATTEMPTS),
                wait=wait_exponential(multiplier=1, min=1, max=20, exp_base=2),
                reraise=True,
            ):
                with attempt:
                    logger.debug(
                        "gemini_call_attempt",
                        model=model_name,
                        attempt_number=attempt.retry_state.attempt_number,
                    )
                    response = await model.generate_content_async(
                        prompt,
                        generation_config=self._generation_config,
                    )

                    if not response.candidates:
                        raise ValueError(
                            f"Gemini returned no candidates for model {model_name}"
                        )

                    text = response.text
                    if not text or not text.strip():
                        raise ValueError(
                            f"Gemini returned empty text for model {model_name}"
                        )

                    return text

        except RetryError as retry_err:
            logger.error(
                "gemini_retry_exhausted",
                model=model_name,
                attempts=_RETRY_ATTEMPTS,
                last_error=str(retry_err.last_attempt.exception()),
            )
            raise retry_err.last_attempt.exception() from retry_err

    # ══════════════════════════════════════════════════════════════════
    # Prompt construction & parsing
    # ══════════════════════════════════════════════════════════════════

    def _build_prompt(self, name: str, bio: str, interests: str, course: str) -> str:
        return (
            "You are a profile optimizer for a university dating app.\n"
            "Clean up and enhance the following user data.\n\n"
            f"Name: {name}\n"
            f'Raw Bio: "{bio}"\n'
            f'Raw Interests: "{interests}"\n'
            f"Course: {course}\n\n"
            "1. Correct any grammar in the bio and make it sound friendly, "
            "approachable and genuine. Do not invent facts.\n"
            "2. Extract a list of standardized interest tags (short lowercase "
            "phrases) from the bio and interests.\n\n"
            "Return JSON only:\n"
            '{"enhancedBio": "string", "tags": ["tag1", "tag2"]}'
        )

    def _parse_json_response(self, text: str) -> dict[str, Any]:
        """Parse the model output, tolerating code fences and broken JSON."""
        cleaned = text.strip()
        fence = re.search(r"```(?:json)?\s*(.*?)```", cleaned, re.DOTALL)
        if fence:
            cleaned = fence.group(1).strip()

        try:
            data = json.loads(cleaned)
        except (json.JSONDecodeError, TypeError):
            logger.debug("gemini_json_repair_attempt", length=len(cleaned))
            data = json.loads(repair_json(cleaned))

        if not isinstance(data, dict):
            raise ValueError(f"Expected a JSON object, got {type(data).__name__}")
        return data

    def _clean_tags(self, tags: Any) -> list[str]:
        if not isinstance(tags, list):
            return []
        cleaned = split_interests([t for t in tags if isinstance(t, str)])
        return [t[:_MAX_TAG_LENGTH] for t in cleaned][:_MAX_TAGS]
