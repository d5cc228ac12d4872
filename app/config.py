"""
Campus Crush — Application Configuration

Loads all configuration from environment variables (and an optional .env file)
using Pydantic Settings.  A cached ``get_settings()`` helper is provided so that
FastAPI dependency-injection (and any other call-site) always receives the same
validated instance without re-parsing the environment on every request.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Central configuration for the Campus Crush service."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------ #
    # Database
    # ------------------------------------------------------------------ #
    DATABASE_URL: str = "sqlite+aiosqlite:///./campus_crush.db"
    AUTO_CREATE_TABLES: bool = True

    # ------------------------------------------------------------------ #
    # Accounts
    # ------------------------------------------------------------------ #
    ALLOWED_EMAIL_DOMAIN: str = "@marwadiuniversity.ac.in"
    MIN_PASSWORD_LENGTH: int = 6

    # ------------------------------------------------------------------ #
    # Chat
    # ------------------------------------------------------------------ #
    MAX_MESSAGE_LENGTH: int = 2000

    # ------------------------------------------------------------------ #
    # Gemini LLM (profile enhancement; empty key disables it)
    # ------------------------------------------------------------------ #
    GEMINI_API_KEY: str = ""
    GEMINI_MODEL_PRIMARY: str = "gemini-3-flash-preview"
    GEMINI_MODEL_FALLBACK: str = "gemini-2.5-flash"

    # ------------------------------------------------------------------ #
    # Uploads – local directory, or GCS when a bucket is configured
    # ------------------------------------------------------------------ #
    UPLOAD_DIR: str = "public/uploads"
    GCS_BUCKET_NAME: str = ""
    GCP_PROJECT_ID: str = ""

    # ------------------------------------------------------------------ #
    # Runtime environment
    # ------------------------------------------------------------------ #
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # ------------------------------------------------------------------ #
    # CORS
    # ------------------------------------------------------------------ #
    ALLOWED_ORIGINS: str = "*"

    # ------------------------------------------------------------------ #
    # Derived helpers
    # ------------------------------------------------------------------ #
    @property
    def allowed_origins_list(self) -> list[str]:
        """Return ALLOWED_ORIGINS as a list split on commas."""
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",")]

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")

    @property
    def gemini_enabled(self) -> bool:
        return bool(self.GEMINI_API_KEY)

    @field_validator("ALLOWED_EMAIL_DOMAIN")
    @classmethod
    def _domain_must_start_with_at(cls, v: str) -> str:
        v = v.strip().lower()
        if not v.startswith("@") or "." not in v:
            raise ValueError(f"Email domain must look like '@example.edu', got {v!r}")
        return v

    @field_validator("MIN_PASSWORD_LENGTH", "MAX_MESSAGE_LENGTH")
    @classmethod
    def _must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"Length limits must be positive, got {v}")
        return v


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached, validated ``Settings`` instance.

    Using ``@lru_cache`` guarantees the .env file is read and validated
    exactly once per process lifetime.  Import this function anywhere you
    need access to configuration::

        from app.config import get_settings
        settings = get_settings()
    """
    return Settings()
