"""
Campus Crush — Accounts

Sign-up is restricted to the configured institutional email domain.
Passwords are stored as salted scrypt hashes (``app.utils.security``) and
checked with a constant-time comparison.  The KDF runs in a worker
thread, off the event loop.
"""

from __future__ import annotations

import asyncio

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.errors import AuthenticationError, ConflictError, NotFoundError, ValidationError
from app.models.user import GENDERS, User
from app.utils.security import get_password_hash, verify_password

logger = structlog.get_logger("campus_crush.user_service")


class UserService:
    def __init__(self) -> None:
        settings = get_settings()
        self.email_domain: str = settings.ALLOWED_EMAIL_DOMAIN
        self.min_password_length: int = settings.MIN_PASSWORD_LENGTH

    async def signup(
        self,
        db: AsyncSession,
        email: str,
        password: str,
        gender: str,
    ) -> User:
        email = (email or "").strip().lower()
        log = logger.bind(email=email)

        if not email.endswith(self.email_domain) or len(email) <= len(self.email_domain):
            raise ValidationError(
                f"Must use a university email ({self.email_domain})."
            )
        if not password or len(password) < self.min_password_length:
            raise ValidationError(
                f"Password must be at least {self.min_password_length} characters."
            )
        if gender not in GENDERS:
            raise ValidationError("Please select a gender.")

        existing = await db.execute(select(User.id).where(User.email == email))
        if existing.scalar_one_or_none() is not None:
            log.warning("signup_duplicate_email")
            raise ConflictError("User already exists.")

        password_hash = await asyncio.to_thread(get_password_hash, password)
        user = User(
            email=email,
            password_hash=password_hash,
            gender=gender,
        )
        db.add(user)
        try:
            await db.flush()
        except IntegrityError:
            await db.rollback()
            log.warning("signup_duplicate_email_race")
            raise ConflictError("User already exists.") from None

        log.info("signup_complete", user_id=user.id)
        return user

    async def login(self, db: AsyncSession, email: str, password: str) -> User:
        email = (email or "").strip().lower()
        result = await db.execute(select(User).where(User.email == email))
        user = result.scalar_one_or_none()

        if user is None or not await asyncio.to_thread(
            verify_password, password or "", user.password_hash
        ):
            logger.info("login_failed", email=email)
            raise AuthenticationError("Invalid credentials.")

        logger.info("login_succeeded", user_id=user.id)
        return user

    async def get_user(self, db: AsyncSession, user_id: int) -> User:
        user = await db.get(User, user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found.")
        return user
