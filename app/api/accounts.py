"""
Campus Crush — Accounts API

Sign-up, login and the identity check the client runs on start-up.
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import get_user_service
from app.database import get_db
from app.schemas.user import (
    LoginRequest,
    LoginResponse,
    SignupRequest,
    SignupResponse,
    SuccessResponse,
    UserResponse,
)
from app.services.user_service import UserService

logger = structlog.get_logger("campus_crush.api.accounts")

router = APIRouter()


# ──────────────────────────────────────────────────────────────────────────────
# POST /signup — Create an account
# ──────────────────────────────────────────────────────────────────────────────

@router.post(
    "/signup",
    response_model=SignupResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an account with a university email",
)
async def signup(
    payload: SignupRequest,
    db: AsyncSession = Depends(get_db),
    users: UserService = Depends(get_user_service),
) -> SignupResponse:
    """Register a new student.

    The email must belong to the institutional domain, the password must
    meet the minimum length and the gender must be ``male`` or ``female``.
    """
    user = await users.signup(db, payload.email, payload.password, payload.gender)
    return SignupResponse(user_id=user.id)


# ──────────────────────────────────────────────────────────────────────────────
# POST /login — Verify credentials
# ──────────────────────────────────────────────────────────────────────────────

@router.post("/login", response_model=LoginResponse, summary="Log in")
async def login(
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db),
    users: UserService = Depends(get_user_service),
) -> LoginResponse:
    user = await users.login(db, payload.email, payload.password)
    return LoginResponse(user=UserResponse.model_validate(user))


# ──────────────────────────────────────────────────────────────────────────────
# GET /me/{user_id} — Check that a stored identity still exists
# ──────────────────────────────────────────────────────────────────────────────

@router.get("/me/{user_id}", response_model=SuccessResponse, summary="Verify user")
async def verify_user(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    users: UserService = Depends(get_user_service),
) -> SuccessResponse:
    await users.get_user(db, user_id)
    return SuccessResponse()
