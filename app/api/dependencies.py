"""
Campus Crush — Shared API dependencies

The presence registry and the services that hold in-process state (pair locks,
the registry reference) live on ``app.state`` and are created in
``app.main.lifespan``.  Stateless services are lazy module singletons.
"""

from __future__ import annotations

from starlette.requests import HTTPConnection

from app.services.connection_service import ConnectionService
from app.services.gemini_service import GeminiService
from app.services.message_service import MessageService
from app.services.presence import PresenceRegistry
from app.services.profile_service import ProfileService
from app.services.user_service import UserService

# ── Service singletons ────────────────────────────────────────────────────────

_gemini_service: GeminiService | None = None
_profile_service: ProfileService | None = None
_user_service: UserService | None = None


def get_gemini_service() -> GeminiService:
    global _gemini_service
    if _gemini_service is None:
        _gemini_service = GeminiService()
    return _gemini_service


def get_profile_service() -> ProfileService:
    global _profile_service
    if _profile_service is None:
        _profile_service = ProfileService()
    return _profile_service


def get_user_service() -> UserService:
    global _user_service
    if _user_service is None:
        _user_service = UserService()
    return _user_service


# ── Application-scoped state ──────────────────────────────────────────────────

def get_presence(conn: HTTPConnection) -> PresenceRegistry:
    return conn.app.state.presence


def get_message_service(conn: HTTPConnection) -> MessageService:
    return conn.app.state.message_service


def get_connection_service(conn: HTTPConnection) -> ConnectionService:
    return conn.app.state.connection_service
