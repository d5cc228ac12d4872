"""Shared pytest fixtures for Campus Crush tests.

The environment is pointed at a throw-away SQLite file before anything from
``app`` is imported, so the module-level engine and the cached settings pick
it up.  Every test starts from an empty schema.
"""
import asyncio
import itertools
import os
import tempfile

_TMP_DIR = tempfile.mkdtemp(prefix="campus-crush-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TMP_DIR}/test.db"
os.environ["AUTO_CREATE_TABLES"] = "true"
os.environ["GEMINI_API_KEY"] = ""
os.environ["GCS_BUCKET_NAME"] = ""
os.environ["UPLOAD_DIR"] = os.path.join(_TMP_DIR, "uploads")
os.environ["LOG_LEVEL"] = "WARNING"

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from starlette.websockets import WebSocketState  # noqa: E402

import app.models  # noqa: E402,F401  (registers every table)
from app.database import Base, async_session_factory, engine  # noqa: E402
from app.models.profile import Profile  # noqa: E402
from app.models.user import User  # noqa: E402
from app.utils.security import get_password_hash  # noqa: E402

DOMAIN = "@marwadiuniversity.ac.in"
PASSWORD = "secret123"

_email_counter = itertools.count(1)


async def reset_schema():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)


class FakeChannel:
    """Stand-in for a live WebSocket: records every frame pushed to it."""

    def __init__(self, fail: bool = False):
        self.client_state = WebSocketState.CONNECTED
        self.application_state = WebSocketState.CONNECTED
        self.sent = []
        self.fail = fail

    async def send_json(self, data):
        if self.fail:
            raise RuntimeError("socket closed mid-send")
        self.sent.append(data)

    def close(self):
        self.client_state = WebSocketState.DISCONNECTED
        self.application_state = WebSocketState.DISCONNECTED


@pytest_asyncio.fixture
async def db():
    """A session on a freshly created schema."""
    await reset_schema()
    async with async_session_factory() as session:
        yield session


@pytest.fixture
def user_factory():
    """Create and commit a ``User``; returns the ORM object."""

    async def _make(db, gender="male", email=None, password=PASSWORD):
        user = User(
            email=email or f"student{next(_email_counter)}{DOMAIN}",
            password_hash=get_password_hash(password),
            gender=gender,
        )
        db.add(user)
        await db.commit()
        return user

    return _make


@pytest.fixture
def profile_factory():
    """Create and commit a ``Profile`` for an existing user."""

    async def _make(db, user, **fields):
        values = {
            "name": f"Student {user.id}",
            "bio": "Here for the canteen gossip.",
            "interests": [],
            "social_links": {},
            "ai_tags": [],
        }
        values.update(fields)
        profile = Profile(user_id=user.id, **values)
        db.add(profile)
        await db.commit()
        return profile

    return _make


@pytest.fixture
def fake_channel():
    return FakeChannel


@pytest.fixture
def client():
    """A ``TestClient`` with the lifespan running, on an empty schema."""
    from fastapi.testclient import TestClient

    from app.main import app as fastapi_app

    asyncio.run(reset_schema())
    with TestClient(fastapi_app) as test_client:
        yield test_client
