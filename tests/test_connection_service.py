"""Unit tests for ConnectionService — like / pass state machine."""
import asyncio

import pytest
from sqlalchemy import select

from app.database import async_session_factory
from app.errors import ConflictError, NotFoundError, ValidationError
from app.models.connection import Connection
from app.schemas.connection import SwipeAction
from app.services.connection_service import ConnectionService


async def _edges(db):
    """Every edge as (sender, receiver, status), read straight from the table."""
    result = await db.execute(
        select(Connection.sender_id, Connection.receiver_id, Connection.status)
        .order_by(Connection.id)
    )
    return [tuple(row) for row in result.all()]


@pytest.fixture
def service():
    return ConnectionService()


class TestDecide:
    """Tests for the decision transitions."""

    @pytest.mark.asyncio
    async def test_first_like_is_pending(self, db, service, user_factory):
        a = await user_factory(db, gender="male")
        b = await user_factory(db, gender="female")

        result = await service.decide(db, a.id, b.id, "like")

        assert result.success is True
        assert result.matched is False
        assert await _edges(db) == [(a.id, b.id, "pending")]

    @pytest.mark.asyncio
    async def test_mutual_like_matches_both_edges(self, db, service, user_factory):
        """A likes B, then B likes A -> exactly two accepted edges."""
        a = await user_factory(db, gender="male")
        b = await user_factory(db, gender="female")

        first = await service.decide(db, a.id, b.id, SwipeAction.LIKE)
        second = await service.decide(db, b.id, a.id, SwipeAction.LIKE)

        assert first.matched is False
        assert second.matched is True
        assert sorted(await _edges(db)) == sorted(
            [(a.id, b.id, "accepted"), (b.id, a.id, "accepted")]
        )

    @pytest.mark.asyncio
    async def test_pass_is_rejected_and_terminal(self, db, service, user_factory):
        """A passes on B; B's later like stays pending, nothing is promoted."""
        a = await user_factory(db, gender="male")
        b = await user_factory(db, gender="female")

        passed = await service.decide(db, a.id, b.id, "pass")
        liked = await service.decide(db, b.id, a.id, "like")

        assert passed.matched is False
        assert liked.matched is False
        assert await _edges(db) == [
            (a.id, b.id, "rejected"),
            (b.id, a.id, "pending"),
        ]

    @pytest.mark.asyncio
    async def test_like_after_reverse_pass_does_not_match(self, db, service, user_factory):
        a = await user_factory(db, gender="male")
        b = await user_factory(db, gender="female")

        await service.decide(db, b.id, a.id, "like")
        await service.decide(db, a.id, b.id, "pass")

        assert await _edges(db) == [
            (b.id, a.id, "pending"),
            (a.id, b.id, "rejected"),
        ]

    @pytest.mark.asyncio
    async def test_repeat_like_is_conflict(self, db, service, user_factory):
        a = await user_factory(db, gender="male")
        b = await user_factory(db, gender="female")
        await service.decide(db, a.id, b.id, "like")

        with pytest.raises(ConflictError):
            await service.decide(db, a.id, b.id, "like")

        assert await _edges(db) == [(a.id, b.id, "pending")]

    @pytest.mark.asyncio
    async def test_like_after_own_pass_is_conflict(self, db, service, user_factory):
        """A rejected edge is never rewritten by a later like."""
        a = await user_factory(db, gender="male")
        b = await user_factory(db, gender="female")
        await service.decide(db, a.id, b.id, "pass")

        with pytest.raises(ConflictError):
            await service.decide(db, a.id, b.id, "like")

        assert await _edges(db) == [(a.id, b.id, "rejected")]

    @pytest.mark.asyncio
    async def test_decision_after_match_is_conflict(self, db, service, user_factory):
        a = await user_factory(db, gender="male")
        b = await user_factory(db, gender="female")
        await service.decide(db, a.id, b.id, "like")
        await service.decide(db, b.id, a.id, "like")

        with pytest.raises(ConflictError):
            await service.decide(db, b.id, a.id, "pass")
        assert len(await _edges(db)) == 2


class TestDecideValidation:
    """Tests for rejected inputs."""

    @pytest.mark.asyncio
    async def test_self_decision(self, db, service, user_factory):
        a = await user_factory(db)
        with pytest.raises(ValidationError):
            await service.decide(db, a.id, a.id, "like")
        assert await _edges(db) == []

    @pytest.mark.asyncio
    async def test_unknown_action(self, db, service, user_factory):
        a = await user_factory(db, gender="male")
        b = await user_factory(db, gender="female")
        with pytest.raises(ValidationError):
            await service.decide(db, a.id, b.id, "superlike")

    @pytest.mark.asyncio
    async def test_unknown_receiver(self, db, service, user_factory):
        a = await user_factory(db)
        with pytest.raises(NotFoundError):
            await service.decide(db, a.id, 9999, "like")
        assert await _edges(db) == []

    @pytest.mark.asyncio
    async def test_unknown_sender(self, db, service, user_factory):
        b = await user_factory(db, gender="female")
        with pytest.raises(NotFoundError):
            await service.decide(db, 9999, b.id, "pass")


class TestConcurrentMutualLike:
    """Both users like each other at the same moment."""

    @pytest.mark.asyncio
    async def test_exactly_one_match(self, db, service, user_factory):
        a = await user_factory(db, gender="male")
        b = await user_factory(db, gender="female")

        async with async_session_factory() as s1, async_session_factory() as s2:
            results = await asyncio.gather(
                service.decide(s1, a.id, b.id, "like"),
                service.decide(s2, b.id, a.id, "like"),
            )

        assert sorted(r.matched for r in results) == [False, True]
        assert sorted(await _edges(db)) == sorted(
            [(a.id, b.id, "accepted"), (b.id, a.id, "accepted")]
        )
        assert service._pair_locks == {}
        assert service._pair_waiters == {}

    @pytest.mark.asyncio
    async def test_pair_locks_are_released(self, db, service, user_factory):
        a = await user_factory(db, gender="male")
        b = await user_factory(db, gender="female")
        c = await user_factory(db, gender="female")

        await service.decide(db, a.id, b.id, "pass")
        await service.decide(db, a.id, c.id, "like")
        with pytest.raises(ConflictError):
            await service.decide(db, a.id, b.id, "like")

        assert service._pair_locks == {}
        assert service._pair_waiters == {}


class TestListAccepted:
    """Tests for list_accepted."""

    @pytest.mark.asyncio
    async def test_only_accepted_outgoing_edges(self, db, service, user_factory):
        a = await user_factory(db, gender="male")
        b = await user_factory(db, gender="female")
        c = await user_factory(db, gender="female")
        d = await user_factory(db, gender="female")

        await service.decide(db, a.id, b.id, "like")
        await service.decide(db, b.id, a.id, "like")
        await service.decide(db, a.id, c.id, "like")
        await service.decide(db, a.id, d.id, "pass")

        assert await service.list_accepted(db, a.id) == [b.id]
        assert await service.list_accepted(db, b.id) == [a.id]
        assert await service.list_accepted(db, c.id) == []

    @pytest.mark.asyncio
    async def test_get_edge(self, db, service, user_factory):
        a = await user_factory(db, gender="male")
        b = await user_factory(db, gender="female")
        await service.decide(db, a.id, b.id, "like")

        edge = await service.get_edge(db, a.id, b.id)
        assert edge is not None
        assert edge.status == "pending"
        assert await service.get_edge(db, b.id, a.id) is None
