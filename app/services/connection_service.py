"""
Campus Crush — Connection State Machine

Turns a swipe into directed connection edges:

  pass                         -> insert (sender -> receiver, rejected)
  like, reverse edge pending   -> promote (receiver -> sender) to accepted,
                                  insert (sender -> receiver, accepted)  => match
  like, no reverse pending     -> insert (sender -> receiver, pending)

Each ordered pair carries at most one edge, so a second decision on the same
pair is a conflict rather than an update.  ``pending`` is only ever promoted
to ``accepted``; ``rejected`` is terminal.

The check-then-act sequence runs under a per-pair ``asyncio.Lock`` and is
committed before the lock is released, and the reverse edge is promoted with a
compare-and-swap ``UPDATE ... WHERE status = 'pending'``.  Two simultaneous
mutual likes therefore resolve to exactly one match instead of two pending
edges.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator

import structlog
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.errors import ConflictError, NotFoundError, StorageFailure, ValidationError
from app.models.connection import (
    STATUS_ACCEPTED,
    STATUS_PENDING,
    STATUS_REJECTED,
    Connection,
)
from app.models.user import User
from app.schemas.connection import DecisionResult, SwipeAction

logger = structlog.get_logger("campus_crush.connection_service")


class ConnectionService:
    """Decides swipe outcomes and maintains the edge invariants."""

    def __init__(self) -> None:
        # Entries live only while some decision on the pair holds or awaits
        # the lock.
        self._pair_locks: dict[frozenset[int], asyncio.Lock] = {}
        self._pair_waiters: dict[frozenset[int], int] = {}

    # ── Public API ────────────────────────────────────────────────────────

    async def decide(
        self,
        db: AsyncSession,
        sender_id: int,
        receiver_id: int,
        action: SwipeAction | str,
    ) -> DecisionResult:
        """Record ``sender_id``'s decision about ``receiver_id``.

        Raises
        ------
        ValidationError
            Unknown action or a decision about oneself.
        NotFoundError
            Either user does not exist.
        ConflictError
            The sender has already decided on this receiver.
        StorageFailure
            Any other persistence fault.
        """
        try:
            action = SwipeAction(action)
        except ValueError:
            raise ValidationError(
                f"Unknown action {action!r}; expected 'like' or 'pass'."
            ) from None

        if sender_id == receiver_id:
            raise ValidationError("You cannot connect with yourself.")

        log = logger.bind(
            sender_id=sender_id, receiver_id=receiver_id, action=action.value
        )

        async with self._pair_lock(sender_id, receiver_id):
            try:
                await self._ensure_users_exist(db, sender_id, receiver_id)

                existing = await self._get_edge(db, sender_id, receiver_id)
                if existing is not None:
                    log.info("decision_already_made", status=existing.status)
                    raise ConflictError(
                        "Decision already made for this user."
                    )

                if action is SwipeAction.PASS:
                    db.add(
                        Connection(
                            sender_id=sender_id,
                            receiver_id=receiver_id,
                            status=STATUS_REJECTED,
                        )
                    )
                    matched = False
                else:
                    matched = await self._promote_reverse_pending(
                        db, sender_id, receiver_id
                    )
                    db.add(
                        Connection(
                            sender_id=sender_id,
                            receiver_id=receiver_id,
                            status=STATUS_ACCEPTED if matched else STATUS_PENDING,
                        )
                    )

                await db.commit()
            except IntegrityError:
                await db.rollback()
                log.warning("decision_unique_violation")
                raise ConflictError("Decision already made for this user.")
            except SQLAlchemyError as exc:
                await db.rollback()
                log.exception("decision_storage_failure")
                raise StorageFailure("Failed to process connection.") from exc
            except (ConflictError, NotFoundError):
                await db.rollback()
                raise

        log.info("decision_recorded", matched=matched)
        return DecisionResult(matched=matched)

    async def list_accepted(self, db: AsyncSession, user_id: int) -> list[int]:
        """Return the ids of users that ``user_id`` has an accepted edge to."""
        stmt = (
            select(Connection.receiver_id)
            .where(Connection.sender_id == user_id)
            .where(Connection.status == STATUS_ACCEPTED)
            .order_by(Connection.created_at, Connection.id)
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())

    async def get_edge(
        self, db: AsyncSession, sender_id: int, receiver_id: int
    ) -> Connection | None:
        return await self._get_edge(db, sender_id, receiver_id)

    # ── Internals ─────────────────────────────────────────────────────────

    @asynccontextmanager
    async def _pair_lock(self, a: int, b: int) -> AsyncIterator[None]:
        key = frozenset((a, b))
        lock = self._pair_locks.setdefault(key, asyncio.Lock())
        self._pair_waiters[key] = self._pair_waiters.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._pair_waiters[key] -= 1
            if self._pair_waiters[key] == 0:
                del self._pair_waiters[key]
                del self._pair_locks[key]

    async def _ensure_users_exist(
        self, db: AsyncSession, sender_id: int, receiver_id: int
    ) -> None:
        stmt = select(User.id).where(User.id.in_((sender_id, receiver_id)))
        found = set((await db.execute(stmt)).scalars().all())
        for uid in (sender_id, receiver_id):
            if uid not in found:
                raise NotFoundError(f"User {uid} not found.")

    async def _get_edge(
        self, db: AsyncSession, sender_id: int, receiver_id: int
    ) -> Connection | None:
        stmt = select(Connection).where(
            Connection.sender_id == sender_id,
            Connection.receiver_id == receiver_id,
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    async def _promote_reverse_pending(
        self, db: AsyncSession, sender_id: int, receiver_id: int
    ) -> bool:
        """Flip (receiver -> sender, pending) to accepted; True if it existed."""
        stmt = (
            update(Connection)
            .where(Connection.sender_id == receiver_id)
            .where(Connection.receiver_id == sender_id)
            .where(Connection.status == STATUS_PENDING)
            .values(status=STATUS_ACCEPTED)
        )
        result = await db.execute(stmt)
        return result.rowcount == 1
