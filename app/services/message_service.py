"""
Campus Crush — Message Delivery Pipeline

``send`` is the whole live-chat path for one inbound frame:

  1. validate the content and the recipient,
  2. persist the message (store-assigned id, server timestamp) and commit,
  3. build the outbound ``chat`` event,
  4. push it to the recipient's channel if the recipient is present and the
     channel is open; otherwise drop the push silently.

Persistence never depends on the push: a message whose recipient is offline
is still returned by ``fetch_history`` on the next fetch.  Nothing is echoed
back to the sender, whose client already appended the message optimistically
and reconciles against history.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import structlog
from sqlalchemy import and_, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.websockets import WebSocketState

from app.config import get_settings
from app.errors import NotFoundError, StorageFailure, ValidationError
from app.models.message import Message
from app.models.user import User
from app.schemas.message import ChatEvent
from app.services.presence import PresenceRegistry

logger = structlog.get_logger("campus_crush.message_service")


def _channel_is_open(channel: Any) -> bool:
    return (
        getattr(channel, "client_state", None) == WebSocketState.CONNECTED
        and getattr(channel, "application_state", None) == WebSocketState.CONNECTED
    )


class MessageService:
    """Persists chat messages and fans them out to connected recipients."""

    def __init__(self, presence: PresenceRegistry) -> None:
        self.presence = presence
        self.max_length: int = get_settings().MAX_MESSAGE_LENGTH

    # ── Public API ────────────────────────────────────────────────────────

    async def send(
        self,
        db: AsyncSession,
        sender_id: int,
        receiver_id: int,
        content: str | None,
    ) -> Message:
        """Persist a message from ``sender_id`` and try to push it live.

        Returns the stored ``Message``.  Whether the live push happened is
        not part of the result.

        Raises
        ------
        ValidationError
            Empty or over-long content, or a message to oneself.
        NotFoundError
            The recipient does not exist.
        StorageFailure
            The message could not be written.
        """
        log = logger.bind(sender_id=sender_id, receiver_id=receiver_id)

        content = self._validate_content(content)
        if sender_id == receiver_id:
            raise ValidationError("You cannot message yourself.")

        try:
            receiver = await db.get(User, receiver_id)
            if receiver is None:
                raise NotFoundError(f"User {receiver_id} not found.")

            message = Message(
                sender_id=sender_id,
                receiver_id=receiver_id,
                content=content,
                created_at=datetime.now(timezone.utc),
            )
            db.add(message)
            await db.commit()
        except SQLAlchemyError as exc:
            await db.rollback()
            log.exception("message_persist_failed")
            raise StorageFailure("Failed to store message.") from exc

        log = log.bind(message_id=message.id)
        log.info("message_persisted")

        event = ChatEvent(
            id=message.id,
            sender_id=sender_id,
            receiver_id=receiver_id,
            content=content,
            created_at=message.created_at,
        )
        await self._push(receiver_id, event, log)
        return message

    async def fetch_history(
        self,
        db: AsyncSession,
        user_id: int,
        other_user_id: int,
    ) -> list[Message]:
        """Return every message between the two users, oldest first.

        The pair is unordered: ``fetch_history(a, b) == fetch_history(b, a)``.
        """
        stmt = (
            select(Message)
            .where(
                or_(
                    and_(Message.sender_id == user_id, Message.receiver_id == other_user_id),
                    and_(Message.sender_id == other_user_id, Message.receiver_id == user_id),
                )
            )
            .order_by(Message.created_at.asc(), Message.id.asc())
        )
        result = await db.execute(stmt)
        messages = list(result.scalars().all())

        logger.debug(
            "history_fetched",
            user_id=user_id,
            other_user_id=other_user_id,
            count=len(messages),
        )
        return messages

    # ── Internals ─────────────────────────────────────────────────────────

    def _validate_content(self, content: str | None) -> str:
        if content is None or not content.strip():
            raise ValidationError("Message content must not be empty.")
        content = content.strip()
        if len(content) > self.max_length:
            raise ValidationError(
                f"Message content exceeds {self.max_length} characters."
            )
        return content

    async def _push(self, receiver_id: int, event: ChatEvent, log: Any) -> bool:
        """Best-effort live delivery; returns True if the frame was sent."""
        channel = self.presence.lookup(receiver_id)
        if channel is None:
            log.info("live_push_skipped", reason="recipient_offline")
            return False
        if not _channel_is_open(channel):
            log.info("live_push_skipped", reason="channel_closed")
            return False

        try:
            await channel.send_json(event.to_wire())
        except Exception as exc:
            # The socket may close between the state check and the send.
            log.warning("live_push_failed", error=str(exc))
            return False

        log.info("live_push_delivered")
        return True
