"""
Campus Crush — Live chat WebSocket

``/ws?userId=<id>`` opens a live channel for an existing user.  The socket is
registered in the presence registry for as long as it stays open, and every
inbound ``chat`` frame goes through ``MessageService.send``.

Bad frames and rejected messages are logged and skipped; they never close the
channel.
"""

from __future__ import annotations

import json

import structlog
from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, status
from pydantic import ValidationError as SchemaValidationError
from sqlalchemy.exc import SQLAlchemyError

from app.api.dependencies import get_message_service, get_presence
from app.database import async_session_factory
from app.errors import CampusCrushError
from app.models.user import User
from app.schemas.message import ChatFrame
from app.services.message_service import MessageService
from app.services.presence import PresenceRegistry

logger = structlog.get_logger("campus_crush.api.chat")

router = APIRouter()


async def _resolve_identity(websocket: WebSocket) -> int | None:
    """Return the caller's user id from ``?userId=``, or None if unusable."""
    raw = websocket.query_params.get("userId", "")
    try:
        user_id = int(raw)
    except ValueError:
        return None
    if user_id <= 0:
        return None

    try:
        async with async_session_factory() as db:
            user = await db.get(User, user_id)
    except SQLAlchemyError:
        logger.exception("websocket_identity_lookup_failed", user_id=user_id)
        return None
    return user.id if user is not None else None


async def _handle_frame(
    raw: str,
    user_id: int,
    messages: MessageService,
    log,
) -> None:
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        log.warning("websocket_frame_malformed", reason="invalid_json")
        return

    frame_type = data.get("type") if isinstance(data, dict) else None
    if frame_type != "chat":
        log.info("websocket_frame_ignored", frame_type=frame_type)
        return

    try:
        frame = ChatFrame.model_validate(data)
    except SchemaValidationError as exc:
        log.warning("websocket_frame_malformed", errors=exc.error_count())
        return

    async with async_session_factory() as db:
        try:
            await messages.send(db, user_id, frame.receiver_id, frame.content)
        except CampusCrushError as exc:
            log.warning(
                "chat_message_rejected",
                receiver_id=frame.receiver_id,
                error=exc.kind,
                detail=exc.message,
            )


@router.websocket("/ws")
async def chat_socket(
    websocket: WebSocket,
    presence: PresenceRegistry = Depends(get_presence),
    messages: MessageService = Depends(get_message_service),
) -> None:
    user_id = await _resolve_identity(websocket)
    if user_id is None:
        logger.warning(
            "websocket_rejected",
            user_id=websocket.query_params.get("userId"),
        )
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    log = logger.bind(user_id=user_id)
    await websocket.accept()
    presence.register(user_id, websocket)
    log.info("websocket_connected", online=presence.online_count)

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                log.info("websocket_disconnected", code=message.get("code"))
                break

            raw = message.get("text")
            if raw is None:
                log.warning("websocket_frame_malformed", reason="binary")
                continue

            try:
                await _handle_frame(raw, user_id, messages, log)
            except Exception:
                log.exception("websocket_frame_failed")
    except WebSocketDisconnect as exc:
        log.info("websocket_disconnected", code=exc.code)
    finally:
        presence.unregister(user_id, websocket)
