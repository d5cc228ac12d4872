"""
Campus Crush — Presence Registry

Process-local mapping from user id to the WebSocket currently open for that
user.  One registry is created per application (see ``app.main.lifespan``)
and injected wherever live delivery is needed.

At most one channel is kept per identity: a second connection for the same
user replaces the first (last connect wins).  Nothing here is shared across
server processes, so a user connected to another instance is simply "not
present" from this one.
"""

from __future__ import annotations

from typing import Any

import structlog

logger = structlog.get_logger("campus_crush.presence")


class PresenceRegistry:
    """In-memory ``user_id -> channel`` map.

    All access happens on the application's single event loop and none of
    the methods await, so no lock is needed around the dict.
    """

    def __init__(self) -> None:
        self._channels: dict[int, Any] = {}

    def register(self, user_id: int, channel: Any) -> None:
        """Associate ``channel`` with ``user_id``, replacing any previous one."""
        replaced = user_id in self._channels
        self._channels[user_id] = channel
        logger.info("presence_registered", user_id=user_id, replaced=replaced)

    def unregister(self, user_id: int, channel: Any | None = None) -> bool:
        """Drop the entry for ``user_id``; a no-op when there is none.

        When ``channel`` is given the entry is only removed if it still points
        at that channel, so a superseded connection closing late does not
        evict its replacement.  Returns True if an entry was removed.
        """
        current = self._channels.get(user_id)
        if current is None:
            return False
        if channel is not None and current is not channel:
            logger.debug("presence_unregister_stale", user_id=user_id)
            return False
        del self._channels[user_id]
        logger.info("presence_unregistered", user_id=user_id)
        return True

    def lookup(self, user_id: int) -> Any | None:
        return self._channels.get(user_id)

    def is_online(self, user_id: int) -> bool:
        return user_id in self._channels

    @property
    def online_count(self) -> int:
        return len(self._channels)

    def clear(self) -> None:
        """Forget every entry (application shutdown)."""
        self._channels.clear()

    def __len__(self) -> int:
        return len(self._channels)

    def __contains__(self, user_id: object) -> bool:
        return user_id in self._channels
