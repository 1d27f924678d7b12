"""Session event stream.

The session publishes a :class:`SessionEvent` for every observable change.
Presentation code either reads the recorded history or follows the session
live with ``async for``.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any, AsyncIterator

import structlog

from style_assistant.models import SessionEvent

logger = structlog.get_logger(__name__)

EVENT_USER_MESSAGE = "user_message"
EVENT_THINKING = "thinking"
EVENT_ASSISTANT_MESSAGE = "assistant_message"
EVENT_FILTERS_CHANGED = "filters_changed"
EVENT_FILTER_RESPONSE = "filter_response"
EVENT_PROMPT_ADVANCED = "prompt_advanced"
EVENT_CART_UPDATED = "cart_updated"
EVENT_CHECKOUT_STAGE = "checkout_stage"
EVENT_ORDER_COMPLETED = "order_completed"

# Marks the end of a follower's queue
_CLOSED = None


class SessionEventStream:
    """Records session events and fans them out to live followers.

    ``emit`` is synchronous so engine operations and timer callbacks can
    publish without awaiting.  Followers get unbounded queues; a session
    produces a handful of events per user action.
    """

    def __init__(self) -> None:
        self._history: dict[str, list[SessionEvent]] = {}
        self._followers: dict[str, list[asyncio.Queue[SessionEvent | None]]] = {}

    def emit(
        self,
        session_id: str,
        event_type: str,
        data: dict[str, Any] | None = None,
        message: str = "",
    ) -> SessionEvent:
        event = SessionEvent(
            event_type=event_type,
            session_id=session_id,
            data=data or {},
            message=message,
            timestamp=datetime.now(tz=timezone.utc),
        )
        self._history.setdefault(session_id, []).append(event)

        followers = self._followers.get(session_id, [])
        for queue in followers:
            queue.put_nowait(event)

        logger.debug("event_emitted", session_id=session_id, event_type=event_type, followers=len(followers))
        return event

    async def subscribe(self, session_id: str) -> AsyncIterator[SessionEvent]:
        """Replay the session's history, then follow it until :meth:`close`."""
        queue: asyncio.Queue[SessionEvent | None] = asyncio.Queue()
        self._followers.setdefault(session_id, []).append(queue)
        try:
            for event in list(self._history.get(session_id, [])):
                yield event
            while True:
                event = await queue.get()
                if event is _CLOSED:
                    break
                yield event
        finally:
            followers = self._followers.get(session_id, [])
            if queue in followers:
                followers.remove(queue)

    def close(self, session_id: str) -> None:
        """End every live follower of *session_id*. History is kept."""
        for queue in self._followers.pop(session_id, []):
            queue.put_nowait(_CLOSED)

    def get_history(self, session_id: str, event_type: str | None = None) -> list[SessionEvent]:
        history = self._history.get(session_id, [])
        return [e for e in history if event_type is None or e.event_type == event_type]

    def clear(self, session_id: str) -> None:
        """Close followers and forget the session's history."""
        self.close(session_id)
        self._history.pop(session_id, None)
