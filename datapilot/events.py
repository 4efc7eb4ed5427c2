"""Event system: bounded in-memory log of pipeline events with streaming support."""

from __future__ import annotations

import asyncio
import logging
from collections import deque

from datapilot.config import EVENT_HISTORY_LIMIT
from datapilot.models import Event

logger = logging.getLogger(__name__)


class EventBus:
    """Ordered event log with subscription support."""

    def __init__(self, history_limit: int = EVENT_HISTORY_LIMIT):
        self._subscribers: list[asyncio.Queue] = []
        self._history: deque[Event] = deque(maxlen=history_limit)

    def emit(self, event: Event):
        """Emit an event, record and notify subscribers."""
        self._history.append(event)
        self._notify(event)
        logger.debug(f"Event: {event.type} [{event.run_id}] {event.data}")

    def emit_simple(self, type: str, run_id: str, **data) -> Event:
        """Convenience: emit with keyword args."""
        event = Event(type=type, run_id=run_id, data=data)
        self.emit(event)
        return event

    def recent(self, limit: int = 50, offset: int = 0) -> list[Event]:
        """Get recent events (paginated)."""
        history = list(self._history)
        start = max(0, len(history) - offset - limit)
        end = max(0, len(history) - offset)
        return history[start:end]

    def subscribe(self) -> asyncio.Queue:
        """Subscribe to live events."""
        q: asyncio.Queue = asyncio.Queue(maxsize=1000)
        self._subscribers.append(q)
        return q

    def unsubscribe(self, q: asyncio.Queue):
        if q in self._subscribers:
            self._subscribers.remove(q)

    def _notify(self, event: Event):
        for q in list(self._subscribers):
            try:
                q.put_nowait(event)
            except asyncio.QueueFull:
                logger.warning(f"Event subscriber queue full, dropping {event.type}")
