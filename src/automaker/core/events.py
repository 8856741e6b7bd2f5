"""Event bus contract and the auto-mode event vocabulary."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator, Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any, Protocol
from uuid import uuid4

logger = logging.getLogger(__name__)

AUTO_MODE_EVENT = "auto-mode:event"

EventPayload = Mapping[str, Any]
EventHandler = Callable[[str, EventPayload], None]


class AutoModeEventType(StrEnum):
    """Payload ``type`` values published on the ``auto-mode:event`` channel."""

    STARTED = "auto_mode_started"
    ITERATION_STARTED = "auto_mode_iteration_started"
    PROGRESS = "auto_mode_progress"
    TOOL = "auto_mode_tool"
    FEATURE_COMPLETE = "auto_mode_feature_complete"
    COMPLETE = "auto_mode_complete"
    STOPPED = "auto_mode_stopped"
    ERROR = "auto_mode_error"


class EventBus(Protocol):
    """Publish/subscribe channel used to broadcast progress."""

    def emit(self, event_type: str, payload: EventPayload) -> None:
        """Publish a single event to subscribers."""
        ...

    def subscribe(self, handler: EventHandler) -> Callable[[], None]:
        """Register a handler; the returned callable unsubscribes it."""
        ...


@dataclass(frozen=True, slots=True)
class Event:
    """Envelope delivered to async stream subscribers."""

    event_type: str
    payload: EventPayload
    event_id: str = field(default_factory=lambda: uuid4().hex)
    occurred_at: datetime = field(default_factory=datetime.now)


class InMemoryEventBus:
    """Simple event bus with fan-out to handlers and async streams.

    This implementation is suitable for single-process use. Events are not
    persisted or replayed; new subscribers only receive future events.
    """

    def __init__(self, *, stream_buffer: int = 100) -> None:
        self._handlers: list[EventHandler] = []
        self._queues: list[asyncio.Queue[Event]] = []
        self._stream_buffer = stream_buffer

    def emit(self, event_type: str, payload: EventPayload) -> None:
        """Publish event to all handlers and stream subscribers."""
        for handler in list(self._handlers):
            try:
                handler(event_type, payload)
            except Exception:
                logger.exception("Event handler failed for %s", event_type)

        if not self._queues:
            return
        event = Event(event_type=event_type, payload=dict(payload))
        for queue in list(self._queues):
            with contextlib.suppress(asyncio.QueueFull):
                queue.put_nowait(event)

    def subscribe(self, handler: EventHandler) -> Callable[[], None]:
        """Register a synchronous handler for events."""
        self._handlers.append(handler)

        def _unsubscribe() -> None:
            self._handlers = [h for h in self._handlers if h is not handler]

        return _unsubscribe

    async def stream(self) -> AsyncIterator[Event]:
        """Yield events as they arrive until the consumer stops iterating."""
        queue: asyncio.Queue[Event] = asyncio.Queue(maxsize=self._stream_buffer)
        self._queues.append(queue)
        try:
            while True:
                yield await queue.get()
        finally:
            self._queues = [q for q in self._queues if q is not queue]


__all__ = [
    "AUTO_MODE_EVENT",
    "AutoModeEventType",
    "Event",
    "EventBus",
    "EventHandler",
    "EventPayload",
    "InMemoryEventBus",
]
