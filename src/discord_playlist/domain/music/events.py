"""Session events and the in-memory event bus that delivers them."""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from discord_playlist.domain.music.entities import RejectedTrack, Track
from discord_playlist.domain.music.value_objects import EndReason
from discord_playlist.domain.shared.types import NonEmptyStr, UtcDatetimeField, utcnow

logger = logging.getLogger(__name__)

T = TypeVar("T", bound="SessionEvent")
EventHandler = Callable[[T], Awaitable[None]]


class SessionEvent(BaseModel):
    """Base class for everything a playlist session announces."""

    model_config = ConfigDict(frozen=True)

    session_id: int | str
    event_id: NonEmptyStr = Field(default_factory=lambda: str(uuid4()))
    occurred_at: UtcDatetimeField = Field(default_factory=utcnow)


class TracksQueued(SessionEvent):
    accepted: list[Track] = Field(default_factory=list)
    rejected: list[RejectedTrack] = Field(default_factory=list)


class TrackPlaying(SessionEvent):
    track: Track


class TrackEnded(SessionEvent):
    track: Track
    reason: EndReason = EndReason.FINISHED


class TrackSkipped(SessionEvent):
    track: Track


class TrackUnavailable(SessionEvent):
    track: Track


class PlaybackPaused(SessionEvent):
    pass


class PlaybackResumed(SessionEvent):
    pass


class VolumeChanged(SessionEvent):
    percentage: float


class QueueExhausted(SessionEvent):
    pass


class SessionDestroyed(SessionEvent):
    pass


class EventBus:
    """In-memory pub/sub bus for session events.

    Handlers of one event are called concurrently. Exceptions in handlers are
    logged but never reach the publisher.
    """

    def __init__(self) -> None:
        self._handlers: dict[type[SessionEvent], list[EventHandler[Any]]] = defaultdict(list)

    def subscribe(self, event_type: type[T], handler: EventHandler[T]) -> None:
        self._handlers[event_type].append(handler)
        logger.debug("Subscribed handler to: %s", event_type.__name__)

    def unsubscribe(self, event_type: type[T], handler: EventHandler[T]) -> None:
        handlers = self._handlers[event_type]
        if handler in handlers:
            handlers.remove(handler)
            logger.debug("Unsubscribed handler from %s", event_type.__name__)

    async def publish(self, event: SessionEvent) -> None:
        event_type = type(event)
        handlers = list(self._handlers.get(event_type, []))

        if not handlers:
            logger.debug("No handlers for %s", event_type.__name__)
            return

        logger.debug("Publishing %s to %d handlers", event_type.__name__, len(handlers))

        async def safe_call(handler: EventHandler[Any]) -> None:
            try:
                await handler(event)
            except Exception as e:
                logger.exception("Error in handler for %s: %s", event_type.__name__, e)

        async with asyncio.TaskGroup() as tg:
            for handler in handlers:
                tg.create_task(safe_call(handler))

    def clear(self) -> None:
        """Remove all handlers."""
        self._handlers.clear()
        logger.debug("Cleared all event handlers")
