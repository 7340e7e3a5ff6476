"""Core domain entities for the music bounded context."""

from __future__ import annotations

import asyncio
import logging
import math
from typing import TYPE_CHECKING, ClassVar

from pydantic import BaseModel, ConfigDict, PrivateAttr

from discord_playlist.domain.music.value_objects import Requester, StreamHandle, TrackId
from discord_playlist.domain.shared.exceptions import StreamUnavailableError
from discord_playlist.domain.shared.messages import LogTemplates
from discord_playlist.domain.shared.types import (
    DurationMillis,
    HttpUrlStr,
    NonNegativeFloat,
    TrackTitleStr,
)

if TYPE_CHECKING:
    from discord_playlist.application.interfaces.playback_sink import Dispatcher, PlaybackSink

logger = logging.getLogger(__name__)


class Track(BaseModel):
    """A playable unit: immutable metadata plus lazy, memoized stream acquisition.

    The base class plays a preset ``stream_url``. Source providers subclass it and
    override :meth:`_open_stream` to acquire the stream on demand.
    """

    model_config = ConfigDict(frozen=True)

    STREAM_TIMEOUT_SECONDS: ClassVar[float] = 15.0

    id: TrackId
    title: TrackTitleStr
    url: HttpUrlStr
    thumbnail_url: HttpUrlStr | None = None
    duration_ms: DurationMillis = 0
    is_live: bool = False

    # Request metadata (set when resolved for a user)
    requester: Requester | None = None
    volume: NonNegativeFloat | None = None

    stream_url: str | None = None

    _stream: StreamHandle | None = PrivateAttr(default=None)
    _dispatcher: Dispatcher | None = PrivateAttr(default=None)

    def __str__(self) -> str:
        return self.title

    @property
    def duration(self) -> float:
        """Duration in milliseconds, ``math.inf`` for live streams."""
        return math.inf if self.is_live else self.duration_ms

    @property
    def duration_formatted(self) -> str:
        """Format duration as MM:SS or HH:MM:SS, or ``live``."""
        if self.is_live:
            return "live"
        return self.format_duration(self.duration_ms)

    @property
    def dispatcher(self) -> Dispatcher | None:
        """The dispatcher of the most recent successful play attempt."""
        return self._dispatcher

    def format_progress(self, elapsed_ms: int) -> str:
        """Render ``current / total  |  left left`` for a playback position."""
        current = self.format_duration(elapsed_ms)
        if self.is_live:
            return f"{current} / live"

        total = self.format_duration(self.duration_ms)
        left = self.format_duration(max(0, self.duration_ms - elapsed_ms + 1000))
        return f"{current} / {total}  |  {left} left"

    def with_requester(self, requester: Requester | None, volume: float | None = None) -> Track:
        """Return a copy of this track carrying request metadata."""
        return self.model_copy(update={"requester": requester, "volume": volume})

    async def fetch_stream(self, *, timeout: float | None = None) -> StreamHandle | None:
        """Acquire the playable stream, or ``None`` if it is unavailable right now.

        A successfully acquired handle is cached and reused. Failures are not
        cached, so a later play attempt acquires again.
        """
        if self._stream is not None:
            return self._stream

        limit = timeout if timeout is not None else self.STREAM_TIMEOUT_SECONDS
        try:
            async with asyncio.timeout(limit):
                stream = await self._open_stream()
        except TimeoutError:
            logger.warning(LogTemplates.STREAM_TIMEOUT, self.title, limit)
            return None
        except StreamUnavailableError as e:
            logger.warning(LogTemplates.STREAM_UNAVAILABLE, self.title, e.message)
            return None

        self._stream = stream
        return stream

    async def _open_stream(self) -> StreamHandle | None:
        """Produce a fresh stream handle. Variants override this."""
        return self.stream_url

    async def play(
        self, sink: PlaybackSink, *, volume: float, timeout: float | None = None
    ) -> Dispatcher | None:
        """Start this track on ``sink`` at an internal ``volume``.

        Returns the dispatcher, or ``None`` when the stream is unavailable.
        ``PlaybackSinkError`` from the sink propagates.
        """
        stream = await self.fetch_stream(timeout=timeout)
        if stream is None:
            return None

        self._dispatcher = sink.play(stream, volume=volume)
        return self._dispatcher

    @staticmethod
    def format_duration(milliseconds: float) -> str:
        total_seconds = int(milliseconds // 1000)
        hours, remainder = divmod(total_seconds, 3600)
        minutes, seconds = divmod(remainder, 60)

        if hours > 0:
            return f"{hours:02d}:{minutes:02d}:{seconds:02d}"
        return f"{minutes:02d}:{seconds:02d}"


class RejectedTrack(BaseModel):
    """A track refused at enqueue time, with the reason."""

    model_config = ConfigDict(frozen=True)

    track: Track
    reason: str
