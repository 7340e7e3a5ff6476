"""Port interfaces for the live audio output a session plays into."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable

from discord_playlist.domain.music.value_objects import EndReason, StreamHandle

DoneCallback = Callable[[EndReason], None]


class Dispatcher(ABC):
    """Handle on one stream being played by a sink.

    A dispatcher finishes exactly once, either naturally or through :meth:`end`.
    Done callbacks are invoked on the event loop thread with the end reason.
    """

    @abstractmethod
    def pause(self) -> None:
        ...

    @abstractmethod
    def resume(self) -> None:
        ...

    @abstractmethod
    def set_volume(self, volume: float) -> None:
        """Apply an internal volume multiplier (0.0-2.0) immediately."""
        ...

    @abstractmethod
    def end(self, reason: EndReason) -> None:
        """Stop playback; done callbacks fire with ``reason``."""
        ...

    @property
    @abstractmethod
    def elapsed_ms(self) -> int:
        """Milliseconds of audio played so far, excluding pauses."""
        ...

    @abstractmethod
    def add_done_callback(self, callback: DoneCallback) -> None:
        ...


class PlaybackSink(ABC):
    """An acquired audio output channel."""

    @abstractmethod
    def play(self, stream: StreamHandle, *, volume: float) -> Dispatcher:
        """Start ``stream`` at an internal ``volume``.

        Raises:
            PlaybackSinkError: If the output cannot start playback.
        """
        ...

    @abstractmethod
    async def disconnect(self) -> None:
        """Release the output channel."""
        ...


class Destination(ABC):
    """Something a session can be bound to, e.g. a voice channel."""

    @property
    @abstractmethod
    def id(self) -> int | str:
        ...

    @abstractmethod
    async def connect(self) -> PlaybackSink:
        """Acquire the output channel.

        Raises:
            VoiceConnectionError: If the acquisition is refused.
        """
        ...
