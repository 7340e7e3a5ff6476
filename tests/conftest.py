import asyncio
from collections.abc import Callable

import pytest

from discord_playlist.application.interfaces.playback_sink import (
    Destination,
    Dispatcher,
    DoneCallback,
    PlaybackSink,
)
from discord_playlist.config.settings import PlaybackSettings
from discord_playlist.domain.music.entities import Track
from discord_playlist.domain.music.events import (
    EventBus,
    PlaybackPaused,
    PlaybackResumed,
    QueueExhausted,
    SessionDestroyed,
    SessionEvent,
    TrackEnded,
    TrackPlaying,
    TrackSkipped,
    TracksQueued,
    TrackUnavailable,
    VolumeChanged,
)
from discord_playlist.domain.music.value_objects import EndReason, Requester, TrackId
from discord_playlist.domain.shared.exceptions import PlaybackSinkError, VoiceConnectionError

ALL_EVENT_TYPES = (
    TracksQueued,
    TrackPlaying,
    TrackEnded,
    TrackSkipped,
    TrackUnavailable,
    PlaybackPaused,
    PlaybackResumed,
    VolumeChanged,
    QueueExhausted,
    SessionDestroyed,
)

# ============================================================================
# Playback fakes
# ============================================================================


class FakeDispatcher(Dispatcher):
    """In-memory dispatcher. ``end`` reports completion synchronously; ``finish``
    simulates the stream running out and may be called repeatedly."""

    def __init__(self, stream, volume: float) -> None:
        self.stream = stream
        self.volume = volume
        self.volumes: list[float] = [volume]
        self.paused = False
        self.ended_with: list[EndReason] = []
        self.elapsed = 0
        self._callbacks: list[DoneCallback] = []

    def pause(self) -> None:
        self.paused = True

    def resume(self) -> None:
        self.paused = False

    def set_volume(self, volume: float) -> None:
        self.volume = volume
        self.volumes.append(volume)

    def end(self, reason: EndReason) -> None:
        self.ended_with.append(reason)
        self.finish(reason)

    @property
    def elapsed_ms(self) -> int:
        return self.elapsed

    def add_done_callback(self, callback: DoneCallback) -> None:
        self._callbacks.append(callback)

    def finish(self, reason: EndReason = EndReason.FINISHED) -> None:
        for callback in list(self._callbacks):
            callback(reason)


class FakeSink(PlaybackSink):
    def __init__(self, fail: bool = False, disconnect_delay: float = 0.0) -> None:
        self.fail = fail
        self.disconnect_delay = disconnect_delay
        self.dispatchers: list[FakeDispatcher] = []
        self.disconnect_calls = 0

    @property
    def last(self) -> FakeDispatcher:
        return self.dispatchers[-1]

    def play(self, stream, *, volume: float) -> FakeDispatcher:
        if self.fail:
            raise PlaybackSinkError("sink is broken")
        dispatcher = FakeDispatcher(stream, volume)
        self.dispatchers.append(dispatcher)
        return dispatcher

    async def disconnect(self) -> None:
        self.disconnect_calls += 1
        if self.disconnect_delay:
            await asyncio.sleep(self.disconnect_delay)


class FakeDestination(Destination):
    def __init__(self, destination_id: int | str = 1001, sink: FakeSink | None = None) -> None:
        self._id = destination_id
        self.sink = sink or FakeSink()
        self.refuse = False
        self.connect_delay = 0.0
        self.connect_calls = 0

    @property
    def id(self) -> int | str:
        return self._id

    async def connect(self) -> FakeSink:
        self.connect_calls += 1
        if self.connect_delay:
            await asyncio.sleep(self.connect_delay)
        if self.refuse:
            raise VoiceConnectionError(self._id, "refused")
        return self.sink


class EventRecorder:
    def __init__(self, bus: EventBus) -> None:
        self.events: list[SessionEvent] = []
        for event_type in ALL_EVENT_TYPES:
            bus.subscribe(event_type, self._record)

    async def _record(self, event: SessionEvent) -> None:
        self.events.append(event)

    def of_type(self, event_type: type[SessionEvent]) -> list[SessionEvent]:
        return [e for e in self.events if isinstance(e, event_type)]

    @property
    def names(self) -> list[str]:
        return [type(e).__name__ for e in self.events]


async def wait_until(predicate: Callable[[], bool], timeout: float = 1.0) -> None:
    """Let background tasks run until ``predicate`` holds."""
    async with asyncio.timeout(timeout):
        while not predicate():
            await asyncio.sleep(0.001)


def make_track(name: str, *, stream: str | None = "default", **kwargs) -> Track:
    if stream == "default":
        stream = f"https://cdn.example.com/{name}.opus"
    return Track(
        id=TrackId(name),
        title=f"Track {name}",
        url=f"https://example.com/watch/{name}",
        duration_ms=kwargs.pop("duration_ms", 180_000),
        stream_url=stream,
        **kwargs,
    )


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def playback_settings():
    """Playback settings with timers short enough for tests."""
    return PlaybackSettings(
        default_volume=50.0,
        max_volume=100.0,
        item_limit=50,
        inter_track_delay=0.0,
        fade_interval=0.001,
        fade_step=0.05,
        fade_settle=0.0,
        stream_timeout=1.0,
    )


@pytest.fixture
def event_bus():
    return EventBus()


@pytest.fixture
def recorder(event_bus):
    return EventRecorder(event_bus)


@pytest.fixture
def sink():
    return FakeSink()


@pytest.fixture
def destination(sink):
    return FakeDestination(1001, sink)


@pytest.fixture
def requester():
    return Requester(id=42, name="alice")


@pytest.fixture
def tracks():
    return [make_track("a"), make_track("b"), make_track("c")]
