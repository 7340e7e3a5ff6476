"""Playlist Session - owns one destination's queue and drives its playback."""

from __future__ import annotations

import asyncio
import logging
import random
from collections import deque
from collections.abc import Coroutine, Sequence
from functools import partial
from typing import TYPE_CHECKING, Any

from ...domain.music.entities import RejectedTrack, Track
from ...domain.music.events import (
    EventBus,
    PlaybackPaused,
    PlaybackResumed,
    QueueExhausted,
    SessionDestroyed,
    SessionEvent,
    TrackEnded,
    TrackPlaying,
    TrackSkipped,
    TrackUnavailable,
    VolumeChanged,
)
from ...domain.music.value_objects import (
    EndReason,
    PlaybackState,
    to_internal_volume,
    to_percentage,
)
from ...domain.shared.exceptions import InvalidOperationError, PlaybackSinkError
from ...domain.shared.messages import ErrorMessages, LogTemplates
from .queue_models import EnqueueResult

if TYPE_CHECKING:
    from ...config.settings import PlaybackSettings
    from ..interfaces.playback_sink import Destination, Dispatcher, PlaybackSink
    from .session_registry import SessionRegistry

logger = logging.getLogger(__name__)


class PlaylistSession:
    """Sequences playback of a FIFO queue of tracks into one destination.

    The session is the only code that mutates its queue. All methods run on a
    single event loop; the only suspension points are stream acquisition,
    event delivery and the fade / inter-track timers.

    Operations that need something playing (``pause``, ``resume``, ``skip``,
    ``set_volume``, ``fade_volume``) raise :class:`InvalidOperationError` when
    no dispatcher is active. Every operation on a stopped or destroyed session
    is a no-op.
    """

    def __init__(
        self,
        session_id: int | str,
        *,
        settings: PlaybackSettings,
        event_bus: EventBus,
        registry: SessionRegistry | None = None,
    ) -> None:
        self._id = session_id
        self._settings = settings
        self._event_bus = event_bus
        self._registry = registry

        self._queue: deque[Track] = deque()
        self._item_limit = settings.item_limit
        self._current_track: Track | None = None
        self._dispatcher: Dispatcher | None = None
        self._sink: PlaybackSink | None = None

        self._default_volume = to_internal_volume(settings.default_volume)
        self._volume = self._default_volume

        self._state = PlaybackState.IDLE
        self._started = False
        self._paused = False
        self._stopped = False
        self._destroyed = False

        self._connect_task: asyncio.Task[PlaybackSink] | None = None
        self._fade_task: asyncio.Task[float] | None = None
        self._advance_timer: asyncio.TimerHandle | None = None
        self._background_tasks: set[asyncio.Task[None]] = set()

    # ── Read-only state ─────────────────────────────────────────────

    @property
    def id(self) -> int | str:
        return self._id

    @property
    def queue(self) -> tuple[Track, ...]:
        return tuple(self._queue)

    @property
    def current_track(self) -> Track | None:
        return self._current_track

    @property
    def volume(self) -> float:
        """Current volume as an external percentage."""
        return to_percentage(self._volume)

    @property
    def state(self) -> PlaybackState:
        return self._state

    @property
    def item_limit(self) -> int:
        return self._item_limit

    @property
    def started(self) -> bool:
        return self._started

    @property
    def paused(self) -> bool:
        return self._paused

    @property
    def stopped(self) -> bool:
        return self._stopped

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    @property
    def is_terminal(self) -> bool:
        return self._stopped or self._destroyed

    @property
    def elapsed_ms(self) -> int:
        """Playback position of the current track."""
        return self._dispatcher.elapsed_ms if self._dispatcher is not None else 0

    # ── Lifecycle ───────────────────────────────────────────────────

    async def connect(self, destination: Destination) -> None:
        """Acquire the destination's output channel.

        Concurrent callers share one connection attempt and its outcome. A sink
        that arrives after the session ended is released again.

        Raises:
            VoiceConnectionError: Propagated from the destination, not retried.
        """
        if self._is_noop("connect") or self._sink is not None:
            return

        task = self._connect_task
        if task is None:
            task = self._connect_task = asyncio.get_running_loop().create_task(
                destination.connect()
            )
            # Registered before any waiter, so the sink is installed by the
            # time the first caller resumes.
            task.add_done_callback(self._on_connected)
        await asyncio.shield(task)

    def _on_connected(self, task: asyncio.Task[PlaybackSink]) -> None:
        self._connect_task = None
        if task.cancelled() or task.exception() is not None:
            return

        sink = task.result()
        if self.is_terminal:
            logger.info(LogTemplates.SESSION_ENDED_WHILE_CONNECTING, self._id)
            self._spawn(self._release(sink))
            return

        self._sink = sink
        self._transition(PlaybackState.CONNECTED)
        logger.info(LogTemplates.SESSION_CONNECTED, self._id)

    def add(self, tracks: Sequence[Track]) -> EnqueueResult:
        """Enqueue ``tracks`` in order, rejecting the newest ones beyond the item limit."""
        if self._is_noop("add"):
            return EnqueueResult()

        accepted = list(tracks)
        rejected: list[RejectedTrack] = []

        overflow = len(self._queue) + len(accepted) - self._item_limit
        if overflow > 0:
            keep = max(0, len(accepted) - overflow)
            reason = ErrorMessages.ITEM_LIMIT_REACHED.format(limit=self._item_limit)
            rejected = [RejectedTrack(track=track, reason=reason) for track in accepted[keep:]]
            accepted = accepted[:keep]

        self._queue.extend(accepted)
        logger.info(
            LogTemplates.QUEUE_ADDED, self._id, len(accepted), len(rejected), len(self._queue)
        )
        return EnqueueResult(accepted=accepted, rejected=rejected)

    async def play(self) -> None:
        """Start playing the head of the queue. Only the first call has an effect."""
        if self._is_noop("play"):
            return
        if self._started:
            logger.debug(LogTemplates.SESSION_ALREADY_STARTED, self._id)
            return
        if self._sink is None:
            raise InvalidOperationError("play", self._state.value, ErrorMessages.NO_SINK)

        self._started = True
        await self._advance()

    async def stop(self) -> None:
        """Clear the queue, end playback and destroy the session."""
        if self._is_noop("stop"):
            return

        self._queue.clear()
        self._stopped = True
        self._cancel_fade()
        self._cancel_advance()

        dispatcher, self._dispatcher = self._dispatcher, None
        if dispatcher is not None:
            dispatcher.end(EndReason.STOP)

        logger.info(LogTemplates.SESSION_STOPPED, self._id)
        await self.destroy()

    async def destroy(self) -> None:
        """Release the destination and deregister. Safe to call repeatedly."""
        if self._destroyed:
            return
        self._destroyed = True

        self._cancel_fade()
        self._cancel_advance()

        dispatcher, self._dispatcher = self._dispatcher, None
        if dispatcher is not None:
            dispatcher.end(EndReason.STOP)

        self._current_track = None
        self._paused = False
        self._queue.clear()
        self._transition(PlaybackState.DESTROYED)

        # The destination can be rebound while the old connection closes.
        if self._registry is not None:
            self._registry.remove(self._id, self)

        sink, self._sink = self._sink, None
        if sink is not None:
            await self._release(sink)

        logger.info(LogTemplates.SESSION_DESTROYED, self._id)
        await self._emit(SessionDestroyed(session_id=self._id))

    async def _release(self, sink: PlaybackSink) -> None:
        try:
            await sink.disconnect()
        except Exception:
            logger.exception(LogTemplates.SESSION_RELEASE_FAILED, self._id)

    # ── Transport controls ─────────────────────────────────────────

    async def skip(self) -> Track | None:
        """End the current track; the queue advances once it reports completion."""
        if self._is_noop("skip"):
            return None

        dispatcher, track = self._require_playing("skip")
        dispatcher.end(EndReason.SKIP)

        logger.info(LogTemplates.TRACK_SKIPPED, track.title, self._id)
        await self._emit(TrackSkipped(session_id=self._id, track=track))
        return track

    async def pause(self) -> None:
        if self._is_noop("pause"):
            return

        dispatcher, _ = self._require_playing("pause")
        if self._paused:
            return

        dispatcher.pause()
        self._paused = True
        self._transition(PlaybackState.PAUSED)
        logger.debug(LogTemplates.PLAYBACK_PAUSED, self._id)
        await self._emit(PlaybackPaused(session_id=self._id))

    async def resume(self) -> None:
        if self._is_noop("resume"):
            return

        dispatcher, _ = self._require_playing("resume")
        if not self._paused:
            return

        dispatcher.resume()
        self._paused = False
        self._transition(PlaybackState.PLAYING)
        logger.debug(LogTemplates.PLAYBACK_RESUMED, self._id)
        await self._emit(PlaybackResumed(session_id=self._id))

    def shuffle(self) -> tuple[Track, ...]:
        """Shuffle the pending queue in place and return the new order."""
        if self._is_noop("shuffle"):
            return ()

        items = list(self._queue)
        random.shuffle(items)
        self._queue = deque(items)
        logger.info(LogTemplates.QUEUE_SHUFFLED, self._id)
        return self.queue

    # ── Volume ──────────────────────────────────────────────────────

    async def set_volume(self, percentage: float) -> float | None:
        """Apply ``percentage`` immediately. Cancels any in-flight fade."""
        if self._is_noop("set_volume"):
            return None

        dispatcher, _ = self._require_playing("set_volume")
        self._cancel_fade()

        self._volume = to_internal_volume(percentage)
        dispatcher.set_volume(self._volume)

        logger.info(LogTemplates.VOLUME_SET, self.volume, self._id)
        await self._emit(VolumeChanged(session_id=self._id, percentage=self.volume))
        return self.volume

    async def fade_volume(self, percentage: float) -> float | None:
        """Move the volume linearly to ``percentage`` and return the final percentage.

        Only one fade runs per session: a newer fade (or ``set_volume``) cancels
        this one, in which case the volume reached so far is returned and no
        event is emitted for it.
        """
        if self._is_noop("fade_volume"):
            return None

        self._require_playing("fade_volume")
        self._cancel_fade()

        target = to_internal_volume(percentage)
        logger.debug(LogTemplates.VOLUME_FADE_STARTED, self.volume, percentage, self._id)

        task = asyncio.create_task(self._run_fade(target))
        self._fade_task = task
        await asyncio.wait({task})

        if task.cancelled():
            return self.volume
        return task.result()

    async def _run_fade(self, target: float) -> float:
        step = self._settings.fade_step
        modifier = step if self._volume < target else -step

        try:
            while abs(target - self._volume) > step:
                await asyncio.sleep(self._settings.fade_interval)
                self._volume += modifier
                self._apply_volume()

            self._volume = target
            self._apply_volume()

            await asyncio.sleep(self._settings.fade_settle)
        finally:
            if self._fade_task is asyncio.current_task():
                self._fade_task = None

        if self.is_terminal:
            return self.volume
        await self._emit(VolumeChanged(session_id=self._id, percentage=self.volume))
        return self.volume

    def _apply_volume(self) -> None:
        if self._dispatcher is not None:
            self._dispatcher.set_volume(self._volume)

    # ── Sequencing ──────────────────────────────────────────────────

    async def _advance(self) -> None:
        """Start the next playable track, skipping unavailable ones iteratively."""
        while not self.is_terminal:
            if not self._queue:
                self._current_track = None
                logger.info(LogTemplates.QUEUE_EXHAUSTED, self._id)
                await self._emit(QueueExhausted(session_id=self._id))
                await self.destroy()
                return

            track = self._queue.popleft()
            self._current_track = track
            self._cancel_fade()
            self._volume = (
                to_internal_volume(track.volume)
                if track.volume is not None
                else self._default_volume
            )

            try:
                dispatcher = await track.play(
                    self._sink, volume=self._volume, timeout=self._settings.stream_timeout
                )
            except PlaybackSinkError:
                logger.exception(LogTemplates.SESSION_SINK_FAILURE, self._id)
                self._current_track = None
                await self.destroy()
                return
            except Exception:
                logger.exception(LogTemplates.SESSION_TRACK_FAILURE, track.title, self._id)
                self._current_track = None
                await self.destroy()
                return

            if self.is_terminal:
                if dispatcher is not None:
                    dispatcher.end(EndReason.STOP)
                return

            if dispatcher is None:
                self._current_track = None
                logger.warning(LogTemplates.TRACK_UNAVAILABLE, track.title, self._id)
                await self._emit(TrackUnavailable(session_id=self._id, track=track))
                continue

            self._dispatcher = dispatcher
            self._paused = False
            self._transition(PlaybackState.PLAYING)
            dispatcher.add_done_callback(partial(self._on_dispatcher_done, dispatcher, track))

            logger.info(LogTemplates.TRACK_PLAYING, track.title, self._id)
            await self._emit(TrackPlaying(session_id=self._id, track=track))
            return

    def _on_dispatcher_done(self, dispatcher: Dispatcher, track: Track, reason: EndReason) -> None:
        # Skip and natural completion both land here; only the first signal
        # for the active dispatcher advances the queue.
        if dispatcher is not self._dispatcher:
            logger.debug(LogTemplates.TRACK_DUPLICATE_COMPLETION, track.title, self._id)
            return

        self._dispatcher = None
        self._current_track = None
        self._paused = False
        if self.is_terminal:
            return

        self._transition(PlaybackState.DRAINING)
        self._spawn(self._finish_track(track, reason))

    async def _finish_track(self, track: Track, reason: EndReason) -> None:
        if self.is_terminal:
            return

        logger.info(LogTemplates.TRACK_ENDED, track.title, reason.value, self._id)
        await self._emit(TrackEnded(session_id=self._id, track=track, reason=reason))
        if self.is_terminal:
            return

        # Gives the sink time to tear down the previous stream.
        self._advance_timer = asyncio.get_running_loop().call_later(
            self._settings.inter_track_delay, self._start_advance
        )

    def _start_advance(self) -> None:
        self._advance_timer = None
        if not self.is_terminal:
            self._spawn(self._advance())

    # ── Helpers ─────────────────────────────────────────────────────

    def _is_noop(self, operation: str) -> bool:
        if self.is_terminal:
            logger.debug(LogTemplates.SESSION_TERMINAL_NOOP, self._id, operation)
            return True
        return False

    def _require_playing(self, operation: str) -> tuple[Dispatcher, Track]:
        if self._dispatcher is None or self._current_track is None:
            raise InvalidOperationError(
                operation, self._state.value, ErrorMessages.NO_ACTIVE_DISPATCHER
            )
        return self._dispatcher, self._current_track

    def _transition(self, new_state: PlaybackState) -> None:
        if not self._state.can_transition_to(new_state):
            raise InvalidOperationError(
                operation=f"transition to {new_state.value}",
                current_state=self._state.value,
            )
        self._state = new_state

    def _cancel_fade(self) -> None:
        task, self._fade_task = self._fade_task, None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()
            logger.debug(LogTemplates.VOLUME_FADE_CANCELLED, self._id)

    def _cancel_advance(self) -> None:
        timer, self._advance_timer = self._advance_timer, None
        if timer is not None:
            timer.cancel()

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)

    async def _emit(self, event: SessionEvent) -> None:
        await self._event_bus.publish(event)

    def __repr__(self) -> str:
        return (
            f"PlaylistSession(id={self._id!r}, state={self._state.value}, "
            f"queue={len(self._queue)}, current={self._current_track!s})"
        )
