"""
Unit Tests for Application Commands

Tests for:
- EnqueueTracksCommand / EnqueueTracksHandler: resolution, session binding,
  connection failures, capacity rejections and first-play start
- ChangeVolumeCommand / ChangeVolumeHandler: reading, validating and fading
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from conftest import FakeDestination, FakeSink, make_track, wait_until
from pydantic import ValidationError as PydanticValidationError

from discord_playlist.application.commands.change_volume import (
    ChangeVolumeCommand,
    ChangeVolumeHandler,
    ChangeVolumeStatus,
)
from discord_playlist.application.commands.enqueue_tracks import (
    EnqueueTracksCommand,
    EnqueueTracksHandler,
    EnqueueTracksResult,
    EnqueueTracksStatus,
)
from discord_playlist.application.services.session_registry import SessionRegistry
from discord_playlist.domain.music.events import TracksQueued

# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def registry(playback_settings, event_bus):
    return SessionRegistry(settings=playback_settings, event_bus=event_bus)


@pytest.fixture
def router(tracks):
    router = MagicMock()
    router.resolve = AsyncMock(return_value=list(tracks))
    return router


@pytest.fixture
def handler(router, registry, event_bus):
    return EnqueueTracksHandler(router=router, registry=registry, event_bus=event_bus)


def enqueue(destination, query="some song", **kwargs):
    return EnqueueTracksCommand(destination=destination, query=query, **kwargs)


# =============================================================================
# EnqueueTracksCommand
# =============================================================================


class TestEnqueueTracksCommand:
    def test_query_is_stripped(self, destination):
        assert enqueue(destination, "  hello  ").query == "hello"

    def test_blank_query_rejected(self, destination):
        with pytest.raises(PydanticValidationError):
            enqueue(destination, "   ")

    def test_destination_must_be_a_destination(self):
        with pytest.raises(PydanticValidationError):
            EnqueueTracksCommand(destination=object(), query="x")


class TestEnqueueTracksResult:
    def test_success_single_track_message(self):
        result = EnqueueTracksResult.success([make_track("a")], [], queue_length=0, started_playing=True)

        assert result.status == EnqueueTracksStatus.NOW_PLAYING
        assert result.message == "Added Track a and started playing"
        assert result.is_success

    def test_success_many_tracks_message(self):
        result = EnqueueTracksResult.success([make_track("a"), make_track("b")], [], queue_length=2)

        assert result.status == EnqueueTracksStatus.QUEUED
        assert result.message == "Added to queue: 2 tracks"

    def test_error_is_not_success(self):
        assert not EnqueueTracksResult.error(EnqueueTracksStatus.QUEUE_FULL, "full").is_success


# =============================================================================
# EnqueueTracksHandler
# =============================================================================


class TestEnqueueTracksHandler:
    """Tests for the enqueue flow."""

    async def test_first_enqueue_connects_and_plays(self, handler, registry, destination, sink, tracks, recorder):
        result = await handler.handle(enqueue(destination))

        assert result.status == EnqueueTracksStatus.NOW_PLAYING
        assert result.started_playing
        assert result.accepted == tracks
        assert result.queue_length == 2
        assert destination.connect_calls == 1
        session = registry.get(destination.id)
        assert session.current_track is tracks[0]
        assert recorder.names[:2] == ["TracksQueued", "TrackPlaying"]

    async def test_second_enqueue_only_queues(self, handler, router, registry, destination, sink):
        await handler.handle(enqueue(destination))
        router.resolve.return_value = [make_track("d")]

        result = await handler.handle(enqueue(destination, "another"))

        assert result.status == EnqueueTracksStatus.QUEUED
        assert not result.started_playing
        assert result.queue_length == 3
        assert destination.connect_calls == 1
        assert len(sink.dispatchers) == 1

    async def test_passes_request_metadata_to_router(self, handler, router, destination, requester):
        await handler.handle(
            enqueue(destination, requester=requester, volume=30, provider_alias="yt")
        )

        router.resolve.assert_awaited_once_with(
            "some song", alias="yt", requester=requester, volume=30.0
        )

    async def test_invalid_volume(self, handler, router, destination):
        result = await handler.handle(enqueue(destination, volume=150))

        assert result.status == EnqueueTracksStatus.INVALID_VOLUME
        assert "between 0 and 100" in result.message
        router.resolve.assert_not_awaited()

    async def test_nothing_found(self, handler, router, registry, destination):
        router.resolve.return_value = None

        result = await handler.handle(enqueue(destination, "zzzz"))

        assert result.status == EnqueueTracksStatus.NOTHING_FOUND
        assert result.message == "Could not find anything for: zzzz"
        assert destination.id not in registry
        assert destination.connect_calls == 0

    async def test_resolution_error(self, handler, router, registry, destination):
        router.resolve.side_effect = RuntimeError("extractor exploded")

        result = await handler.handle(enqueue(destination))

        assert result.status == EnqueueTracksStatus.RESOLUTION_ERROR
        assert "extractor exploded" in result.message
        assert destination.id not in registry

    async def test_connection_error_frees_destination(self, handler, registry):
        destination = FakeDestination(77)
        destination.refuse = True

        result = await handler.handle(enqueue(destination))

        assert result.status == EnqueueTracksStatus.CONNECTION_ERROR
        assert result.message == "refused"
        assert 77 not in registry

    async def test_queue_full(self, router, event_bus, playback_settings, recorder):
        settings = playback_settings.model_copy(update={"item_limit": 1})
        registry = SessionRegistry(settings=settings, event_bus=event_bus)
        handler = EnqueueTracksHandler(router=router, registry=registry, event_bus=event_bus)
        destination = FakeDestination(5, FakeSink())
        session = registry.create(5)
        await session.connect(destination)
        session.add([make_track("existing")])

        result = await handler.handle(enqueue(destination))

        assert result.status == EnqueueTracksStatus.QUEUE_FULL
        assert "item limit reached" in result.message
        assert len(result.rejected) == 3
        queued = recorder.of_type(TracksQueued)[0]
        assert queued.accepted == []
        assert len(queued.rejected) == 3

    async def test_partial_acceptance_reports_rejections(self, router, event_bus, playback_settings):
        settings = playback_settings.model_copy(update={"item_limit": 2})
        registry = SessionRegistry(settings=settings, event_bus=event_bus)
        handler = EnqueueTracksHandler(router=router, registry=registry, event_bus=event_bus)

        result = await handler.handle(enqueue(FakeDestination(9)))

        assert result.is_success
        assert len(result.accepted) == 2
        assert len(result.rejected) == 1

    async def test_enqueue_after_session_ended_starts_new_session(self, handler, router, registry, destination, sink):
        router.resolve.return_value = [make_track("only")]
        await handler.handle(enqueue(destination))
        first_session = registry.get(destination.id)

        sink.last.finish()
        await wait_until(lambda: destination.id not in registry)
        result = await handler.handle(enqueue(destination))

        assert result.started_playing
        assert registry.get(destination.id) is not first_session
        assert destination.connect_calls == 2

    async def test_concurrent_enqueues_share_one_connection(self, handler, router, registry, destination, sink):
        destination.connect_delay = 0.05
        router.resolve.side_effect = [[make_track("x")], [make_track("y")]]

        results = await asyncio.gather(
            handler.handle(enqueue(destination, "first")),
            handler.handle(enqueue(destination, "second")),
        )

        statuses = sorted(r.status.value for r in results)
        assert statuses == ["now_playing", "queued"]
        assert destination.connect_calls == 1
        session = registry.get(destination.id)
        assert session.current_track.title == "Track x"
        assert [t.title for t in session.queue] == ["Track y"]
        assert len(sink.dispatchers) == 1

    async def test_concurrent_enqueues_share_connection_failure(self, handler, registry, destination):
        destination.connect_delay = 0.05
        destination.refuse = True

        results = await asyncio.gather(
            handler.handle(enqueue(destination, "first")),
            handler.handle(enqueue(destination, "second")),
        )

        assert [r.status for r in results] == [EnqueueTracksStatus.CONNECTION_ERROR] * 2
        assert destination.connect_calls == 1
        assert destination.id not in registry

    async def test_enqueue_while_ended_session_releases(self, handler, router, registry):
        sink = FakeSink(disconnect_delay=0.05)
        destination = FakeDestination(1001, sink)
        router.resolve.return_value = [make_track("only")]
        await handler.handle(enqueue(destination))
        first_session = registry.get(destination.id)

        sink.last.finish()
        await wait_until(lambda: first_session.destroyed)
        result = await handler.handle(enqueue(destination, "next"))

        assert result.status == EnqueueTracksStatus.NOW_PLAYING
        second_session = registry.get(destination.id)
        assert second_session is not first_session
        assert second_session.current_track.title == "Track only"
        assert destination.connect_calls == 2


# =============================================================================
# ChangeVolumeHandler
# =============================================================================


class TestChangeVolumeHandler:
    """Tests for the volume command."""

    @pytest.fixture
    async def playing(self, registry, destination, tracks):
        session = registry.create(destination.id)
        await session.connect(destination)
        session.add(tracks)
        await session.play()
        return session

    @pytest.fixture
    def volume_handler(self, registry):
        return ChangeVolumeHandler(registry=registry, max_volume=100.0)

    async def test_nothing_playing(self, volume_handler):
        result = await volume_handler.handle(ChangeVolumeCommand(destination_id=1001, volume=20))

        assert result.status == ChangeVolumeStatus.NOTHING_PLAYING
        assert not result.is_success

    async def test_reads_current_volume(self, volume_handler, playing):
        result = await volume_handler.handle(ChangeVolumeCommand(destination_id=1001))

        assert result.status == ChangeVolumeStatus.CURRENT
        assert result.volume == 50.0
        assert result.message == "Current volume: 50%"
        assert result.track is playing.current_track

    async def test_fades_to_target(self, volume_handler, playing, sink):
        result = await volume_handler.handle(ChangeVolumeCommand(destination_id=1001, volume=80))

        assert result.status == ChangeVolumeStatus.CHANGED
        assert result.volume == 80.0
        assert result.message == "Volume set to 80%"
        assert sink.last.volume == pytest.approx(1.6)

    @pytest.mark.parametrize("volume", [-1, 101])
    async def test_rejects_out_of_range(self, volume_handler, playing, volume):
        result = await volume_handler.handle(ChangeVolumeCommand(destination_id=1001, volume=volume))

        assert result.status == ChangeVolumeStatus.INVALID_VOLUME
        assert playing.volume == 50.0

    async def test_respects_configured_ceiling(self, registry, playing):
        handler = ChangeVolumeHandler(registry=registry, max_volume=60.0)

        result = await handler.handle(ChangeVolumeCommand(destination_id=1001, volume=70))

        assert result.status == ChangeVolumeStatus.INVALID_VOLUME
        assert result.message == "Volume must be between 0 and 60"
