"""Command and handler for resolving a query and adding its tracks to a playlist."""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field, field_validator

from discord_playlist.application.interfaces.playback_sink import Destination
from discord_playlist.domain.music.entities import RejectedTrack, Track
from discord_playlist.domain.music.events import TracksQueued
from discord_playlist.domain.music.value_objects import Requester
from discord_playlist.domain.shared.exceptions import ValidationError, VoiceConnectionError
from discord_playlist.domain.shared.messages import ErrorMessages, LogTemplates
from discord_playlist.domain.shared.types import NonEmptyStr, NonNegativeInt
from discord_playlist.domain.shared.validators import validate_volume

if TYPE_CHECKING:
    from ...domain.music.events import EventBus
    from ..services.playlist_session import PlaylistSession
    from ..services.provider_router import ProviderRouter
    from ..services.session_registry import SessionRegistry

logger = logging.getLogger(__name__)

BIND_ATTEMPTS = 2


class EnqueueTracksStatus(Enum):
    """Status codes for enqueue results."""

    QUEUED = "queued"
    NOW_PLAYING = "now_playing"
    NOTHING_FOUND = "nothing_found"
    RESOLUTION_ERROR = "resolution_error"
    CONNECTION_ERROR = "connection_error"
    QUEUE_FULL = "queue_full"
    INVALID_VOLUME = "invalid_volume"


class EnqueueTracksCommand(BaseModel):
    """Request to resolve ``query`` and queue the result into ``destination``'s playlist."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    destination: Destination
    query: NonEmptyStr
    requester: Requester | None = None
    volume: float | None = None
    provider_alias: str | None = None

    @field_validator("query", mode="before")
    @classmethod
    def _strip_query(cls, v: str) -> str:
        if isinstance(v, str):
            return v.strip()
        return v


class EnqueueTracksResult(BaseModel):
    """Result of an enqueue command."""

    model_config = ConfigDict(frozen=True)

    status: EnqueueTracksStatus
    message: str
    accepted: list[Track] = Field(default_factory=list)
    rejected: list[RejectedTrack] = Field(default_factory=list)
    queue_length: NonNegativeInt = 0
    started_playing: bool = False

    @property
    def is_success(self) -> bool:
        return self.status in {EnqueueTracksStatus.QUEUED, EnqueueTracksStatus.NOW_PLAYING}

    @classmethod
    def success(
        cls,
        accepted: list[Track],
        rejected: list[RejectedTrack],
        queue_length: int,
        started_playing: bool = False,
    ) -> EnqueueTracksResult:
        if len(accepted) == 1:
            added = accepted[0].title
        else:
            added = f"{len(accepted)} tracks"

        if started_playing:
            status = EnqueueTracksStatus.NOW_PLAYING
            message = f"Added {added} and started playing"
        else:
            status = EnqueueTracksStatus.QUEUED
            message = f"Added to queue: {added}"

        return cls(
            status=status,
            message=message,
            accepted=accepted,
            rejected=rejected,
            queue_length=queue_length,
            started_playing=started_playing,
        )

    @classmethod
    def error(
        cls,
        status: EnqueueTracksStatus,
        message: str,
        rejected: list[RejectedTrack] | None = None,
    ) -> EnqueueTracksResult:
        return cls(status=status, message=message, rejected=rejected or [])


class EnqueueTracksHandler:
    """Resolves a query, binds a session to the destination and queues the tracks.

    A session is connected before anything is queued into it, and concurrent
    requests for one destination share that connection. If the connection
    fails the session is torn down so the destination stays free.
    Playback starts the first time a session receives tracks.
    """

    def __init__(
        self,
        *,
        router: ProviderRouter,
        registry: SessionRegistry,
        event_bus: EventBus,
        max_volume: float = 100.0,
    ) -> None:
        self._router = router
        self._registry = registry
        self._event_bus = event_bus
        self._max_volume = max_volume

    async def handle(self, command: EnqueueTracksCommand) -> EnqueueTracksResult:
        volume = command.volume
        if volume is not None:
            try:
                volume = validate_volume(volume, self._max_volume)
            except ValidationError as e:
                return EnqueueTracksResult.error(EnqueueTracksStatus.INVALID_VOLUME, e.message)

        try:
            tracks = await self._router.resolve(
                command.query,
                alias=command.provider_alias,
                requester=command.requester,
                volume=volume,
            )
        except Exception as e:
            logger.exception(LogTemplates.ENQUEUE_RESOLUTION_ERROR, command.query)
            return EnqueueTracksResult.error(
                EnqueueTracksStatus.RESOLUTION_ERROR,
                ErrorMessages.RESOLUTION_FAILED.format(error=e),
            )

        if not tracks:
            return EnqueueTracksResult.error(
                EnqueueTracksStatus.NOTHING_FOUND,
                ErrorMessages.NOTHING_FOUND.format(query=command.query),
            )

        try:
            session = await self._bind_session(command.destination)
        except VoiceConnectionError as e:
            return EnqueueTracksResult.error(EnqueueTracksStatus.CONNECTION_ERROR, e.message)

        outcome = session.add(tracks)
        await self._event_bus.publish(
            TracksQueued(
                session_id=session.id,
                accepted=outcome.accepted,
                rejected=outcome.rejected,
            )
        )

        if not outcome.accepted:
            reason = outcome.rejected[0].reason if outcome.rejected else ""
            return EnqueueTracksResult.error(
                EnqueueTracksStatus.QUEUE_FULL,
                ErrorMessages.ALL_REJECTED.format(reason=reason),
                rejected=outcome.rejected,
            )

        started_playing = False
        if not session.started:
            await session.play()
            started_playing = True

        return EnqueueTracksResult.success(
            accepted=outcome.accepted,
            rejected=outcome.rejected,
            queue_length=len(session.queue),
            started_playing=started_playing,
        )

    async def _bind_session(self, destination: Destination) -> PlaylistSession:
        """Return a live session for ``destination`` that has an output channel.

        Callers racing a connection in progress wait for it instead of
        queueing into an unconnected session. A session that ends while
        connecting is replaced once.

        Raises:
            VoiceConnectionError: If the destination cannot be joined.
        """
        for _ in range(BIND_ATTEMPTS):
            session, _created = self._registry.get_or_create(destination.id)
            try:
                await session.connect(destination)
            except VoiceConnectionError as e:
                logger.warning(LogTemplates.SESSION_CONNECT_FAILED, session.id, e.message)
                await session.destroy()
                raise
            if not session.is_terminal:
                return session

        raise VoiceConnectionError(destination.id, ErrorMessages.SESSION_ENDED_WHILE_CONNECTING)
