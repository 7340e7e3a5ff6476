"""Command and handler for reading or fading a session's volume."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

from discord_playlist.domain.music.entities import Track
from discord_playlist.domain.shared.exceptions import InvalidOperationError, ValidationError
from discord_playlist.domain.shared.messages import ErrorMessages
from discord_playlist.domain.shared.validators import validate_volume

if TYPE_CHECKING:
    from ..services.session_registry import SessionRegistry


class ChangeVolumeStatus(Enum):
    CHANGED = "changed"
    CURRENT = "current"
    NOTHING_PLAYING = "nothing_playing"
    INVALID_VOLUME = "invalid_volume"


class ChangeVolumeCommand(BaseModel):
    """Request to fade ``destination_id``'s volume, or read it when ``volume`` is omitted."""

    model_config = ConfigDict(frozen=True)

    destination_id: int | str
    volume: float | None = None


class ChangeVolumeResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: ChangeVolumeStatus
    message: str
    volume: float | None = None
    track: Track | None = None

    @property
    def is_success(self) -> bool:
        return self.status in {ChangeVolumeStatus.CHANGED, ChangeVolumeStatus.CURRENT}

    @classmethod
    def error(cls, status: ChangeVolumeStatus, message: str) -> ChangeVolumeResult:
        return cls(status=status, message=message)


class ChangeVolumeHandler:
    """Validates the requested percentage and fades the playing track towards it."""

    def __init__(self, *, registry: SessionRegistry, max_volume: float = 100.0) -> None:
        self._registry = registry
        self._max_volume = max_volume

    async def handle(self, command: ChangeVolumeCommand) -> ChangeVolumeResult:
        session = self._registry.get(command.destination_id)
        if session is None or session.current_track is None:
            return ChangeVolumeResult.error(
                ChangeVolumeStatus.NOTHING_PLAYING, ErrorMessages.NO_ACTIVE_DISPATCHER
            )

        track = session.current_track
        if command.volume is None:
            return ChangeVolumeResult(
                status=ChangeVolumeStatus.CURRENT,
                message=f"Current volume: {session.volume:g}%",
                volume=session.volume,
                track=track,
            )

        try:
            target = validate_volume(command.volume, self._max_volume)
        except ValidationError as e:
            return ChangeVolumeResult.error(ChangeVolumeStatus.INVALID_VOLUME, e.message)

        try:
            final = await session.fade_volume(target)
        except InvalidOperationError as e:
            return ChangeVolumeResult.error(ChangeVolumeStatus.NOTHING_PLAYING, e.message)

        if final is None:
            return ChangeVolumeResult.error(
                ChangeVolumeStatus.NOTHING_PLAYING, ErrorMessages.NO_ACTIVE_DISPATCHER
            )

        return ChangeVolumeResult(
            status=ChangeVolumeStatus.CHANGED,
            message=f"Volume set to {final:g}%",
            volume=final,
            track=track,
        )
