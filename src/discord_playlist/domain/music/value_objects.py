"""Immutable value objects for the music bounded context."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import BinaryIO, Final, TypeAlias

from pydantic import BaseModel, ConfigDict

from discord_playlist.domain.shared.messages import ErrorMessages
from discord_playlist.domain.shared.types import NonEmptyStr

VOLUME_SCALE: Final[int] = 50
"""Percentage points per unit of internal volume (100% == 2.0)."""

StreamHandle: TypeAlias = str | BinaryIO
"""Opaque playable stream: a URL/path understood by the sink, or a readable pipe."""


def to_internal_volume(percentage: float) -> float:
    """Convert an external volume percentage to the internal multiplier."""
    return percentage / VOLUME_SCALE


def to_percentage(volume: float) -> float:
    """Convert an internal volume multiplier to an external percentage."""
    return round(volume * VOLUME_SCALE, 2)


@dataclass(frozen=True)
class TrackId:
    """Source-specific track identifier, e.g. a YouTube video ID."""

    value: str

    def __post_init__(self) -> None:
        if not self.value or not self.value.strip():
            raise ValueError(ErrorMessages.EMPTY_TRACK_ID)

    def __str__(self) -> str:
        return self.value

    def __hash__(self) -> int:
        return hash(self.value)


class Requester(BaseModel):
    """The user who queued a track."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: NonEmptyStr

    def __str__(self) -> str:
        return self.name


class PlaybackState(Enum):
    """Lifecycle state of a playlist session.

    State transitions:
    - IDLE -> CONNECTED (destination acquired)
    - CONNECTED -> PLAYING (first track started)
    - PLAYING <-> PAUSED
    - PLAYING/PAUSED -> DRAINING (between tracks, or queue empty)
    - DRAINING -> PLAYING (next track started)
    - Any -> DESTROYED (exhausted, stopped or sink failure)
    """

    IDLE = "idle"
    CONNECTED = "connected"
    PLAYING = "playing"
    PAUSED = "paused"
    DRAINING = "draining"
    DESTROYED = "destroyed"

    def can_transition_to(self, target: PlaybackState) -> bool:
        """Check if transition to target state is valid."""
        if target == PlaybackState.DESTROYED:
            return self != PlaybackState.DESTROYED
        valid_transitions = {
            PlaybackState.IDLE: {PlaybackState.CONNECTED},
            PlaybackState.CONNECTED: {PlaybackState.PLAYING, PlaybackState.DRAINING},
            PlaybackState.PLAYING: {PlaybackState.PAUSED, PlaybackState.DRAINING},
            PlaybackState.PAUSED: {PlaybackState.PLAYING, PlaybackState.DRAINING},
            PlaybackState.DRAINING: {PlaybackState.PLAYING},
        }
        return target in valid_transitions.get(self, set())

    @property
    def is_terminal(self) -> bool:
        return self == PlaybackState.DESTROYED

    @property
    def is_active(self) -> bool:
        return self in {PlaybackState.PLAYING, PlaybackState.PAUSED}


class EndReason(Enum):
    """Reasons a dispatcher can finish."""

    FINISHED = "finished"
    SKIP = "skip"
    STOP = "stop"
    ERROR = "error"
