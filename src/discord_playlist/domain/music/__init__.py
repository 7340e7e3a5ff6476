"""
Music Bounded Context

Tracks, playback value objects and the events a playlist session emits.
"""

from discord_playlist.domain.music.entities import RejectedTrack, Track
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
from discord_playlist.domain.music.value_objects import (
    EndReason,
    PlaybackState,
    Requester,
    TrackId,
)

__all__ = [
    # Entities
    "Track",
    "RejectedTrack",
    # Value Objects
    "TrackId",
    "Requester",
    "PlaybackState",
    "EndReason",
    # Events
    "EventBus",
    "SessionEvent",
    "TracksQueued",
    "TrackPlaying",
    "TrackEnded",
    "TrackSkipped",
    "TrackUnavailable",
    "PlaybackPaused",
    "PlaybackResumed",
    "VolumeChanged",
    "QueueExhausted",
    "SessionDestroyed",
]
