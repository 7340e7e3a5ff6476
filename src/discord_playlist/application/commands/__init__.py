"""
Application Commands

Command objects and their handlers for write operations.
"""

from discord_playlist.application.commands.change_volume import (
    ChangeVolumeCommand,
    ChangeVolumeHandler,
    ChangeVolumeResult,
)
from discord_playlist.application.commands.enqueue_tracks import (
    EnqueueTracksCommand,
    EnqueueTracksHandler,
    EnqueueTracksResult,
)

__all__ = [
    # Enqueue
    "EnqueueTracksCommand",
    "EnqueueTracksHandler",
    "EnqueueTracksResult",
    # Volume
    "ChangeVolumeCommand",
    "ChangeVolumeHandler",
    "ChangeVolumeResult",
]
