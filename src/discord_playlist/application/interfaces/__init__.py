"""
Application Interfaces (Ports)

Contracts between the playlist engine and the adapters that resolve
queries and play audio.
"""

from discord_playlist.application.interfaces.playback_sink import (
    Destination,
    Dispatcher,
    PlaybackSink,
)
from discord_playlist.application.interfaces.source_provider import SourceProvider

__all__ = [
    "Destination",
    "Dispatcher",
    "PlaybackSink",
    "SourceProvider",
]
