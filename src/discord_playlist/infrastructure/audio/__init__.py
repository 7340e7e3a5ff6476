"""Audio infrastructure - yt-dlp backed YouTube provider."""

from discord_playlist.infrastructure.audio.models import (
    AudioFormatInfo,
    ThumbnailInfo,
    YtDlpOpts,
    YtDlpTrackInfo,
)
from discord_playlist.infrastructure.audio.youtube_provider import YouTubeProvider, YouTubeTrack

__all__ = [
    "AudioFormatInfo",
    "ThumbnailInfo",
    "YouTubeProvider",
    "YouTubeTrack",
    "YtDlpOpts",
    "YtDlpTrackInfo",
]
