"""Pydantic models for yt-dlp data transformation and configuration.

These are infrastructure-specific models for parsing external yt-dlp data
and configuring yt-dlp options.
"""

from __future__ import annotations

from typing import Any, Final

from pydantic import BaseModel, ConfigDict, Field, field_validator

from discord_playlist.domain.shared.types import NonEmptyStr, NonNegativeInt, PositiveInt

DEFAULT_RETRIES: Final[int] = 3
DEFAULT_SOCKET_TIMEOUT: Final[int] = 10


class AudioFormatInfo(BaseModel):
    """A single format entry from yt-dlp extraction."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    url: NonEmptyStr | None = None
    acodec: NonEmptyStr | None = None
    vcodec: NonEmptyStr | None = None


class ThumbnailInfo(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    url: NonEmptyStr
    width: NonNegativeInt | None = None
    height: NonNegativeInt | None = None


class YtDlpTrackInfo(BaseModel):
    """Trimmed yt-dlp extraction result, full or flat.

    Extra fields from yt-dlp are silently ignored. Before-validators coerce
    garbage from external yt-dlp data gracefully.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: NonEmptyStr | None = None
    webpage_url: NonEmptyStr | None = None
    url: NonEmptyStr | None = None
    title: NonEmptyStr = "Unknown Title"
    duration: NonNegativeInt | None = None
    is_live: bool = False
    live_status: NonEmptyStr | None = None
    thumbnail: NonEmptyStr | None = None
    thumbnails: list[ThumbnailInfo] = Field(default_factory=list)
    formats: list[AudioFormatInfo] = Field(default_factory=list)

    @field_validator("id", "webpage_url", "url", "thumbnail", "live_status", mode="before")
    @classmethod
    def _coerce_empty_to_none(cls, v: Any) -> str | None:
        """Convert empty / whitespace-only / non-string values to None."""
        if not isinstance(v, str) or not v.strip():
            return None
        return v

    @field_validator("title", mode="before")
    @classmethod
    def _coerce_title(cls, v: Any) -> str:
        if not isinstance(v, str) or not v.strip():
            return "Unknown Title"
        return v

    @field_validator("duration", mode="before")
    @classmethod
    def _coerce_duration(cls, v: Any) -> int | None:
        """Coerce to non-negative int; return None for garbage values."""
        if v is None:
            return None
        try:
            val = int(v)
            return val if val >= 0 else None
        except (TypeError, ValueError):
            return None

    @field_validator("is_live", mode="before")
    @classmethod
    def _coerce_is_live(cls, v: Any) -> bool:
        return bool(v)

    @field_validator("thumbnails", "formats", mode="before")
    @classmethod
    def _drop_unusable_entries(cls, v: Any) -> list[Any]:
        if not isinstance(v, list):
            return []
        return [entry for entry in v if isinstance(entry, dict) and entry.get("url")]

    @property
    def live(self) -> bool:
        """YouTube reports no duration (or zero) for live streams."""
        return self.is_live or self.live_status == "is_live" or not self.duration

    @property
    def best_thumbnail(self) -> str | None:
        """The explicit thumbnail, else the last (largest) listed one."""
        candidates = [self.thumbnail] + [t.url for t in reversed(self.thumbnails)]
        for url in candidates:
            if url and url.startswith(("http://", "https://")):
                return url
        return None

    @property
    def stream_url(self) -> str | None:
        """Direct media URL picked by the format selector, else the last audio format."""
        if self.url and self.url != self.webpage_url:
            return self.url
        audio_formats = [f for f in self.formats if f.acodec != "none" and f.url]
        if audio_formats:
            return audio_formats[-1].url
        return None


class YtDlpOpts(BaseModel):
    """Typed yt-dlp configuration options passed to YoutubeDL."""

    model_config = ConfigDict(frozen=True)

    quiet: bool = True
    noprogress: bool = True
    noplaylist: bool = True
    default_search: NonEmptyStr = "ytsearch"
    forceipv4: bool = True
    retries: PositiveInt = DEFAULT_RETRIES
    socket_timeout: PositiveInt = DEFAULT_SOCKET_TIMEOUT
    format: NonEmptyStr | None = None
    skip_download: bool = True
    extract_flat: NonEmptyStr | bool = False
    playlistend: PositiveInt | None = None

    def to_params(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)
