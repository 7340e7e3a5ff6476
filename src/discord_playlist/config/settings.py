"""Application Settings and Configuration

Pydantic-based settings management using environment variables.
Settings are loaded from environment variables with support for .env files,
type validation, and sensible defaults. All settings are frozen and immutable
after initialization.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, BaseModel, Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..domain.shared.messages import ErrorMessages


class PlaybackSettings(BaseModel):
    """Playlist session configuration.

    Volumes are external percentages; the session converts them to its
    internal 0.0-2.0 scale. Timings are in seconds.
    """

    model_config = SettingsConfigDict(frozen=True, populate_by_name=True)

    default_volume: float = Field(default=50.0, ge=0.0, le=100.0)
    max_volume: float = Field(default=100.0, ge=0.0, le=100.0)
    item_limit: int = Field(
        default=50,
        ge=1,
        le=1000,
        validation_alias=AliasChoices("item_limit", "song_limit", "max_queue_size"),
    )
    inter_track_delay: float = Field(default=0.01, ge=0.0, le=5.0)
    fade_interval: float = Field(default=0.035, gt=0.0, le=1.0)
    fade_step: float = Field(default=0.05, gt=0.0, le=1.0)
    fade_settle: float = Field(default=0.8, ge=0.0, le=10.0)
    stream_timeout: float = Field(default=15.0, gt=0.0, le=120.0)
    connect_timeout: float = Field(default=10.0, gt=0.0, le=60.0)

    @model_validator(mode="after")
    def validate_default_volume(self) -> PlaybackSettings:
        """The default volume must itself be reachable by users."""
        if self.default_volume > self.max_volume:
            raise ValueError(
                ErrorMessages.VOLUME_OUT_OF_RANGE.format(max_volume=self.max_volume)
            )
        return self


class YouTubeSettings(BaseModel):
    """yt-dlp configuration for the YouTube provider."""

    model_config = SettingsConfigDict(frozen=True, populate_by_name=True)

    ytdlp_format: str = "bestaudio/best"
    playlist_limit: int = Field(
        default=50,
        ge=1,
        le=500,
        validation_alias=AliasChoices("playlist_limit", "max_results"),
    )
    socket_timeout: int = Field(default=10, ge=1, le=120)


class DiscordSettings(BaseModel):
    """Discord bot configuration."""

    model_config = SettingsConfigDict(frozen=True, populate_by_name=True)

    token: SecretStr = Field(
        default=SecretStr(""), validation_alias=AliasChoices("token", "bot_token", "discord_token")
    )
    sync_on_startup: bool = True
    test_guild_ids: list[int] = Field(default_factory=list)


class Settings(BaseSettings):
    """Application settings container.

    Automatically loads configuration from environment variables.

    Environment variable naming:
    - ENVIRONMENT, DEBUG, LOG_LEVEL (top-level)
    - PLAYBACK__DEFAULT_VOLUME, PLAYBACK__ITEM_LIMIT, etc. (nested with delimiter)
    - YOUTUBE__YTDLP_FORMAT, DISCORD__TOKEN, etc.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    environment: Literal["development", "production", "test"] = "development"
    debug: bool = False
    log_level: str = "INFO"

    playback: PlaybackSettings = Field(default_factory=PlaybackSettings)
    youtube: YouTubeSettings = Field(default_factory=YouTubeSettings)
    discord: DiscordSettings = Field(default_factory=DiscordSettings)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(
                ErrorMessages.INVALID_LOG_LEVEL.format(level=v, valid_levels=valid_levels)
            )
        return v_upper


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached application settings.

    Settings are automatically loaded from:
    1. .env file (if present)
    2. Environment variables
    3. Default values
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing)."""
    get_settings.cache_clear()
