"""
Unit Tests for Application Settings Configuration

Tests for:
- Default values
- Field validation and aliases
- Loading nested settings from environment variables
- Settings caching and clearing
"""

import pytest
from pydantic import SecretStr, ValidationError

from discord_playlist.config.settings import (
    DiscordSettings,
    PlaybackSettings,
    Settings,
    YouTubeSettings,
    clear_settings_cache,
    get_settings,
)


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Run each test without a .env file and with a fresh settings cache."""
    monkeypatch.chdir(tmp_path)
    for name in ("ENVIRONMENT", "LOG_LEVEL", "DEBUG"):
        monkeypatch.delenv(name, raising=False)
    clear_settings_cache()
    yield
    clear_settings_cache()


# =============================================================================
# PlaybackSettings Tests
# =============================================================================


class TestPlaybackSettings:
    """Unit tests for PlaybackSettings."""

    def test_defaults(self):
        playback = PlaybackSettings()

        assert playback.default_volume == 50.0
        assert playback.max_volume == 100.0
        assert playback.item_limit == 50
        assert playback.inter_track_delay == 0.01
        assert playback.fade_interval == 0.035
        assert playback.fade_step == 0.05
        assert playback.fade_settle == 0.8
        assert playback.stream_timeout == 15.0
        assert playback.connect_timeout == 10.0

    @pytest.mark.parametrize("alias", ["item_limit", "song_limit", "max_queue_size"])
    def test_item_limit_aliases(self, alias):
        assert PlaybackSettings(**{alias: 12}).item_limit == 12

    @pytest.mark.parametrize("limit", [0, 1001])
    def test_item_limit_bounds(self, limit):
        with pytest.raises(ValidationError):
            PlaybackSettings(item_limit=limit)

    def test_volume_bounds(self):
        with pytest.raises(ValidationError):
            PlaybackSettings(default_volume=101)

    def test_default_volume_must_not_exceed_max(self):
        with pytest.raises(ValidationError, match="Volume must be between 0 and"):
            PlaybackSettings(default_volume=60, max_volume=40)

    def test_fade_interval_must_be_positive(self):
        with pytest.raises(ValidationError):
            PlaybackSettings(fade_interval=0)

    def test_immutability(self):
        playback = PlaybackSettings()

        with pytest.raises(ValidationError):
            playback.item_limit = 3


# =============================================================================
# YouTubeSettings / DiscordSettings Tests
# =============================================================================


class TestYouTubeSettings:
    def test_defaults(self):
        youtube = YouTubeSettings()

        assert youtube.ytdlp_format == "bestaudio/best"
        assert youtube.playlist_limit == 50
        assert youtube.socket_timeout == 10

    def test_max_results_alias(self):
        assert YouTubeSettings(max_results=5).playlist_limit == 5


class TestDiscordSettings:
    def test_defaults(self):
        discord_settings = DiscordSettings()

        assert discord_settings.token.get_secret_value() == ""
        assert discord_settings.sync_on_startup is True
        assert discord_settings.test_guild_ids == []

    @pytest.mark.parametrize("alias", ["token", "bot_token", "discord_token"])
    def test_token_aliases(self, alias):
        assert DiscordSettings(**{alias: "abc"}).token == SecretStr("abc")

    def test_token_is_hidden(self):
        assert "abc" not in repr(DiscordSettings(token="abc"))


# =============================================================================
# Settings Tests
# =============================================================================


class TestSettings:
    """Unit tests for the top-level Settings."""

    def test_defaults(self):
        settings = Settings()

        assert settings.environment == "development"
        assert settings.log_level == "INFO"
        assert isinstance(settings.playback, PlaybackSettings)

    def test_log_level_normalized(self):
        assert Settings(log_level="debug").log_level == "DEBUG"

    def test_invalid_log_level(self):
        with pytest.raises(ValidationError, match="Invalid log level"):
            Settings(log_level="LOUD")

    def test_invalid_environment(self):
        with pytest.raises(ValidationError):
            Settings(environment="staging")

    def test_nested_env_vars(self, monkeypatch):
        monkeypatch.setenv("PLAYBACK__ITEM_LIMIT", "9")
        monkeypatch.setenv("PLAYBACK__DEFAULT_VOLUME", "30")
        monkeypatch.setenv("YOUTUBE__YTDLP_FORMAT", "bestaudio[ext=webm]")
        monkeypatch.setenv("DISCORD__TOKEN", "secret")
        monkeypatch.setenv("DISCORD__TEST_GUILD_IDS", "[1, 2]")

        settings = Settings()

        assert settings.playback.item_limit == 9
        assert settings.playback.default_volume == 30.0
        assert settings.youtube.ytdlp_format == "bestaudio[ext=webm]"
        assert settings.discord.token.get_secret_value() == "secret"
        assert settings.discord.test_guild_ids == [1, 2]

    def test_env_file(self, tmp_path):
        (tmp_path / ".env").write_text("LOG_LEVEL=warning\nPLAYBACK__FADE_SETTLE=0\n")

        settings = Settings()

        assert settings.log_level == "WARNING"
        assert settings.playback.fade_settle == 0.0


class TestSettingsCache:
    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()

    def test_clear_settings_cache(self, monkeypatch):
        first = get_settings()
        monkeypatch.setenv("LOG_LEVEL", "ERROR")
        clear_settings_cache()

        second = get_settings()

        assert second is not first
        assert second.log_level == "ERROR"
