"""Discord voice channel implementations of the playback ports.

``DiscordVoiceDestination`` joins a voice channel, ``DiscordVoiceSink`` plays
streams through FFmpeg on the resulting voice client, and
``DiscordDispatcher`` controls one of those streams.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass

import discord

from discord_playlist.application.interfaces.playback_sink import (
    Destination,
    Dispatcher,
    DoneCallback,
    PlaybackSink,
)
from discord_playlist.domain.music.value_objects import EndReason, StreamHandle
from discord_playlist.domain.shared.exceptions import PlaybackSinkError, VoiceConnectionError
from discord_playlist.domain.shared.messages import LogTemplates

logger = logging.getLogger(__name__)

CONNECT_TIMEOUT: float = 10.0


@dataclass
class FFmpegConfig:
    """Configuration for FFmpeg audio processing."""

    # Reconnection settings for streaming
    reconnect: bool = True
    reconnect_streamed: bool = True
    reconnect_delay_max: int = 5

    disable_video: bool = True

    def get_before_options(self) -> str:
        """Get FFmpeg before_options string."""
        opts = []
        if self.reconnect:
            opts.append("-reconnect 1")
        if self.reconnect_streamed:
            opts.append("-reconnect_streamed 1")
        if self.reconnect_delay_max:
            opts.append(f"-reconnect_delay_max {self.reconnect_delay_max}")
        return " ".join(opts)

    def get_options(self) -> str:
        """Get FFmpeg options string."""
        return "-vn" if self.disable_video else ""


class DiscordDispatcher(Dispatcher):
    """Controls one stream playing on a voice client.

    discord.py reports the end of playback from its audio thread; the report
    is handed to the event loop before any done callback runs, and only the
    first report counts.
    """

    def __init__(
        self,
        voice_client: discord.VoiceClient,
        source: discord.PCMVolumeTransformer,
        *,
        loop: asyncio.AbstractEventLoop,
    ) -> None:
        self._voice_client = voice_client
        self._source = source
        self._loop = loop

        self._callbacks: list[DoneCallback] = []
        self._end_reason: EndReason | None = None
        self._done = False

        self._started_at = time.monotonic()
        self._paused_at: float | None = None
        self._paused_total = 0.0
        self._finished_at: float | None = None

    @property
    def done(self) -> bool:
        return self._done

    @property
    def volume(self) -> float:
        return self._source.volume

    def pause(self) -> None:
        if self._done or self._paused_at is not None:
            return
        self._voice_client.pause()
        self._paused_at = time.monotonic()

    def resume(self) -> None:
        if self._done or self._paused_at is None:
            return
        self._voice_client.resume()
        self._paused_total += time.monotonic() - self._paused_at
        self._paused_at = None

    def set_volume(self, volume: float) -> None:
        self._source.volume = volume

    def end(self, reason: EndReason) -> None:
        if self._done or self._end_reason is not None:
            return
        self._end_reason = reason
        # The voice client invokes the after callback once its player stops.
        self._voice_client.stop()

    @property
    def elapsed_ms(self) -> int:
        until = self._paused_at or self._finished_at or time.monotonic()
        return int(max(0.0, until - self._started_at - self._paused_total) * 1000)

    def add_done_callback(self, callback: DoneCallback) -> None:
        if self._done:
            assert self._end_reason is not None
            self._loop.call_soon(callback, self._end_reason)
            return
        self._callbacks.append(callback)

    def after(self, error: Exception | None) -> None:
        """``after`` hook for ``VoiceClient.play``; runs on the audio thread."""
        if error is not None:
            logger.warning(LogTemplates.PLAYBACK_ERROR, self._voice_client.channel, error)
        try:
            self._loop.call_soon_threadsafe(self._finish, error)
        except RuntimeError:
            logger.debug(LogTemplates.DISPATCHER_LOOP_CLOSED)

    def _finish(self, error: Exception | None) -> None:
        if self._done:
            return
        self._done = True
        self._finished_at = time.monotonic()
        if self._paused_at is not None:
            self._paused_total += self._finished_at - self._paused_at
            self._paused_at = None

        if self._end_reason is None:
            self._end_reason = EndReason.ERROR if error is not None else EndReason.FINISHED

        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback(self._end_reason)


class DiscordVoiceSink(PlaybackSink):
    """Plays streams through FFmpeg on a connected voice client."""

    def __init__(
        self, voice_client: discord.VoiceClient, ffmpeg_config: FFmpegConfig | None = None
    ) -> None:
        self._voice_client = voice_client
        self._config = ffmpeg_config or FFmpegConfig()

    @property
    def voice_client(self) -> discord.VoiceClient:
        return self._voice_client

    def create_source(self, stream: StreamHandle, volume: float) -> discord.PCMVolumeTransformer:
        """Create an FFmpeg source for ``stream`` wrapped in a volume transformer."""
        if isinstance(stream, str):
            source = discord.FFmpegPCMAudio(
                stream,
                before_options=self._config.get_before_options(),
                options=self._config.get_options(),
            )
        else:
            source = discord.FFmpegPCMAudio(stream, pipe=True, options=self._config.get_options())
        return discord.PCMVolumeTransformer(source, volume=volume)

    def play(self, stream: StreamHandle, *, volume: float) -> DiscordDispatcher:
        try:
            source = self.create_source(stream, volume)
        except discord.ClientException as e:
            logger.error(LogTemplates.FFMPEG_CLIENT_ERROR, e)
            raise PlaybackSinkError(str(e)) from e

        dispatcher = DiscordDispatcher(self._voice_client, source, loop=asyncio.get_running_loop())
        try:
            self._voice_client.play(source, after=dispatcher.after)
        except discord.ClientException as e:
            logger.error(LogTemplates.VOICE_CLIENT_ERROR, e)
            self._cleanup_source(source)
            raise PlaybackSinkError(str(e)) from e

        return dispatcher

    async def disconnect(self) -> None:
        channel = self._voice_client.channel
        await self._voice_client.disconnect(force=True)
        logger.info(LogTemplates.VOICE_DISCONNECTED, channel)

    @staticmethod
    def _cleanup_source(source: discord.AudioSource) -> None:
        try:
            source.cleanup()
        except Exception as e:
            logger.debug(LogTemplates.FFMPEG_SOURCE_CLEANUP_ERROR, e)


class DiscordVoiceDestination(Destination):
    """A voice or stage channel a playlist session can be bound to."""

    def __init__(
        self,
        channel: discord.VoiceChannel | discord.StageChannel,
        *,
        connect_timeout: float = CONNECT_TIMEOUT,
        ffmpeg_config: FFmpegConfig | None = None,
    ) -> None:
        self._channel = channel
        self._connect_timeout = connect_timeout
        self._ffmpeg_config = ffmpeg_config

    @property
    def id(self) -> int:
        return self._channel.id

    @property
    def channel(self) -> discord.VoiceChannel | discord.StageChannel:
        return self._channel

    async def connect(self) -> DiscordVoiceSink:
        try:
            async with asyncio.timeout(self._connect_timeout):
                voice_client = await self._channel.connect(self_deaf=True)
        except TimeoutError as e:
            logger.error(LogTemplates.VOICE_CONNECTION_TIMEOUT, self.id)
            raise VoiceConnectionError(self.id, "Timed out joining the voice channel") from e
        except discord.Forbidden as e:
            logger.error(LogTemplates.VOICE_NO_PERMISSION, self.id)
            raise VoiceConnectionError(self.id, "Missing permission to join the voice channel") from e
        except discord.ClientException as e:
            logger.error(LogTemplates.VOICE_CLIENT_ERROR, e)
            raise VoiceConnectionError(self.id, str(e)) from e

        logger.info(LogTemplates.VOICE_CONNECTED, self._channel.name)
        return DiscordVoiceSink(voice_client, self._ffmpeg_config)
