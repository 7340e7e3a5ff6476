"""Slash-command cog exposing playlist sessions: play, skip, pause, resume, stop, volume."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord
from discord import app_commands
from discord.ext import commands

from discord_playlist.application.commands.change_volume import ChangeVolumeCommand
from discord_playlist.application.commands.enqueue_tracks import EnqueueTracksCommand
from discord_playlist.domain.music.value_objects import Requester
from discord_playlist.domain.shared.exceptions import InvalidOperationError
from discord_playlist.domain.shared.messages import DiscordUIMessages
from discord_playlist.infrastructure.discord.voice_sink import DiscordVoiceDestination

if TYPE_CHECKING:
    from ....application.services.playlist_session import PlaylistSession
    from ....config.container import Container

logger = logging.getLogger(__name__)

QUEUE_PREVIEW_SIZE = 10


async def send_ephemeral(interaction: discord.Interaction, message: str) -> None:
    """Send an ephemeral message, handling both fresh and already-responded interactions."""
    if interaction.response.is_done():
        await interaction.followup.send(message, ephemeral=True)
    else:
        await interaction.response.send_message(message, ephemeral=True)


def voice_channel_of(
    interaction: discord.Interaction,
) -> discord.VoiceChannel | discord.StageChannel | None:
    user = interaction.user
    if not isinstance(user, discord.Member) or not user.voice:
        return None
    channel = user.voice.channel
    if isinstance(channel, discord.VoiceChannel | discord.StageChannel):
        return channel
    return None


class PlaylistCog(commands.Cog):
    def __init__(self, bot: commands.Bot, container: Container) -> None:
        self.bot = bot
        self.container = container

    async def _session_for(self, interaction: discord.Interaction) -> PlaylistSession | None:
        """The session bound to the caller's voice channel, replying if there is none."""
        if interaction.guild is None:
            await send_ephemeral(interaction, DiscordUIMessages.STATE_SERVER_ONLY)
            return None

        channel = voice_channel_of(interaction)
        if channel is None:
            await send_ephemeral(interaction, DiscordUIMessages.STATE_NEED_TO_BE_IN_VOICE)
            return None

        session = self.container.session_registry.get(channel.id)
        if session is None:
            await send_ephemeral(interaction, DiscordUIMessages.STATE_NO_SESSION)
        return session

    @app_commands.command(name="play", description="Queue a YouTube video, playlist or search.")
    @app_commands.describe(
        query="URL, video/playlist id or search text",
        volume="Volume for these tracks (percent)",
        provider="Provider alias, e.g. yt",
    )
    async def play(
        self,
        interaction: discord.Interaction,
        query: str,
        volume: float | None = None,
        provider: str | None = None,
    ) -> None:
        if interaction.guild is None:
            await send_ephemeral(interaction, DiscordUIMessages.STATE_SERVER_ONLY)
            return

        channel = voice_channel_of(interaction)
        if channel is None:
            await send_ephemeral(interaction, DiscordUIMessages.STATE_NEED_TO_BE_IN_VOICE)
            return

        await interaction.response.defer()

        destination = DiscordVoiceDestination(
            channel, connect_timeout=self.container.settings.playback.connect_timeout
        )
        result = await self.container.enqueue_tracks_handler.handle(
            EnqueueTracksCommand(
                destination=destination,
                query=query,
                requester=Requester(id=interaction.user.id, name=interaction.user.display_name),
                volume=volume,
                provider_alias=provider,
            )
        )

        lines = [result.message]
        if result.is_success and result.rejected:
            lines.append(result.rejected[0].reason)
        await interaction.followup.send("\n".join(lines))

    @app_commands.command(name="skip", description="Skip the current track.")
    async def skip(self, interaction: discord.Interaction) -> None:
        session = await self._session_for(interaction)
        if session is None:
            return

        try:
            track = await session.skip()
        except InvalidOperationError as e:
            await send_ephemeral(interaction, e.message)
            return
        if track is not None:
            await interaction.response.send_message(
                DiscordUIMessages.ACTION_SKIPPED.format(title=track.title)
            )

    @app_commands.command(name="pause", description="Pause playback.")
    async def pause(self, interaction: discord.Interaction) -> None:
        session = await self._session_for(interaction)
        if session is None:
            return

        try:
            await session.pause()
        except InvalidOperationError as e:
            await send_ephemeral(interaction, e.message)
            return
        await interaction.response.send_message(DiscordUIMessages.ACTION_PAUSED)

    @app_commands.command(name="resume", description="Resume playback.")
    async def resume(self, interaction: discord.Interaction) -> None:
        session = await self._session_for(interaction)
        if session is None:
            return

        try:
            await session.resume()
        except InvalidOperationError as e:
            await send_ephemeral(interaction, e.message)
            return
        await interaction.response.send_message(DiscordUIMessages.ACTION_RESUMED)

    @app_commands.command(name="stop", description="Stop playback, clear the queue and leave.")
    async def stop(self, interaction: discord.Interaction) -> None:
        session = await self._session_for(interaction)
        if session is None:
            return

        await session.stop()
        await interaction.response.send_message(DiscordUIMessages.ACTION_STOPPED)

    @app_commands.command(name="shuffle", description="Shuffle the queue.")
    async def shuffle(self, interaction: discord.Interaction) -> None:
        session = await self._session_for(interaction)
        if session is None:
            return

        queue = session.shuffle()
        await interaction.response.send_message(
            DiscordUIMessages.ACTION_SHUFFLED.format(count=len(queue))
        )

    @app_commands.command(name="volume", description="Show or change the volume.")
    @app_commands.describe(value="New volume in percent; omit to show the current one")
    async def volume(
        self,
        interaction: discord.Interaction,
        value: float | None = None,
    ) -> None:
        channel = voice_channel_of(interaction)
        if channel is None:
            await send_ephemeral(interaction, DiscordUIMessages.STATE_NEED_TO_BE_IN_VOICE)
            return

        await interaction.response.defer()
        result = await self.container.change_volume_handler.handle(
            ChangeVolumeCommand(destination_id=channel.id, volume=value)
        )
        await interaction.followup.send(result.message, ephemeral=not result.is_success)

    @app_commands.command(name="queue", description="Show the current track and what is next.")
    async def queue(self, interaction: discord.Interaction) -> None:
        session = await self._session_for(interaction)
        if session is None:
            return

        lines: list[str] = []
        if session.current_track is not None:
            track = session.current_track
            lines.append(
                DiscordUIMessages.NOW_PLAYING.format(
                    title=track.title, progress=track.format_progress(session.elapsed_ms)
                )
            )

        pending = session.queue
        if not pending:
            lines.append(DiscordUIMessages.STATE_QUEUE_EMPTY)
        else:
            lines.append(DiscordUIMessages.QUEUE_HEADER.format(count=len(pending)))
            for position, track in enumerate(pending[:QUEUE_PREVIEW_SIZE], start=1):
                lines.append(
                    DiscordUIMessages.QUEUE_LINE.format(
                        position=position, title=track.title, duration=track.duration_formatted
                    )
                )
            if len(pending) > QUEUE_PREVIEW_SIZE:
                lines.append(
                    DiscordUIMessages.QUEUE_MORE.format(count=len(pending) - QUEUE_PREVIEW_SIZE)
                )

        await interaction.response.send_message("\n".join(lines))


async def setup(bot: commands.Bot) -> None:
    container = getattr(bot, "container", None)
    if container is None:
        raise RuntimeError("Container not found on bot instance")

    await bot.add_cog(PlaylistCog(bot, container))
