"""Infrastructure layer - external systems integration.

- Discord (bot, slash-command cog, voice sink)
- Audio (yt-dlp backed YouTube provider)
"""

from discord_playlist.infrastructure.discord.bot import create_bot
from discord_playlist.infrastructure.discord.voice_sink import DiscordVoiceDestination

__all__ = [
    "create_bot",
    "DiscordVoiceDestination",
]
