"""
Shared Domain Kernel

Exceptions and helpers shared by every layer.
"""

from discord_playlist.domain.shared.exceptions import (
    DomainError,
    InvalidOperationError,
    PlaybackSinkError,
    StreamUnavailableError,
    ValidationError,
    VoiceConnectionError,
)

__all__ = [
    "DomainError",
    "ValidationError",
    "InvalidOperationError",
    "VoiceConnectionError",
    "StreamUnavailableError",
    "PlaybackSinkError",
]
