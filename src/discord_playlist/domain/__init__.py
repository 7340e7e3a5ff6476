"""
Domain Layer

Pure playlist logic:
- shared/: exceptions, message templates, constrained types, validators
- music/: tracks, value objects and session events
"""

from discord_playlist.domain.shared.exceptions import DomainError

__all__ = [
    "DomainError",
]
