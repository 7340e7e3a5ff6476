"""Port interface for resolving user queries into playable tracks."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, ClassVar

if TYPE_CHECKING:
    from discord_playlist.domain.music.entities import Track
    from discord_playlist.domain.music.value_objects import Requester


class SourceProvider(ABC):
    """Resolves a free-text query into an ordered sequence of tracks.

    Implementations support single items, collection/playlist expansion and a
    textual search fallback when the query is not a direct identifier.
    """

    name: ClassVar[str] = "provider"
    aliases: ClassVar[tuple[str, ...]] = ()
    pattern: ClassVar[re.Pattern[str] | None] = None

    def matches(self, query: str) -> bool:
        """Whether ``query`` looks like something this provider owns."""
        return self.pattern is not None and self.pattern.search(query) is not None

    @abstractmethod
    async def resolve(
        self,
        query: str,
        *,
        requester: Requester | None = None,
        volume: float | None = None,
    ) -> list[Track] | None:
        """Resolve ``query`` to tracks, or ``None`` when nothing resolves.

        Every returned track carries ``requester`` and the ``volume`` override.
        """
        ...
