"""Provider Router - picks the source provider that owns a query."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from ...domain.shared.messages import LogTemplates

if TYPE_CHECKING:
    from ...domain.music.entities import Track
    from ...domain.music.value_objects import Requester
    from ..interfaces.source_provider import SourceProvider

logger = logging.getLogger(__name__)


class ProviderRouter:
    """Selects a provider by alias, then by URL pattern, then the fallback."""

    def __init__(
        self,
        providers: Sequence[SourceProvider],
        *,
        fallback: SourceProvider | None = None,
    ) -> None:
        self._providers = list(providers)
        self._fallback = fallback or (self._providers[0] if self._providers else None)

    @property
    def providers(self) -> list[SourceProvider]:
        return list(self._providers)

    def by_alias(self, alias: str) -> SourceProvider | None:
        alias = alias.lower()
        for provider in self._providers:
            if alias == provider.name or alias in provider.aliases:
                return provider
        return None

    def select(self, query: str, *, alias: str | None = None) -> SourceProvider | None:
        if alias:
            provider = self.by_alias(alias)
            if provider is not None:
                return provider

        for provider in self._providers:
            if provider.matches(query):
                return provider

        return self._fallback

    async def resolve(
        self,
        query: str,
        *,
        alias: str | None = None,
        requester: Requester | None = None,
        volume: float | None = None,
    ) -> list[Track] | None:
        provider = self.select(query, alias=alias)
        if provider is None:
            return None

        logger.debug(LogTemplates.PROVIDER_SELECTED, provider.name, query)
        tracks = await provider.resolve(query, requester=requester, volume=volume)
        if not tracks:
            logger.info(LogTemplates.PROVIDER_NOTHING_RESOLVED, provider.name, query)
            return None
        return tracks
