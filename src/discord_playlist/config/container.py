"""Dependency Injection Container

Builds the playlist engine's object graph lazily: the event bus, the session
registry, the provider router and the command handlers. Components are
created on first access and cached.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from ..application.commands.change_volume import ChangeVolumeHandler
    from ..application.commands.enqueue_tracks import EnqueueTracksHandler
    from ..application.services.provider_router import ProviderRouter
    from ..application.services.session_registry import SessionRegistry
    from ..domain.music.events import EventBus
    from .settings import Settings


@dataclass
class Container:
    """Dependency injection container.

    Components are lazily initialized when first accessed.
    """

    settings: Settings

    _event_bus: EventBus | None = None
    _session_registry: SessionRegistry | None = None
    _provider_router: ProviderRouter | None = None

    _enqueue_tracks_handler: EnqueueTracksHandler | None = None
    _change_volume_handler: ChangeVolumeHandler | None = None

    # === Core ===

    @property
    def event_bus(self) -> EventBus:
        if self._event_bus is None:
            from ..domain.music.events import EventBus

            self._event_bus = EventBus()
        return self._event_bus

    @property
    def session_registry(self) -> SessionRegistry:
        """Get the destination -> playlist session registry."""
        if self._session_registry is None:
            from ..application.services.session_registry import SessionRegistry

            self._session_registry = SessionRegistry(
                settings=self.settings.playback,
                event_bus=self.event_bus,
            )
        return self._session_registry

    # === Providers ===

    @property
    def provider_router(self) -> ProviderRouter:
        """Get the provider router; YouTube is the fallback for free-text queries."""
        if self._provider_router is None:
            from ..application.services.provider_router import ProviderRouter
            from ..infrastructure.audio.youtube_provider import YouTubeProvider

            youtube = YouTubeProvider(self.settings.youtube)
            self._provider_router = ProviderRouter([youtube], fallback=youtube)
        return self._provider_router

    # === Command Handlers ===

    @property
    def enqueue_tracks_handler(self) -> EnqueueTracksHandler:
        if self._enqueue_tracks_handler is None:
            from ..application.commands.enqueue_tracks import EnqueueTracksHandler

            self._enqueue_tracks_handler = EnqueueTracksHandler(
                router=self.provider_router,
                registry=self.session_registry,
                event_bus=self.event_bus,
                max_volume=self.settings.playback.max_volume,
            )
        return self._enqueue_tracks_handler

    @property
    def change_volume_handler(self) -> ChangeVolumeHandler:
        if self._change_volume_handler is None:
            from ..application.commands.change_volume import ChangeVolumeHandler

            self._change_volume_handler = ChangeVolumeHandler(
                registry=self.session_registry,
                max_volume=self.settings.playback.max_volume,
            )
        return self._change_volume_handler

    # === Lifecycle ===

    async def shutdown(self) -> None:
        """Stop every playlist session and drop event subscriptions."""
        if self._session_registry is not None:
            await self._session_registry.shutdown()
        if self._event_bus is not None:
            self._event_bus.clear()


def create_container(settings: Settings) -> Container:
    """Create a new dependency injection container."""
    return Container(settings)
