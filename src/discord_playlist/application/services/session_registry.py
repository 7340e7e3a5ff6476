"""Session Registry - binds each destination to at most one playlist session."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import TYPE_CHECKING

from ...domain.shared.messages import LogTemplates
from .playlist_session import PlaylistSession

if TYPE_CHECKING:
    from ...config.settings import PlaybackSettings
    from ...domain.music.events import EventBus

logger = logging.getLogger(__name__)


class SessionRegistry:
    """Owns the destination id -> session mapping.

    Sessions built here deregister themselves when destroyed; :meth:`remove`
    only unbinds an id if it still points at the session being removed, so a
    late teardown never evicts its replacement.
    """

    def __init__(self, *, settings: PlaybackSettings, event_bus: EventBus) -> None:
        self._settings = settings
        self._event_bus = event_bus
        self._sessions: dict[int | str, PlaylistSession] = {}

    def get(self, destination_id: int | str) -> PlaylistSession | None:
        return self._sessions.get(destination_id)

    def create(self, destination_id: int | str) -> PlaylistSession:
        """Create and bind a new session, replacing nothing.

        Raises:
            KeyError: If the destination already has a session.
        """
        if destination_id in self._sessions:
            raise KeyError(destination_id)

        session = PlaylistSession(
            destination_id,
            settings=self._settings,
            event_bus=self._event_bus,
            registry=self,
        )
        self._sessions[destination_id] = session
        logger.info(LogTemplates.SESSION_CREATED, destination_id)
        return session

    def get_or_create(self, destination_id: int | str) -> tuple[PlaylistSession, bool]:
        """Return the live bound session and whether it was just created.

        A stopped or destroyed session still bound to the id is replaced.
        """
        session = self._sessions.get(destination_id)
        if session is not None:
            if not session.is_terminal:
                return session, False
            logger.info(LogTemplates.SESSION_REPLACED, destination_id)
            del self._sessions[destination_id]
        return self.create(destination_id), True

    def remove(self, destination_id: int | str, session: PlaylistSession | None = None) -> bool:
        bound = self._sessions.get(destination_id)
        if bound is None or (session is not None and bound is not session):
            return False
        del self._sessions[destination_id]
        return True

    async def shutdown(self) -> None:
        """Stop every bound session."""
        sessions = list(self._sessions.values())
        logger.info(LogTemplates.REGISTRY_SHUTDOWN, len(sessions))
        for session in sessions:
            await session.stop()
        self._sessions.clear()

    def __contains__(self, destination_id: object) -> bool:
        return destination_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    def __iter__(self) -> Iterator[PlaylistSession]:
        return iter(list(self._sessions.values()))
