"""DTOs for playlist session queue operations."""

from __future__ import annotations

from pydantic import BaseModel, Field

from ...domain.music.entities import RejectedTrack, Track


class EnqueueResult(BaseModel):
    """Partial-success outcome of adding a batch of tracks."""

    accepted: list[Track] = Field(default_factory=list)
    rejected: list[RejectedTrack] = Field(default_factory=list)

    @property
    def has_rejections(self) -> bool:
        return bool(self.rejected)

    @property
    def accepted_count(self) -> int:
        return len(self.accepted)
