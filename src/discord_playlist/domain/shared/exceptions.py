"""Base exception classes for domain-level errors."""

from __future__ import annotations


class DomainError(Exception):
    """Base exception for all domain-level errors."""

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__


class ValidationError(DomainError):
    """Raised when domain validation fails."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message, code="VALIDATION_ERROR")
        self.field = field


class InvalidOperationError(DomainError):
    """Raised when an operation is invalid in the current state."""

    def __init__(self, operation: str, current_state: str, message: str | None = None) -> None:
        msg = message or f"Cannot perform '{operation}' in state '{current_state}'"
        super().__init__(msg, code="INVALID_OPERATION")
        self.operation = operation
        self.current_state = current_state


class VoiceConnectionError(DomainError, ConnectionError):
    """Raised when a playback destination refuses the connection."""

    def __init__(self, destination_id: int | str, message: str | None = None) -> None:
        msg = message or f"Could not connect to destination '{destination_id}'"
        super().__init__(msg, code="CONNECTION_ERROR")
        self.destination_id = destination_id


class StreamUnavailableError(DomainError):
    """Raised by track variants when a stream cannot be produced right now."""

    def __init__(self, track_title: str, message: str | None = None) -> None:
        msg = message or f"Stream for '{track_title}' is unavailable"
        super().__init__(msg, code="STREAM_UNAVAILABLE")
        self.track_title = track_title


class PlaybackSinkError(DomainError):
    """Raised when the audio output cannot start playback."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="PLAYBACK_SINK_ERROR")
