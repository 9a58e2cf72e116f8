"""Base exception classes for domain-level errors."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from discord_jukebox.domain.music.value_objects import DownloadFailureKind


class DomainError(Exception):
    """Base exception for all domain-level errors."""

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__


class CatalogError(DomainError):
    """Raised when the catalog provider (or its auth) fails.

    The message is shown to the requester verbatim.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message, code="CATALOG_ERROR")


class ResolutionError(DomainError):
    """Raised when metadata lookup or search yields no playable result."""

    def __init__(self, message: str, query: str | None = None) -> None:
        super().__init__(message, code="RESOLUTION_ERROR")
        self.query = query


class DownloadError(DomainError):
    """Raised when the extraction tool fails to produce a usable audio file."""

    def __init__(
        self,
        kind: DownloadFailureKind,
        message: str,
        *,
        exit_code: int | None = None,
        stderr: str = "",
    ) -> None:
        super().__init__(message, code=f"DOWNLOAD_{kind.name}")
        self.kind = kind
        self.exit_code = exit_code
        self.stderr = stderr

    @property
    def retryable(self) -> bool:
        return self.kind.retryable


class InvalidModeError(DomainError):
    """Raised when a loop mode outside {off, single, queue} is requested."""

    def __init__(self, mode: object) -> None:
        super().__init__(f"Invalid loop mode: {mode!r}", code="INVALID_MODE")
        self.mode = mode


class VoiceConnectionError(DomainError):
    """Raised when the bot cannot join or move to a voice channel."""

    def __init__(self, message: str, channel_id: int | None = None) -> None:
        super().__init__(message, code="VOICE_CONNECTION_ERROR")
        self.channel_id = channel_id
