"""Immutable value objects for the music bounded context."""

from __future__ import annotations

from enum import Enum

from discord_jukebox.domain.shared.exceptions import InvalidModeError


class LoopMode(Enum):
    """Repeat policy applied when a song finishes."""

    OFF = "off"
    SINGLE = "single"  # Repeat the current song
    QUEUE = "queue"  # Cycle the entire queue

    @classmethod
    def parse(cls, value: LoopMode | str) -> LoopMode:
        """Coerce a mode or its string value, raising InvalidModeError otherwise."""
        if isinstance(value, LoopMode):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        raise InvalidModeError(value)


class EngineState(Enum):
    """States of the per-guild playback state machine.

    Transitions:
    - STOPPED -> RESOLVING (head is unresolved)
    - STOPPED/RESOLVING -> DOWNLOADING
    - DOWNLOADING -> STREAMING (file ready)
    - STREAMING -> ADVANCING (sink idle or error)
    - ADVANCING -> RESOLVING/DOWNLOADING (next song) or STOPPED (queue empty)
    - Any -> STOPPED (failure with empty queue, leave)
    """

    STOPPED = "stopped"
    RESOLVING = "resolving"
    DOWNLOADING = "downloading"
    STREAMING = "streaming"
    ADVANCING = "advancing"

    @property
    def is_active(self) -> bool:
        return self != EngineState.STOPPED


class DownloadFailureKind(Enum):
    """Reasons a download attempt can fail."""

    TOO_SMALL = "too_small"
    MISSING = "missing"
    EXIT_CODE = "exit_code"
    ANTI_BOT = "anti_bot"

    @property
    def retryable(self) -> bool:
        return self != DownloadFailureKind.ANTI_BOT


class SinkEvent(Enum):
    """Terminal events reported by an audio sink."""

    IDLE = "idle"
    ERROR = "error"


class SinkStatus(Enum):
    """Observable status of an audio sink."""

    IDLE = "idle"
    PLAYING = "playing"
    PAUSED = "paused"
