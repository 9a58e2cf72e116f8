"""Port interfaces for Discord voice connections and audio output."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any, Protocol

from discord_jukebox.domain.music.value_objects import SinkEvent, SinkStatus
from discord_jukebox.domain.shared.types import DiscordSnowflake

SinkListener = Callable[[SinkEvent, BaseException | None], None]
"""Callback invoked on the event loop with the event and, for ERROR, the cause."""


class AudioSink(ABC):
    """Live audio output bound to a voice session."""

    @property
    @abstractmethod
    def status(self) -> SinkStatus:
        ...

    @abstractmethod
    def play(self, source: Any) -> None:
        """Start playing *source*; emits IDLE when it ends or ERROR on failure."""
        ...

    @abstractmethod
    def stop(self) -> None:
        """Stop playback; a playing sink emits IDLE afterwards."""
        ...

    @abstractmethod
    def pause(self) -> bool:
        ...

    @abstractmethod
    def resume(self) -> bool:
        ...

    @abstractmethod
    def add_listener(self, event: SinkEvent, listener: SinkListener) -> None:
        ...

    @abstractmethod
    def remove_listener(self, event: SinkEvent, listener: SinkListener) -> None:
        ...


class VoiceSession(ABC):
    """A live voice connection in one guild."""

    @property
    @abstractmethod
    def channel_name(self) -> str:
        ...

    @property
    @abstractmethod
    def is_connected(self) -> bool:
        """False once Discord dropped the connection or it was destroyed."""
        ...

    @abstractmethod
    def subscribe(self, sink: AudioSink) -> None:
        """Attach *sink* so its audio is sent through this connection."""
        ...

    @abstractmethod
    async def destroy(self) -> None:
        """Disconnect and release the connection. Safe to call twice."""
        ...


class VoiceGateway(ABC):
    """Factory for voice sessions and their sinks."""

    @abstractmethod
    async def join(self, guild_id: DiscordSnowflake, channel_id: DiscordSnowflake) -> VoiceSession:
        """Connect (or move) to a voice channel; raises on failure."""
        ...

    @abstractmethod
    def create_sink(self, session: VoiceSession) -> AudioSink:
        ...


class MessageChannel(Protocol):
    """Anything notices can be sent to (a Discord text channel)."""

    async def send(self, content: str) -> Any: ...
