"""
Music Bounded Context

Domain logic for song references, the per-guild queue, and playback states.
"""

from discord_jukebox.domain.music.entities import (
    GuildQueueState,
    ResolvedSong,
    SongRef,
    UnresolvedSong,
)
from discord_jukebox.domain.music.value_objects import (
    DownloadFailureKind,
    EngineState,
    LoopMode,
    SinkEvent,
    SinkStatus,
)

__all__ = [
    # Entities
    "GuildQueueState",
    "ResolvedSong",
    "UnresolvedSong",
    "SongRef",
    # Value Objects
    "DownloadFailureKind",
    "EngineState",
    "LoopMode",
    "SinkEvent",
    "SinkStatus",
]
