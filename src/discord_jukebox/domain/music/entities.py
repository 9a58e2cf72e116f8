"""Core domain entities for the music bounded context."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from discord_jukebox.domain.music.value_objects import EngineState, LoopMode, SinkStatus
from discord_jukebox.domain.shared.types import (
    DiscordSnowflake,
    HttpUrlStr,
    NonEmptyStr,
    NonNegativeInt,
    SongTitleStr,
)


class ResolvedSong(BaseModel):
    """A queue entry that points at a playable page URL."""

    model_config = ConfigDict(frozen=True, strict=True)

    kind: Literal["resolved"] = "resolved"
    title: SongTitleStr
    source_url: HttpUrlStr

    @property
    def display_title(self) -> str:
        return self.title


class UnresolvedSong(BaseModel):
    """A catalog stub (artist + title) that must be searched before download."""

    model_config = ConfigDict(frozen=True, strict=True)

    kind: Literal["unresolved"] = "unresolved"
    artist: NonEmptyStr
    title: SongTitleStr

    @property
    def search_query(self) -> str:
        return f"{self.artist} {self.title}"

    @property
    def display_title(self) -> str:
        return f"{self.artist} - {self.title}"

    def resolve(self, title: str, source_url: str) -> ResolvedSong:
        """Return the playable counterpart of this stub."""
        return ResolvedSong(title=title, source_url=source_url)


SongRef = Annotated[ResolvedSong | UnresolvedSong, Field(discriminator="kind")]


class GuildQueueState(BaseModel):
    """Mutable playback state owned by a single guild.

    ``voice_session``, ``sink`` and ``announce_channel`` hold infrastructure
    handles (see ``application.interfaces``); they are typed loosely so the
    domain layer does not depend on the ports.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    guild_id: DiscordSnowflake
    generation: NonNegativeInt = 0
    songs: list[SongRef] = Field(default_factory=list)
    now_playing: SongRef | None = None
    loop_mode: LoopMode = LoopMode.OFF
    engine_state: EngineState = EngineState.STOPPED
    active_temp_file: Path | None = None

    voice_session: Any = None
    sink: Any = None
    announce_channel: Any = None

    @property
    def queue_length(self) -> int:
        return len(self.songs)

    @property
    def has_songs(self) -> bool:
        return bool(self.songs)

    def enqueue(self, song: SongRef) -> int:
        """Append a song and return the new queue length."""
        self.songs.append(song)
        return len(self.songs)

    def enqueue_many(self, songs: list[SongRef]) -> int:
        """Append songs in order and return how many were added."""
        self.songs.extend(songs)
        return len(songs)

    def dequeue_head(self) -> SongRef | None:
        if not self.songs:
            return None
        return self.songs.pop(0)

    def peek_head(self) -> SongRef | None:
        return self.songs[0] if self.songs else None

    def replace_head(self, song: SongRef) -> None:
        """Swap the head entry for its resolved form."""
        if not self.songs:
            raise IndexError("replace_head on an empty queue")
        self.songs[0] = song

    def clear(self) -> None:
        self.songs.clear()
        self.now_playing = None

    def set_loop_mode(self, mode: LoopMode | str) -> LoopMode:
        """Validate and apply a loop mode; state is untouched on failure."""
        self.loop_mode = LoopMode.parse(mode)
        return self.loop_mode

    def sink_status(self) -> SinkStatus:
        if self.sink is None:
            return SinkStatus.IDLE
        return self.sink.status

    def is_idle(self) -> bool:
        """True when nothing is playing and the sink reports idle."""
        return self.now_playing is None and self.sink_status() == SinkStatus.IDLE

    def snapshot(self) -> tuple[SongRef | None, list[SongRef], NonNegativeInt]:
        """Return (now_playing, upcoming copy, length) for display."""
        return self.now_playing, list(self.songs), len(self.songs)
