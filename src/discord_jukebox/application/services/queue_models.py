"""DTOs for the queue application service."""

from __future__ import annotations

from pydantic import BaseModel

from ...domain.music.entities import SongRef
from ...domain.music.value_objects import LoopMode
from ...domain.shared.types import NonNegativeInt


class EnqueueResult(BaseModel):
    success: bool
    added: NonNegativeInt = 0
    queue_length: NonNegativeInt = 0
    message: str = ""
    started: bool = False


class QueueInfo(BaseModel):

    now_playing: SongRef | None
    upcoming: list[SongRef]
    total_length: NonNegativeInt
    loop_mode: LoopMode = LoopMode.OFF

    @property
    def is_empty(self) -> bool:
        return self.total_length == 0
