"""Utility functions for formatting Discord messages."""

from __future__ import annotations

from collections.abc import Sequence
from functools import cache
from typing import TYPE_CHECKING

from ..domain.shared.messages import DiscordUIMessages

if TYPE_CHECKING:
    from ..domain.music.entities import SongRef

DISCORD_MESSAGE_LIMIT = 2000


@cache
def truncate(text: str, max_length: int = 90) -> str:
    if len(text) <= max_length:
        return text
    return text[: max_length - 1] + "…"


def format_queue(
    now_playing: SongRef | None,
    upcoming: Sequence[SongRef],
    *,
    limit: int = DISCORD_MESSAGE_LIMIT,
) -> str:
    """Render the /queue reply, cutting the list to fit a single message."""
    head = DiscordUIMessages.QUEUE_NOW_PLAYING.format(title=now_playing.display_title) if now_playing else ""

    if not upcoming:
        return f"{head}\n{DiscordUIMessages.QUEUE_EMPTY_VIEW}" if head else DiscordUIMessages.QUEUE_EMPTY_VIEW

    lines = [f"{head}\n", DiscordUIMessages.QUEUE_HEADER] if head else [DiscordUIMessages.QUEUE_HEADER]
    used = sum(len(line) + 1 for line in lines)
    for index, song in enumerate(upcoming, start=1):
        line = f"{index}. {truncate(song.display_title)}"
        remaining = len(upcoming) - index + 1
        footer = DiscordUIMessages.QUEUE_MORE.format(count=remaining)
        if used + len(line) + 1 + len(footer) + 1 > limit:
            lines.append(footer)
            break
        lines.append(line)
        used += len(line) + 1
    return "\n".join(lines)
