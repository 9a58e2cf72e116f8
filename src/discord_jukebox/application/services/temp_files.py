"""Temp audio file bookkeeping: at most one active file per guild."""

from __future__ import annotations

import itertools
import logging
import time
from pathlib import Path
from typing import TYPE_CHECKING

from ...domain.shared.messages import LogTemplates

if TYPE_CHECKING:
    from ...domain.music.entities import GuildQueueState
    from ...domain.shared.types import DiscordSnowflake

logger = logging.getLogger(__name__)


class TempFileManager:
    """Builds temp paths under the scratch directory and deletes them exactly once."""

    PREFIX = "audio"

    def __init__(self, scratch_dir: Path) -> None:
        self._scratch_dir = Path(scratch_dir)
        self._sequence = itertools.count(1)

    @property
    def scratch_dir(self) -> Path:
        return self._scratch_dir

    def ensure_scratch_dir(self) -> Path:
        self._scratch_dir.mkdir(parents=True, exist_ok=True)
        return self._scratch_dir

    def new_prefix(self, guild_id: DiscordSnowflake) -> Path:
        """Return ``<scratch>/audio_<guild>_<ms>_<n>``; the tool appends the extension."""
        self.ensure_scratch_dir()
        stamp = time.time_ns() // 1_000_000
        return self._scratch_dir / f"{self.PREFIX}_{guild_id}_{stamp}_{next(self._sequence)}"

    def track(self, state: GuildQueueState, path: Path) -> None:
        """Record *path* as the guild's active file, deleting any previous one."""
        if state.active_temp_file is not None and state.active_temp_file != path:
            self.release(state)
        state.active_temp_file = path

    def release(self, state: GuildQueueState) -> None:
        """Clear the active-file field, then delete the file."""
        path = state.active_temp_file
        state.active_temp_file = None
        if path is not None:
            self.delete(path)

    def delete(self, path: Path) -> bool:
        """Delete *path*; returns False when it was already gone or unlink failed."""
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as exc:
            logger.warning(LogTemplates.TEMP_DELETE_FAILED, path, exc)
            return False
        logger.debug(LogTemplates.TEMP_DELETED, path)
        return True

    def discard_prefix(self, prefix: Path) -> int:
        """Delete every ``<prefix>.*`` file (finished or partial downloads)."""
        return self._delete_matching(prefix.parent, f"{prefix.name}.*")

    def _delete_matching(self, directory: Path, pattern: str) -> int:
        removed = 0
        if not directory.is_dir():
            return removed
        for candidate in directory.glob(pattern):
            if candidate.is_file() and self.delete(candidate):
                removed += 1
        return removed

    def purge(self) -> int:
        """Delete every temp audio file left in the scratch directory."""
        return self._delete_matching(self._scratch_dir, f"{self.PREFIX}_*")
