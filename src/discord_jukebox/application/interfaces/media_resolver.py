"""Port interface for the media extraction tool."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path

from pydantic import BaseModel, ConfigDict

from discord_jukebox.domain.shared.types import HttpUrlStr, SongTitleStr


class MediaInfo(BaseModel):
    """Title and canonical page URL of a single video."""

    model_config = ConfigDict(frozen=True)

    title: SongTitleStr
    canonical_url: HttpUrlStr


class MediaResolver(ABC):
    """Interface for looking up, searching and downloading media.

    Implementations never retry; callers own the retry policy.
    """

    @abstractmethod
    async def lookup_metadata(self, url: str) -> MediaInfo:
        """Return metadata for a direct URL or raise ResolutionError."""
        ...

    @abstractmethod
    async def search(self, query: str) -> MediaInfo:
        """Return the first video result for *query* or raise ResolutionError."""
        ...

    @abstractmethod
    async def download(self, url: str, dest_prefix: Path) -> Path:
        """Download best audio to ``<dest_prefix>.<ext>`` or raise DownloadError."""
        ...
