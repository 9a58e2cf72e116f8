"""Port interface for the music catalog (playlist / track metadata)."""

from __future__ import annotations

from abc import ABC, abstractmethod

from pydantic import BaseModel, ConfigDict, Field


class CatalogTrack(BaseModel):
    """A catalog track as reported by the provider; fields may be blank."""

    model_config = ConfigDict(frozen=True)

    title: str = ""
    artists: tuple[str, ...] = Field(default_factory=tuple)

    @property
    def primary_artist(self) -> str:
        return self.artists[0] if self.artists else ""

    @property
    def is_complete(self) -> bool:
        return bool(self.title) and bool(self.primary_artist)


class CatalogProvider(ABC):
    """Interface for a paginated catalog API. Failures raise CatalogError."""

    @abstractmethod
    async def authenticate(self) -> None:
        """Acquire (or refresh) an access token."""
        ...

    @abstractmethod
    async def playlist_page(self, playlist_id: str, *, limit: int, offset: int) -> list[CatalogTrack]:
        """Return one page of playlist entries in playlist order."""
        ...

    @abstractmethod
    async def track(self, track_id: str) -> CatalogTrack:
        ...
