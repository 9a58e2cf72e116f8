"""Expands catalog playlist/track references into unresolved song stubs."""

from __future__ import annotations

import logging
import re
from enum import Enum
from typing import TYPE_CHECKING

import httpx
from pydantic import BaseModel, ConfigDict

from ...domain.music.entities import UnresolvedSong
from ...domain.shared.exceptions import CatalogError
from ...domain.shared.messages import ErrorMessages, LogTemplates
from ...domain.shared.types import NonEmptyStr

if TYPE_CHECKING:
    from ..interfaces.catalog_provider import CatalogProvider, CatalogTrack

logger = logging.getLogger(__name__)

_SHORT_LINK_RE = re.compile(r"^(https?://)?(spotify\.(link|app\.link))", re.IGNORECASE)
_CATALOG_URL_RE = re.compile(
    r"^https?://(?:open\.)?spotify\.com/(?:intl-[a-z]{2}(?:-[a-z]{2})?/)?(playlist|track)/([a-zA-Z0-9]+)",
    re.IGNORECASE,
)


class CatalogRefKind(Enum):
    PLAYLIST = "playlist"
    TRACK = "track"


class CatalogRef(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: CatalogRefKind
    id: NonEmptyStr


def parse_catalog_url(text: str) -> CatalogRef | None:
    """Recognise ``open.spotify.com/playlist/<id>`` and ``/track/<id>`` links."""
    match = _CATALOG_URL_RE.match(text.strip())
    if match is None:
        return None
    return CatalogRef(kind=CatalogRefKind(match.group(1).lower()), id=match.group(2))


def is_short_link(text: str) -> bool:
    return _SHORT_LINK_RE.match(text.strip()) is not None


async def resolve_short_link(url: str, *, timeout: float = 5.0) -> str:
    """Follow a single redirect of a catalog short link.

    Returns *url* unchanged if it is not a short link, the request fails,
    or the response carries no ``Location`` header.
    """
    if not is_short_link(url):
        return url

    target = url if url.lower().startswith(("http://", "https://")) else f"https://{url}"
    try:
        async with httpx.AsyncClient(follow_redirects=False, timeout=timeout) as client:
            response = await client.get(target)
    except httpx.HTTPError as exc:
        logger.warning(LogTemplates.CATALOG_SHORT_LINK_FAILED, url, exc)
        return url

    location = response.headers.get("location")
    if not location:
        return url
    logger.info(LogTemplates.CATALOG_SHORT_LINK, url, location)
    return location


class CatalogExpander:
    """Turns playlist and track references into ordered UnresolvedSong stubs."""

    def __init__(self, provider: CatalogProvider, *, page_size: int = 100) -> None:
        self._provider = provider
        self._page_size = page_size

    async def expand(self, playlist_id: str) -> list[UnresolvedSong]:
        """Fetch every page of *playlist_id*; incomplete entries are skipped."""
        await self._provider.authenticate()

        tracks: list[CatalogTrack] = []
        offset = 0
        while True:
            page = await self._provider.playlist_page(playlist_id, limit=self._page_size, offset=offset)
            if page is None:
                raise CatalogError(ErrorMessages.CATALOG_INVALID_RESPONSE)
            logger.debug(LogTemplates.CATALOG_PAGE, offset, len(page), playlist_id)
            tracks.extend(page)
            if len(page) < self._page_size:
                break
            offset += self._page_size

        songs = [self._to_song(track) for track in tracks if track.is_complete]
        logger.info(LogTemplates.CATALOG_EXPANDED, playlist_id, len(songs), len(tracks) - len(songs))
        return songs

    async def expand_single(self, track_id: str) -> UnresolvedSong:
        await self._provider.authenticate()
        track = await self._provider.track(track_id)
        if not track.is_complete:
            raise CatalogError(ErrorMessages.CATALOG_TRACK_INCOMPLETE)
        return self._to_song(track)

    @staticmethod
    def _to_song(track: CatalogTrack) -> UnresolvedSong:
        return UnresolvedSong(artist=track.primary_artist, title=track.title[:500])
