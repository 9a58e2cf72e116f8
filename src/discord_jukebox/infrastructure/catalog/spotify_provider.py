"""CatalogProvider implementation backed by the Spotify Web API (spotipy)."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import requests
import spotipy
from spotipy.exceptions import SpotifyException
from spotipy.oauth2 import SpotifyClientCredentials, SpotifyOauthError

from discord_jukebox.application.interfaces.catalog_provider import CatalogProvider, CatalogTrack
from discord_jukebox.config.settings import CatalogSettings
from discord_jukebox.domain.shared.exceptions import CatalogError
from discord_jukebox.domain.shared.messages import ErrorMessages, LogTemplates

logger = logging.getLogger(__name__)


def _to_catalog_track(data: Any) -> CatalogTrack:
    """Convert a Spotify track object, tolerating missing fields."""
    if not isinstance(data, dict):
        return CatalogTrack()
    artists = data.get("artists") or []
    return CatalogTrack(
        title=data.get("name") or "",
        artists=tuple(a.get("name") or "" for a in artists if isinstance(a, dict)),
    )


class SpotifyCatalogProvider(CatalogProvider):
    """Client-credentials Spotify access; blocking spotipy calls run in a thread."""

    def __init__(self, settings: CatalogSettings | None = None) -> None:
        self._settings = settings or CatalogSettings()
        self._auth: SpotifyClientCredentials | None = None
        self._client: spotipy.Spotify | None = None

    def _ensure_client(self) -> spotipy.Spotify:
        if self._client is None:
            if not self._settings.is_configured:
                raise CatalogError(ErrorMessages.CATALOG_CREDENTIALS_MISSING)
            self._auth = SpotifyClientCredentials(
                client_id=self._settings.client_id,
                client_secret=self._settings.client_secret.get_secret_value(),
            )
            self._client = spotipy.Spotify(auth_manager=self._auth)
        return self._client

    async def _call(self, func: Any, *args: Any, **kwargs: Any) -> Any:
        try:
            return await asyncio.to_thread(func, *args, **kwargs)
        except (SpotifyException, SpotifyOauthError) as exc:
            message = getattr(exc, "msg", None) or getattr(exc, "error_description", None) or str(exc)
            logger.error(LogTemplates.CATALOG_ERROR, message)
            raise CatalogError(message) from exc
        except requests.exceptions.RequestException as exc:
            logger.error(LogTemplates.CATALOG_ERROR, exc)
            raise CatalogError(ErrorMessages.CATALOG_UNREACHABLE.format(error=exc)) from exc

    async def authenticate(self) -> None:
        self._ensure_client()
        assert self._auth is not None
        await self._call(self._auth.get_access_token, as_dict=False)

    async def playlist_page(self, playlist_id: str, *, limit: int, offset: int) -> list[CatalogTrack]:
        client = self._ensure_client()
        response = await self._call(
            client.playlist_items,
            playlist_id,
            limit=limit,
            offset=offset,
            additional_types=("track",),
        )
        items = response.get("items") if isinstance(response, dict) else None
        if not isinstance(items, list):
            raise CatalogError(ErrorMessages.CATALOG_INVALID_RESPONSE)
        return [_to_catalog_track(item.get("track") if isinstance(item, dict) else None) for item in items]

    async def track(self, track_id: str) -> CatalogTrack:
        client = self._ensure_client()
        response = await self._call(client.track, track_id)
        if not isinstance(response, dict):
            raise CatalogError(ErrorMessages.CATALOG_INVALID_RESPONSE)
        return _to_catalog_track(response)
