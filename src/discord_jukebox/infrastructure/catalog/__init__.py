"""Catalog infrastructure: Spotify playlist and track metadata."""

from discord_jukebox.infrastructure.catalog.spotify_provider import SpotifyCatalogProvider

__all__ = [
    "SpotifyCatalogProvider",
]
