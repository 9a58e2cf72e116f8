"""
Shared Domain Kernel

Contains exceptions, message catalogs and constrained types shared across the package.
"""

from discord_jukebox.domain.shared.exceptions import (
    CatalogError,
    DomainError,
    DownloadError,
    InvalidModeError,
    ResolutionError,
    VoiceConnectionError,
)

__all__ = [
    "DomainError",
    "CatalogError",
    "ResolutionError",
    "DownloadError",
    "InvalidModeError",
    "VoiceConnectionError",
]
