# ruff: noqa: N999
"""
Domain Layer

Contains pure business logic:
- shared/: Exceptions, message catalogs and constrained types
- music/: Song references, guild queue state and playback value objects
"""

from discord_jukebox.domain.shared.exceptions import DomainError

__all__ = [
    "DomainError",
]
