"""Port interface for turning a local audio file into a playable source."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any


class AudioDecoder(ABC):
    @abstractmethod
    async def open(self, path: Path) -> Any:
        """Probe *path* and return a source accepted by ``AudioSink.play``.

        Falls back to an untyped stream when probing fails.
        """
        ...
