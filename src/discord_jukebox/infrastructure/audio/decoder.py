"""
FFmpeg Audio Decoder

Turns a downloaded temp file into a discord.py audio source.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import discord

from discord_jukebox.application.interfaces.audio_decoder import AudioDecoder
from discord_jukebox.domain.shared.messages import LogTemplates

logger = logging.getLogger(__name__)


@dataclass
class FFmpegConfig:
    """Configuration for FFmpeg audio processing."""

    disable_video: bool = True
    executable: str = "ffmpeg"

    def get_options(self) -> str | None:
        """Get FFmpeg options string."""
        return "-vn" if self.disable_video else None


class FFmpegAudioDecoder(AudioDecoder):
    """Probes the file for a passthrough Opus stream, else transcodes to PCM."""

    def __init__(self, config: FFmpegConfig | None = None) -> None:
        self._config = config or FFmpegConfig()

    async def open(self, path: Path) -> discord.AudioSource:
        source_path = str(path)
        try:
            return await discord.FFmpegOpusAudio.from_probe(
                source_path,
                executable=self._config.executable,
                options=self._config.get_options(),
            )
        except Exception as exc:
            logger.warning(LogTemplates.DECODER_PROBE_FAILED, source_path, exc)
            return discord.FFmpegPCMAudio(
                source_path,
                executable=self._config.executable,
                options=self._config.get_options(),
            )
