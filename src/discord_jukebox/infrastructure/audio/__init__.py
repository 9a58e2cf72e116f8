"""Audio infrastructure: the yt-dlp subprocess resolver and the FFmpeg decoder."""

from discord_jukebox.infrastructure.audio.decoder import FFmpegAudioDecoder, FFmpegConfig
from discord_jukebox.infrastructure.audio.ytdlp_cli import YtDlpCliResolver

__all__ = [
    "FFmpegAudioDecoder",
    "FFmpegConfig",
    "YtDlpCliResolver",
]
