"""Discord jukebox: per-guild queue, yt-dlp downloads and voice playback."""

__version__ = "1.0.0"
