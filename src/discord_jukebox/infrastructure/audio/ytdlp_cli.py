"""MediaResolver implementation that drives the yt-dlp command line tool."""

from __future__ import annotations

import asyncio
import logging
import re
from pathlib import Path
from typing import Final

from pydantic import BaseModel, ConfigDict

from discord_jukebox.application.interfaces.media_resolver import MediaInfo, MediaResolver
from discord_jukebox.config.settings import AudioSettings
from discord_jukebox.domain.music.value_objects import DownloadFailureKind
from discord_jukebox.domain.shared.exceptions import DownloadError, ResolutionError
from discord_jukebox.domain.shared.messages import ErrorMessages, LogTemplates

logger = logging.getLogger(__name__)

METADATA_TEMPLATE: Final[str] = "%(title)s|%(webpage_url)s"
SEARCH_TEMPLATE: Final[str] = "%(title)s|%(id)s"
WATCH_URL: Final[str] = "https://www.youtube.com/watch?v={id}"
MAX_TITLE_LENGTH: Final[int] = 500
STDERR_LOG_TRUNCATE: Final[int] = 500

YOUTUBE_ID_PATTERN: Final[re.Pattern[str]] = re.compile(r"^[A-Za-z0-9_-]{11}$")
ANTI_BOT_MARKER: Final[str] = "Sign in to confirm"


class ProcessResult(BaseModel):
    """Captured outcome of one yt-dlp invocation."""

    model_config = ConfigDict(frozen=True)

    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def is_anti_bot(stderr: str) -> bool:
    return ANTI_BOT_MARKER in stderr or "bot" in stderr.lower()


def split_print_line(output: str) -> tuple[str, str]:
    """Split the first ``left|right`` line printed by ``--print``."""
    line = output.strip().splitlines()[0] if output.strip() else ""
    left, _, right = line.partition("|")
    return left.strip(), right.strip()


class YtDlpCliResolver(MediaResolver):
    """Runs yt-dlp as a subprocess for metadata, search and download.

    Cancelling any pending call kills the child process.
    """

    def __init__(self, settings: AudioSettings | None = None) -> None:
        self._settings = settings or AudioSettings()

    # ── Argument building ──────────────────────────────────────────

    def _common_args(self) -> list[str]:
        return ["--no-check-certificates", "--user-agent", self._settings.user_agent]

    def _cookie_file(self) -> Path | None:
        path = self._settings.cookie_path
        if path is not None and path.is_file():
            return path
        return None

    def build_args(self, base_args: list[str]) -> list[str]:
        """Insert ``--cookies <file>`` before the final positional argument when available."""
        args = list(base_args)
        cookies = self._cookie_file()
        if cookies is not None and args:
            args[-1:-1] = ["--cookies", str(cookies)]
        return args

    def metadata_args(self, url: str) -> list[str]:
        return self.build_args([*self._common_args(), "--print", METADATA_TEMPLATE, url])

    def search_args(self, query: str) -> list[str]:
        return self.build_args(
            [
                "--flat-playlist",
                *self._common_args(),
                "--print",
                SEARCH_TEMPLATE,
                "--playlist-end",
                "1",
                f"ytsearch1:{query}",
            ]
        )

    def download_args(self, url: str, dest_prefix: Path) -> list[str]:
        return self.build_args(
            [
                "-f",
                self._settings.ytdlp_format,
                "--audio-quality",
                "0",
                "--no-playlist",
                *self._common_args(),
                "-o",
                f"{dest_prefix}.%(ext)s",
                url,
            ]
        )

    # ── Process handling ───────────────────────────────────────────

    async def _run(self, args: list[str]) -> ProcessResult:
        """Run yt-dlp with *args*; raises OSError if it cannot be launched."""
        command = [*self._settings.ytdlp_command, *args]
        logger.debug(LogTemplates.YTDLP_RUN, command[0], args[-1], self._cookie_file() is not None)
        process = await asyncio.create_subprocess_exec(
            *command,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        try:
            stdout, stderr = await process.communicate()
        except asyncio.CancelledError:
            if process.returncode is None:
                process.kill()
                await process.wait()
                logger.debug(LogTemplates.YTDLP_KILLED, process.pid)
            raise

        return ProcessResult(
            returncode=process.returncode if process.returncode is not None else -1,
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
        )

    # ── MediaResolver ──────────────────────────────────────────────

    async def lookup_metadata(self, url: str) -> MediaInfo:
        try:
            result = await self._run(self.metadata_args(url))
        except OSError as exc:
            raise ResolutionError(ErrorMessages.DOWNLOAD_LAUNCH_FAILED.format(error=exc), query=url) from exc

        title, canonical = split_print_line(result.stdout)
        if not result.ok or not title:
            logger.error(
                LogTemplates.YTDLP_METADATA_FAILED, result.returncode, result.stderr[:STDERR_LOG_TRUNCATE]
            )
            raise ResolutionError(ErrorMessages.METADATA_FAILED.format(code=result.returncode), query=url)

        if not canonical.lower().startswith(("http://", "https://")):
            canonical = url
        return MediaInfo(title=title[:MAX_TITLE_LENGTH], canonical_url=canonical)

    async def search(self, query: str) -> MediaInfo:
        try:
            result = await self._run(self.search_args(query))
        except OSError as exc:
            raise ResolutionError(ErrorMessages.SEARCH_FAILED, query=query) from exc

        if not result.ok or not result.stdout.strip():
            logger.error(
                LogTemplates.YTDLP_SEARCH_FAILED, result.returncode, result.stderr[:STDERR_LOG_TRUNCATE]
            )
            raise ResolutionError(ErrorMessages.SEARCH_FAILED, query=query)

        title, video_id = split_print_line(result.stdout)
        if not title or not YOUTUBE_ID_PATTERN.match(video_id):
            raise ResolutionError(ErrorMessages.NO_VALID_RESULTS, query=query)
        return MediaInfo(title=title[:MAX_TITLE_LENGTH], canonical_url=WATCH_URL.format(id=video_id))

    async def download(self, url: str, dest_prefix: Path) -> Path:
        try:
            result = await self._run(self.download_args(url, dest_prefix))
        except OSError as exc:
            raise DownloadError(
                DownloadFailureKind.EXIT_CODE,
                ErrorMessages.DOWNLOAD_LAUNCH_FAILED.format(error=exc),
            ) from exc

        if not result.ok:
            logger.error(
                LogTemplates.YTDLP_DOWNLOAD_FAILED, result.returncode, result.stderr[:STDERR_LOG_TRUNCATE]
            )
            if is_anti_bot(result.stderr):
                raise DownloadError(
                    DownloadFailureKind.ANTI_BOT,
                    ErrorMessages.DOWNLOAD_ANTI_BOT,
                    exit_code=result.returncode,
                    stderr=result.stderr,
                )
            raise DownloadError(
                DownloadFailureKind.EXIT_CODE,
                ErrorMessages.DOWNLOAD_EXIT_CODE.format(code=result.returncode),
                exit_code=result.returncode,
                stderr=result.stderr,
            )

        produced = self._find_output(dest_prefix)
        if produced is None:
            raise DownloadError(DownloadFailureKind.MISSING, ErrorMessages.DOWNLOAD_MISSING)

        size = produced.stat().st_size
        if size < self._settings.min_download_bytes:
            produced.unlink(missing_ok=True)
            raise DownloadError(DownloadFailureKind.TOO_SMALL, ErrorMessages.DOWNLOAD_TOO_SMALL.format(size=size))

        logger.info(LogTemplates.YTDLP_DOWNLOADED, produced, size)
        return produced

    @staticmethod
    def _find_output(dest_prefix: Path) -> Path | None:
        directory = dest_prefix.parent
        if not directory.is_dir():
            return None
        matches = sorted(
            p
            for p in directory.glob(f"{dest_prefix.name}.*")
            if p.is_file() and p.suffix != ".part"
        )
        return matches[0] if matches else None
