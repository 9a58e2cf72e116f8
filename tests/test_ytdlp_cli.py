"""
Unit Tests for YtDlpCliResolver

Tests for the yt-dlp subprocess resolver:
- Argument building (cookies, search, download template)
- Output parsing and anti-bot detection
- Metadata lookup and search
- Download validation (exit code, missing file, size floor)
- Subprocess handling and cancellation
"""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from discord_jukebox.config.settings import AudioSettings
from discord_jukebox.domain.music.value_objects import DownloadFailureKind
from discord_jukebox.domain.shared.exceptions import DownloadError, ResolutionError
from discord_jukebox.infrastructure.audio.ytdlp_cli import (
    ProcessResult,
    YtDlpCliResolver,
    is_anti_bot,
    split_print_line,
)

# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def resolver():
    return YtDlpCliResolver(AudioSettings(ytdlp_command=("yt-dlp",)))


@pytest.fixture
def prefix(tmp_path):
    return tmp_path / "audio_1_1000_1"


def stub_run(resolver, result: ProcessResult, *, writes: bytes | None = None, suffix: str = ".opus"):
    """Replace ``_run`` with a fake that optionally writes the output file."""

    async def _fake_run(args: list[str]) -> ProcessResult:
        if writes is not None:
            template = args[args.index("-o") + 1]
            path = template.replace(".%(ext)s", suffix)
            with open(path, "wb") as f:
                f.write(writes)
        return result

    resolver._run = AsyncMock(side_effect=_fake_run)
    return resolver._run


# =============================================================================
# Argument Building Tests
# =============================================================================


class TestArguments:
    """Tests for command line construction."""

    def test_metadata_args(self, resolver):
        args = resolver.metadata_args("https://youtu.be/x")

        assert args[-1] == "https://youtu.be/x"
        assert "--print" in args
        assert "%(title)s|%(webpage_url)s" in args
        assert "--no-check-certificates" in args
        assert "--cookies" not in args

    def test_search_args(self, resolver):
        args = resolver.search_args("artist song")

        assert args[0] == "--flat-playlist"
        assert args[-1] == "ytsearch1:artist song"
        assert args[args.index("--playlist-end") + 1] == "1"
        assert args[args.index("--print") + 1] == "%(title)s|%(id)s"

    def test_download_args(self, resolver, prefix):
        args = resolver.download_args("https://youtu.be/x", prefix)

        assert args[args.index("-f") + 1] == "bestaudio[ext=opus]/bestaudio"
        assert args[args.index("--audio-quality") + 1] == "0"
        assert "--no-playlist" in args
        assert args[args.index("-o") + 1] == f"{prefix}.%(ext)s"
        assert args[-1] == "https://youtu.be/x"

    def test_user_agent_is_sent(self, resolver):
        args = resolver.metadata_args("https://youtu.be/x")

        assert args[args.index("--user-agent") + 1].startswith("Mozilla/5.0")

    def test_cookies_inserted_before_url_when_file_exists(self, tmp_path):
        cookies = tmp_path / "cookies.txt"
        cookies.write_text("# Netscape HTTP Cookie File")
        resolver = YtDlpCliResolver(AudioSettings(cookie_file=str(cookies)))

        args = resolver.download_args("https://youtu.be/x", tmp_path / "audio")

        assert args[-3:] == ["--cookies", str(cookies), "https://youtu.be/x"]

    def test_missing_cookie_file_is_ignored(self, tmp_path):
        resolver = YtDlpCliResolver(AudioSettings(cookie_file=str(tmp_path / "absent.txt")))

        assert "--cookies" not in resolver.search_args("q")


# =============================================================================
# Parsing Tests
# =============================================================================


class TestParsing:
    """Tests for output parsing helpers."""

    @pytest.mark.parametrize(
        "stderr",
        [
            "ERROR: [youtube] abc: Sign in to confirm you're not a bot",
            "ERROR: Bot detection triggered",
        ],
    )
    def test_anti_bot_detected(self, stderr):
        assert is_anti_bot(stderr)

    def test_plain_error_is_not_anti_bot(self):
        assert not is_anti_bot("ERROR: Video unavailable")

    def test_split_print_line(self):
        assert split_print_line("Title | https://x.y\nignored|line\n") == ("Title", "https://x.y")

    def test_split_print_line_empty(self):
        assert split_print_line("   \n") == ("", "")

    def test_process_result_ok(self):
        assert ProcessResult(returncode=0).ok
        assert not ProcessResult(returncode=1).ok


# =============================================================================
# Metadata and Search Tests
# =============================================================================


class TestLookupMetadata:
    """Tests for direct URL metadata lookup."""

    async def test_returns_title_and_canonical_url(self, resolver):
        stub_run(resolver, ProcessResult(returncode=0, stdout="My Song|https://www.youtube.com/watch?v=abcdefghijk\n"))

        info = await resolver.lookup_metadata("https://youtu.be/abcdefghijk")

        assert info.title == "My Song"
        assert info.canonical_url == "https://www.youtube.com/watch?v=abcdefghijk"

    async def test_falls_back_to_input_url(self, resolver):
        stub_run(resolver, ProcessResult(returncode=0, stdout="My Song|NA\n"))

        info = await resolver.lookup_metadata("https://example.com/track")

        assert info.canonical_url == "https://example.com/track"

    async def test_long_title_is_truncated(self, resolver):
        stub_run(resolver, ProcessResult(returncode=0, stdout="x" * 600 + "|https://a.b\n"))

        info = await resolver.lookup_metadata("https://a.b")

        assert len(info.title) == 500

    async def test_nonzero_exit_raises(self, resolver):
        stub_run(resolver, ProcessResult(returncode=1, stderr="ERROR: Unsupported URL"))

        with pytest.raises(ResolutionError) as exc_info:
            await resolver.lookup_metadata("https://example.com/nothing")

        assert "code 1" in exc_info.value.message
        assert exc_info.value.query == "https://example.com/nothing"

    async def test_launch_failure_raises(self, resolver):
        resolver._run = AsyncMock(side_effect=FileNotFoundError("yt-dlp"))

        with pytest.raises(ResolutionError):
            await resolver.lookup_metadata("https://example.com")


class TestSearch:
    """Tests for free-text search."""

    async def test_returns_watch_url(self, resolver):
        run = stub_run(resolver, ProcessResult(returncode=0, stdout="Found Song|dQw4w9WgXcQ\n"))

        info = await resolver.search("never gonna")

        assert info.title == "Found Song"
        assert info.canonical_url == "https://www.youtube.com/watch?v=dQw4w9WgXcQ"
        assert run.call_args[0][0][-1] == "ytsearch1:never gonna"

    async def test_invalid_id_raises(self, resolver):
        stub_run(resolver, ProcessResult(returncode=0, stdout="Channel|UCshortid\n"))

        with pytest.raises(ResolutionError):
            await resolver.search("something")

    async def test_no_output_raises(self, resolver):
        stub_run(resolver, ProcessResult(returncode=0, stdout=""))

        with pytest.raises(ResolutionError):
            await resolver.search("nothing at all")

    async def test_nonzero_exit_raises(self, resolver):
        stub_run(resolver, ProcessResult(returncode=2, stdout="", stderr="network error"))

        with pytest.raises(ResolutionError):
            await resolver.search("q")


# =============================================================================
# Download Tests
# =============================================================================


class TestDownload:
    """Tests for audio download validation."""

    async def test_returns_produced_file(self, resolver, prefix):
        stub_run(resolver, ProcessResult(returncode=0), writes=b"\x00" * 4096, suffix=".webm")

        path = await resolver.download("https://youtu.be/x", prefix)

        assert path == prefix.with_name(f"{prefix.name}.webm")
        assert path.stat().st_size == 4096

    async def test_too_small_file_is_deleted(self, resolver, prefix):
        stub_run(resolver, ProcessResult(returncode=0), writes=b"tiny")

        with pytest.raises(DownloadError) as exc_info:
            await resolver.download("https://youtu.be/x", prefix)

        assert exc_info.value.kind is DownloadFailureKind.TOO_SMALL
        assert exc_info.value.retryable
        assert list(prefix.parent.iterdir()) == []

    async def test_missing_file(self, resolver, prefix):
        stub_run(resolver, ProcessResult(returncode=0))

        with pytest.raises(DownloadError) as exc_info:
            await resolver.download("https://youtu.be/x", prefix)

        assert exc_info.value.kind is DownloadFailureKind.MISSING

    async def test_exit_code(self, resolver, prefix):
        stub_run(resolver, ProcessResult(returncode=1, stderr="ERROR: HTTP Error 403: Forbidden"))

        with pytest.raises(DownloadError) as exc_info:
            await resolver.download("https://youtu.be/x", prefix)

        assert exc_info.value.kind is DownloadFailureKind.EXIT_CODE
        assert exc_info.value.exit_code == 1

    async def test_anti_bot(self, resolver, prefix):
        stub_run(resolver, ProcessResult(returncode=1, stderr="Sign in to confirm you're not a bot"))

        with pytest.raises(DownloadError) as exc_info:
            await resolver.download("https://youtu.be/x", prefix)

        assert exc_info.value.kind is DownloadFailureKind.ANTI_BOT
        assert not exc_info.value.retryable

    async def test_launch_failure(self, resolver, prefix):
        resolver._run = AsyncMock(side_effect=PermissionError("denied"))

        with pytest.raises(DownloadError) as exc_info:
            await resolver.download("https://youtu.be/x", prefix)

        assert exc_info.value.kind is DownloadFailureKind.EXIT_CODE


# =============================================================================
# Subprocess Tests
# =============================================================================


class TestRun:
    """Tests for the subprocess wrapper."""

    async def test_runs_configured_command(self, resolver):
        process = MagicMock()
        process.returncode = 0
        process.communicate = AsyncMock(return_value=(b"out", b"err"))

        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)) as mock_exec:
            result = await resolver._run(["--version"])

        assert mock_exec.call_args[0] == ("yt-dlp", "--version")
        assert result == ProcessResult(returncode=0, stdout="out", stderr="err")

    async def test_cancel_kills_process(self, resolver):
        process = MagicMock()
        process.returncode = None
        process.pid = 1234
        process.communicate = AsyncMock(side_effect=asyncio.CancelledError)
        process.wait = AsyncMock(return_value=-9)

        with (
            patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)),
            pytest.raises(asyncio.CancelledError),
        ):
            await resolver._run(["https://youtu.be/x"])

        process.kill.assert_called_once()
        process.wait.assert_awaited_once()
