from __future__ import annotations

import asyncio
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from discord_jukebox.application.interfaces.audio_decoder import AudioDecoder
from discord_jukebox.application.interfaces.media_resolver import MediaInfo, MediaResolver
from discord_jukebox.application.interfaces.voice_adapter import AudioSink, SinkListener
from discord_jukebox.application.services.guild_registry import GuildStateRegistry
from discord_jukebox.application.services.playback_engine import PlaybackEngine
from discord_jukebox.application.services.temp_files import TempFileManager
from discord_jukebox.domain.music.entities import ResolvedSong, UnresolvedSong
from discord_jukebox.domain.music.value_objects import SinkEvent, SinkStatus
from discord_jukebox.domain.shared.exceptions import ResolutionError

GUILD_ID = 111111111


# ============================================================================
# Fakes
# ============================================================================


class FakeSink(AudioSink):
    """In-memory sink; tests finish or fail the current source explicitly."""

    def __init__(self) -> None:
        self._status = SinkStatus.IDLE
        self._listeners: dict[SinkEvent, list[SinkListener]] = {event: [] for event in SinkEvent}
        self.played: list[object] = []
        self.stop_calls = 0
        self.started = asyncio.Event()

    @property
    def status(self) -> SinkStatus:
        return self._status

    def play(self, source: object) -> None:
        self.played.append(source)
        self._status = SinkStatus.PLAYING
        self.started.set()

    def stop(self) -> None:
        self.stop_calls += 1
        if self._status is not SinkStatus.IDLE:
            self.finish()

    def pause(self) -> bool:
        if self._status is SinkStatus.PLAYING:
            self._status = SinkStatus.PAUSED
            return True
        return False

    def resume(self) -> bool:
        if self._status is SinkStatus.PAUSED:
            self._status = SinkStatus.PLAYING
            return True
        return False

    def add_listener(self, event: SinkEvent, listener: SinkListener) -> None:
        self._listeners[event].append(listener)

    def remove_listener(self, event: SinkEvent, listener: SinkListener) -> None:
        if listener in self._listeners[event]:
            self._listeners[event].remove(listener)

    def listener_count(self) -> int:
        return sum(len(listeners) for listeners in self._listeners.values())

    def finish(self) -> None:
        self._status = SinkStatus.IDLE
        self.started.clear()
        for listener in list(self._listeners[SinkEvent.IDLE]):
            listener(SinkEvent.IDLE, None)

    def fail(self, error: BaseException) -> None:
        self._status = SinkStatus.IDLE
        self.started.clear()
        for listener in list(self._listeners[SinkEvent.ERROR]):
            listener(SinkEvent.ERROR, error)


class FakeResolver(MediaResolver):
    """Resolver whose download writes a real file under the requested prefix."""

    def __init__(self) -> None:
        self.search_results: dict[str, MediaInfo] = {}
        self.download_errors: list[Exception] = []
        self.downloads: list[str] = []
        self.searches: list[str] = []
        self.download_gate: asyncio.Event | None = None

    async def lookup_metadata(self, url: str) -> MediaInfo:
        return MediaInfo(title=f"Title of {url}", canonical_url=url)

    async def search(self, query: str) -> MediaInfo:
        self.searches.append(query)
        info = self.search_results.get(query)
        if info is None:
            raise ResolutionError("No results", query=query)
        return info

    async def download(self, url: str, dest_prefix: Path) -> Path:
        self.downloads.append(url)
        if self.download_gate is not None:
            await self.download_gate.wait()
        if self.download_errors:
            raise self.download_errors.pop(0)
        path = dest_prefix.with_name(f"{dest_prefix.name}.opus")
        path.write_bytes(b"\x00" * 2048)
        return path


class FakeDecoder(AudioDecoder):
    async def open(self, path: Path) -> object:
        return ("source", path)


# ============================================================================
# Application Fixtures
# ============================================================================


@pytest.fixture
def registry():
    return GuildStateRegistry()


@pytest.fixture
def temp_files(tmp_path):
    return TempFileManager(tmp_path / "scratch")


@pytest.fixture
def fake_sink():
    return FakeSink()


@pytest.fixture
def fake_resolver():
    return FakeResolver()


@pytest.fixture
def fake_decoder():
    return FakeDecoder()


@pytest.fixture
def channel():
    """Announcement channel that records sent messages."""
    mock_channel = MagicMock()
    mock_channel.send = AsyncMock()
    return mock_channel


@pytest.fixture
def engine(registry, fake_resolver, fake_decoder, temp_files):
    """Playback engine with retry and debounce delays disabled."""
    return PlaybackEngine(
        registry=registry,
        resolver=fake_resolver,
        decoder=fake_decoder,
        temp_files=temp_files,
        retry_attempts=3,
        retry_backoff_seconds=0,
        error_debounce_seconds=0,
    )


@pytest.fixture
def guild_state(registry, fake_sink, channel):
    """Registered guild state with a sink and an announcement channel."""
    state = registry.get_or_create(GUILD_ID)
    state.sink = fake_sink
    state.announce_channel = channel
    return state


# ============================================================================
# Domain Entity Fixtures
# ============================================================================


@pytest.fixture
def resolved_song():
    return ResolvedSong(title="Test Song", source_url="https://www.youtube.com/watch?v=abcdefghijk")


@pytest.fixture
def unresolved_song():
    return UnresolvedSong(artist="Test Artist", title="Test Title")


@pytest.fixture
def make_song():
    """Factory for numbered resolved songs."""

    def _make(n: int) -> ResolvedSong:
        return ResolvedSong(title=f"Song {n}", source_url=f"https://www.youtube.com/watch?v=song{n:07d}")

    return _make
