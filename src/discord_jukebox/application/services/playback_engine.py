"""Playback Engine - the per-guild resolve/download/stream/advance state machine."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from pathlib import Path
from typing import TYPE_CHECKING

from ...domain.music.entities import GuildQueueState, ResolvedSong, SongRef, UnresolvedSong
from ...domain.music.value_objects import DownloadFailureKind, EngineState, LoopMode, SinkEvent
from ...domain.shared.exceptions import DownloadError, ResolutionError
from ...domain.shared.messages import DiscordUIMessages, LogTemplates
from ...domain.shared.types import DiscordSnowflake

if TYPE_CHECKING:
    from ..interfaces.audio_decoder import AudioDecoder
    from ..interfaces.media_resolver import MediaResolver
    from .guild_registry import GuildStateRegistry
    from .temp_files import TempFileManager

logger = logging.getLogger(__name__)

SinkOutcome = tuple[SinkEvent, BaseException | None]


class PlaybackEngine:
    """Drives playback for each guild with one asyncio task per guild.

    The driver is a plain loop over the head of the queue. Every await is
    followed by a registry check so a driver whose guild state was discarded
    (leave) stops without touching anything.
    """

    def __init__(
        self,
        *,
        registry: GuildStateRegistry,
        resolver: MediaResolver,
        decoder: AudioDecoder,
        temp_files: TempFileManager,
        retry_attempts: int = 3,
        retry_backoff_seconds: float = 2.0,
        error_debounce_seconds: float = 0.5,
    ) -> None:
        self._registry = registry
        self._resolver = resolver
        self._decoder = decoder
        self._temp_files = temp_files
        self._retry_attempts = retry_attempts
        self._retry_backoff = retry_backoff_seconds
        self._error_debounce = error_debounce_seconds

        self._tasks: dict[DiscordSnowflake, asyncio.Task[None]] = {}

    # ── Task management ─────────────────────────────────────────────

    def is_running(self, guild_id: DiscordSnowflake) -> bool:
        task = self._tasks.get(guild_id)
        return task is not None and not task.done()

    def start(self, guild_id: DiscordSnowflake) -> bool:
        """Spawn the guild's driver unless one is already running.

        Returns True when a new driver was started.
        """
        logger.debug(LogTemplates.ENGINE_START_CALLED, guild_id)
        if self.is_running(guild_id):
            logger.debug(LogTemplates.ENGINE_ALREADY_RUNNING, guild_id)
            return False

        state = self._registry.get(guild_id)
        if state is None:
            return False

        task = asyncio.create_task(self._drive(state), name=f"playback-{guild_id}")
        self._tasks[guild_id] = task
        task.add_done_callback(lambda t: self._on_driver_done(guild_id, t))
        return True

    def _on_driver_done(self, guild_id: DiscordSnowflake, task: asyncio.Task[None]) -> None:
        if self._tasks.get(guild_id) is task:
            del self._tasks[guild_id]

    async def cancel(self, guild_id: DiscordSnowflake) -> None:
        """Cancel the guild's driver and wait for it to unwind."""
        task = self._tasks.pop(guild_id, None)
        if task is None or task.done():
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def shutdown(self) -> None:
        for guild_id in list(self._tasks):
            await self.cancel(guild_id)

    # ── Driver ──────────────────────────────────────────────────────

    async def _drive(self, state: GuildQueueState) -> None:
        guild_id = state.guild_id
        try:
            await self._run(state)
        except asyncio.CancelledError:
            logger.debug(LogTemplates.ENGINE_CANCELLED, guild_id)
            raise
        except Exception:
            logger.exception(LogTemplates.ENGINE_CRASHED, guild_id)
            if self._registry.is_current(state):
                self._temp_files.release(state)
                self._halt(state)
        finally:
            if not self._registry.is_current(state):
                self._temp_files.release(state)

    async def _run(self, state: GuildQueueState) -> None:
        # Set after an idle advance or a resolution skip; an empty queue
        # reached from there is announced.
        announce_empty = False

        while True:
            if not self._is_live(state):
                return

            head = state.peek_head()
            if head is None:
                self._halt(state)
                if announce_empty:
                    announce_empty = False
                    await self._notify(state, DiscordUIMessages.QUEUE_EMPTY_STOPPING)
                    # Re-check: a song may have been queued while the notice was sent.
                    continue
                return

            if isinstance(head, UnresolvedSong):
                self._transition(state, EngineState.RESOLVING)
                resolved = await self._resolve_head(state, head)
                if not self._is_live(state):
                    return
                if resolved is None:
                    announce_empty = True
                    continue
                head = resolved

            state.now_playing = head

            self._transition(state, EngineState.DOWNLOADING)
            path, error, attempts = await self._download(state, head)
            if not self._is_live(state):
                if path is not None:
                    self._temp_files.delete(path)
                return
            if path is None:
                await self._report_download_failure(state, head, error, attempts)
                if not self._is_live(state):
                    return
                self._drop_head(state, head)
                state.now_playing = None
                announce_empty = False
                continue
            if state.peek_head() is not head:
                # Stopped or cleared while downloading.
                self._temp_files.delete(path)
                state.now_playing = None
                announce_empty = False
                continue
            self._temp_files.track(state, path)

            self._transition(state, EngineState.STREAMING)
            announce_empty = False
            event, cause = await self._stream(state, head, path)
            if not self._is_live(state):
                return

            self._transition(state, EngineState.ADVANCING)
            self._temp_files.release(state)

            if event is SinkEvent.IDLE:
                self._advance_after_idle(state, head)
                announce_empty = True
                continue

            logger.warning(LogTemplates.ENGINE_PLAYER_ERROR, state.guild_id, cause)
            await self._notify(state, DiscordUIMessages.SKIP_PLAYER_ERROR)
            if not self._is_live(state):
                return
            if state.loop_mode is not LoopMode.SINGLE:
                self._drop_head(state, head)
                state.now_playing = None
            await asyncio.sleep(self._error_debounce)
            announce_empty = False

    # ── Steps ───────────────────────────────────────────────────────

    async def _resolve_head(self, state: GuildQueueState, head: UnresolvedSong) -> ResolvedSong | None:
        """Search for *head*; on success the head slot is replaced in place."""
        query = head.search_query
        logger.info(LogTemplates.ENGINE_RESOLVING, query)
        try:
            info = await self._resolver.search(query)
        except Exception as exc:
            if not self._is_live(state):
                return None
            if isinstance(exc, ResolutionError):
                logger.warning(LogTemplates.ENGINE_RESOLVE_FAILED, query, exc.message)
            else:
                logger.exception(LogTemplates.ENGINE_RESOLVE_FAILED, query, exc)
            await self._notify(state, DiscordUIMessages.SKIP_NOT_FOUND.format(query=query))
            if self._is_live(state):
                self._drop_head(state, head)
            return None

        if not self._is_live(state) or state.peek_head() is not head:
            return None
        resolved = head.resolve(info.title, info.canonical_url)
        state.replace_head(resolved)
        return resolved

    async def _download(
        self, state: GuildQueueState, song: ResolvedSong
    ) -> tuple[Path | None, Exception | None, int]:
        """Download *song* with retries. Returns (path, last_error, attempts).

        Only retryable ``DownloadError`` kinds are retried; any other exception
        ends the attempts for this song.
        """
        last_error: Exception | None = None
        attempt = 0
        prefix: Path | None = None
        try:
            self._temp_files.release(state)
            prefix = self._temp_files.new_prefix(state.guild_id)
            logger.info(LogTemplates.ENGINE_DOWNLOADING, song.title, song.source_url)

            for attempt in range(1, self._retry_attempts + 1):
                try:
                    return await self._resolver.download(song.source_url, prefix), None, attempt
                except DownloadError as exc:
                    last_error = exc
                    self._temp_files.discard_prefix(prefix)
                    logger.warning(LogTemplates.ENGINE_DOWNLOAD_ATTEMPT_FAILED, attempt, exc.message)
                    if not exc.retryable or attempt == self._retry_attempts:
                        break
                await asyncio.sleep(self._retry_backoff)
                if not self._is_live(state):
                    break
        except asyncio.CancelledError:
            if prefix is not None:
                self._temp_files.discard_prefix(prefix)
            raise
        except Exception as exc:
            logger.exception(LogTemplates.ENGINE_DOWNLOAD_UNEXPECTED, song.title, state.guild_id)
            last_error = exc
            if prefix is not None:
                self._temp_files.discard_prefix(prefix)

        logger.warning(LogTemplates.ENGINE_DOWNLOAD_GAVE_UP, song.title, attempt, state.guild_id)
        return None, last_error, attempt

    async def _report_download_failure(
        self,
        state: GuildQueueState,
        song: ResolvedSong,
        error: Exception | None,
        attempts: int,
    ) -> None:
        if isinstance(error, DownloadError) and error.kind is DownloadFailureKind.ANTI_BOT:
            content = DiscordUIMessages.SKIP_RESTRICTED.format(title=song.title)
        elif error is None or isinstance(error, DownloadError):
            content = DiscordUIMessages.SKIP_DOWNLOAD_FAILED.format(title=song.title, attempts=attempts)
        else:
            content = DiscordUIMessages.SKIP_DOWNLOAD_ERROR.format(title=song.title, error=error)
        await self._notify(state, content)

    async def _stream(self, state: GuildQueueState, song: ResolvedSong, path: Path) -> SinkOutcome:
        """Play *path* and wait for exactly one terminal sink event."""
        loop = asyncio.get_running_loop()
        outcome: asyncio.Future[SinkOutcome] = loop.create_future()

        def on_idle(event: SinkEvent, error: BaseException | None) -> None:
            if not outcome.done():
                outcome.set_result((SinkEvent.IDLE, None))

        def on_error(event: SinkEvent, error: BaseException | None) -> None:
            if not outcome.done():
                outcome.set_result((SinkEvent.ERROR, error))

        sink = state.sink
        source = None
        try:
            if sink is None:
                raise RuntimeError(f"Guild {state.guild_id} has no audio sink")
            source = await self._decoder.open(path)
            if not self._is_live(state):
                self._cleanup_source(state, source)
                return SinkEvent.IDLE, None
            sink.add_listener(SinkEvent.IDLE, on_idle)
            sink.add_listener(SinkEvent.ERROR, on_error)
            sink.play(source)
        except Exception as exc:
            # Not handed to the sink; stop its ffmpeg process here.
            if source is not None:
                self._cleanup_source(state, source)
            if not outcome.done():
                outcome.set_result((SinkEvent.ERROR, exc))

        try:
            if not outcome.done():
                logger.info(LogTemplates.ENGINE_STREAMING, song.title, state.guild_id)
                template = (
                    DiscordUIMessages.NOW_PLAYING_LOOP
                    if state.loop_mode is LoopMode.SINGLE
                    else DiscordUIMessages.NOW_PLAYING
                )
                await self._notify(state, template.format(title=song.title))
            return await outcome
        finally:
            if sink is not None:
                sink.remove_listener(SinkEvent.IDLE, on_idle)
                sink.remove_listener(SinkEvent.ERROR, on_error)

    def _advance_after_idle(self, state: GuildQueueState, head: SongRef) -> None:
        mode = state.loop_mode
        if mode is LoopMode.SINGLE:
            return
        popped = self._drop_head(state, head)
        state.now_playing = None
        if mode is LoopMode.QUEUE and popped:
            state.enqueue(head)

    # ── Helpers ─────────────────────────────────────────────────────

    def _drop_head(self, state: GuildQueueState, head: SongRef) -> bool:
        """Pop the head only if it is still *head* (a stop may have cleared it)."""
        if state.peek_head() is head:
            state.dequeue_head()
            return True
        return False

    def _cleanup_source(self, state: GuildQueueState, source: object) -> None:
        cleanup = getattr(source, "cleanup", None)
        if cleanup is None:
            return
        try:
            cleanup()
        except Exception as exc:
            logger.warning(LogTemplates.ENGINE_SOURCE_CLEANUP_FAILED, state.guild_id, exc)

    def _halt(self, state: GuildQueueState) -> None:
        logger.debug(LogTemplates.ENGINE_QUEUE_EMPTY, state.guild_id)
        if state.sink is not None:
            state.sink.stop()
        state.now_playing = None
        self._transition(state, EngineState.STOPPED)

    def _transition(self, state: GuildQueueState, new_state: EngineState) -> None:
        if state.engine_state is not new_state:
            logger.debug(LogTemplates.ENGINE_STATE, state.guild_id, state.engine_state.value, new_state.value)
            state.engine_state = new_state

    def _is_live(self, state: GuildQueueState) -> bool:
        if self._registry.is_current(state):
            return True
        logger.debug(LogTemplates.ENGINE_STALE, state.guild_id)
        return False

    async def _notify(self, state: GuildQueueState, content: str) -> None:
        channel = state.announce_channel
        if channel is None:
            return
        try:
            await channel.send(content)
        except Exception as exc:
            logger.warning(LogTemplates.ENGINE_NOTIFY_FAILED, state.guild_id, exc)
