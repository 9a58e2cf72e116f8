"""Queue Application Service - turns user commands into queue mutations."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ...domain.music.entities import GuildQueueState, ResolvedSong, SongRef
from ...domain.music.value_objects import LoopMode, SinkStatus
from ...domain.shared.exceptions import CatalogError, ResolutionError
from ...domain.shared.messages import DiscordUIMessages, LogTemplates
from ...domain.shared.types import DiscordSnowflake
from .catalog_expander import CatalogRefKind, parse_catalog_url, resolve_short_link
from .queue_models import EnqueueResult, QueueInfo

if TYPE_CHECKING:
    from ..interfaces.media_resolver import MediaResolver
    from ..interfaces.voice_adapter import MessageChannel, VoiceGateway, VoiceSession
    from .catalog_expander import CatalogExpander
    from .guild_registry import GuildStateRegistry
    from .playback_engine import PlaybackEngine
    from .temp_files import TempFileManager

logger = logging.getLogger(__name__)

URL_PREFIX = "url:"


def strip_url_prefix(query: str) -> str:
    """Drop an optional leading ``url:`` marker (case-insensitive)."""
    query = query.strip()
    if query.lower().startswith(URL_PREFIX):
        return query[len(URL_PREFIX) :].strip()
    return query


class QueueApplicationService:
    """Facade used by the command gateway: voice, queue and control operations."""

    def __init__(
        self,
        *,
        registry: GuildStateRegistry,
        engine: PlaybackEngine,
        resolver: MediaResolver,
        expander: CatalogExpander,
        voice_gateway: VoiceGateway,
        temp_files: TempFileManager,
        short_link_timeout: float = 5.0,
    ) -> None:
        self._registry = registry
        self._engine = engine
        self._resolver = resolver
        self._expander = expander
        self._voice = voice_gateway
        self._temp_files = temp_files
        self._short_link_timeout = short_link_timeout

    # ── Voice ───────────────────────────────────────────────────────

    def is_connected(self, guild_id: DiscordSnowflake) -> bool:
        state = self._registry.get(guild_id)
        return state is not None and state.voice_session is not None and state.voice_session.is_connected

    async def join(self, guild_id: DiscordSnowflake, channel_id: DiscordSnowflake) -> VoiceSession:
        """Connect (or move) to *channel_id* and make sure a sink is subscribed."""
        state = self._registry.get_or_create(guild_id)
        session = await self._voice.join(guild_id, channel_id)
        if state.voice_session is not session or state.sink is None:
            state.voice_session = session
            state.sink = self._voice.create_sink(session)
            session.subscribe(state.sink)
        return session

    async def ensure_joined(self, guild_id: DiscordSnowflake, channel_id: DiscordSnowflake) -> None:
        if not self.is_connected(guild_id):
            await self.join(guild_id, channel_id)

    async def leave(self, guild_id: DiscordSnowflake) -> bool:
        """Discard the guild state, cancel its driver and release resources."""
        state = self._registry.discard(guild_id)
        if state is None:
            return False

        await self._engine.cancel(guild_id)
        self._temp_files.release(state)
        if state.voice_session is not None:
            await state.voice_session.destroy()
        state.voice_session = None
        state.sink = None
        state.clear()
        return True

    # ── Enqueue ─────────────────────────────────────────────────────

    async def add_query(
        self,
        guild_id: DiscordSnowflake,
        query: str,
        *,
        channel: MessageChannel | None = None,
    ) -> EnqueueResult:
        """Resolve a /play query and append the result(s) to the guild queue.

        Routing: catalog playlist, catalog track, direct URL, free-text search.
        Nothing is enqueued on failure.
        """
        logger.info(LogTemplates.PLAY_REQUEST, guild_id, query)
        target = strip_url_prefix(query)
        target = await resolve_short_link(target, timeout=self._short_link_timeout)

        ref = parse_catalog_url(target)
        if ref is not None and ref.kind is CatalogRefKind.PLAYLIST:
            return await self._add_playlist_by_id(guild_id, ref.id, channel=channel)

        song: SongRef
        if ref is not None:
            try:
                song = await self._expander.expand_single(ref.id)
            except CatalogError as exc:
                logger.warning(LogTemplates.CATALOG_ERROR, exc.message)
                return EnqueueResult(success=False, message=DiscordUIMessages.ERROR_CATALOG_TRACK.format(error=exc.message))
        elif target.lower().startswith(("http://", "https://")):
            try:
                info = await self._resolver.lookup_metadata(target)
            except ResolutionError as exc:
                return EnqueueResult(success=False, message=DiscordUIMessages.ERROR_GENERIC.format(error=exc.message))
            song = self._to_song(info.title, info.canonical_url)
        else:
            try:
                info = await self._resolver.search(target)
            except ResolutionError:
                return EnqueueResult(success=False, message=DiscordUIMessages.NO_RESULTS.format(query=target))
            song = self._to_song(info.title, info.canonical_url)

        state = self._registry.get_or_create(guild_id)
        length = state.enqueue(song)
        logger.info(LogTemplates.QUEUE_ENQUEUED, song.title, length, guild_id)
        started = self._kick(state, channel)
        return EnqueueResult(
            success=True,
            added=1,
            queue_length=length,
            message=DiscordUIMessages.ADDED_TO_QUEUE.format(title=song.title),
            started=started,
        )

    async def add_playlist(
        self,
        guild_id: DiscordSnowflake,
        url: str,
        *,
        channel: MessageChannel | None = None,
    ) -> EnqueueResult:
        """Expand a catalog playlist URL into the guild queue."""
        target = await resolve_short_link(url.strip(), timeout=self._short_link_timeout)
        ref = parse_catalog_url(target)
        if ref is None or ref.kind is not CatalogRefKind.PLAYLIST:
            return EnqueueResult(success=False, message=DiscordUIMessages.INVALID_PLAYLIST_URL)
        return await self._add_playlist_by_id(guild_id, ref.id, channel=channel)

    async def _add_playlist_by_id(
        self,
        guild_id: DiscordSnowflake,
        playlist_id: str,
        *,
        channel: MessageChannel | None,
    ) -> EnqueueResult:
        try:
            songs = await self._expander.expand(playlist_id)
        except CatalogError as exc:
            logger.warning(LogTemplates.CATALOG_ERROR, exc.message)
            return EnqueueResult(success=False, message=DiscordUIMessages.ERROR_GENERIC.format(error=exc.message))

        state = self._registry.get_or_create(guild_id)
        added = state.enqueue_many(list(songs))
        logger.info(LogTemplates.QUEUE_ENQUEUED_MANY, added, guild_id)
        started = self._kick(state, channel) if added else False
        return EnqueueResult(
            success=True,
            added=added,
            queue_length=state.queue_length,
            message=DiscordUIMessages.ADDED_PLAYLIST.format(count=added),
            started=started,
        )

    def _kick(self, state: GuildQueueState, channel: MessageChannel | None) -> bool:
        if channel is not None:
            state.announce_channel = channel
        return self._engine.start(state.guild_id)

    @staticmethod
    def _to_song(title: str, url: str) -> SongRef:
        return ResolvedSong(title=title, source_url=url)

    # ── Controls ────────────────────────────────────────────────────

    def set_loop_mode(self, guild_id: DiscordSnowflake, mode: LoopMode | str) -> LoopMode:
        """Apply *mode*; raises InvalidModeError and leaves state unchanged on bad input."""
        state = self._registry.get_or_create(guild_id)
        applied = state.set_loop_mode(mode)
        logger.info(LogTemplates.LOOP_MODE_CHANGED, applied.value, guild_id)
        return applied

    def stop(self, guild_id: DiscordSnowflake) -> bool:
        """Clear the queue, then stop the sink so the driver halts on its next advance."""
        state = self._registry.get(guild_id)
        if state is None or state.sink is None:
            return False
        state.clear()
        logger.info(LogTemplates.QUEUE_CLEARED, guild_id)
        state.sink.stop()
        return True

    def skip(self, guild_id: DiscordSnowflake) -> bool:
        state = self._registry.get(guild_id)
        if state is None or state.sink is None:
            return False
        state.sink.stop()
        return True

    def pause(self, guild_id: DiscordSnowflake) -> bool:
        state = self._registry.get(guild_id)
        if state is None or state.sink_status() is not SinkStatus.PLAYING:
            return False
        return state.sink.pause()

    def resume(self, guild_id: DiscordSnowflake) -> bool:
        state = self._registry.get(guild_id)
        if state is None or state.sink_status() is not SinkStatus.PAUSED:
            return False
        return state.sink.resume()

    def get_queue(self, guild_id: DiscordSnowflake) -> QueueInfo:
        state = self._registry.get(guild_id)
        if state is None:
            return QueueInfo(now_playing=None, upcoming=[], total_length=0)
        now_playing, upcoming, length = state.snapshot()
        return QueueInfo(now_playing=now_playing, upcoming=upcoming, total_length=length, loop_mode=state.loop_mode)
