"""Discord voice adapters: gateway, session and audio sink over discord.VoiceClient."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import discord

from discord_jukebox.application.interfaces.voice_adapter import (
    AudioSink,
    SinkListener,
    VoiceGateway,
    VoiceSession,
)
from discord_jukebox.domain.music.value_objects import SinkEvent, SinkStatus
from discord_jukebox.domain.shared.exceptions import VoiceConnectionError
from discord_jukebox.domain.shared.messages import ErrorMessages, LogTemplates

logger = logging.getLogger(__name__)

CONNECT_TIMEOUT: float = 10.0


class DiscordAudioSink(AudioSink):
    """Wraps a VoiceClient's player and re-emits its ``after`` callback as events.

    The callback fires on discord.py's player thread; events are delivered to
    listeners on the event loop.
    """

    def __init__(self, voice_client: discord.VoiceClient, loop: asyncio.AbstractEventLoop) -> None:
        self._vc = voice_client
        self._loop = loop
        self._listeners: dict[SinkEvent, list[SinkListener]] = {event: [] for event in SinkEvent}

    @property
    def status(self) -> SinkStatus:
        if self._vc.is_paused():
            return SinkStatus.PAUSED
        if self._vc.is_playing():
            return SinkStatus.PLAYING
        return SinkStatus.IDLE

    def play(self, source: Any) -> None:
        self._vc.play(source, after=self._after)

    def stop(self) -> None:
        if self._vc.is_playing() or self._vc.is_paused():
            self._vc.stop()

    def pause(self) -> bool:
        if self._vc.is_playing():
            self._vc.pause()
            return True
        return False

    def resume(self) -> bool:
        if self._vc.is_paused():
            self._vc.resume()
            return True
        return False

    def add_listener(self, event: SinkEvent, listener: SinkListener) -> None:
        self._listeners[event].append(listener)

    def remove_listener(self, event: SinkEvent, listener: SinkListener) -> None:
        try:
            self._listeners[event].remove(listener)
        except ValueError:
            pass

    def _after(self, error: Exception | None = None) -> None:
        event = SinkEvent.ERROR if error is not None else SinkEvent.IDLE
        try:
            self._loop.call_soon_threadsafe(self._emit, event, error)
        except RuntimeError:
            # Loop already closed during shutdown.
            logger.debug(LogTemplates.SINK_EVENT, event.value, self._guild_id, error)

    @property
    def _guild_id(self) -> int | None:
        guild = getattr(self._vc, "guild", None)
        return guild.id if guild is not None else None

    def _emit(self, event: SinkEvent, error: BaseException | None) -> None:
        logger.debug(LogTemplates.SINK_EVENT, event.value, self._guild_id, error)
        for listener in list(self._listeners[event]):
            try:
                listener(event, error)
            except Exception:
                logger.exception(LogTemplates.SINK_LISTENER_ERROR, event.value, self._guild_id)


class DiscordVoiceSession(VoiceSession):
    def __init__(self, voice_client: discord.VoiceClient) -> None:
        self._vc = voice_client
        self._sink: AudioSink | None = None
        self._destroyed = False

    @property
    def voice_client(self) -> discord.VoiceClient:
        return self._vc

    @property
    def channel_name(self) -> str:
        channel = self._vc.channel
        return getattr(channel, "name", "") or str(getattr(channel, "id", ""))

    @property
    def is_connected(self) -> bool:
        return not self._destroyed and self._vc.is_connected()

    def subscribe(self, sink: AudioSink) -> None:
        self._sink = sink

    async def destroy(self) -> None:
        if self._destroyed:
            return
        self._destroyed = True
        if self._sink is not None:
            self._sink.stop()
        guild_id = self._vc.guild.id if self._vc.guild else None
        try:
            await self._vc.disconnect(force=True)
            logger.info(LogTemplates.VOICE_DISCONNECTED, guild_id)
        except Exception as exc:
            logger.warning(LogTemplates.VOICE_DESTROY_ERROR, guild_id, exc)


class DiscordVoiceGateway(VoiceGateway):
    """Joins voice channels through a discord.py client and caches one session per guild."""

    def __init__(self, bot: discord.Client, *, timeout: float = CONNECT_TIMEOUT) -> None:
        self._bot = bot
        self._timeout = timeout
        self._sessions: dict[int, DiscordVoiceSession] = {}

    def _get_voice_client(self, guild: discord.Guild) -> discord.VoiceClient | None:
        vc = guild.voice_client
        return vc if isinstance(vc, discord.VoiceClient) else None

    async def join(self, guild_id: int, channel_id: int) -> VoiceSession:
        guild = self._bot.get_guild(guild_id)
        if guild is None:
            logger.warning(LogTemplates.GUILD_NOT_FOUND, guild_id)
            raise VoiceConnectionError(ErrorMessages.VOICE_GUILD_NOT_FOUND.format(guild_id=guild_id), channel_id)

        channel = guild.get_channel(channel_id)
        if not isinstance(channel, discord.VoiceChannel | discord.StageChannel):
            logger.warning(LogTemplates.CHANNEL_NOT_VOICE, channel_id)
            raise VoiceConnectionError(
                ErrorMessages.VOICE_CHANNEL_INVALID.format(channel_id=channel_id), channel_id
            )

        vc = self._get_voice_client(guild)
        cached = self._sessions.get(guild_id)
        if vc is not None and vc.is_connected() and cached is not None and cached.voice_client is vc:
            if vc.channel is not None and vc.channel.id != channel_id:
                await self._with_timeout(vc.move_to(channel), channel_id)
                logger.info(LogTemplates.VOICE_MOVED, channel.name)
            return cached

        if vc is not None:
            await vc.disconnect(force=True)

        vc = await self._with_timeout(channel.connect(self_deaf=True), channel_id)
        logger.info(LogTemplates.VOICE_CONNECTED, channel.name, guild.name)
        session = DiscordVoiceSession(vc)
        self._sessions[guild_id] = session
        return session

    async def _with_timeout(self, coro: Any, channel_id: int) -> Any:
        try:
            async with asyncio.timeout(self._timeout):
                return await coro
        except TimeoutError as exc:
            logger.error(LogTemplates.VOICE_CONNECTION_TIMEOUT, channel_id)
            raise VoiceConnectionError(ErrorMessages.VOICE_TIMEOUT, channel_id) from exc
        except discord.Forbidden as exc:
            logger.error(LogTemplates.VOICE_NO_PERMISSION, channel_id)
            raise VoiceConnectionError(ErrorMessages.VOICE_FORBIDDEN, channel_id) from exc
        except discord.ClientException as exc:
            logger.error(LogTemplates.VOICE_CLIENT_ERROR, exc)
            raise VoiceConnectionError(ErrorMessages.VOICE_CLIENT_FAILED.format(error=exc), channel_id) from exc

    def create_sink(self, session: VoiceSession) -> AudioSink:
        if not isinstance(session, DiscordVoiceSession):
            raise TypeError(f"Unsupported voice session: {type(session).__name__}")
        return DiscordAudioSink(session.voice_client, asyncio.get_running_loop())

    async def destroy_all(self) -> None:
        """Disconnect every session opened through this gateway."""
        sessions = list(self._sessions.values())
        self._sessions.clear()
        for session in sessions:
            await session.destroy()
