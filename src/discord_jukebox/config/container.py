"""Dependency Injection Container

Manages the application's dependency graph, providing lazy initialization
and lifecycle management for services and adapters. Components are created
on-demand and cached for reuse throughout the application.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..domain.shared.messages import ErrorMessages, LogTemplates

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from discord.ext.commands import Bot

    from ..application.interfaces.audio_decoder import AudioDecoder
    from ..application.interfaces.catalog_provider import CatalogProvider
    from ..application.interfaces.media_resolver import MediaResolver
    from ..application.interfaces.voice_adapter import VoiceGateway
    from ..application.services.catalog_expander import CatalogExpander
    from ..application.services.guild_registry import GuildStateRegistry
    from ..application.services.playback_engine import PlaybackEngine
    from ..application.services.queue_service import QueueApplicationService
    from ..application.services.temp_files import TempFileManager
    from .settings import Settings


@dataclass
class Container:
    """Dependency injection container.

    Components are lazily initialized when first accessed; tests can inject
    fakes by assigning the private slots before first use.
    """

    settings: Settings
    _bot: Bot | None = None

    # Infrastructure adapters
    _media_resolver: MediaResolver | None = None
    _audio_decoder: AudioDecoder | None = None
    _catalog_provider: CatalogProvider | None = None
    _voice_gateway: VoiceGateway | None = None

    # Application services
    _registry: GuildStateRegistry | None = None
    _temp_files: TempFileManager | None = None
    _catalog_expander: CatalogExpander | None = None
    _playback_engine: PlaybackEngine | None = None
    _queue_service: QueueApplicationService | None = None

    def set_bot(self, bot: Bot) -> None:
        """Set the Discord bot instance."""
        self._bot = bot

    @property
    def bot(self) -> Bot:
        """Get the Discord bot instance."""
        if self._bot is None:
            raise RuntimeError(ErrorMessages.BOT_NOT_INITIALIZED)
        return self._bot

    # === Infrastructure Adapters ===

    @property
    def media_resolver(self) -> MediaResolver:
        if self._media_resolver is None:
            from ..infrastructure.audio.ytdlp_cli import YtDlpCliResolver

            self._media_resolver = YtDlpCliResolver(self.settings.audio)
        return self._media_resolver

    @property
    def audio_decoder(self) -> AudioDecoder:
        if self._audio_decoder is None:
            from ..infrastructure.audio.decoder import FFmpegAudioDecoder

            self._audio_decoder = FFmpegAudioDecoder()
        return self._audio_decoder

    @property
    def catalog_provider(self) -> CatalogProvider:
        if self._catalog_provider is None:
            from ..infrastructure.catalog.spotify_provider import SpotifyCatalogProvider

            self._catalog_provider = SpotifyCatalogProvider(self.settings.catalog)
        return self._catalog_provider

    @property
    def voice_gateway(self) -> VoiceGateway:
        if self._voice_gateway is None:
            from ..infrastructure.discord.adapters.voice_adapter import DiscordVoiceGateway

            self._voice_gateway = DiscordVoiceGateway(
                self.bot, timeout=self.settings.playback.voice_connect_timeout
            )
        return self._voice_gateway

    # === Application Services ===

    @property
    def registry(self) -> GuildStateRegistry:
        if self._registry is None:
            from ..application.services.guild_registry import GuildStateRegistry

            self._registry = GuildStateRegistry()
        return self._registry

    @property
    def temp_files(self) -> TempFileManager:
        if self._temp_files is None:
            from ..application.services.temp_files import TempFileManager

            self._temp_files = TempFileManager(self.settings.audio.scratch_path)
        return self._temp_files

    @property
    def catalog_expander(self) -> CatalogExpander:
        if self._catalog_expander is None:
            from ..application.services.catalog_expander import CatalogExpander

            self._catalog_expander = CatalogExpander(
                self.catalog_provider, page_size=self.settings.catalog.page_size
            )
        return self._catalog_expander

    @property
    def playback_engine(self) -> PlaybackEngine:
        """Get the per-guild playback engine."""
        if self._playback_engine is None:
            from ..application.services.playback_engine import PlaybackEngine

            playback = self.settings.playback
            self._playback_engine = PlaybackEngine(
                registry=self.registry,
                resolver=self.media_resolver,
                decoder=self.audio_decoder,
                temp_files=self.temp_files,
                retry_attempts=playback.retry_attempts,
                retry_backoff_seconds=playback.retry_backoff_seconds,
                error_debounce_seconds=playback.error_debounce_seconds,
            )
        return self._playback_engine

    @property
    def queue_service(self) -> QueueApplicationService:
        """Get the queue application service."""
        if self._queue_service is None:
            from ..application.services.queue_service import QueueApplicationService

            self._queue_service = QueueApplicationService(
                registry=self.registry,
                engine=self.playback_engine,
                resolver=self.media_resolver,
                expander=self.catalog_expander,
                voice_gateway=self.voice_gateway,
                temp_files=self.temp_files,
                short_link_timeout=self.settings.catalog.short_link_timeout,
            )
        return self._queue_service

    # === Lifecycle ===

    async def initialize(self) -> None:
        """Prepare the scratch directory and drop files left by a previous run."""
        scratch = self.temp_files.ensure_scratch_dir()
        removed = self.temp_files.purge()
        if removed:
            logger.info(LogTemplates.TEMP_PURGED, removed, scratch)

    async def shutdown(self) -> None:
        """Cancel drivers, leave voice and remove temp files."""
        if self._playback_engine is not None:
            await self._playback_engine.shutdown()

        if self._registry is not None:
            for guild_id in self._registry.guild_ids():
                state = self._registry.discard(guild_id)
                if state is not None and self._temp_files is not None:
                    self._temp_files.release(state)

        if self._voice_gateway is not None:
            destroy_all = getattr(self._voice_gateway, "destroy_all", None)
            if destroy_all is not None:
                await destroy_all()

        if self._temp_files is not None:
            self._temp_files.purge()


def create_container(settings: Settings) -> Container:
    """Create a new dependency injection container."""
    return Container(settings)
