"""Discord client that hosts the music cog and owns the container's lifetime."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal
from typing import TYPE_CHECKING

import discord
from discord import app_commands
from discord.ext import commands

from discord_jukebox.domain.shared.exceptions import DomainError
from discord_jukebox.domain.shared.messages import DiscordUIMessages, LogTemplates

if TYPE_CHECKING:
    from ...config.container import Container
    from ...config.settings import Settings

logger = logging.getLogger(__name__)

COGS: tuple[str, ...] = ("discord_jukebox.infrastructure.discord.cogs.music_cog",)
PRESENCE = discord.Activity(type=discord.ActivityType.listening, name="Music!")


def _intents() -> discord.Intents:
    # Slash commands only: no message content, no member list.
    intents = discord.Intents.none()
    intents.guilds = True
    intents.voice_states = True
    return intents


class JukeboxBot(commands.Bot):
    """Slash-command bot; playback state lives in the container's services."""

    def __init__(self, container: Container, settings: Settings, **kwargs) -> None:
        super().__init__(
            command_prefix=settings.discord.command_prefix,
            intents=_intents(),
            activity=PRESENCE,
            help_command=None,
            **kwargs,
        )
        self.container = container
        self.settings = settings
        container.set_bot(self)

    async def setup_hook(self) -> None:
        """Prepare the scratch dir, load the cog and optionally sync commands.

        Container or cog failures abort startup; a failed sync only logs.
        """
        logger.info(LogTemplates.BOT_SETUP)
        await self.container.initialize()

        for extension in COGS:
            await self.load_extension(extension)
            logger.info(LogTemplates.BOT_COG_LOADED, extension)
        self.tree.on_error = self.on_app_command_error

        if self.settings.discord.sync_on_startup:
            await self.sync_commands()
        logger.info(LogTemplates.BOT_SETUP_COMPLETE)

    async def sync_commands(self) -> int:
        """Sync to the configured guilds, or globally when none are configured.

        Returns the number of targets that synced.
        """
        guild_ids = self.settings.discord.guild_ids
        targets: list[discord.Object | None] = [discord.Object(id=g) for g in guild_ids] or [None]

        synced_targets = 0
        for guild in targets:
            try:
                if guild is not None:
                    self.tree.copy_global_to(guild=guild)
                commands_synced = await self.tree.sync(guild=guild)
            except discord.HTTPException as e:
                logger.warning(LogTemplates.BOT_SYNC_FAILED, guild.id if guild else "global", e)
                continue
            logger.info(LogTemplates.BOT_SYNCED, len(commands_synced), guild.id if guild else "global")
            synced_targets += 1
        return synced_targets

    async def on_ready(self) -> None:
        logger.info(LogTemplates.BOT_READY, self.user, len(self.guilds))

    async def on_app_command_error(
        self, interaction: discord.Interaction, error: app_commands.AppCommandError
    ) -> None:
        """Answer ephemerally; domain errors show their own message."""
        cause = getattr(error, "original", error)
        command = getattr(interaction.command, "name", "?")

        if isinstance(cause, DomainError):
            logger.warning(LogTemplates.BOT_SLASH_COMMAND_ERROR, command, cause.message)
            content = cause.message
        else:
            logger.error(LogTemplates.BOT_SLASH_COMMAND_ERROR, command, cause, exc_info=cause)
            content = DiscordUIMessages.ERROR_OCCURRED.format(error=cause)

        send = interaction.followup.send if interaction.response.is_done() else interaction.response.send_message
        try:
            await send(content, ephemeral=True)
        except discord.HTTPException:
            logger.warning(LogTemplates.BOT_ERROR_MESSAGE_SEND_FAILED)

    async def close(self) -> None:
        """Stop playback drivers, leave voice and delete temp files, then disconnect."""
        logger.info(LogTemplates.BOT_SHUTTING_DOWN)
        try:
            await self.container.shutdown()
        except Exception:
            logger.exception(LogTemplates.BOT_CONTAINER_SHUTDOWN_ERROR)
        await super().close()

    def serve(self, token: str, *, shutdown_timeout: float = 30.0) -> None:
        """Run until the gateway closes or SIGINT/SIGTERM arrives."""
        asyncio.run(self._serve(token, shutdown_timeout))

    async def _serve(self, token: str, shutdown_timeout: float) -> None:
        stop = asyncio.Event()
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, stop.set)

        async with self:
            gateway = asyncio.create_task(self.start(token), name="discord-gateway")
            stop_wait = asyncio.create_task(stop.wait(), name="shutdown-signal")
            await asyncio.wait({gateway, stop_wait}, return_when=asyncio.FIRST_COMPLETED)

            if stop.is_set():
                logger.info(LogTemplates.BOT_SIGNAL_RECEIVED)
                try:
                    await asyncio.wait_for(self.close(), timeout=shutdown_timeout)
                except TimeoutError:
                    logger.warning(LogTemplates.BOT_SHUTDOWN_TIMEOUT, shutdown_timeout)
                    gateway.cancel()
            stop_wait.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await gateway


def create_bot(container: Container, settings: Settings) -> JukeboxBot:
    return JukeboxBot(container=container, settings=settings)
