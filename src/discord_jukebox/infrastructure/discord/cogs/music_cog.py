"""Slash-command music cog delegating to the queue application service."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord
from discord import app_commands
from discord.ext import commands

from discord_jukebox.domain.shared.exceptions import InvalidModeError, VoiceConnectionError
from discord_jukebox.domain.shared.messages import DiscordUIMessages, ErrorMessages, LogTemplates
from discord_jukebox.utils.reply import format_queue

if TYPE_CHECKING:
    from ....application.services.queue_service import QueueApplicationService
    from ....config.container import Container

logger = logging.getLogger(__name__)

LOOP_CHOICES = [
    app_commands.Choice(name="Off", value="off"),
    app_commands.Choice(name="Single", value="single"),
    app_commands.Choice(name="Queue", value="queue"),
]


class MusicCog(commands.Cog):
    def __init__(self, bot: commands.Bot, container: Container) -> None:
        self.bot = bot
        self.container = container

    @property
    def queue_service(self) -> QueueApplicationService:
        return self.container.queue_service

    async def _reply(self, interaction: discord.Interaction, message: str, *, ephemeral: bool = False) -> None:
        if interaction.response.is_done():
            await interaction.followup.send(message, ephemeral=ephemeral)
        else:
            await interaction.response.send_message(message, ephemeral=ephemeral)

    @staticmethod
    def _caller_voice_channel(interaction: discord.Interaction) -> discord.abc.GuildChannel | None:
        user = interaction.user
        if not isinstance(user, discord.Member) or user.voice is None:
            return None
        return user.voice.channel

    async def _ensure_voice(self, interaction: discord.Interaction, *, not_in_voice: str) -> bool:
        """Auto-join the caller's channel; replies and returns False on failure."""
        assert interaction.guild is not None
        channel = self._caller_voice_channel(interaction)
        if channel is None:
            await self._reply(interaction, not_in_voice, ephemeral=True)
            return False

        try:
            await self.queue_service.ensure_joined(interaction.guild.id, channel.id)
        except VoiceConnectionError as exc:
            logger.warning(LogTemplates.VOICE_JOIN_REJECTED, interaction.guild.id, exc.message)
            await self._reply(interaction, DiscordUIMessages.ERROR_COULD_NOT_JOIN_VOICE, ephemeral=True)
            return False
        return True

    # ── Voice ──────────────────────────────────────────────────────

    @app_commands.command(name="join", description="Join your voice channel.")
    @app_commands.guild_only()
    async def join(self, interaction: discord.Interaction) -> None:
        assert interaction.guild is not None
        channel = self._caller_voice_channel(interaction)
        if channel is None:
            await self._reply(interaction, DiscordUIMessages.STATE_NOT_IN_VOICE, ephemeral=True)
            return

        try:
            session = await self.queue_service.join(interaction.guild.id, channel.id)
        except VoiceConnectionError:
            await self._reply(interaction, DiscordUIMessages.ERROR_COULD_NOT_JOIN_VOICE, ephemeral=True)
            return
        await self._reply(interaction, DiscordUIMessages.JOINED.format(channel=session.channel_name or channel.name))

    @app_commands.command(name="leave", description="Leave the voice channel and drop the queue.")
    @app_commands.guild_only()
    async def leave(self, interaction: discord.Interaction) -> None:
        assert interaction.guild is not None
        if not await self.queue_service.leave(interaction.guild.id):
            await self._reply(interaction, DiscordUIMessages.STATE_BOT_NOT_IN_VOICE, ephemeral=True)
            return
        await self._reply(interaction, DiscordUIMessages.LEFT)

    # ── Enqueue ────────────────────────────────────────────────────

    @app_commands.command(name="play", description="Play a song (YouTube, Spotify track, or search).")
    @app_commands.describe(query="Song name, URL or Spotify link")
    @app_commands.guild_only()
    async def play(self, interaction: discord.Interaction, query: str) -> None:
        assert interaction.guild is not None
        # Resolution can exceed the 3-second interaction deadline
        await interaction.response.defer()

        if not await self._ensure_voice(interaction, not_in_voice=DiscordUIMessages.STATE_NOT_IN_VOICE):
            return

        result = await self.queue_service.add_query(
            interaction.guild.id, query, channel=interaction.channel
        )
        await interaction.followup.send(result.message)

    @app_commands.command(name="playlist", description="Add a Spotify playlist.")
    @app_commands.describe(url="Spotify playlist URL")
    @app_commands.guild_only()
    async def playlist(self, interaction: discord.Interaction, url: str) -> None:
        assert interaction.guild is not None
        if self._caller_voice_channel(interaction) is None:
            await self._reply(interaction, DiscordUIMessages.STATE_NOT_IN_VOICE_PLAYLIST, ephemeral=True)
            return

        await interaction.response.defer()
        if not await self._ensure_voice(interaction, not_in_voice=DiscordUIMessages.STATE_NOT_IN_VOICE_PLAYLIST):
            return

        result = await self.queue_service.add_playlist(
            interaction.guild.id, url, channel=interaction.channel
        )
        await interaction.followup.send(result.message)

    # ── Controls ───────────────────────────────────────────────────

    @app_commands.command(name="loop", description="Set loop mode.")
    @app_commands.describe(mode="off, single or queue")
    @app_commands.choices(mode=LOOP_CHOICES)
    @app_commands.guild_only()
    async def loop(self, interaction: discord.Interaction, mode: str) -> None:
        assert interaction.guild is not None
        try:
            applied = self.queue_service.set_loop_mode(interaction.guild.id, mode)
        except InvalidModeError:
            await self._reply(interaction, DiscordUIMessages.LOOP_INVALID, ephemeral=True)
            return
        await self._reply(interaction, DiscordUIMessages.LOOP_SET.format(mode=applied.value))

    @app_commands.command(name="stop", description="Stop playback and clear the queue.")
    @app_commands.guild_only()
    async def stop(self, interaction: discord.Interaction) -> None:
        assert interaction.guild is not None
        if self.queue_service.stop(interaction.guild.id):
            await self._reply(interaction, DiscordUIMessages.STOPPED)
        else:
            await self._reply(interaction, DiscordUIMessages.NOTHING_PLAYING)

    @app_commands.command(name="pause", description="Pause playback.")
    @app_commands.guild_only()
    async def pause(self, interaction: discord.Interaction) -> None:
        assert interaction.guild is not None
        if self.queue_service.pause(interaction.guild.id):
            await self._reply(interaction, DiscordUIMessages.PAUSED)
        else:
            await self._reply(interaction, DiscordUIMessages.NOTHING_PLAYING)

    @app_commands.command(name="resume", description="Resume playback.")
    @app_commands.guild_only()
    async def resume(self, interaction: discord.Interaction) -> None:
        assert interaction.guild is not None
        if self.queue_service.resume(interaction.guild.id):
            await self._reply(interaction, DiscordUIMessages.RESUMED)
        else:
            await self._reply(interaction, DiscordUIMessages.NOT_PAUSED)

    @app_commands.command(name="skip", description="Skip the current song.")
    @app_commands.guild_only()
    async def skip(self, interaction: discord.Interaction) -> None:
        assert interaction.guild is not None
        if self.queue_service.skip(interaction.guild.id):
            await self._reply(interaction, DiscordUIMessages.SKIPPED)
        else:
            await self._reply(interaction, DiscordUIMessages.NOTHING_PLAYING)

    @app_commands.command(name="queue", description="Show the queue.")
    @app_commands.guild_only()
    async def queue(self, interaction: discord.Interaction) -> None:
        assert interaction.guild is not None
        info = self.queue_service.get_queue(interaction.guild.id)
        await self._reply(interaction, format_queue(info.now_playing, info.upcoming))


async def setup(bot: commands.Bot) -> None:
    container = getattr(bot, "container", None)
    if container is None:
        raise RuntimeError(ErrorMessages.CONTAINER_NOT_FOUND)

    await bot.add_cog(MusicCog(bot, container))
