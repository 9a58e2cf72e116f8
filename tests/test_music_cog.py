"""
Unit Tests for MusicCog

Tests for the slash commands:
- /join and /leave
- /play and /playlist (voice checks, defer, replies)
- /loop, /stop, /pause, /resume, /skip
- /queue rendering
- Extension setup
"""

from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

from discord_jukebox.application.services.queue_models import EnqueueResult, QueueInfo
from discord_jukebox.domain.music.entities import ResolvedSong
from discord_jukebox.domain.music.value_objects import LoopMode
from discord_jukebox.domain.shared.exceptions import InvalidModeError, VoiceConnectionError
from discord_jukebox.domain.shared.messages import DiscordUIMessages
from discord_jukebox.infrastructure.discord.cogs.music_cog import MusicCog, setup

GUILD_ID = 111111111
VOICE_CHANNEL_ID = 444444444

# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def mock_bot():
    """Create a mock Discord bot."""
    bot = MagicMock()
    bot.add_cog = AsyncMock()
    return bot


@pytest.fixture
def mock_queue_service():
    service = MagicMock()
    service.join = AsyncMock(return_value=MagicMock(channel_name="General"))
    service.leave = AsyncMock(return_value=True)
    service.ensure_joined = AsyncMock()
    service.add_query = AsyncMock(
        return_value=EnqueueResult(success=True, added=1, queue_length=1, message="Added to queue: Song")
    )
    service.add_playlist = AsyncMock(
        return_value=EnqueueResult(success=True, added=3, queue_length=3, message="✅ Added 3 tracks from playlist to queue.")
    )
    service.set_loop_mode = MagicMock(return_value=LoopMode.QUEUE)
    service.stop = MagicMock(return_value=True)
    service.pause = MagicMock(return_value=True)
    service.resume = MagicMock(return_value=True)
    service.skip = MagicMock(return_value=True)
    return service


@pytest.fixture
def mock_container(mock_queue_service):
    """Create a mock DI container."""
    container = MagicMock()
    container.queue_service = mock_queue_service
    return container


@pytest.fixture
def cog(mock_bot, mock_container):
    return MusicCog(mock_bot, mock_container)


@pytest.fixture
def mock_interaction():
    """Create a mock Discord Interaction."""
    interaction = MagicMock(spec=discord.Interaction)
    interaction.response = MagicMock()
    interaction.response.is_done.return_value = False
    interaction.response.send_message = AsyncMock()
    interaction.response.defer = AsyncMock()
    interaction.followup = MagicMock()
    interaction.followup.send = AsyncMock()

    interaction.guild = MagicMock()
    interaction.guild.id = GUILD_ID
    interaction.channel = MagicMock()

    # Member with voice state
    member = MagicMock(spec=discord.Member)
    member.id = 333333333
    member.voice = MagicMock()
    member.voice.channel = MagicMock()
    member.voice.channel.id = VOICE_CHANNEL_ID
    member.voice.channel.name = "General"
    interaction.user = member

    return interaction


@pytest.fixture
def no_voice_interaction(mock_interaction):
    mock_interaction.user.voice = None
    return mock_interaction


def replied(interaction) -> str:
    """Return the text of the single reply, whichever path sent it."""
    if interaction.followup.send.called:
        return interaction.followup.send.call_args.args[0]
    return interaction.response.send_message.call_args.args[0]


# =============================================================================
# Voice Commands
# =============================================================================


class TestJoinLeave:
    """Tests for /join and /leave."""

    async def test_join(self, cog, mock_interaction, mock_queue_service):
        await cog.join.callback(cog, mock_interaction)

        mock_queue_service.join.assert_awaited_once_with(GUILD_ID, VOICE_CHANNEL_ID)
        assert replied(mock_interaction) == DiscordUIMessages.JOINED.format(channel="General")

    async def test_join_without_voice(self, cog, no_voice_interaction, mock_queue_service):
        await cog.join.callback(cog, no_voice_interaction)

        mock_queue_service.join.assert_not_called()
        assert replied(no_voice_interaction) == DiscordUIMessages.STATE_NOT_IN_VOICE

    async def test_join_failure(self, cog, mock_interaction, mock_queue_service):
        mock_queue_service.join.side_effect = VoiceConnectionError("timeout", VOICE_CHANNEL_ID)

        await cog.join.callback(cog, mock_interaction)

        assert replied(mock_interaction) == DiscordUIMessages.ERROR_COULD_NOT_JOIN_VOICE

    async def test_leave(self, cog, mock_interaction, mock_queue_service):
        await cog.leave.callback(cog, mock_interaction)

        mock_queue_service.leave.assert_awaited_once_with(GUILD_ID)
        assert replied(mock_interaction) == DiscordUIMessages.LEFT

    async def test_leave_when_not_connected(self, cog, mock_interaction, mock_queue_service):
        mock_queue_service.leave.return_value = False

        await cog.leave.callback(cog, mock_interaction)

        assert replied(mock_interaction) == DiscordUIMessages.STATE_BOT_NOT_IN_VOICE


# =============================================================================
# Enqueue Commands
# =============================================================================


class TestPlay:
    """Tests for /play."""

    async def test_play_defers_and_reports(self, cog, mock_interaction, mock_queue_service):
        await cog.play.callback(cog, mock_interaction, "test query")

        mock_interaction.response.defer.assert_awaited_once()
        mock_queue_service.ensure_joined.assert_awaited_once_with(GUILD_ID, VOICE_CHANNEL_ID)
        mock_queue_service.add_query.assert_awaited_once_with(
            GUILD_ID, "test query", channel=mock_interaction.channel
        )
        mock_interaction.followup.send.assert_awaited_once_with("Added to queue: Song")

    async def test_play_failure_message_is_forwarded(self, cog, mock_interaction, mock_queue_service):
        mock_queue_service.add_query.return_value = EnqueueResult(
            success=False, message=DiscordUIMessages.NO_RESULTS.format(query="zzz")
        )

        await cog.play.callback(cog, mock_interaction, "zzz")

        mock_interaction.followup.send.assert_awaited_once_with("No results found for: zzz")

    async def test_play_without_voice(self, cog, no_voice_interaction, mock_queue_service):
        no_voice_interaction.response.is_done.return_value = True

        await cog.play.callback(cog, no_voice_interaction, "test query")

        mock_queue_service.add_query.assert_not_called()
        assert replied(no_voice_interaction) == DiscordUIMessages.STATE_NOT_IN_VOICE

    async def test_play_join_failure(self, cog, mock_interaction, mock_queue_service):
        mock_interaction.response.is_done.return_value = True
        mock_queue_service.ensure_joined.side_effect = VoiceConnectionError("forbidden")

        await cog.play.callback(cog, mock_interaction, "test query")

        mock_queue_service.add_query.assert_not_called()
        assert replied(mock_interaction) == DiscordUIMessages.ERROR_COULD_NOT_JOIN_VOICE


class TestPlaylist:
    """Tests for /playlist."""

    async def test_playlist(self, cog, mock_interaction, mock_queue_service):
        url = "https://open.spotify.com/playlist/37i9dQZF1DXcBWIGoYBM5M"

        await cog.playlist.callback(cog, mock_interaction, url)

        mock_interaction.response.defer.assert_awaited_once()
        mock_queue_service.add_playlist.assert_awaited_once_with(GUILD_ID, url, channel=mock_interaction.channel)
        mock_interaction.followup.send.assert_awaited_once_with("✅ Added 3 tracks from playlist to queue.")

    async def test_playlist_without_voice_does_not_defer(self, cog, no_voice_interaction, mock_queue_service):
        await cog.playlist.callback(cog, no_voice_interaction, "https://open.spotify.com/playlist/x")

        no_voice_interaction.response.defer.assert_not_called()
        mock_queue_service.add_playlist.assert_not_called()
        assert replied(no_voice_interaction) == DiscordUIMessages.STATE_NOT_IN_VOICE_PLAYLIST


# =============================================================================
# Control Commands
# =============================================================================


class TestControls:
    """Tests for /loop, /stop, /pause, /resume and /skip."""

    async def test_loop(self, cog, mock_interaction, mock_queue_service):
        await cog.loop.callback(cog, mock_interaction, "queue")

        mock_queue_service.set_loop_mode.assert_called_once_with(GUILD_ID, "queue")
        assert replied(mock_interaction) == DiscordUIMessages.LOOP_SET.format(mode="queue")

    async def test_loop_invalid(self, cog, mock_interaction, mock_queue_service):
        mock_queue_service.set_loop_mode.side_effect = InvalidModeError("forever")

        await cog.loop.callback(cog, mock_interaction, "forever")

        assert replied(mock_interaction) == DiscordUIMessages.LOOP_INVALID

    @pytest.mark.parametrize(
        ("command", "ok_message", "fail_message"),
        [
            ("stop", DiscordUIMessages.STOPPED, DiscordUIMessages.NOTHING_PLAYING),
            ("pause", DiscordUIMessages.PAUSED, DiscordUIMessages.NOTHING_PLAYING),
            ("resume", DiscordUIMessages.RESUMED, DiscordUIMessages.NOT_PAUSED),
            ("skip", DiscordUIMessages.SKIPPED, DiscordUIMessages.NOTHING_PLAYING),
        ],
    )
    async def test_control_replies(
        self, cog, mock_interaction, mock_queue_service, command, ok_message, fail_message
    ):
        await getattr(cog, command).callback(cog, mock_interaction)
        assert replied(mock_interaction) == ok_message
        getattr(mock_queue_service, command).assert_called_once_with(GUILD_ID)

        getattr(mock_queue_service, command).return_value = False
        await getattr(cog, command).callback(cog, mock_interaction)
        assert replied(mock_interaction) == fail_message


class TestQueueCommand:
    """Tests for /queue."""

    async def test_queue_empty(self, cog, mock_interaction, mock_queue_service):
        mock_queue_service.get_queue.return_value = QueueInfo(now_playing=None, upcoming=[], total_length=0)

        await cog.queue.callback(cog, mock_interaction)

        assert replied(mock_interaction) == DiscordUIMessages.QUEUE_EMPTY_VIEW

    async def test_queue_lists_songs(self, cog, mock_interaction, mock_queue_service):
        song = ResolvedSong(title="Song A", source_url="https://x.y")
        mock_queue_service.get_queue.return_value = QueueInfo(now_playing=song, upcoming=[song], total_length=1)

        await cog.queue.callback(cog, mock_interaction)

        assert replied(mock_interaction) == "Now Playing: Song A\n\nCurrent queue:\n1. Song A"


# =============================================================================
# Extension Setup
# =============================================================================


class TestSetup:
    """Tests for the extension entry point."""

    async def test_setup_adds_cog(self, mock_bot, mock_container):
        mock_bot.container = mock_container

        await setup(mock_bot)

        mock_bot.add_cog.assert_awaited_once()
        assert isinstance(mock_bot.add_cog.call_args.args[0], MusicCog)

    async def test_setup_without_container(self, mock_bot):
        mock_bot.container = None

        with pytest.raises(RuntimeError):
            await setup(mock_bot)
