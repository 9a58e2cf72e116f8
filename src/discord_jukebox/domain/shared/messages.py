"""Centralized message constants for error messages, log templates, and user feedback."""

from __future__ import annotations


class ErrorMessages:
    """Error messages for exceptions and validation failures."""

    # Resolution Errors
    METADATA_FAILED = "Metadata extraction failed: code {code}"
    SEARCH_FAILED = "Search failed"
    NO_VALID_RESULTS = "No valid video results"

    # Download Errors
    DOWNLOAD_ANTI_BOT = "Anti-bot restriction detected"
    DOWNLOAD_EXIT_CODE = "yt-dlp exited with code {code}"
    DOWNLOAD_LAUNCH_FAILED = "Could not launch yt-dlp: {error}"
    DOWNLOAD_MISSING = "No file downloaded"
    DOWNLOAD_TOO_SMALL = "Downloaded file too small ({size} bytes)"

    # Catalog Errors
    CATALOG_INVALID_RESPONSE = "Invalid Spotify response"
    CATALOG_CREDENTIALS_MISSING = "Spotify credentials are not configured"
    CATALOG_TRACK_INCOMPLETE = "Spotify track has no title or artist"
    CATALOG_UNREACHABLE = "Could not reach Spotify: {error}"

    # Voice Errors
    VOICE_GUILD_NOT_FOUND = "Guild {guild_id} is not available"
    VOICE_CHANNEL_INVALID = "Channel {channel_id} is not a voice channel"
    VOICE_TIMEOUT = "Timed out connecting to the voice channel"
    VOICE_FORBIDDEN = "Missing permission to join the voice channel"
    VOICE_CLIENT_FAILED = "Voice connection failed: {error}"

    # Settings Errors
    INVALID_SNOWFLAKE = "Snowflake ID must be positive"
    SNOWFLAKE_TOO_LARGE = "Snowflake ID exceeds 64-bit range"
    COOKIE_FILE_EMPTY = "Cookie file path cannot be blank"
    INVALID_LOG_LEVEL = "Invalid log level: {level}. Must be one of {valid_levels}"
    DISCORD_TOKEN_REQUIRED = "DISCORD__TOKEN environment variable is required"
    BOT_NOT_INITIALIZED = "Bot not initialized. Call set_bot() first."
    CONTAINER_NOT_FOUND = "Container not found on bot instance"


class LogTemplates:
    """Log message templates for structured logging.

    Use these with logger.info(), logger.error(), etc. and pass values as parameters
    for proper log formatting and structured logging support.
    """

    # Voice Operations
    VOICE_CONNECTED = "Connected to voice channel %s in %s"
    VOICE_DISCONNECTED = "Disconnected from voice in guild %s"
    VOICE_CONNECTION_TIMEOUT = "Timeout connecting to channel %s"
    VOICE_NO_PERMISSION = "No permission to connect to channel %s"
    VOICE_CLIENT_ERROR = "Client error connecting: %r"
    VOICE_MOVED = "Moved to voice channel %s"
    VOICE_JOIN_REJECTED = "Could not join voice in guild %s: %s"
    VOICE_DESTROY_ERROR = "Error destroying voice session in guild %s: %r"
    GUILD_NOT_FOUND = "Guild %s not found"
    CHANNEL_NOT_VOICE = "Channel %s is not a voice channel"

    # Sink Events
    SINK_EVENT = "Sink event %s in guild %s (error: %s)"
    SINK_LISTENER_ERROR = "Sink listener for %s raised in guild %s"

    # Decoder
    DECODER_PROBE_FAILED = "Probe failed for %s, falling back to arbitrary stream: %s"

    # Playback Engine
    ENGINE_START_CALLED = "start called for guild %s"
    ENGINE_ALREADY_RUNNING = "Engine already running in guild %s, ignoring start"
    ENGINE_STATE = "Guild %s: %s -> %s"
    ENGINE_STALE = "Guild %s state discarded, driver exiting"
    ENGINE_CANCELLED = "Driver cancelled in guild %s"
    ENGINE_CRASHED = "Driver crashed in guild %s"
    ENGINE_QUEUE_EMPTY = "Queue empty in guild %s, stopping"
    ENGINE_RESOLVING = "Searching YouTube for: %s"
    ENGINE_RESOLVE_FAILED = "Failed to find on YouTube: %s (%s)"
    ENGINE_DOWNLOADING = "Attempting to download and play: %s (%s)"
    ENGINE_DOWNLOAD_ATTEMPT_FAILED = "Download attempt %s failed: %s"
    ENGINE_DOWNLOAD_GAVE_UP = "Giving up on %s after %s attempt(s) in guild %s"
    ENGINE_DOWNLOAD_UNEXPECTED = "Unexpected error downloading %s in guild %s"
    ENGINE_STREAMING = "Streaming '%s' in guild %s"
    ENGINE_PLAYER_ERROR = "Player error in guild %s: %r"
    ENGINE_SOURCE_CLEANUP_FAILED = "Audio source cleanup failed in guild %s: %r"
    ENGINE_NOTIFY_FAILED = "Failed to send notice in guild %s: %r"

    # Temp Files
    TEMP_DELETED = "Deleted temp file %s"
    TEMP_DELETE_FAILED = "Failed to unlink %s: %s"

    # yt-dlp
    YTDLP_RUN = "Running %s for %s (cookies: %s)"
    YTDLP_METADATA_FAILED = "Metadata extraction failed: code %s, stderr: %s"
    YTDLP_SEARCH_FAILED = "Search failed: code %s, stderr: %s"
    YTDLP_DOWNLOAD_FAILED = "Download failed: code %s, stderr: %s"
    YTDLP_DOWNLOADED = "Downloaded to %s, size: %s"
    YTDLP_KILLED = "Killed yt-dlp process %s after cancellation"

    # Catalog
    CATALOG_PAGE = "Fetched catalog page offset=%s (%s items) for playlist %s"
    CATALOG_EXPANDED = "Expanded playlist %s into %s songs (%s skipped)"
    CATALOG_ERROR = "Catalog error: %s"
    CATALOG_SHORT_LINK = "Resolved short link: %s -> %s"
    CATALOG_SHORT_LINK_FAILED = "Could not resolve short link %s: %r"

    # Queue Operations
    QUEUE_ENQUEUED = "Enqueued '%s' (length %s) in guild %s"
    QUEUE_ENQUEUED_MANY = "Enqueued %s songs in guild %s"
    QUEUE_CLEARED = "Cleared queue in guild %s"
    LOOP_MODE_CHANGED = "Loop mode changed to %s in guild %s"
    PLAY_REQUEST = "Processing /play in guild %s: %s"
    GUILD_STATE_CREATED = "Created guild state for %s (generation %s)"
    GUILD_STATE_DISCARDED = "Discarded guild state for %s"

    # Application Lifecycle
    BOT_STARTING = "Starting Discord Jukebox in %s mode"
    LOGGING_CONFIG_FALLBACK = "Could not load %s, falling back to basic logging config"
    PREFLIGHT_FFMPEG_MISSING = "ffmpeg not found on PATH; playback will fail"
    PREFLIGHT_YTDLP_MISSING = "yt-dlp executable %r not found; downloads will fail"
    PREFLIGHT_COOKIES_MISSING = "Cookie file %s does not exist; restricted videos will be skipped"
    PREFLIGHT_CATALOG_DISABLED = "Spotify credentials not set; playlist links are disabled"
    BOT_SETUP = "Setting up bot..."
    BOT_SETUP_COMPLETE = "Bot setup complete"
    TEMP_PURGED = "Removed %s leftover temp file(s) from %s"
    BOT_STOPPED = "Bot stopped successfully"
    BOT_KEYBOARD_INTERRUPT = "Received keyboard interrupt, shutting down..."
    BOT_SIGNAL_RECEIVED = "Shutdown signal received"
    BOT_FATAL_ERROR = "Fatal error: %s"
    BOT_SHUTTING_DOWN = "Shutting down bot..."
    BOT_CONTAINER_SHUTDOWN_ERROR = "Error during container shutdown"
    BOT_SHUTDOWN_TIMEOUT = "Graceful shutdown timed out after %ss"
    BOT_READY = "Bot ready as %s in %s guild(s)"
    BOT_COG_LOADED = "Loaded cog: %s"
    BOT_SLASH_COMMAND_ERROR = "Slash command error in /%s: %s"
    BOT_ERROR_MESSAGE_SEND_FAILED = "Failed to send error message to user"
    BOT_SYNCED = "Synced %s commands to %s"
    BOT_SYNC_FAILED = "Failed to sync commands to %s: %s"


class DiscordUIMessages:
    """User-facing Discord messages and responses.

    These strings are shown directly to users in Discord interactions.
    Keep them concise, friendly, and include appropriate emoji.
    """

    # Voice
    JOINED = "Joined {channel}"
    LEFT = "Left the voice channel"
    STATE_NOT_IN_VOICE = "You are not in a voice channel!"
    STATE_NOT_IN_VOICE_PLAYLIST = "You must be in a voice channel to use /playlist!"
    STATE_BOT_NOT_IN_VOICE = "I'm not in a voice channel!"
    ERROR_COULD_NOT_JOIN_VOICE = "I couldn't join your voice channel."

    # Queue
    ADDED_TO_QUEUE = "Added to queue: {title}"
    ADDED_PLAYLIST = "✅ Added {count} tracks from playlist to queue."
    NO_RESULTS = "No results found for: {query}"
    INVALID_PLAYLIST_URL = "Provide a valid Spotify playlist URL."
    ERROR_GENERIC = "Error: {error}"
    ERROR_CATALOG_TRACK = "Error fetching Spotify track: {error}"
    QUEUE_EMPTY_VIEW = "Queue is empty!"
    QUEUE_NOW_PLAYING = "Now Playing: {title}"
    QUEUE_HEADER = "Current queue:"
    QUEUE_MORE = "…and {count} more"

    # Controls
    LOOP_SET = "Loop mode set to: {mode}"
    LOOP_INVALID = "Invalid mode: off, single, or queue."
    STOPPED = "Stopped playing and cleared the queue."
    PAUSED = "Paused"
    RESUMED = "Resumed"
    NOT_PAUSED = "Not paused!"
    SKIPPED = "Skipped to next song"
    NOTHING_PLAYING = "Nothing is playing!"

    # Engine notices
    NOW_PLAYING = "▶️ Now playing: {title}"
    NOW_PLAYING_LOOP = "🔂 Now playing: {title}"
    SKIP_NOT_FOUND = '❌ Skipped: "{query}" (not found on YouTube)'
    SKIP_RESTRICTED = '🚫 Cannot play "{title}" due to YouTube restrictions. Skipping...'
    SKIP_DOWNLOAD_FAILED = '⚠️ Failed to download "{title}" after {attempts} attempts. Skipping...'
    SKIP_DOWNLOAD_ERROR = '⚠️ Could not download "{title}" ({error}). Skipping...'
    SKIP_PLAYER_ERROR = "An error occurred while playing the song. Skipping..."
    QUEUE_EMPTY_STOPPING = "Queue is empty! Stopping playback."

    ERROR_OCCURRED = "❌ An error occurred: {error}"
