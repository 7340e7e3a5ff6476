"""Centralized message constants for error messages and log templates."""

from __future__ import annotations


class ErrorMessages:
    """Error messages for exceptions and validation failures."""

    # Track Validation Errors
    EMPTY_TRACK_ID = "Track ID cannot be empty"

    # Queue
    ITEM_LIMIT_REACHED = "playlist item limit reached. (max. **{limit}** items)"

    # Volume
    VOLUME_OUT_OF_RANGE = "Volume must be between 0 and {max_volume}"

    # Settings
    INVALID_LOG_LEVEL = "Invalid log level: {level}. Must be one of {valid_levels}"

    # Session
    NO_ACTIVE_DISPATCHER = "Nothing is currently playing"
    NO_SINK = "Session is not connected to a destination"
    SESSION_ENDED_WHILE_CONNECTING = "The playlist ended while connecting, please try again"

    # Resolution
    NO_PROVIDER = "No provider available for query"
    DISCORD_TOKEN_REQUIRED = "DISCORD__TOKEN is required to run the bot"
    NOTHING_FOUND = "Could not find anything for: {query}"
    RESOLUTION_FAILED = "Error resolving query: {error}"
    ALL_REJECTED = "Nothing was added: {reason}"


class LogTemplates:
    """Log message templates for structured logging.

    Use these with logger.info(), logger.error(), etc. and pass values as parameters
    for proper log formatting and structured logging support.
    """

    # Session lifecycle
    SESSION_CREATED = "Created playlist session for destination %s"
    SESSION_CONNECTED = "Session %s connected to destination"
    SESSION_CONNECT_FAILED = "Session %s failed to connect: %s"
    SESSION_STOPPED = "Session %s stopped"
    SESSION_DESTROYED = "Session %s destroyed"
    SESSION_RELEASE_FAILED = "Failed to release destination for session %s"
    SESSION_ALREADY_STARTED = "Session %s already started, ignoring play()"
    SESSION_TERMINAL_NOOP = "Session %s is terminal, ignoring %s()"
    SESSION_SINK_FAILURE = "Sink failure in session %s, destroying"
    SESSION_TRACK_FAILURE = "Unexpected error starting '%s' in session %s, destroying"
    SESSION_ENDED_WHILE_CONNECTING = "Session %s ended while connecting, releasing destination"
    SESSION_REPLACED = "Replacing ended session for destination %s"
    REGISTRY_SHUTDOWN = "Shutting down %d playlist sessions"

    # Queue
    QUEUE_ADDED = "Session %s accepted %d tracks, rejected %d (queue length %d)"
    QUEUE_EXHAUSTED = "Queue exhausted for session %s"
    QUEUE_SHUFFLED = "Queue shuffled for session %s"

    # Playback
    TRACK_PLAYING = "Now playing '%s' in session %s"
    TRACK_ENDED = "Track '%s' ended (%s) in session %s"
    TRACK_UNAVAILABLE = "Track '%s' unavailable in session %s, advancing"
    TRACK_SKIPPED = "Skipped '%s' in session %s"
    TRACK_DUPLICATE_COMPLETION = "Ignoring repeated completion signal for '%s' in session %s"
    PLAYBACK_PAUSED = "Playback paused in session %s"
    PLAYBACK_RESUMED = "Playback resumed in session %s"
    PLAYBACK_ERROR = "Playback error in session %s: %s"
    ENQUEUE_RESOLUTION_ERROR = "Failed to resolve query %r"

    # Volume
    VOLUME_SET = "Volume set to %s%% in session %s"
    VOLUME_FADE_STARTED = "Fading volume %s%% -> %s%% in session %s"
    VOLUME_FADE_CANCELLED = "Cancelled in-flight fade in session %s"

    # Streams
    STREAM_TIMEOUT = "Stream acquisition for '%s' timed out after %ss"
    STREAM_UNAVAILABLE = "Stream for '%s' unavailable: %s"

    # Providers
    PROVIDER_SELECTED = "Selected provider %s for query %r"
    PROVIDER_NOTHING_RESOLVED = "Provider %s resolved nothing for query %r"
    YTDLP_FAILED_EXTRACT_INFO = "yt-dlp failed to extract info for %s"
    YTDLP_FAILED_SEARCH = "yt-dlp search failed for query %r"
    YTDLP_FAILED_EXTRACT_PLAYLIST = "yt-dlp failed to extract playlist %s"
    YTDLP_PLAYLIST_FALLBACK = "Playlist %s yielded no entries, resolving as a video"
    YTDLP_NO_VIDEO_ID = "Skipping yt-dlp entry without a video id: %s"

    # Voice
    VOICE_CONNECTED = "Connected to voice channel %s"
    VOICE_CONNECTION_TIMEOUT = "Timed out connecting to voice channel %s"
    VOICE_CLIENT_ERROR = "Discord voice client error: %s"
    VOICE_NO_PERMISSION = "No permission to join voice channel %s"
    VOICE_DISCONNECTED = "Disconnected from voice channel %s"
    FFMPEG_SOURCE_CLEANUP_ERROR = "Error cleaning up FFmpeg source: %s"
    FFMPEG_CLIENT_ERROR = "Could not create FFmpeg source: %s"
    DISPATCHER_LOOP_CLOSED = "Event loop closed before playback end could be reported"

    # Bot
    BOT_SETUP = "Setting up bot"
    BOT_COG_LOADED = "Loaded cog %s"
    BOT_SYNCED_GUILD = "Synced %d commands to guild %s"
    BOT_SYNCED_GLOBAL = "Synced %d global commands"
    BOT_SYNC_FAILED = "Command sync failed: %s"
    BOT_READY = "Logged in as %s (%s)"
    BOT_SHUTTING_DOWN = "Shutting down bot"
    BOT_SHUTDOWN_TIMEOUT = "Graceful shutdown timed out after %ss"
    BOT_SLASH_COMMAND_ERROR = "Slash command %s failed: %s"
    BOT_ERROR_MESSAGE_SEND_FAILED = "Could not deliver error message to user"
    BOT_FATAL_ERROR = "Fatal error: %s"
    BOT_STOPPED = "Bot stopped"

    # Bootstrap
    APP_STARTING = "Starting discord-playlist ({environment})"
    LOGGING_CONFIG_FALLBACK = "Could not load logging config %s (%s), using basic logging"


class DiscordUIMessages:
    """Replies sent by the slash-command surface."""

    STATE_SERVER_ONLY = "This command can only be used in a server."
    STATE_NEED_TO_BE_IN_VOICE = "You need to be in a voice channel."
    STATE_NO_SESSION = "Nothing is playing in your voice channel."
    STATE_QUEUE_EMPTY = "The queue is empty."

    ACTION_SKIPPED = "Skipped **{title}**."
    ACTION_PAUSED = "Paused."
    ACTION_RESUMED = "Resumed."
    ACTION_STOPPED = "Stopped and cleared the queue."
    ACTION_SHUFFLED = "Shuffled {count} tracks."

    NOW_PLAYING = "Now playing **{title}** `{progress}`"
    QUEUE_HEADER = "Up next ({count}):"
    QUEUE_LINE = "{position}. {title} `{duration}`"
    QUEUE_MORE = "...and {count} more"

    ERROR_GENERIC = "An error occurred: {error}"
