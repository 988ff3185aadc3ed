"""Centralized message constants for error messages, log lines, and user feedback."""

from __future__ import annotations


class ErrorMessages:
    """Error messages for exceptions and validation failures."""

    # Discord ID Validation Errors
    INVALID_SNOWFLAKE = "Discord snowflake ID must be positive"
    SNOWFLAKE_TOO_LARGE = "Discord snowflake ID exceeds maximum value (2^64)"

    # Catalog Validation Errors
    EMPTY_SOUND_NAME = "Sound name cannot be empty"
    SOUND_NAME_TOO_LONG = "Sound name cannot be longer than {max_length} characters"
    DUPLICATE_SOUND_NAME = "A sound named '{name}' already exists"
    SOUND_LIMIT_REACHED = "This server already has {limit} sounds, remove one first"
    FILE_TOO_LARGE = "File is {size} KB, the limit is {limit} KB"
    FILE_TYPE_NOT_ALLOWED = "Files of type '.{extension}' are not supported (allowed: {allowed})"
    EMPTY_AUDIO_FILE = "The uploaded file is empty"
    SOUND_NAME_NOT_FOUND = "No sound named '{name}'"
    SOUND_FILE_MISSING = "Audio file for sound {sound_id} is missing"

    # Time/Date Validation Errors
    TIMEZONE_REQUIRED_UTC_DATETIME = "UtcDateTime requires a timezone-aware datetime"

    # Settings Validation Errors
    INVALID_DATABASE_URL = "Database URL must start with sqlite://"
    INVALID_LOG_LEVEL = "Invalid log level: {level}. Must be one of {valid_levels}"

    # Authentication/Security Errors
    DISCORD_TOKEN_REQUIRED = "DISCORD__TOKEN environment variable is required"
    BOT_NOT_INITIALIZED = "Bot not initialized. Call set_bot() first."
    GUILD_NOT_AVAILABLE = "Guild {guild_id} is not available to the bot"
    CHANNEL_NOT_AVAILABLE = "Channel {channel_id} is not available to the bot"

    # Dependency Injection
    CONTAINER_NOT_FOUND = "Container not found on bot instance"


class LogTemplates:
    """Log message templates for structured logging.

    Use these with logger.info(), logger.error(), etc. and pass values as parameters
    for proper log formatting and structured logging support.
    """

    # Database Lifecycle
    DATABASE_INITIALIZED = "Database initialized at %s"
    DATABASE_CLOSED = "Database manager closed"
    TABLE_MIGRATED = "Migrated table %s: added column %s"

    # Catalog
    SOUND_ADDED = "Added sound %s (%r) in guild %s"
    SOUND_REMOVED = "Removed sound %s (%r) in guild %s"
    SOUND_RENAMED = "Renamed sound %s in guild %s: %r -> %r"
    ENTREE_SET = "Entree for user %s in guild %s set to sound %s"
    ENTREE_REMOVED = "Entree for user %s in guild %s removed"
    GUILD_DATA_REMOVED = "Removed catalog data for guild %s"
    PLAY_RECORD_FAILED = "Failed to record play of sound %s by user %s"
    SOUND_FILE_WRITE_FAILED = "Failed to write audio file %s"

    # Rebuild Coordination
    REBUILD_STARTED = "Rebuilding soundboard for guild %s"
    REBUILD_COALESCED = "Rebuild already running for guild %s, queued one trailing rebuild"
    REBUILD_TRAILING = "Starting trailing rebuild for guild %s"
    REBUILD_FAILED = "Soundboard rebuild failed for guild %s"
    REBUILD_SKIPPED = "Skipping guild %s during startup rebuild: %s"
    REBUILD_ALL = "Rebuilding soundboards for %d guild(s)"

    # Channel Rendering
    RENDER_COMPLETE = "Rendered %d control(s) in %d message(s) for guild %s (channel %s)"
    RENDER_ADOPTED = "Existing soundboard channel %s in guild %s already matches, adopted %d control(s)"
    RENDER_RECREATING = "Recreating soundboard channel %s in guild %s"
    RENDER_CREATING = "Creating soundboard channel in guild %s"
    RENDER_NOT_DELETABLE = "Cannot delete soundboard channel %s in guild %s, notified owner"
    RENDER_OWNER_NOTIFY_FAILED = "Could not notify owner of guild %s: %s"
    RENDER_HISTORY_UNREADABLE = "Cannot read history of channel %s: %s"

    # Playback
    PLAYBACK_STARTED = "Playing sound %s in channel %s (guild %s) for user %s"
    PLAYBACK_REPLACED = "Replaced audio in channel %s with sound %s"
    PLAYBACK_STOPPED = "Stopped playback in channel %s on user request"
    PLAYBACK_PREEMPTED = "Pre-empting session in channel %s for a new channel in guild %s"
    PLAYBACK_IDLE = "Playback finished in channel %s, leaving"
    PLAYBACK_IDLE_TEARDOWN_FAILED = "Teardown after playback in channel %s failed: %s"
    PLAYBACK_ATTACH_FAILED = "Could not attach player in channel %s: %s"
    PLAYBACK_ERROR = "Player error in guild %s: %s"
    PLAYBACK_STOP_ALL = "Stopping %d active playback session(s)"

    # Voice Connection
    VOICE_CONNECTED = "Connected to voice channel %s in %s"
    VOICE_DISCONNECTED = "Disconnected from voice in guild %s"
    VOICE_CONNECTION_TIMEOUT = "Timeout connecting to channel %s"
    VOICE_NO_PERMISSION = "No permission to connect to channel %s"
    VOICE_CLIENT_ERROR = "Client error connecting: %r"
    VOICE_STALE_CLEANUP = "Found stale voice client in guild %s, cleaning up"
    VOICE_JOIN_FAILED = "Could not join voice channel %s: %s"
    VOICE_DISCONNECT_FAILED = "Failed to disconnect from voice in guild %s: %r"
    VOICE_SELF_DEAFEN_FAILED = "Failed to self-deafen in guild %s: %r"
    CHANNEL_NOT_VOICE = "Channel %s is not a voice channel"
    GUILD_NOT_FOUND = "Guild %s not found"

    # Interactions
    CONTROL_IGNORED = "Ignoring control %s in channel %s"
    CONTROL_UNKNOWN = "Unknown control %s in guild %s"
    CONTROL_SOUND_MISSING = "Control %s points at a missing sound: %s"
    CONTROL_DISPATCH_FAILED = "Failed to dispatch control %s"
    INTERACTION_ACK_FAILED = "Failed to acknowledge interaction %s: %r"
    ENTREE_PLAY = "Playing entree %s for user %s joining channel %s"
    ENTREE_SOUND_MISSING = "Entree of user %s points at a missing sound: %s"
    ENTREE_FAILED = "Entree handling failed for user %s in guild %s"
    GUILD_JOINED = "Joined guild: %s (%s)"
    GUILD_REMOVED = "Left guild: %s (%s)"
    GUILD_CLEANUP_FAILED = "Failed to clean up data for guild %s"

    # Bot Lifecycle
    BOT_STARTING = "Starting Dwight soundboard (environment: {environment})"
    BOT_STARTING_RUN = "Starting bot..."
    BOT_STOPPED = "Bot stopped"
    BOT_KEYBOARD_INTERRUPT = "Bot stopped by keyboard interrupt"
    BOT_FATAL_ERROR = "Fatal error: %s"
    BOT_STORAGE = "Sounds stored in %s, catalog database %s"
    BOT_FFMPEG_MISSING = "ffmpeg not found on PATH; sounds cannot be played until it is installed"
    BOT_SETUP = "Setting up bot..."
    BOT_CONTAINER_INITIALIZED = "Container initialized"
    BOT_CONTAINER_INIT_FAILED = "Failed to initialize container: %s"
    BOT_SETUP_COMPLETE = "Bot setup complete"
    BOT_COG_LOADED = "Loaded cog: %s"
    BOT_COG_LOAD_FAILED = "Failed to load cog %s: %s"
    BOT_COGS_LOADED_SUMMARY = "Cogs loaded: %d, failed: %d"
    BOT_SLASH_COMMAND_ERROR = "Slash command error in %s: %s"
    BOT_ERROR_MESSAGE_SEND_FAILED = "Failed to send error message"
    BOT_SYNCED_GUILD = "Synced %d commands to guild %s"
    BOT_SYNC_GUILD_FAILED = "Failed to sync to guild %s: %s"
    BOT_SYNCED_GLOBAL = "Synced %d global commands"
    BOT_SYNC_GLOBAL_FAILED = "Failed to sync global commands: %s"
    BOT_SYNC_ON_STARTUP_FAILED = "Command sync on startup failed: %s"
    BOT_READY = "Bot ready as %s (%s)"
    BOT_CONNECTED_GUILDS = "Connected to %s guilds"
    BOT_SHUTTING_DOWN = "Shutting down bot..."
    BOT_CONTAINER_SHUTDOWN = "Container shutdown complete"
    BOT_CONTAINER_SHUTDOWN_ERROR = "Error during container shutdown: %s"
    BOT_SHUTDOWN_COMPLETE = "Bot shutdown complete"
    BOT_SHUTDOWN_TIMEOUT = "Graceful shutdown timed out after %.0fs"

    # Admin
    ADMIN_COMMAND_FAILED = "Admin command failed"
    ADMIN_SYNC_COMMANDS_FAILED = "Failed to sync commands"
    ADMIN_SOUND_LIMIT_SET = "Sound limit of guild %s set to %d"
    SUBSCRIBER_STOP_FAILED = "Failed stopping %s: %r"


class DiscordUIMessages:
    """User-facing strings sent to Discord."""

    # Soundboard Channel
    SOUNDBOARD_TOPIC = "Click a button while in a voice channel to play a sound. Click again to stop."
    SOUNDBOARD_PAGE = "🔊 **Sounds** ({page}/{pages})"
    SOUNDBOARD_EMPTY = "No sounds yet. Use `/add_sound` to upload one."
    OWNER_CANNOT_DELETE_CHANNEL = (
        "I can't rebuild the `#{channel_name}` channel in **{guild_name}** because I am not "
        "allowed to delete it. Please give me the Manage Channels permission on it, or delete "
        "it yourself and run `/rebuild`."
    )

    # Control Feedback
    STATE_MUST_BE_IN_VOICE = "You must be in a voice channel to play a sound!"
    STATE_SERVER_ONLY = "This command can only be used in a server."
    STATE_VERIFY_MEMBER_FAILED = "Could not verify your server membership."
    ERROR_STALE_CONTROL = "This button is out of date. Ask an admin to run `/rebuild`."
    ERROR_SOUND_UNAVAILABLE = "That sound is no longer available."
    ERROR_COULD_NOT_JOIN_VOICE = "I couldn't join your voice channel."

    # Catalog Commands
    SUCCESS_REBUILT = "✅ Soundboard rebuilt."
    SUCCESS_REBUILD_QUEUED = "⏳ A rebuild is already running; another one will follow it."
    ERROR_CHANNEL_PERMISSION = "❌ I am not allowed to manage the soundboard channel."
    SUCCESS_SOUND_ADDED = "✅ Added **{name}**{hidden_note}."
    SUCCESS_SOUND_RENAMED = "✅ Renamed **{old_name}** to **{new_name}**."
    SUCCESS_SOUND_DELETED = "🗑️ Deleted **{name}**."
    SUCCESS_ENTREE_SET = "✅ {user} will now be greeted with **{name}**."
    SUCCESS_ENTREE_REMOVED = "🗑️ Removed the entree of {user}."
    INFO_NO_ENTREE = "{user} has no entree."
    HIDDEN_NOTE = " (hidden)"
    SOUNDS_HEADER = "**Sounds** ({count}/{limit}):"
    SOUNDS_EMPTY = "No sounds yet."
    ENTREES_HEADER = "**Entrees** ({count}):"
    ENTREES_EMPTY = "No entrees yet."
    PLAYS_HEADER = "**{name}**: last {count} play(s):"
    PLAYS_EMPTY = "**{name}** has not been played yet."
    ERROR_PREFIX = "❌ {message}"

    # Admin
    SUCCESS_SYNCED_GLOBAL = "✅ Synced {count} global commands."
    SUCCESS_SYNCED_GUILD = "✅ Synced {count} commands to this server."
    ERROR_RUN_IN_SERVER_OR_SYNC_GLOBAL = "❌ Run this in a server or use `sync global`."
    ERROR_SYNC_FAILED_SEE_LOGS = "❌ Sync failed. See logs."
    SUCCESS_SOUND_LIMIT_SET = "✅ This server may now have up to {limit} sounds."
    ERROR_SOUND_LIMIT_INVALID = "❌ The sound limit must be between 1 and {max_limit}."
    SUCCESS_REBUILD_ALL = "✅ Rebuilt soundboards in {count} server(s)."
    SESSIONS_NONE = "No active playback sessions."
    SESSIONS_HEADER = "**Active sessions** ({count}):"
    ERROR_REQUIRES_OWNER_OR_ADMIN = "❌ This command requires bot owner or server admin."
    ERROR_MISSING_ARGUMENT = "❌ Missing argument: `{param_name}`."
    ERROR_INVALID_ARGUMENT = "❌ Invalid argument."
    ERROR_COMMAND_FAILED_SEE_LOGS = "❌ Command failed. See logs."
    ERROR_OCCURRED = "❌ An error occurred: {error}"
