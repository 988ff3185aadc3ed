"""Application Settings and Configuration

Pydantic-based settings management using environment variables.
Settings are loaded from environment variables with support for .env files,
type validation, and sensible defaults. All settings are frozen and immutable
after initialization.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..domain.shared.messages import ErrorMessages
from ..domain.shared.types import BYTES_PER_KB, MAX_SOUND_LIMIT, MAX_SOUND_NAME_LENGTH
from ..domain.shared.validators import validate_discord_snowflake


class DatabaseSettings(BaseModel):
    """Database configuration."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    url: str = Field(
        default="sqlite:///data/dwight.db",
        validation_alias=AliasChoices("url", "database_url", "db_url"),
    )
    busy_timeout_ms: int = Field(
        default=5000,
        ge=1000,
        le=30000,
        validation_alias=AliasChoices("busy_timeout_ms", "busy_timeout"),
    )
    connection_timeout_s: int = Field(
        default=10,
        ge=1,
        le=60,
        validation_alias=AliasChoices("connection_timeout_s", "connection_timeout"),
    )

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Only SQLite is supported by the catalog store."""
        if not v.startswith("sqlite://") and v != ":memory:":
            raise ValueError(ErrorMessages.INVALID_DATABASE_URL)
        return v


class DiscordSettings(BaseModel):
    """Discord bot configuration."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    token: SecretStr = Field(
        default=SecretStr(""), validation_alias=AliasChoices("token", "bot_token", "discord_token")
    )
    command_prefix: str = Field(
        default="!",
        min_length=1,
        max_length=5,
        validation_alias=AliasChoices("command_prefix", "prefix"),
    )
    owner_ids: tuple[int, ...] = Field(
        default_factory=tuple, validation_alias=AliasChoices("owner_ids", "owners")
    )
    test_guild_ids: tuple[int, ...] = Field(
        default_factory=tuple, validation_alias=AliasChoices("test_guild_ids", "test_guilds")
    )
    sync_on_startup: bool = False

    @field_validator("owner_ids", "test_guild_ids", mode="before")
    @classmethod
    def validate_snowflake_ids(cls, v: tuple[int, ...] | list[int] | str) -> tuple[int, ...]:
        """Validate Discord snowflake IDs; accept lists and comma-separated strings."""
        if isinstance(v, str):
            v = tuple(int(part) for part in v.split(",") if part.strip())
        if isinstance(v, list):
            v = tuple(v)
        for snowflake in v:
            validate_discord_snowflake(snowflake)
        return v


class AudioSettings(BaseModel):
    """Audio storage and playback configuration."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    sounds_path: str = Field(
        default="data/sounds",
        validation_alias=AliasChoices("sounds_path", "sounds_folder", "sounds_dir"),
    )
    max_file_size_bytes: int = Field(default=200 * BYTES_PER_KB, ge=1, le=25 * 1024 * BYTES_PER_KB)
    allowed_extensions: tuple[str, ...] = ("mp3", "ogg", "wav", "m4a", "webm", "opus", "flac")
    default_volume: float = Field(default=0.5, ge=0.0, le=2.0)
    connect_timeout_seconds: float = Field(default=10.0, gt=0.0, le=60.0)
    ffmpeg_options: dict[str, str] = Field(
        default_factory=lambda: {
            "before_options": "-nostdin",
            "options": "-vn",
        }
    )

    @field_validator("allowed_extensions", mode="before")
    @classmethod
    def normalise_extensions(cls, v: tuple[str, ...] | list[str] | str) -> tuple[str, ...]:
        if isinstance(v, str):
            v = v.split(",")
        return tuple(ext.strip().lower().lstrip(".") for ext in v if ext.strip())


class CatalogSettings(BaseModel):
    """Sound catalog limits."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    default_sound_limit: int = Field(
        default=20,
        ge=1,
        le=MAX_SOUND_LIMIT,
        validation_alias=AliasChoices("default_sound_limit", "sound_limit", "max_sounds"),
    )
    max_sound_name_length: int = Field(default=MAX_SOUND_NAME_LENGTH, ge=1, le=MAX_SOUND_NAME_LENGTH)
    auto_rebuild_on_change: bool = True


class RenderingSettings(BaseModel):
    """Soundboard channel rendering configuration."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    channel_name: str = Field(default="sounds", min_length=1, max_length=100)
    channel_topic: str = Field(default="", max_length=1024)
    page_size: int = Field(default=5, ge=1, le=25)
    send_delay_seconds: float = Field(
        default=1.1,
        ge=0.0,
        le=10.0,
        validation_alias=AliasChoices("send_delay_seconds", "send_delay"),
    )
    reconcile_existing: bool = True
    rebuild_on_ready: bool = True

    @field_validator("channel_name")
    @classmethod
    def validate_channel_name(cls, v: str) -> str:
        """Discord lower-cases text channel names and turns spaces into dashes."""
        return "-".join(v.strip().lower().split())


class Settings(BaseSettings):
    """Application settings container.

    Automatically loads configuration from environment variables.

    Environment variable naming:
    - ENVIRONMENT, DEBUG, LOG_LEVEL (top-level)
    - DISCORD__TOKEN, DISCORD__COMMAND_PREFIX, DISCORD__OWNER_IDS, ...
    - DATABASE__URL, AUDIO__SOUNDS_PATH, CATALOG__DEFAULT_SOUND_LIMIT, ...
    - RENDERING__CHANNEL_NAME, RENDERING__PAGE_SIZE, ...
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    environment: Literal["development", "production", "test"] = "development"
    debug: bool = False
    log_level: str = "INFO"

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    discord: DiscordSettings = Field(default_factory=DiscordSettings)
    audio: AudioSettings = Field(default_factory=AudioSettings)
    catalog: CatalogSettings = Field(default_factory=CatalogSettings)
    rendering: RenderingSettings = Field(default_factory=RenderingSettings)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(ErrorMessages.INVALID_LOG_LEVEL.format(level=v, valid_levels=valid_levels))
        return v_upper


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached application settings.

    Settings are automatically loaded from:
    1. .env file (if present)
    2. Environment variables
    3. Default values
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing)."""
    get_settings.cache_clear()
