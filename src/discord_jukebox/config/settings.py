"""Application Settings and Configuration

Pydantic-based settings management using environment variables.
Settings are loaded from environment variables with support for .env files,
type validation, and sensible defaults. All settings are frozen and immutable
after initialization.
"""

from __future__ import annotations

import sys
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, BaseModel, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..domain.shared.messages import ErrorMessages
from ..domain.shared.validators import validate_discord_snowflake

DEFAULT_USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64)"


class DiscordSettings(BaseModel):
    """Discord bot configuration."""

    model_config = SettingsConfigDict(frozen=True, populate_by_name=True)

    token: SecretStr = Field(
        default=SecretStr(""), validation_alias=AliasChoices("token", "bot_token", "discord_token")
    )
    command_prefix: str = Field(
        default="!",
        min_length=1,
        max_length=5,
        validation_alias=AliasChoices("command_prefix", "prefix"),
    )
    guild_ids: tuple[int, ...] = Field(
        default_factory=tuple, validation_alias=AliasChoices("guild_ids", "guilds")
    )
    sync_on_startup: bool = True

    @field_validator("guild_ids", mode="before")
    @classmethod
    def validate_snowflake_ids(cls, v: tuple[int, ...] | list[int]) -> tuple[int, ...]:
        """Validate Discord snowflake IDs and convert lists to tuples."""
        if isinstance(v, list):
            v = tuple(v)
        for snowflake in v:
            validate_discord_snowflake(snowflake)
        return v


class AudioSettings(BaseModel):
    """yt-dlp invocation and temp file configuration."""

    model_config = SettingsConfigDict(frozen=True, populate_by_name=True)

    ytdlp_command: tuple[str, ...] = Field(
        default_factory=lambda: (sys.executable, "-m", "yt_dlp"),
        min_length=1,
        validation_alias=AliasChoices("ytdlp_command", "ytdlp_cmd"),
    )
    ytdlp_format: str = "bestaudio[ext=opus]/bestaudio"
    user_agent: str = DEFAULT_USER_AGENT
    cookie_file: str | None = Field(
        default=None, validation_alias=AliasChoices("cookie_file", "cookies", "cookies_file")
    )
    scratch_dir: str = Field(
        default="temp", validation_alias=AliasChoices("scratch_dir", "temp_dir")
    )
    min_download_bytes: int = Field(default=1024, ge=0)

    @field_validator("ytdlp_command", mode="before")
    @classmethod
    def split_command(cls, v: str | list[str] | tuple[str, ...]) -> tuple[str, ...]:
        """Accept a whitespace-separated string as well as a JSON array."""
        if isinstance(v, str):
            return tuple(v.split())
        return tuple(v)

    @field_validator("cookie_file")
    @classmethod
    def validate_cookie_file(cls, v: str | None) -> str | None:
        if v is not None and not v.strip():
            raise ValueError(ErrorMessages.COOKIE_FILE_EMPTY)
        return v

    @property
    def scratch_path(self) -> Path:
        return Path(self.scratch_dir)

    @property
    def cookie_path(self) -> Path | None:
        return Path(self.cookie_file) if self.cookie_file else None


class PlaybackSettings(BaseModel):
    """Playback engine timing and retry configuration."""

    model_config = SettingsConfigDict(frozen=True, populate_by_name=True)

    retry_attempts: int = Field(
        default=3, ge=1, le=10, validation_alias=AliasChoices("retry_attempts", "download_attempts")
    )
    retry_backoff_seconds: float = Field(
        default=2.0, ge=0.0, validation_alias=AliasChoices("retry_backoff_seconds", "retry_backoff")
    )
    error_debounce_seconds: float = Field(
        default=0.5, ge=0.0, validation_alias=AliasChoices("error_debounce_seconds", "error_debounce")
    )
    voice_connect_timeout: float = Field(default=10.0, gt=0.0)


class CatalogSettings(BaseModel):
    """Spotify catalog configuration."""

    model_config = SettingsConfigDict(frozen=True, populate_by_name=True)

    client_id: str = Field(
        default="", validation_alias=AliasChoices("client_id", "spotify_client_id")
    )
    client_secret: SecretStr = Field(
        default=SecretStr(""),
        validation_alias=AliasChoices("client_secret", "spotify_client_secret"),
    )
    page_size: int = Field(default=100, ge=1, le=100)
    short_link_timeout: float = Field(default=5.0, gt=0.0)

    @property
    def is_configured(self) -> bool:
        return bool(self.client_id) and bool(self.client_secret.get_secret_value())


class Settings(BaseSettings):
    """Application settings container.

    Automatically loads configuration from environment variables.

    Environment variable naming:
    - ENVIRONMENT, DEBUG, LOG_LEVEL (top-level)
    - DISCORD__TOKEN, DISCORD__GUILD_IDS, etc. (nested with ``__``)
    - AUDIO__COOKIE_FILE, AUDIO__SCRATCH_DIR
    - PLAYBACK__RETRY_ATTEMPTS, PLAYBACK__RETRY_BACKOFF_SECONDS
    - CATALOG__CLIENT_ID, CATALOG__CLIENT_SECRET
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

    discord: DiscordSettings = Field(default_factory=DiscordSettings)
    audio: AudioSettings = Field(default_factory=AudioSettings)
    playback: PlaybackSettings = Field(default_factory=PlaybackSettings)
    catalog: CatalogSettings = Field(default_factory=CatalogSettings)

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
