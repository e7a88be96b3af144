# -*- coding: utf-8 -*-
"""Configuration loaded from environment, .env and the persisted JSON file via Pydantic Settings.

Nested env vars use <section>__<key>, e.g. LOGGING__CONSOLE_LEVEL, EMAIL__DEFAULT_TO.
The persisted defaults live in ~/.watchplus/config.json (override with WATCHPLUS_CONFIG)
and use the same nesting, e.g. {"email": {"default_from": "bot@example.com"}}.
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import Field
from pydantic_settings import (
    BaseSettings,
    JsonConfigSettingsSource,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

CONFIG_PATH_ENV = "WATCHPLUS_CONFIG"
DEFAULT_CONFIG_PATH = Path.home() / ".watchplus" / "config.json"


def config_file_path() -> Path:
    """Return the persisted config file location (WATCHPLUS_CONFIG wins over the default)."""
    override = os.environ.get(CONFIG_PATH_ENV)
    if override and override.strip():
        return Path(override.strip()).expanduser()
    return DEFAULT_CONFIG_PATH


class AppSettings(BaseSettings):
    """General application configuration."""

    model_config = SettingsConfigDict(extra="ignore")

    app_name: str = "watchplus"
    service_version: Optional[str] = None
    environment: Literal["development", "test", "production"] = "production"


class LoggingSettings(BaseSettings):
    """Structured logging configuration for structlog/stdlib/Logfire."""

    model_config = SettingsConfigDict(extra="ignore")

    # The screen belongs to the renderer, so console logs go to stderr and stay quiet by default
    console_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "WARNING"
    file_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    logfire_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    log_to_console: bool = True
    log_to_file: bool = False
    log_file_path: str = "~/.watchplus/logs/watchplus.log"
    # TimedRotatingFileHandler: when to rotate (S/M/H/D/W0–W6/midnight), interval, backups to keep
    log_file_when: Literal[
        "S", "M", "H", "D", "W0", "W1", "W2", "W3", "W4", "W5", "W6", "midnight"
    ] = "midnight"
    log_file_interval: int = 1
    log_file_backup_count: int = 7
    log_file_utc: bool = True

    json_format: bool = False

    logfire_enabled: bool = False
    logfire_token: Optional[str] = None


class WatchSettings(BaseSettings):
    """Defaults for the poll loop."""

    model_config = SettingsConfigDict(extra="ignore")

    default_interval: float = Field(
        default=2.0,
        gt=0.0,
        description="Seconds between command runs when --interval is not given.",
    )
    sleep_slice_ms: int = Field(
        default=50,
        ge=1,
        le=50,
        description="Upper bound of one sleep slice; keypresses are noticed at slice boundaries.",
    )
    shutdown_drain_seconds: float = Field(
        default=5.0,
        ge=0.0,
        le=60.0,
        description="How long to wait for in-flight notifications when the loop stops.",
    )


class EmailSettings(BaseSettings):
    """Email notification defaults and Resend transport configuration."""

    model_config = SettingsConfigDict(extra="ignore")

    resend_api_key: Optional[str] = Field(default=None, description="Resend API key.")
    default_to: Optional[str] = Field(default=None, description="Recipient used when --email is not given.")
    default_from: Optional[str] = Field(default=None, description="Sender used when --from is not given.")
    default_cooldown: str = Field(
        default="1m",
        description='Minimum time between emails, e.g. "30s", "5m".',
    )
    api_base_url: str = Field(
        default="https://api.resend.com",
        description="Resend REST API base URL.",
    )
    timeout_seconds: float = Field(default=15.0, ge=1.0, le=120.0)
    coalesce_on_send: bool = Field(
        default=False,
        description=(
            "When the cooldown has elapsed and a queued change exists, send one diff "
            "from the queued baseline to the newest output instead of dropping the queued change."
        ),
    )


class Settings(BaseSettings):
    """Root application configuration.

    Groups all sub-configurations so the rest of the code does not read
    environment variables or the config file directly. Precedence, highest
    first: init overrides, environment, .env, persisted JSON file, defaults.
    """

    model_config = SettingsConfigDict(
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    app: AppSettings = Field(default_factory=AppSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    watch: WatchSettings = Field(default_factory=WatchSettings)
    email: EmailSettings = Field(default_factory=EmailSettings)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            JsonConfigSettingsSource(settings_cls, json_file=config_file_path()),
            file_secret_settings,
        )

    @classmethod
    def from_env(cls, **overrides: Any) -> Settings:
        """Build settings from environment, .env and the config file, with optional overrides.

        Nested overrides are passed as nested dicts, e.g.
        from_env(email={"default_cooldown": "30s"}).
        """
        return cls(**overrides)


@lru_cache
def get_settings() -> Settings:
    """Return a single cached instance of Settings.

    Typical usage:

        from watchplus.config import get_settings

        settings = get_settings()
        cooldown = settings.email.default_cooldown
    """
    return Settings()
