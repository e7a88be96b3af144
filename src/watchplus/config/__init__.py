"""Configuration subpackage."""

from watchplus.config.config import (
    AppSettings,
    EmailSettings,
    LoggingSettings,
    Settings,
    WatchSettings,
    config_file_path,
    get_settings,
)
from watchplus.config.duration import parse_duration
from watchplus.config.options import (
    CliFlags,
    DiffMode,
    WatchOptions,
    resolve_options,
    validate_email_options,
)

__all__ = [
    "AppSettings",
    "CliFlags",
    "DiffMode",
    "EmailSettings",
    "LoggingSettings",
    "Settings",
    "WatchOptions",
    "WatchSettings",
    "config_file_path",
    "get_settings",
    "parse_duration",
    "resolve_options",
    "validate_email_options",
]
