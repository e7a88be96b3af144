"""Exceptions subpackage."""

from watchplus.exceptions.exceptions import (
    ConfigurationError,
    EmailDeliveryError,
    InvalidDurationError,
    InvalidIntervalError,
    MissingRequiredConfigError,
    WatchPlusError,
    WatchTerminated,
)

__all__ = [
    "ConfigurationError",
    "EmailDeliveryError",
    "InvalidDurationError",
    "InvalidIntervalError",
    "MissingRequiredConfigError",
    "WatchPlusError",
    "WatchTerminated",
]
