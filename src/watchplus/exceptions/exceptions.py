"""Custom exceptions for configuration, delivery and loop termination."""

from __future__ import annotations


class WatchPlusError(Exception):
    """Base exception for watchplus errors."""

    pass


class ConfigurationError(WatchPlusError):
    """Raised when resolved options cannot be used to start the loop."""

    pass


class MissingRequiredConfigError(ConfigurationError):
    """Raised when a required configuration value is missing."""

    pass


class InvalidDurationError(ConfigurationError):
    """Raised when a duration literal such as "30s" cannot be parsed."""

    def __init__(self, value: str) -> None:
        super().__init__(f'Invalid duration: "{value}"')
        self.value = value


class InvalidIntervalError(ConfigurationError):
    """Raised when the polling interval is not a positive number."""

    def __init__(self, value: object) -> None:
        super().__init__(f"Invalid interval: {value!r} (must be a positive number of seconds)")
        self.value = value


class EmailDeliveryError(WatchPlusError):
    """Raised when the email transport rejects or fails to deliver a message."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.cause = cause


class WatchTerminated(WatchPlusError):
    """Raised inside the poll loop to stop it with a given process exit code."""

    def __init__(self, exit_code: int, reason: str) -> None:
        super().__init__(f"{reason} (exit code {exit_code})")
        self.exit_code = exit_code
        self.reason = reason
