# -*- coding: utf-8 -*-
"""Resolve per-run CLI flags against persisted defaults into WatchOptions."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Optional

from watchplus.config.config import Settings
from watchplus.config.duration import parse_duration
from watchplus.exceptions import InvalidIntervalError, MissingRequiredConfigError

RESEND_API_KEY_ENV = "RESEND_API_KEY"
DEFAULT_INTERVAL_SECONDS = 2.0

_PERMANENT_ALIASES = frozenset({"permanent", "cumulative"})


class DiffMode(StrEnum):
    """How changed lines are highlighted between renders."""

    OFF = "off"
    TRANSIENT = "transient"
    PERMANENT = "permanent"


@dataclass(frozen=True, slots=True)
class CliFlags:
    """Raw values given on the command line; None means "not given"."""

    interval: Optional[float] = None
    differences: bool | str | None = None
    errexit: bool = False
    chgexit: bool = False
    color: bool = False
    no_title: bool = False
    no_wrap: bool = False
    exec_mode: bool = False
    precise: bool = False
    beep: bool = False
    email: Optional[str] = None
    to: Optional[str] = None
    sender: Optional[str] = None
    cooldown: Optional[str] = None
    subject: Optional[str] = None
    api_key: Optional[str] = None


@dataclass(frozen=True, slots=True)
class WatchOptions:
    """Fully resolved options for one watch run."""

    command: tuple[str, ...]
    interval: float = DEFAULT_INTERVAL_SECONDS
    """Seconds between runs."""
    differences: DiffMode = DiffMode.OFF
    errexit: bool = False
    chgexit: bool = False
    color: bool = False
    no_title: bool = False
    no_wrap: bool = False
    exec_mode: bool = False
    precise: bool = False
    beep: bool = False
    email: Optional[str] = None
    sender: Optional[str] = None
    cooldown_ms: int = 60_000
    subject: Optional[str] = None
    resend_api_key: Optional[str] = field(default=None, repr=False)

    @property
    def command_text(self) -> str:
        """Command tokens joined by spaces (label for headers and diffs)."""
        return " ".join(self.command)

    @property
    def email_subject(self) -> str:
        """Custom subject or the default one naming the command."""
        return self.subject or f"watch+: change detected in '{self.command_text}'"

    @property
    def email_enabled(self) -> bool:
        return bool(self.email and self.sender and self.resend_api_key)


def _resolve_differences(value: bool | str | None) -> DiffMode:
    if value is None or value is False:
        return DiffMode.OFF
    if isinstance(value, str) and value.strip().lower() in _PERMANENT_ALIASES:
        return DiffMode.PERMANENT
    return DiffMode.TRANSIENT


def resolve_options(
    cli: CliFlags,
    settings: Settings,
    command: list[str] | tuple[str, ...],
) -> WatchOptions:
    """Merge CLI flags with persisted defaults.

    Precedence: explicit flag > environment / persisted default > built-in default.
    The API key additionally honours the conventional RESEND_API_KEY variable
    ahead of the persisted value.

    Raises:
        InvalidDurationError: If the cooldown literal cannot be parsed.
        InvalidIntervalError: If the interval is not positive.
    """
    interval = cli.interval if cli.interval is not None else settings.watch.default_interval
    if interval <= 0:
        raise InvalidIntervalError(interval)

    cooldown_text = cli.cooldown if cli.cooldown is not None else settings.email.default_cooldown
    cooldown_ms = parse_duration(cooldown_text)

    api_key = cli.api_key or os.environ.get(RESEND_API_KEY_ENV) or settings.email.resend_api_key

    return WatchOptions(
        command=tuple(command),
        interval=float(interval),
        differences=_resolve_differences(cli.differences),
        errexit=cli.errexit,
        chgexit=cli.chgexit,
        color=cli.color,
        no_title=cli.no_title,
        no_wrap=cli.no_wrap,
        exec_mode=cli.exec_mode,
        precise=cli.precise,
        beep=cli.beep,
        email=cli.email or cli.to or settings.email.default_to,
        sender=cli.sender or settings.email.default_from,
        cooldown_ms=cooldown_ms,
        subject=cli.subject,
        resend_api_key=api_key,
    )


def validate_email_options(options: WatchOptions) -> None:
    """Fail before the loop starts when email is requested but cannot be sent.

    Raises:
        MissingRequiredConfigError: If a recipient is set without an API key or sender.
    """
    if not options.email:
        return
    if not options.resend_api_key:
        raise MissingRequiredConfigError(
            "--email requires a Resend API key. Set RESEND_API_KEY, use --api-key, "
            "or add email.resend_api_key to ~/.watchplus/config.json"
        )
    if not options.sender:
        raise MissingRequiredConfigError(
            "--email requires --from (sender address). Use --from or set "
            "email.default_from in ~/.watchplus/config.json"
        )
