"""Cooldown-aware change notifier: at most one email per cooldown window."""

from __future__ import annotations

import asyncio
import math
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import structlog

from watchplus.notifications.stylers import EmailStyler
from watchplus.notifications.types import (
    ChangeNotification,
    EmailMessage,
    EmailTransport,
    NotificationResult,
    NotificationStyler,
    PendingChange,
)
from watchplus.utils.diff import generate_diff

NO_PENDING_CHANGES = "No pending changes"
COOLDOWN_STILL_ACTIVE = "Cooldown still active"


def monotonic_ms() -> float:
    return time.monotonic() * 1000.0


def _failure_reason(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__


@dataclass
class ChangeNotifier:
    """Send change emails through a transport, coalescing changes during cooldown.

    The cooldown clock only advances on a successful send, so a failed
    delivery never blocks the next change. Calls are serialized with a lock;
    concurrent callers observe one-at-a-time semantics.
    """

    transport: EmailTransport
    styler: NotificationStyler = field(default_factory=EmailStyler)
    clock: Callable[[], float] = field(default=monotonic_ms)
    coalesce_on_send: bool = False
    get_logger: Callable[[str], Any] = field(default=structlog.get_logger)
    _pending: PendingChange | None = field(init=False, default=None)
    _last_sent_at: float | None = field(init=False, default=None)
    _lock: asyncio.Lock = field(init=False, default_factory=asyncio.Lock)
    _logger: Any = field(init=False)

    def __post_init__(self) -> None:
        self._logger = self.get_logger("ChangeNotifier")

    @property
    def has_pending(self) -> bool:
        return self._pending is not None

    @property
    def pending(self) -> PendingChange | None:
        return self._pending

    def _elapsed_ms(self) -> float:
        if self._last_sent_at is None:
            return math.inf
        return self.clock() - self._last_sent_at

    async def notify(self, change: ChangeNotification) -> NotificationResult:
        """Send the change now, or queue it if a cooldown is running.

        When the cooldown has elapsed any queued change is dropped and this
        change is sent on its own, unless coalesce_on_send is enabled, in
        which case the email spans from the queued baseline to this change's
        latest output.
        """
        async with self._lock:
            elapsed = self._elapsed_ms()
            if elapsed >= change.cooldown_ms:
                queued, self._pending = self._pending, None
                baseline = change.baseline_output
                if queued is not None:
                    if self.coalesce_on_send:
                        baseline = queued.baseline_output
                    self._logger.debug(
                        "notification_pending_superseded",
                        notification_command=change.command_label,
                        notification_coalesced=self.coalesce_on_send,
                    )
                return await self._send(
                    recipient=change.recipient,
                    sender=change.sender,
                    subject=change.subject,
                    baseline_output=baseline,
                    latest_output=change.latest_output,
                    command_label=change.command_label,
                )

            if self._pending is None:
                self._pending = PendingChange.from_change(change)
            else:
                self._pending.latest_output = change.latest_output
            remaining = math.ceil((change.cooldown_ms - elapsed) / 1000)
            self._logger.info(
                "notification_queued",
                notification_command=change.command_label,
                notification_cooldown_remaining_seconds=remaining,
            )
            return NotificationResult(
                sent=False,
                reason=f"Cooldown active ({remaining}s remaining), change queued",
            )

    async def flush_pending(self) -> NotificationResult:
        """Send the queued change once its cooldown has elapsed."""
        async with self._lock:
            pending = self._pending
            if pending is None:
                return NotificationResult(sent=False, reason=NO_PENDING_CHANGES)
            if self._elapsed_ms() < pending.cooldown_ms:
                return NotificationResult(sent=False, reason=COOLDOWN_STILL_ACTIVE)
            self._pending = None
            return await self._send(
                recipient=pending.recipient,
                sender=pending.sender,
                subject=pending.subject,
                baseline_output=pending.baseline_output,
                latest_output=pending.latest_output,
                command_label=pending.command_label,
            )

    async def _send(
        self,
        *,
        recipient: str,
        sender: str,
        subject: str,
        baseline_output: str,
        latest_output: str,
        command_label: str,
    ) -> NotificationResult:
        try:
            diff_text = generate_diff(baseline_output, latest_output, command_label)
            message = EmailMessage(
                to=recipient,
                sender=sender,
                subject=subject,
                html=self.styler.render(command_label, diff_text, parse_html=True),
                text=self.styler.render(command_label, diff_text),
            )
            await self.transport.send(message)
        except Exception as exc:
            reason = _failure_reason(exc)
            self._logger.error(
                "notification_send_failed",
                notification_command=command_label,
                error_type=type(exc).__name__,
                error_message=reason,
            )
            return NotificationResult(sent=False, reason=reason)

        self._last_sent_at = self.clock()
        self._logger.info(
            "notification_sent",
            notification_command=command_label,
        )
        return NotificationResult(sent=True)
