"""Notification message types and collaborator protocols."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class ChangeNotification:
    """One observed output change, as handed to the notifier."""

    recipient: str
    sender: str
    subject: str
    baseline_output: str
    latest_output: str
    command_label: str
    cooldown_ms: int


@dataclass(slots=True)
class PendingChange:
    """Change buffered while a cooldown is active.

    Only latest_output is updated by later changes in the same window, so a
    flush diffs the first queued baseline against the newest output.
    """

    recipient: str
    sender: str
    subject: str
    baseline_output: str
    latest_output: str
    command_label: str
    cooldown_ms: int

    @classmethod
    def from_change(cls, change: ChangeNotification) -> PendingChange:
        return cls(
            recipient=change.recipient,
            sender=change.sender,
            subject=change.subject,
            baseline_output=change.baseline_output,
            latest_output=change.latest_output,
            command_label=change.command_label,
            cooldown_ms=change.cooldown_ms,
        )


@dataclass(frozen=True)
class NotificationResult:
    """Outcome of notify() / flush_pending()."""

    sent: bool
    reason: str | None = None


@dataclass(frozen=True)
class EmailMessage:
    """Email ready to be handed to a transport."""

    to: str
    sender: str
    subject: str
    html: str
    text: str


class EmailTransport(Protocol):
    """Deliver one email. Raises on failure."""

    async def send(self, message: EmailMessage) -> object:
        ...


class NotificationStyler(Protocol):
    """Render a change diff into an email body."""

    def render(self, command: str, diff_text: str, *, parse_html: bool = False) -> str:
        """Return the email body for the given command and unified diff.

        Args:
            command: Command label shown in the body.
            diff_text: Unified patch between the baseline and latest output.
            parse_html: If True, output is HTML. If False (default), plain text.
        """
        ...
