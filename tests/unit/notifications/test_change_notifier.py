# -*- coding: utf-8 -*-
"""Unit tests for ChangeNotifier (cooldown, queueing, flushing, failures)."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

from watchplus.exceptions import EmailDeliveryError
from watchplus.notifications.change_notifier import ChangeNotifier
from watchplus.notifications.types import ChangeNotification, EmailMessage

COOLDOWN_MS = 60_000


class _FakeTransport:
    """Records messages; raises the queued errors first, one per send."""

    def __init__(self, *errors: BaseException) -> None:
        self.sent: list[EmailMessage] = []
        self.attempts = 0
        self._errors = list(errors)

    async def send(self, message: EmailMessage) -> str:
        self.attempts += 1
        if self._errors:
            raise self._errors.pop(0)
        self.sent.append(message)
        return f"email-{len(self.sent)}"


def _notifier(transport: _FakeTransport, clock: Any, **kwargs: Any) -> ChangeNotifier:
    return ChangeNotifier(transport=transport, clock=clock, **kwargs)


async def test_sends_email_with_expected_fields(
    clock: Any,
    change_factory: Callable[..., ChangeNotification],
) -> None:
    transport = _FakeTransport()
    notifier = _notifier(transport, clock)

    result = await notifier.notify(change_factory())

    assert result.sent is True
    assert result.reason is None
    assert len(transport.sent) == 1
    message = transport.sent[0]
    assert message.to == "ops@example.com"
    assert message.sender == "watch@example.com"
    assert message.subject == "Change detected"
    assert "-old content" in message.text
    assert "+new content" in message.text


async def test_html_body_contains_heading_command_and_footer(
    clock: Any,
    change_factory: Callable[..., ChangeNotification],
) -> None:
    transport = _FakeTransport()

    await _notifier(transport, clock).notify(change_factory(command_label="df -h"))

    html = transport.sent[0].html
    assert "Change detected" in html
    assert "df -h" in html
    assert "Sent by watch+" in html


async def test_second_change_within_cooldown_is_queued(
    clock: Any,
    change_factory: Callable[..., ChangeNotification],
) -> None:
    transport = _FakeTransport()
    notifier = _notifier(transport, clock)

    first = await notifier.notify(change_factory(cooldown_ms=COOLDOWN_MS))
    second = await notifier.notify(change_factory(cooldown_ms=COOLDOWN_MS))

    assert first.sent is True
    assert second.sent is False
    assert second.reason == "Cooldown active (60s remaining), change queued"
    assert notifier.has_pending is True
    assert len(transport.sent) == 1


async def test_remaining_seconds_are_rounded_up(
    clock: Any,
    change_factory: Callable[..., ChangeNotification],
) -> None:
    notifier = _notifier(_FakeTransport(), clock)
    await notifier.notify(change_factory(cooldown_ms=COOLDOWN_MS))
    clock.advance(1_500)

    result = await notifier.notify(change_factory(cooldown_ms=COOLDOWN_MS))

    assert result.reason == "Cooldown active (59s remaining), change queued"


async def test_zero_cooldown_sends_every_change(
    clock: Any,
    change_factory: Callable[..., ChangeNotification],
) -> None:
    transport = _FakeTransport()
    notifier = _notifier(transport, clock)

    first = await notifier.notify(change_factory(cooldown_ms=0))
    second = await notifier.notify(change_factory(cooldown_ms=0))

    assert first.sent is True
    assert second.sent is True
    assert len(transport.sent) == 2


async def test_flush_without_pending_change(clock: Any) -> None:
    transport = _FakeTransport()

    result = await _notifier(transport, clock).flush_pending()

    assert result.sent is False
    assert result.reason == "No pending changes"
    assert transport.attempts == 0


async def test_flush_before_cooldown_keeps_the_queue(
    clock: Any,
    change_factory: Callable[..., ChangeNotification],
) -> None:
    transport = _FakeTransport()
    notifier = _notifier(transport, clock)
    await notifier.notify(change_factory(cooldown_ms=COOLDOWN_MS))
    await notifier.notify(change_factory(cooldown_ms=COOLDOWN_MS))
    clock.advance(COOLDOWN_MS - 1)

    result = await notifier.flush_pending()

    assert result.sent is False
    assert result.reason == "Cooldown still active"
    assert notifier.has_pending is True
    assert len(transport.sent) == 1


async def test_flush_after_cooldown_sends_then_reports_empty(
    clock: Any,
    change_factory: Callable[..., ChangeNotification],
) -> None:
    transport = _FakeTransport()
    notifier = _notifier(transport, clock)
    await notifier.notify(change_factory(cooldown_ms=COOLDOWN_MS))
    await notifier.notify(
        change_factory(
            baseline_output="old content\n",
            latest_output="even newer content\n",
            cooldown_ms=COOLDOWN_MS,
        )
    )
    clock.advance(COOLDOWN_MS)

    flushed = await notifier.flush_pending()
    again = await notifier.flush_pending()

    assert flushed.sent is True
    assert len(transport.sent) == 2
    assert "+even newer content" in transport.sent[1].text
    assert again.sent is False
    assert again.reason == "No pending changes"


async def test_queued_changes_collapse_from_first_baseline_to_last_output(
    clock: Any,
    change_factory: Callable[..., ChangeNotification],
) -> None:
    transport = _FakeTransport()
    notifier = _notifier(transport, clock)
    await notifier.notify(
        change_factory(baseline_output="version 1\n", latest_output="version 2\n", cooldown_ms=50)
    )
    for old, new in [("2", "3"), ("3", "4"), ("4", "5")]:
        result = await notifier.notify(
            change_factory(
                baseline_output=f"version {old}\n",
                latest_output=f"version {new}\n",
                cooldown_ms=50,
            )
        )
        assert result.sent is False
    clock.advance(50)

    flushed = await notifier.flush_pending()

    assert flushed.sent is True
    assert len(transport.sent) == 2
    text = transport.sent[1].text
    assert "-version 2" in text
    assert "+version 5" in text
    assert "version 3" not in text
    assert "version 4" not in text


async def test_elapsed_cooldown_drops_queued_change_and_sends_current_one(
    clock: Any,
    change_factory: Callable[..., ChangeNotification],
) -> None:
    transport = _FakeTransport()
    notifier = _notifier(transport, clock)
    await notifier.notify(change_factory(baseline_output="a\n", latest_output="b\n", cooldown_ms=100))
    await notifier.notify(change_factory(baseline_output="b\n", latest_output="c\n", cooldown_ms=100))
    clock.advance(100)

    result = await notifier.notify(change_factory(baseline_output="c\n", latest_output="d\n", cooldown_ms=100))

    assert result.sent is True
    assert notifier.has_pending is False
    text = transport.sent[-1].text
    assert "-c" in text
    assert "+d" in text
    assert "-b" not in text


async def test_coalesce_on_send_spans_from_queued_baseline(
    clock: Any,
    change_factory: Callable[..., ChangeNotification],
) -> None:
    transport = _FakeTransport()
    notifier = _notifier(transport, clock, coalesce_on_send=True)
    await notifier.notify(change_factory(baseline_output="a\n", latest_output="b\n", cooldown_ms=100))
    await notifier.notify(change_factory(baseline_output="b\n", latest_output="c\n", cooldown_ms=100))
    clock.advance(100)

    result = await notifier.notify(change_factory(baseline_output="c\n", latest_output="d\n", cooldown_ms=100))

    assert result.sent is True
    text = transport.sent[-1].text
    assert "-b" in text
    assert "+d" in text
    assert notifier.has_pending is False


async def test_failed_send_does_not_start_cooldown(
    clock: Any,
    change_factory: Callable[..., ChangeNotification],
) -> None:
    transport = _FakeTransport(EmailDeliveryError("quota exceeded"))
    notifier = _notifier(transport, clock)

    failed = await notifier.notify(change_factory(cooldown_ms=COOLDOWN_MS))
    retried = await notifier.notify(change_factory(cooldown_ms=COOLDOWN_MS))

    assert failed.sent is False
    assert failed.reason == "quota exceeded"
    assert retried.sent is True
    assert transport.attempts == 2


async def test_failure_after_success_keeps_original_cooldown(
    clock: Any,
    change_factory: Callable[..., ChangeNotification],
) -> None:
    transport = _FakeTransport()
    notifier = _notifier(transport, clock)
    await notifier.notify(change_factory(cooldown_ms=COOLDOWN_MS))
    clock.advance(COOLDOWN_MS)
    transport._errors.append(RuntimeError("smtp down"))

    failed = await notifier.notify(change_factory(cooldown_ms=COOLDOWN_MS))
    retried = await notifier.notify(change_factory(cooldown_ms=COOLDOWN_MS))

    assert failed.reason == "smtp down"
    assert retried.sent is True


async def test_failure_reason_falls_back_to_exception_name(
    clock: Any,
    change_factory: Callable[..., ChangeNotification],
) -> None:
    notifier = _notifier(_FakeTransport(TimeoutError()), clock)

    result = await notifier.notify(change_factory())

    assert result.sent is False
    assert result.reason == "TimeoutError"


async def test_failed_flush_clears_the_slot(
    clock: Any,
    change_factory: Callable[..., ChangeNotification],
) -> None:
    transport = _FakeTransport()
    notifier = _notifier(transport, clock)
    await notifier.notify(change_factory(cooldown_ms=100))
    await notifier.notify(change_factory(cooldown_ms=100))
    clock.advance(100)
    transport._errors.append(EmailDeliveryError("rejected"))

    result = await notifier.flush_pending()

    assert result.sent is False
    assert result.reason == "rejected"
    assert notifier.has_pending is False


async def test_concurrent_calls_are_serialized(
    clock: Any,
    change_factory: Callable[..., ChangeNotification],
) -> None:
    transport = _FakeTransport()
    notifier = _notifier(transport, clock)

    results = await asyncio.gather(
        notifier.notify(change_factory(cooldown_ms=COOLDOWN_MS)),
        notifier.notify(change_factory(cooldown_ms=COOLDOWN_MS)),
    )

    assert [r.sent for r in results] == [True, False]
    assert len(transport.sent) == 1
