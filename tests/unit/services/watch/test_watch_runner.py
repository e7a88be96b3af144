# -*- coding: utf-8 -*-
"""Unit tests for WatchRunner exit paths and shutdown."""

from __future__ import annotations

import asyncio
import io
import os
import signal
from collections.abc import Awaitable, Callable
from typing import Any
from unittest.mock import AsyncMock, Mock

import pytest

from watchplus.exceptions import WatchTerminated
from watchplus.services.watch.keyboard import LoopSignals
from watchplus.services.watch.terminal import ALT_SCREEN_OFF, CURSOR_SHOW, TerminalSession
from watchplus.services.watch.watch_runner import WatchRunner


class _FakeController:
    def __init__(self, body: Callable[[_FakeController], Awaitable[None]]) -> None:
        self._body = body
        self.tasks: set[asyncio.Task[Any]] = set()

    @property
    def background_tasks(self) -> frozenset[asyncio.Task[Any]]:
        return frozenset(t for t in self.tasks if not t.done())

    async def run(self) -> None:
        await self._body(self)


class _FakeKeyboard:
    def __init__(self) -> None:
        self.started = False
        self.stops = 0

    def start(self, loop: asyncio.AbstractEventLoop) -> bool:
        self.started = True
        return False

    def stop(self) -> None:
        self.stops += 1


def _runner(
    body: Callable[[_FakeController], Awaitable[None]],
    **kwargs: Any,
) -> tuple[WatchRunner, io.StringIO, _FakeKeyboard, _FakeController]:
    stream = io.StringIO()
    keyboard = _FakeKeyboard()
    controller = _FakeController(body)
    runner = WatchRunner(
        controller,  # type: ignore[arg-type]
        TerminalSession(stream),
        keyboard,  # type: ignore[arg-type]
        LoopSignals(),
        **kwargs,
    )
    return runner, stream, keyboard, controller


def _terminal_restored(stream: io.StringIO) -> bool:
    return stream.getvalue().endswith(CURSOR_SHOW + ALT_SCREEN_OFF)


async def test_watch_terminated_maps_to_exit_code() -> None:
    async def body(_: _FakeController) -> None:
        raise WatchTerminated(3, "command exited with a non-zero status")

    runner, stream, keyboard, _ = _runner(body)

    assert await runner.run() == 3
    assert keyboard.started is True
    assert keyboard.stops == 1
    assert _terminal_restored(stream)


async def test_sigterm_exits_cleanly() -> None:
    async def body(_: _FakeController) -> None:
        await asyncio.sleep(0)
        os.kill(os.getpid(), signal.SIGTERM)
        await asyncio.sleep(10)

    runner, stream, _, _ = _runner(body)

    assert await runner.run() == 0
    assert _terminal_restored(stream)


async def test_unexpected_error_propagates_after_cleanup() -> None:
    async def body(_: _FakeController) -> None:
        raise RuntimeError("boom")

    transport = Mock(aclose=AsyncMock())
    runner, stream, _, _ = _runner(body, transport=transport)

    with pytest.raises(RuntimeError, match="boom"):
        await runner.run()
    assert _terminal_restored(stream)
    transport.aclose.assert_awaited_once()


async def test_external_cancellation_is_not_swallowed() -> None:
    async def body(_: _FakeController) -> None:
        await asyncio.sleep(10)

    runner, stream, _, _ = _runner(body)
    task = asyncio.create_task(runner.run())
    await asyncio.sleep(0)
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task
    assert _terminal_restored(stream)


async def test_in_flight_notifications_are_drained() -> None:
    finished: list[str] = []

    async def notification() -> None:
        await asyncio.sleep(0.01)
        finished.append("sent")

    async def body(controller: _FakeController) -> None:
        controller.tasks.add(asyncio.create_task(notification()))
        raise WatchTerminated(0, "output changed")

    transport = Mock(aclose=AsyncMock())
    runner, _, _, _ = _runner(body, transport=transport, drain_seconds=1.0)

    assert await runner.run() == 0
    assert finished == ["sent"]
    transport.aclose.assert_awaited_once()


async def test_slow_notifications_are_abandoned_after_drain_timeout() -> None:
    slow: list[asyncio.Task[Any]] = []

    async def body(controller: _FakeController) -> None:
        task = asyncio.create_task(asyncio.sleep(10))
        slow.append(task)
        controller.tasks.add(task)
        raise WatchTerminated(0, "quit requested")

    runner, _, _, _ = _runner(body, drain_seconds=0.01)

    assert await runner.run() == 0
    assert slow[0].cancelled()
