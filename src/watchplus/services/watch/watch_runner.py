"""Orchestrator: owns the terminal session, input listener and signal handling around the poll loop."""

from __future__ import annotations

import asyncio
import signal
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import structlog

from watchplus.exceptions import WatchTerminated

if TYPE_CHECKING:
    from watchplus.clients.resend_client import ResendClient
    from watchplus.services.watch.keyboard import KeyboardListener, LoopSignals
    from watchplus.services.watch.poll_loop import PollLoopController
    from watchplus.services.watch.terminal import TerminalSession

EXIT_OK = 0
_HANDLED_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class WatchRunner:
    """Runs the poll loop and converts every way it can end into an exit code.

    The terminal is restored exactly once on every path before in-flight
    notifications are drained. Unexpected errors propagate after cleanup.
    """

    def __init__(
        self,
        controller: PollLoopController,
        terminal: TerminalSession,
        keyboard: KeyboardListener,
        signals: LoopSignals,
        *,
        transport: ResendClient | None = None,
        drain_seconds: float = 5.0,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: str | None = None,
    ) -> None:
        """Initialize the runner.

        Args:
            controller: Poll loop to run.
            terminal: Alternate-screen session restored on exit.
            keyboard: Keypress listener feeding signals.
            signals: Flags shared with the controller.
            transport: Email client closed after draining notifications.
            drain_seconds: Upper bound on waiting for in-flight notifications.
            get_logger: Logger factory (injected) with default of structlog.get_logger.
            logger_name: Optional logger name (defaults to class name).
        """
        self._controller = controller
        self._terminal = terminal
        self._keyboard = keyboard
        self._signals = signals
        self._transport = transport
        self._drain_seconds = drain_seconds
        self._signalled = False
        self._logger = get_logger(logger_name or self.__class__.__name__)

    def _on_signal(self, signum: int, task: asyncio.Task[Any] | None) -> None:
        self._logger.info("watch_signal_received", signal=signal.Signals(signum).name)
        self._signalled = True
        self._signals.request_quit()
        if task is not None:
            task.cancel()

    def _install_signal_handlers(self, loop: asyncio.AbstractEventLoop) -> None:
        task = asyncio.current_task()
        for signum in _HANDLED_SIGNALS:
            try:
                loop.add_signal_handler(signum, self._on_signal, signum, task)
            except NotImplementedError:
                pass  # Windows has no add_signal_handler

    def _remove_signal_handlers(self, loop: asyncio.AbstractEventLoop) -> None:
        for signum in _HANDLED_SIGNALS:
            try:
                loop.remove_signal_handler(signum)
            except NotImplementedError:
                pass

    async def run(self) -> int:
        """Run until quit, signal, chgexit or errexit; return the process exit code."""
        loop = asyncio.get_running_loop()
        self._terminal.on_restore(self._keyboard.stop)
        self._terminal.enter()
        self._keyboard.start(loop)
        self._install_signal_handlers(loop)
        exit_code = EXIT_OK
        try:
            await self._controller.run()
        except WatchTerminated as exc:
            exit_code = exc.exit_code
            self._logger.info(
                "watch_terminated",
                watch_exit_code=exc.exit_code,
                watch_stop_reason=exc.reason,
            )
        except asyncio.CancelledError:
            if not self._signalled:
                raise
            current = asyncio.current_task()
            if current is not None:
                current.uncancel()
            self._logger.info("watch_terminated", watch_exit_code=EXIT_OK, watch_stop_reason="signal")
        finally:
            self._remove_signal_handlers(loop)
            self._terminal.restore()
            await self._shutdown()
        return exit_code

    async def _shutdown(self) -> None:
        pending = self._controller.background_tasks
        if pending:
            self._logger.debug("watch_draining_notifications", notification_tasks=len(pending))
            _, still_running = await asyncio.wait(pending, timeout=self._drain_seconds)
            for task in still_running:
                task.cancel()
            if still_running:
                await asyncio.gather(*still_running, return_exceptions=True)
                self._logger.warning(
                    "watch_notifications_abandoned",
                    notification_tasks=len(still_running),
                )
        if self._transport is not None:
            await self._transport.aclose()
