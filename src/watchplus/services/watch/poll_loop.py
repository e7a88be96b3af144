"""Poll loop: run the command, compare, notify, render, sleep, repeat."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable, Coroutine
from typing import TYPE_CHECKING, Any

import structlog

from watchplus.config.options import DiffMode, WatchOptions
from watchplus.exceptions import WatchTerminated
from watchplus.models.loop_state import LoopState
from watchplus.notifications.types import ChangeNotification, NotificationResult
from watchplus.services.highlight.highlight_tracker import HighlightTracker
from watchplus.services.watch.keyboard import LoopSignals
from watchplus.utils.ansi import strip_ansi
from watchplus.utils.diff import has_changed

if TYPE_CHECKING:
    from watchplus.models.execution_result import ExecutionResult
    from watchplus.notifications.change_notifier import ChangeNotifier
    from watchplus.services.command.command_runner import CommandRunner
    from watchplus.services.watch.renderer import ScreenRenderer

DEFAULT_SLEEP_SLICE_MS = 50


class PollLoopController:
    """Drives RUN_COMMAND -> COMPARE -> SIDE_EFFECTS -> RENDER -> SLEEP until terminated.

    Termination (quit key, chgexit, errexit) is raised as WatchTerminated
    carrying the process exit code. Notifications run as detached tasks and
    never block or fail the loop.
    """

    def __init__(
        self,
        options: WatchOptions,
        runner: CommandRunner,
        renderer: ScreenRenderer,
        signals: LoopSignals,
        *,
        notifier: ChangeNotifier | None = None,
        state: LoopState | None = None,
        sleep_slice_ms: int = DEFAULT_SLEEP_SLICE_MS,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: str | None = None,
    ) -> None:
        """Initialize the controller.

        Args:
            options: Resolved watch options.
            runner: Executes the command each iteration.
            renderer: Draws frames and rings the bell.
            signals: Flags set by the keyboard listener.
            notifier: Change notifier; None disables email.
            state: Loop state (previous outputs, sticky highlights).
            sleep_slice_ms: Longest single wait while sleeping between runs.
            sleep: Awaitable sleep in seconds (injected for tests).
            clock: Monotonic clock in seconds (injected for tests).
            get_logger: Logger factory (injected) with default of structlog.get_logger.
            logger_name: Optional logger name (defaults to class name).
        """
        self._options = options
        self._runner = runner
        self._renderer = renderer
        self._signals = signals
        self._notifier = notifier
        self._state = state if state is not None else LoopState()
        self._highlighter = HighlightTracker(self._state.permanent_highlights)
        self._sleep_slice = max(1, sleep_slice_ms) / 1000.0
        self._sleep = sleep
        self._clock = clock
        self._background: set[asyncio.Task[None]] = set()
        self._logger = get_logger(logger_name or self.__class__.__name__)

    @property
    def state(self) -> LoopState:
        return self._state

    @property
    def background_tasks(self) -> frozenset[asyncio.Task[None]]:
        """Notification tasks that have not finished yet."""
        return frozenset(self._background)

    async def run(self) -> None:
        """Loop until WatchTerminated (or cancellation) propagates."""
        self._logger.info(
            "watch_started",
            command=self._options.command_text,
            watch_interval_seconds=self._options.interval,
            watch_email_enabled=self._notifier is not None,
        )
        while True:
            result = await self.run_once()
            await self.sleep_until_next(result)

    async def run_once(self) -> ExecutionResult:
        """One iteration: run, compare, side effects, render, remember."""
        options = self._options
        result = await self._runner.run(options.command, exec_mode=options.exec_mode)
        current_raw = result.stdout
        current_normalized = strip_ansi(current_raw)

        previous_normalized = self._state.previous_normalized_output or ""
        if self._state.has_previous and has_changed(previous_normalized, current_normalized):
            self._on_change(previous_normalized, current_normalized)
        elif self._notifier is not None and self._notifier.has_pending:
            self._dispatch(self._notifier.flush_pending(), kind="flush")

        if options.errexit and not result.succeeded:
            self._logger.info(
                "watch_command_failed",
                command=options.command_text,
                command_exit_code=result.exit_code,
            )
            raise WatchTerminated(result.exit_code, "command exited with a non-zero status")

        self._renderer.draw(self._render_body(current_raw, current_normalized))
        self._state.remember(current_raw, current_normalized)
        return result

    def _on_change(self, previous_normalized: str, current_normalized: str) -> None:
        options = self._options
        self._logger.debug("watch_output_changed", command=options.command_text)
        if options.beep:
            self._renderer.bell()

        if self._notifier is not None and options.email and options.sender:
            change = ChangeNotification(
                recipient=options.email,
                sender=options.sender,
                subject=options.email_subject,
                baseline_output=previous_normalized,
                latest_output=current_normalized,
                command_label=options.command_text,
                cooldown_ms=options.cooldown_ms,
            )
            self._dispatch(self._notifier.notify(change), kind="notify")

        if options.chgexit:
            raise WatchTerminated(0, "output changed")

    def _render_body(self, current_raw: str, current_normalized: str) -> str:
        options = self._options
        previous_raw = self._state.previous_raw_output
        previous_normalized = self._state.previous_normalized_output
        if options.differences is DiffMode.OFF or previous_raw is None or previous_normalized is None:
            return current_raw if options.color else current_normalized

        if options.color:
            old, new = previous_raw, current_raw
        else:
            old, new = previous_normalized, current_normalized
        return self._highlighter.render(
            old.split("\n"),
            new.split("\n"),
            accumulate=options.differences is DiffMode.PERMANENT,
        )

    def _dispatch(
        self,
        coro: Coroutine[Any, Any, NotificationResult],
        *,
        kind: str,
    ) -> None:
        """Fire and forget: the loop never awaits the task."""
        task = asyncio.create_task(self._run_notification(coro, kind))
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _run_notification(
        self,
        coro: Coroutine[Any, Any, NotificationResult],
        kind: str,
    ) -> None:
        try:
            result = await coro
        except Exception as exc:
            self._logger.exception(
                "notification_task_failed",
                notification_kind=kind,
                error_type=type(exc).__name__,
                error_message=str(exc),
            )
            return
        self._logger.debug(
            "notification_task_done",
            notification_kind=kind,
            notification_sent=result.sent,
            notification_reason=result.reason,
        )

    def sleep_duration(self, result: ExecutionResult) -> float:
        """Seconds to wait before the next run (precise mode subtracts the run time)."""
        interval = self._options.interval
        if self._options.precise:
            return max(0.0, interval - result.duration_ms / 1000.0)
        return interval

    async def sleep_until_next(self, result: ExecutionResult) -> None:
        """Wait in short slices, honouring quit and re-run requests at each boundary."""
        self._signals.rerun_requested = False
        deadline = self._clock() + self.sleep_duration(result)
        while True:
            if self._signals.quit_requested:
                raise WatchTerminated(0, "quit requested")
            if self._signals.consume_rerun():
                return
            remaining = deadline - self._clock()
            if remaining <= 0:
                return
            await self._sleep(min(self._sleep_slice, remaining))
