"""Alternate-screen terminal session with guaranteed-once restore."""

from __future__ import annotations

import atexit
import sys
from collections.abc import Callable
from typing import Any, TextIO

import structlog

ESC = "\x1b"
ALT_SCREEN_ON = f"{ESC}[?1049h"
ALT_SCREEN_OFF = f"{ESC}[?1049l"
CURSOR_HIDE = f"{ESC}[?25l"
CURSOR_SHOW = f"{ESC}[?25h"
CLEAR_SCREEN = f"{ESC}[2J"
CURSOR_HOME = f"{ESC}[H"


class TerminalSession:
    """Switch to the alternate screen and hide the cursor; undo it exactly once.

    restore() is idempotent and is also registered with atexit, so every exit
    path (quit key, signal, chgexit/errexit, uncaught error) leaves the
    terminal as it was found.
    """

    def __init__(
        self,
        stream: TextIO | None = None,
        *,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: str | None = None,
    ) -> None:
        self._stream = stream
        self._entered = False
        self._restored = False
        self._restore_callbacks: list[Callable[[], None]] = []
        self._logger = get_logger(logger_name or self.__class__.__name__)

    @property
    def stream(self) -> TextIO:
        return self._stream if self._stream is not None else sys.stdout

    @property
    def restored(self) -> bool:
        return self._restored

    def on_restore(self, callback: Callable[[], None]) -> None:
        """Run callback (e.g. stdin mode reset) as part of restore()."""
        self._restore_callbacks.append(callback)

    def enter(self) -> None:
        if self._entered:
            return
        self._entered = True
        self.stream.write(ALT_SCREEN_ON + CURSOR_HIDE + CLEAR_SCREEN)
        self.stream.flush()
        atexit.register(self.restore)

    def restore(self) -> None:
        if self._restored or not self._entered:
            return
        self._restored = True
        atexit.unregister(self.restore)
        for callback in self._restore_callbacks:
            callback()
        try:
            self.stream.write(CURSOR_SHOW + ALT_SCREEN_OFF)
            self.stream.flush()
        except (OSError, ValueError) as exc:
            # stdout already closed (e.g. broken pipe); nothing left to restore
            self._logger.debug(
                "terminal_restore_write_failed",
                error_type=type(exc).__name__,
                error_message=str(exc),
            )
        self._logger.debug("terminal_restored")

    def __enter__(self) -> TerminalSession:
        self.enter()
        return self

    def __exit__(self, *args: Any) -> None:
        self.restore()
