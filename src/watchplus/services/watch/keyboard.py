"""Keyboard input during the sleep phase: quit and immediate re-run.

The listener and the poll loop share nothing but LoopSignals. The listener
only sets flags; the loop only reads them at sleep-slice boundaries.
"""

from __future__ import annotations

import asyncio
import os
import sys
import termios
import tty
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TextIO

import structlog

QUIT_KEYS = frozenset({"q", "\x03"})
RERUN_KEYS = frozenset({" "})


@dataclass(slots=True)
class LoopSignals:
    """Single-writer / single-reader flags between input handling and the loop."""

    quit_requested: bool = False
    rerun_requested: bool = False

    def request_quit(self) -> None:
        self.quit_requested = True

    def request_rerun(self) -> None:
        self.rerun_requested = True

    def consume_rerun(self) -> bool:
        """Return True once per re-run request."""
        requested = self.rerun_requested
        self.rerun_requested = False
        return requested


class KeyboardListener:
    """Reads keypresses from a TTY stdin (cbreak mode) via the event loop."""

    def __init__(
        self,
        signals: LoopSignals,
        *,
        stream: TextIO | None = None,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: str | None = None,
    ) -> None:
        self._signals = signals
        self._stream = stream
        self._loop: asyncio.AbstractEventLoop | None = None
        self._fd: int | None = None
        self._saved_attrs: list[Any] | None = None
        self._logger = get_logger(logger_name or self.__class__.__name__)

    def handle_keys(self, data: str) -> None:
        """Translate a chunk of input into loop signals."""
        for ch in data:
            if ch in QUIT_KEYS:
                self._signals.request_quit()
            elif ch in RERUN_KEYS:
                self._signals.request_rerun()

    def start(self, loop: asyncio.AbstractEventLoop) -> bool:
        """Put stdin in cbreak mode and start listening. No-op when stdin is not a TTY."""
        stream = self._stream if self._stream is not None else sys.stdin
        if self._fd is not None or not stream.isatty():
            return False
        fd = stream.fileno()
        self._saved_attrs = termios.tcgetattr(fd)
        tty.setcbreak(fd)
        loop.add_reader(fd, self._on_readable)
        self._loop = loop
        self._fd = fd
        self._logger.debug("keyboard_listener_started")
        return True

    @property
    def listening(self) -> bool:
        return self._fd is not None

    def _on_readable(self) -> None:
        if self._fd is None:
            return
        try:
            data = os.read(self._fd, 64)
        except OSError as exc:
            # EIO once the controlling terminal hangs up
            self._logger.debug(
                "keyboard_read_failed",
                error_type=type(exc).__name__,
                error_message=str(exc),
            )
            data = b""
        if not data:
            self._logger.info("keyboard_input_closed")
            self.stop()
            return
        self.handle_keys(data.decode("utf-8", errors="ignore"))

    def stop(self) -> None:
        """Stop listening and restore stdin's terminal attributes. Idempotent."""
        fd, self._fd = self._fd, None
        if fd is None:
            return
        if self._loop is not None and not self._loop.is_closed():
            self._loop.remove_reader(fd)
        saved, self._saved_attrs = self._saved_attrs, None
        if saved is not None:
            try:
                termios.tcsetattr(fd, termios.TCSADRAIN, saved)
            except termios.error as exc:
                # Terminal already gone; nothing left to restore
                self._logger.debug(
                    "keyboard_restore_failed",
                    error_type=type(exc).__name__,
                    error_message=str(exc),
                )
        self._loop = None
        self._logger.debug("keyboard_listener_stopped")
