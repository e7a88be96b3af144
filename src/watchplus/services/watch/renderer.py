"""Compose and draw one screen frame: header, body, row/column limits."""

from __future__ import annotations

import os
import shutil
import socket
import sys
from collections.abc import Callable
from datetime import datetime
from typing import TextIO

from watchplus.config.options import WatchOptions
from watchplus.services.watch.terminal import CLEAR_SCREEN, CURSOR_HOME
from watchplus.utils.ansi import ESC, truncate_to_width

BOLD = "\x1b[1m"
RESET = "\x1b[0m"
BELL = "\x07"
HEADER_LINES = 2


def _terminal_size() -> os.terminal_size:
    return shutil.get_terminal_size(fallback=(80, 24))


def _clip_line(line: str, columns: int) -> str:
    """Truncate to columns; a cut line that carries escapes gets a trailing reset."""
    clipped = truncate_to_width(line, columns)
    if clipped != line and ESC in clipped:
        clipped += RESET
    return clipped


class ScreenRenderer:
    """Writes frames to the terminal stream."""

    def __init__(
        self,
        options: WatchOptions,
        *,
        stream: TextIO | None = None,
        terminal_size: Callable[[], os.terminal_size] = _terminal_size,
        hostname: Callable[[], str] = socket.gethostname,
        now: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._options = options
        self._stream = stream
        self._terminal_size = terminal_size
        self._hostname = hostname
        self._now = now

    @property
    def stream(self) -> TextIO:
        return self._stream if self._stream is not None else sys.stdout

    def format_header(self, columns: int) -> str:
        """Bold "Every Ns: <command>" on the left, "<host>: <time>" on the right."""
        left = f"Every {self._options.interval:.1f}s: {self._options.command_text}"
        right = f"{self._hostname()}: {self._now().strftime('%c')}"
        padding = max(1, columns - len(left) - len(right))
        return f"{BOLD}{left}{' ' * padding}{right}{RESET}\n\n"

    def compose(self, body: str) -> str:
        size = self._terminal_size()
        header = ""
        header_lines = 0
        if not self._options.no_title:
            header = self.format_header(size.columns)
            header_lines = HEADER_LINES

        lines = body.split("\n")
        if self._options.no_wrap:
            lines = [_clip_line(line, size.columns) for line in lines]
        available_rows = max(0, size.lines - header_lines)
        if len(lines) > available_rows:
            lines = lines[:available_rows]
        return CURSOR_HOME + CLEAR_SCREEN + header + "\n".join(lines)

    def draw(self, body: str) -> None:
        self.stream.write(self.compose(body))
        self.stream.flush()

    def bell(self) -> None:
        self.stream.write(BELL)
        self.stream.flush()
