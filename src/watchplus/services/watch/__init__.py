"""Poll loop, terminal handling and rendering."""

from watchplus.services.watch.keyboard import KeyboardListener, LoopSignals
from watchplus.services.watch.poll_loop import PollLoopController
from watchplus.services.watch.renderer import ScreenRenderer
from watchplus.services.watch.terminal import TerminalSession
from watchplus.services.watch.watch_runner import WatchRunner

__all__ = [
    "KeyboardListener",
    "LoopSignals",
    "PollLoopController",
    "ScreenRenderer",
    "TerminalSession",
    "WatchRunner",
]
