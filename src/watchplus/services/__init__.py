"""Services: command execution, highlighting and the watch loop."""

from watchplus.services.command import CommandRunner
from watchplus.services.highlight import HighlightTracker
from watchplus.services.watch import PollLoopController, WatchRunner

__all__ = ["CommandRunner", "HighlightTracker", "PollLoopController", "WatchRunner"]
