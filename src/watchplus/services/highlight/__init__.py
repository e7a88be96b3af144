"""Line highlight tracking."""

from watchplus.services.highlight.highlight_tracker import (
    HighlightTracker,
    highlight_diffs,
)

__all__ = ["HighlightTracker", "highlight_diffs"]
