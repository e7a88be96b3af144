"""Per-line change highlighting with optional sticky (accumulating) mode."""

from __future__ import annotations

from collections.abc import Sequence

REVERSE = "\x1b[7m"
RESET = "\x1b[0m"


def highlight_diffs(
    previous_lines: Sequence[str],
    current_lines: Sequence[str],
    *,
    accumulate: bool,
    sticky: set[int],
) -> str:
    """Render current_lines with changed lines in reverse video.

    Every index whose line differs is added to sticky, whatever the mode.
    With accumulate, any index ever recorded in sticky stays highlighted;
    otherwise only lines that differ right now are. Missing lines on either
    side count as empty strings.
    """
    rendered: list[str] = []
    for i in range(max(len(previous_lines), len(current_lines))):
        old = previous_lines[i] if i < len(previous_lines) else ""
        new = current_lines[i] if i < len(current_lines) else ""
        changed = old != new
        if changed:
            sticky.add(i)
        highlight = (i in sticky) if accumulate else changed
        rendered.append(f"{REVERSE}{new}{RESET}" if highlight else new)
    return "\n".join(rendered)


class HighlightTracker:
    """Owns the sticky highlight set for one watched command."""

    def __init__(self, sticky: set[int] | None = None) -> None:
        self._sticky: set[int] = sticky if sticky is not None else set()

    def render(
        self,
        previous_lines: Sequence[str],
        current_lines: Sequence[str],
        *,
        accumulate: bool,
    ) -> str:
        return highlight_diffs(
            previous_lines,
            current_lines,
            accumulate=accumulate,
            sticky=self._sticky,
        )
