"""LoopState: what the poll loop remembers between iterations."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(slots=True)
class LoopState:
    """Previous outputs and the sticky highlight set.

    Updated once per iteration, after rendering. permanent_highlights only
    grows for the lifetime of the process.
    """

    previous_raw_output: str | None = None
    previous_normalized_output: str | None = None
    permanent_highlights: set[int] = field(default_factory=set)

    @property
    def has_previous(self) -> bool:
        return self.previous_normalized_output is not None

    def remember(self, raw_output: str, normalized_output: str) -> None:
        """Store the current outputs as "previous" for the next iteration."""
        self.previous_raw_output = raw_output
        self.previous_normalized_output = normalized_output
