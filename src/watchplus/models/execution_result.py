"""ExecutionResult: the outcome of one command run."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ExecutionResult:
    """Captured output of a single command execution.

    Produced fresh each iteration and owned by that iteration only.
    """

    stdout: str
    stderr: str
    exit_code: int
    duration_ms: float
    """Wall-clock time from spawn to exit, in milliseconds."""

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0
