"""Domain models."""

from watchplus.models.execution_result import ExecutionResult
from watchplus.models.loop_state import LoopState

__all__ = ["ExecutionResult", "LoopState"]
