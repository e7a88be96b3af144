"""Run the watched command once and capture its output."""

from __future__ import annotations

import asyncio
import contextlib
import time
from collections.abc import Callable, Sequence
from typing import Any

import structlog

from watchplus.models.execution_result import ExecutionResult

# Same convention as POSIX shells for "command not found / not executable"
EXIT_CODE_NOT_STARTED = 127


class CommandRunner:
    """Executes a command through the shell (sh -c) or directly (exec)."""

    def __init__(
        self,
        *,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: str | None = None,
    ) -> None:
        self._logger = get_logger(logger_name or self.__class__.__name__)

    async def _spawn(self, command: Sequence[str], exec_mode: bool) -> asyncio.subprocess.Process:
        pipes: dict[str, Any] = {
            "stdin": asyncio.subprocess.DEVNULL,
            "stdout": asyncio.subprocess.PIPE,
            "stderr": asyncio.subprocess.PIPE,
        }
        if exec_mode:
            return await asyncio.create_subprocess_exec(*command, **pipes)
        return await asyncio.create_subprocess_shell(" ".join(command), **pipes)

    async def run(self, command: Sequence[str], *, exec_mode: bool = False) -> ExecutionResult:
        """Run command to completion.

        A command that cannot be started is reported as exit code 127 with
        the error in stderr rather than raised. If the caller is cancelled
        while the command runs, the child is killed first.
        """
        if not command:
            raise ValueError("command must contain at least one token")
        start = time.perf_counter()
        try:
            process = await self._spawn(command, exec_mode)
        except OSError as exc:
            duration_ms = (time.perf_counter() - start) * 1000.0
            self._logger.warning(
                "command_spawn_failed",
                command=" ".join(command),
                command_exec_mode=exec_mode,
                error_type=type(exc).__name__,
                error_message=str(exc),
            )
            return ExecutionResult(
                stdout="",
                stderr=str(exc),
                exit_code=EXIT_CODE_NOT_STARTED,
                duration_ms=duration_ms,
            )

        try:
            stdout, stderr = await process.communicate()
        except asyncio.CancelledError:
            if process.returncode is None:
                with contextlib.suppress(ProcessLookupError):
                    process.kill()
                await process.wait()
            raise

        duration_ms = (time.perf_counter() - start) * 1000.0
        exit_code = process.returncode if process.returncode is not None else EXIT_CODE_NOT_STARTED
        if exit_code != 0:
            self._logger.debug(
                "command_exited_nonzero",
                command=" ".join(command),
                command_exit_code=exit_code,
            )
        return ExecutionResult(
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
            exit_code=exit_code,
            duration_ms=duration_ms,
        )
