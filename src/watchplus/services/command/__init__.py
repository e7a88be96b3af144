"""Command execution."""

from watchplus.services.command.command_runner import CommandRunner

__all__ = ["CommandRunner"]
