"""Dependency injection."""

from watchplus.DI.container import Container

__all__ = ["Container"]
