"""Logging configuration."""

from watchplus.logging.config import configure_logging

__all__ = ["configure_logging"]
