# -*- coding: utf-8 -*-
"""Shared pytest fixtures for unit tests."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import pytest

from watchplus.config import Settings, WatchOptions, get_settings
from watchplus.notifications.types import ChangeNotification


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, start: float = 1_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Path]:
    """Point the persisted config at an empty temp file location and drop cached settings."""
    config_path = tmp_path / "config.json"
    monkeypatch.setenv("WATCHPLUS_CONFIG", str(config_path))
    monkeypatch.delenv("RESEND_API_KEY", raising=False)
    get_settings.cache_clear()
    yield config_path
    get_settings.cache_clear()


@pytest.fixture
def settings() -> Settings:
    """Settings built from defaults only."""
    return Settings.from_env()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def options_factory() -> Callable[..., WatchOptions]:
    """Build WatchOptions with sensible defaults and easy overrides."""

    def _build(**overrides: Any) -> WatchOptions:
        command = overrides.pop("command", ("ls", "-l"))
        return WatchOptions(command=tuple(command), **overrides)

    return _build


@pytest.fixture
def change_factory() -> Callable[..., ChangeNotification]:
    """Build ChangeNotification with sensible defaults and easy overrides."""

    def _build(**overrides: Any) -> ChangeNotification:
        return ChangeNotification(
            recipient=overrides.pop("recipient", "ops@example.com"),
            sender=overrides.pop("sender", "watch@example.com"),
            subject=overrides.pop("subject", "Change detected"),
            baseline_output=overrides.pop("baseline_output", "old content\n"),
            latest_output=overrides.pop("latest_output", "new content\n"),
            command_label=overrides.pop("command_label", "test-cmd"),
            cooldown_ms=overrides.pop("cooldown_ms", 0),
        )

    return _build
