"""
Shared pytest fixtures and configuration for delay-spine tests.

This module provides:
- structlog reset between tests so CLI reconfiguration never leaks
- Quiet configuration stores for runs that should not log event lines
- A recording observer and a faulty observer for notifier/strategy tests

Usage:
    Fixtures are auto-discovered by pytest; request them as arguments.

    def test_something(recorder, quiet_store):
        ...
"""

from __future__ import annotations

from collections.abc import Iterator

import pytest
import structlog

from delay_spine.core.config import ConfigStore, EngineSettings
from delay_spine.engine.events import Event, EventKind


@pytest.fixture(autouse=True)
def _reset_structlog() -> Iterator[None]:
    """Restore structlog's default configuration after every test."""
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep DELAY_SPINE_* variables from the host out of EngineSettings."""
    import os

    for key in list(os.environ):
        if key.startswith("DELAY_SPINE_"):
            monkeypatch.delenv(key)


# =============================================================================
# Observers
# =============================================================================


class RecordingObserver:
    """Keeps every event it receives."""

    def __init__(self) -> None:
        self.events: list[Event] = []

    def on_event(self, event: Event) -> None:
        self.events.append(event)

    @property
    def kinds(self) -> list[EventKind]:
        return [e.kind for e in self.events]


class FaultyObserver:
    """Raises on the chosen event kind (every kind when ``on`` is None)."""

    def __init__(self, on: EventKind | None = None, exc: Exception | None = None) -> None:
        self.on = on
        self.exc = exc or RuntimeError("observer boom")
        self.calls = 0

    def on_event(self, event: Event) -> None:
        self.calls += 1
        if self.on is None or event.kind is self.on:
            raise self.exc


@pytest.fixture
def recorder() -> RecordingObserver:
    return RecordingObserver()


@pytest.fixture
def quiet_store() -> ConfigStore:
    """Store with event-line logging disabled."""
    return ConfigStore(EngineSettings(enable_logging=False))


@pytest.fixture
def lines() -> list[str]:
    """Sink target for LoggingObserver tests."""
    return []


@pytest.fixture
def make_faulty() -> type[FaultyObserver]:
    """Factory for observers that raise on a chosen event kind."""
    return FaultyObserver


@pytest.fixture
def make_recorder() -> type[RecordingObserver]:
    return RecordingObserver
