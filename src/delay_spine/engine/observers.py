"""Observers -- independent consumers of run events.

WHY
───
Metrics, human-readable logs and audit trails are built from events alone,
so none of them couple to the strategy that produced the events. Any object
with ``on_event(event)`` can be attached to a notifier; several attach to the
same run without knowing about each other.

ARCHITECTURE
────────────
::

    Observer (Protocol)        on_event(event) -> None
      ├── LoggingObserver      formats events for humans; reads config per event
      ├── StatisticsObserver   running counters -> RunStatistics snapshot
      └── HistoryObserver      ordered (event, receipt time) entries

BEST PRACTICES
──────────────
- Handlers run synchronously on the emitting call stack; keep them short.
- An exception raised here aborts the emission and can fail the run.
- Reusing one observer across concurrent runs is the observer's own
  responsibility; the built-in ones are plain accumulators with no locking.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol, runtime_checkable

from delay_spine.core.config import ConfigStore, EngineSettings, as_store
from delay_spine.core.logging import get_logger
from delay_spine.engine.events import Event, EventKind

_EVENT_LOGGER = "delay_spine.observers"


def _log_line(line: str) -> None:
    get_logger(_EVENT_LOGGER).info(line)


def _log_error_line(line: str) -> None:
    get_logger(_EVENT_LOGGER).error(line)


@runtime_checkable
class Observer(Protocol):
    """Capability to react to run events."""

    def on_event(self, event: Event) -> None: ...


# ── Logging ──────────────────────────────────────────────────────────────


class LoggingObserver:
    """Formats each event as a human-readable line.

    Stateless with respect to the run. The configuration is read at every
    event, so changes made through the ``ConfigStore`` apply immediately;
    nothing is written while ``enable_logging`` is false.

    Args:
        config: Store or settings snapshot to read options from.
        sink: Receives formatted lines. Defaults to the
            ``delay_spine.observers`` structlog logger at info level.
        error_sink: Receives ERROR lines. Defaults to ``sink`` when one is
            given, otherwise the logger at error level.
    """

    def __init__(
        self,
        config: ConfigStore | EngineSettings | None = None,
        sink: Callable[[str], None] | None = None,
        error_sink: Callable[[str], None] | None = None,
    ) -> None:
        self._store = as_store(config)
        self._sink = sink or _log_line
        self._error_sink = error_sink or sink or _log_error_line

    def on_event(self, event: Event) -> None:
        settings = self._store.snapshot()
        if not settings.enable_logging:
            return
        line = self.format_event(event, settings)
        if event.kind is EventKind.ERROR:
            self._error_sink(line)
        else:
            self._sink(line)

    def format_event(self, event: Event, settings: EngineSettings | None = None) -> str:
        settings = settings or self._store.snapshot()
        head = f"{settings.log_prefix} " if settings.log_prefix else ""
        if settings.show_timestamps:
            head += f"[{event.timestamp.isoformat()}] "

        match event.kind:
            case EventKind.STARTED:
                return f"{head}Run started: {event.metadata.get('strategy')}"
            case EventKind.ELEMENT_COMPLETED:
                delay_info = f" (delay: {event.delay:g})" if event.delay else ""
                return f"{head}Element {event.element} completed{delay_info}"
            case EventKind.COMPLETED:
                return f"{head}Run completed: {event.metadata.get('total_elements')} elements"
            case _:
                return f"{head}Error: {event.metadata.get('error')}"


# ── Statistics ───────────────────────────────────────────────────────────


@dataclass(frozen=True)
class RunStatistics:
    """Point-in-time snapshot derived from the events a StatisticsObserver saw."""

    duration_seconds: float
    count: int
    total_delay: float
    average_delay: float
    event_counts: dict[EventKind, int] = field(default_factory=dict)

    @property
    def total_events(self) -> int:
        return sum(self.event_counts.values())

    def to_dict(self) -> dict[str, object]:
        return {
            "duration_seconds": self.duration_seconds,
            "count": self.count,
            "total_delay": self.total_delay,
            "average_delay": self.average_delay,
            "event_counts": {kind.value: n for kind, n in self.event_counts.items()},
        }


class StatisticsObserver:
    """Running counters over the events of one or more runs.

    Start and end times come from the STARTED and COMPLETED event timestamps,
    never from an independent clock read. Duration is 0 until a COMPLETED
    event has been seen after the latest STARTED.
    """

    def __init__(self) -> None:
        self.reset()

    def on_event(self, event: Event) -> None:
        self._event_counts[event.kind] += 1

        if event.kind is EventKind.STARTED:
            self._started_at = event.timestamp
            self._ended_at = None
        elif event.kind is EventKind.ELEMENT_COMPLETED:
            self._count += 1
            self._total_delay += event.delay or 0
        elif event.kind is EventKind.COMPLETED:
            self._ended_at = event.timestamp

    def snapshot(self) -> RunStatistics:
        duration = 0.0
        if self._started_at is not None and self._ended_at is not None:
            duration = (self._ended_at - self._started_at).total_seconds()
        return RunStatistics(
            duration_seconds=duration,
            count=self._count,
            total_delay=self._total_delay,
            average_delay=self._total_delay / self._count if self._count > 0 else 0.0,
            event_counts=dict(self._event_counts),
        )

    def reset(self) -> None:
        """Zero all counters and timestamps."""
        self._started_at: datetime | None = None
        self._ended_at: datetime | None = None
        self._count = 0
        self._total_delay = 0.0
        self._event_counts: Counter[EventKind] = Counter()

    def render(self) -> list[str]:
        stats = self.snapshot()
        lines = [
            "Run Statistics:",
            f"   Duration: {stats.duration_seconds * 1000:.2f}ms",
            f"   Elements Completed: {stats.count}",
            f"   Total Delay: {stats.total_delay:g}",
            f"   Average Delay: {stats.average_delay:.2f}",
            "   Event Counts:",
        ]
        lines.extend(f"      {kind.value}: {n}" for kind, n in stats.event_counts.items())
        return lines


# ── History ──────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class HistoryEntry:
    event: Event
    received_at: str


class HistoryObserver:
    """Records every received event with a formatted local receipt time."""

    def __init__(self, time_format: str = "%H:%M:%S") -> None:
        self._time_format = time_format
        self._entries: list[HistoryEntry] = []

    def on_event(self, event: Event) -> None:
        self._entries.append(HistoryEntry(event=event, received_at=datetime.now().strftime(self._time_format)))

    def entries(self) -> list[HistoryEntry]:
        """Return a copy of the recorded entries in receipt order."""
        return list(self._entries)

    def clear(self) -> None:
        self._entries = []

    def render(self) -> list[str]:
        lines = ["Run History:"]
        for number, entry in enumerate(self._entries, start=1):
            suffix = f" - {entry.event.element}" if entry.event.element is not None else ""
            lines.append(f"   {number}. [{entry.received_at}] {entry.event.kind.value}{suffix}")
        return lines

    def __len__(self) -> int:
        return len(self._entries)


__all__ = [
    "Observer",
    "LoggingObserver",
    "RunStatistics",
    "StatisticsObserver",
    "HistoryEntry",
    "HistoryObserver",
]
