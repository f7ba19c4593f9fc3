"""Run Events -- immutable records of what happened during a run.

WHY
───
Observers build metrics, logs and audit trails from events alone, without
knowing which strategy produced them. Events are append-only: once the
notifier has recorded one it is never mutated or removed.

ARCHITECTURE
────────────
::

    Event
      ├── kind       ─ STARTED / ELEMENT_COMPLETED / COMPLETED / ERROR
      ├── timestamp  ─ timezone-aware UTC datetime
      ├── element    ─ ELEMENT_COMPLETED only
      ├── index      ─ ELEMENT_COMPLETED only, original input position
      ├── delay      ─ ELEMENT_COMPLETED only, the element's weight
      └── metadata   ─ read-only mapping (strategy, totals, error text)

Related modules:
    notifier.py  ─ the only producer of events (emit_* helpers)
    observers.py ─ consumers
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from types import MappingProxyType
from typing import Any

from delay_spine.engine.elements import Element


def utcnow() -> datetime:
    """Return timezone-aware UTC datetime."""
    return datetime.now(UTC)


class EventKind(str, Enum):
    """Lifecycle event kinds."""

    STARTED = "STARTED"
    ELEMENT_COMPLETED = "ELEMENT_COMPLETED"
    COMPLETED = "COMPLETED"
    ERROR = "ERROR"


TERMINAL_KINDS = frozenset({EventKind.COMPLETED, EventKind.ERROR})


@dataclass(frozen=True)
class Event:
    """One lifecycle occurrence of a run.

    Built by the notifier's ``emit_*`` helpers. ``ELEMENT_COMPLETED`` always
    carries ``element``, ``index >= 0`` and ``delay >= 0``; ``STARTED`` and
    ``COMPLETED`` never carry an element or index.
    """

    kind: EventKind
    timestamp: datetime = field(default_factory=utcnow)
    element: Element | None = None
    index: int | None = None
    delay: float | None = None
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))

        if self.kind is EventKind.ELEMENT_COMPLETED:
            if self.element is None:
                raise ValueError("ELEMENT_COMPLETED event requires an element")
            if self.index is None or self.index < 0:
                raise ValueError(f"ELEMENT_COMPLETED event requires index >= 0, got {self.index}")
            if self.delay is None or self.delay < 0:
                raise ValueError(f"ELEMENT_COMPLETED event requires delay >= 0, got {self.delay}")
        elif self.kind in (EventKind.STARTED, EventKind.COMPLETED):
            if self.element is not None or self.index is not None:
                raise ValueError(f"{self.kind.value} event cannot carry an element or index")

    @property
    def is_terminal(self) -> bool:
        return self.kind in TERMINAL_KINDS

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON output."""
        return {
            "kind": self.kind.value,
            "timestamp": self.timestamp.isoformat(),
            "element": str(self.element) if self.element is not None else None,
            "index": self.index,
            "delay": self.delay,
            "metadata": dict(self.metadata),
        }


__all__ = ["Event", "EventKind", "TERMINAL_KINDS", "utcnow"]
