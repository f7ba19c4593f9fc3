"""
Notifier -- per-run event fan-out and append-only event log.

Manifesto:
    Strategies should not know who is listening. The notifier is the single
    seam between "something happened" and "someone cares": it records every
    event in order and hands it to each attached observer synchronously, on
    the emitting call stack.

ARCHITECTURE
────────────
::

    Notifier(strategy_name)
      ├── .attach(observer)      ─ idempotent (set semantics)
      ├── .detach(observer)      ─ no-op when absent
      ├── .emit(event)           ─ append to history, then fan out
      ├── .emit_started()        ─ STARTED            {strategy}
      ├── .emit_element_completed(element, index, delay)
      │                          ─ ELEMENT_COMPLETED  {total_completed}
      ├── .emit_completed()      ─ COMPLETED          {strategy, total_elements}
      ├── .emit_error(reason)    ─ ERROR              {error, error_type}
      └── .history()             ─ copy of the event log

Guardrails:
    Observer faults are NOT swallowed. An exception raised by an observer is
    wrapped in ``ObserverFault`` and propagates out of ``emit``; observers
    later in the iteration are skipped for that event, earlier ones keep
    their effects, and the event stays in the history. A faulty observer can
    therefore abort a run.

    Iteration follows attach order today, but that order is not part of the
    contract.

Tags:
    observer-pattern, subject, events, fan-out, delay-spine

Doc-Types:
    api-reference
"""

from __future__ import annotations

from typing import Any

from delay_spine.core.errors import ObserverFault
from delay_spine.core.logging import get_logger
from delay_spine.engine.elements import Element
from delay_spine.engine.events import Event, EventKind
from delay_spine.engine.observers import Observer

logger = get_logger(__name__)


class Notifier:
    """Subject of the observer pattern for exactly one run.

    Owned by the run that created it and only mutated from the event loop
    driving that run, so no locking is needed.
    """

    def __init__(self, strategy_name: str) -> None:
        self._strategy_name = strategy_name
        # dict keys: insertion-ordered set
        self._observers: dict[Observer, None] = {}
        self._history: list[Event] = []
        self._element_count = 0

    # ── Observer management ──────────────────────────────────────────

    def attach(self, observer: Observer) -> None:
        """Add ``observer`` to the fan-out set. Attaching twice is a no-op."""
        if observer in self._observers:
            return
        self._observers[observer] = None
        logger.debug("notifier.observer_attached", observer=type(observer).__name__)

    def detach(self, observer: Observer) -> None:
        """Remove ``observer``; no-op if it is not attached."""
        if self._observers.pop(observer, _MISSING) is not _MISSING:
            logger.debug("notifier.observer_detached", observer=type(observer).__name__)

    # ── Emission ─────────────────────────────────────────────────────

    def emit(self, event: Event) -> Event:
        """Record ``event`` and dispatch it to every attached observer.

        Raises:
            ObserverFault: If an observer's ``on_event`` raises.
        """
        self._history.append(event)
        for observer in list(self._observers):
            try:
                observer.on_event(event)
            except Exception as e:
                name = type(observer).__name__
                logger.error(
                    "notifier.observer_fault",
                    observer=name,
                    event_kind=event.kind.value,
                    error=str(e),
                )
                raise ObserverFault(
                    f"Observer {name} failed handling {event.kind.value}: {e}",
                    observer=name,
                    event_kind=event.kind.value,
                    cause=e,
                ) from e
        return event

    def emit_started(self) -> Event:
        return self.emit(Event(kind=EventKind.STARTED, metadata={"strategy": self._strategy_name}))

    def emit_element_completed(self, element: Element, index: int, delay: float) -> Event:
        self._element_count += 1
        return self.emit(
            Event(
                kind=EventKind.ELEMENT_COMPLETED,
                element=element,
                index=index,
                delay=delay,
                metadata={"total_completed": self._element_count},
            )
        )

    def emit_completed(self) -> Event:
        return self.emit(
            Event(
                kind=EventKind.COMPLETED,
                metadata={
                    "strategy": self._strategy_name,
                    "total_elements": self._element_count,
                },
            )
        )

    def emit_error(self, reason: BaseException | str) -> Event:
        metadata: dict[str, Any] = {"error": str(reason)}
        if isinstance(reason, BaseException):
            metadata["error_type"] = type(reason).__name__
        return self.emit(Event(kind=EventKind.ERROR, metadata=metadata))

    # ── Inspection ───────────────────────────────────────────────────

    def history(self) -> list[Event]:
        """Return a copy of the event log in emission order."""
        return list(self._history)

    @property
    def strategy_name(self) -> str:
        return self._strategy_name

    @property
    def element_count(self) -> int:
        """Number of ELEMENT_COMPLETED events emitted so far."""
        return self._element_count

    @property
    def observer_count(self) -> int:
        return len(self._observers)

    def __repr__(self) -> str:
        return (
            f"Notifier(strategy={self._strategy_name!r}, observers={len(self._observers)}, "
            f"events={len(self._history)})"
        )


_MISSING = object()


__all__ = ["Notifier"]
