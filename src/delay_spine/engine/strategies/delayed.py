"""
Delayed, cancellable execution -- one independent timer per element.

Manifesto:
    Each element becomes visible only after a delay equal to its own weight.
    The delays run in parallel on the event loop (timers registered at run
    start), never as a serial wait, and the engine never blocks: it returns
    control to the loop between registering a timer and that timer firing.

ARCHITECTURE
────────────
::

    execute(elements, notifier, token)
      │
      ├── emit STARTED
      ├── token already tripped? ──► emit ERROR, raise CancellationError
      ├── no elements?           ──► emit COMPLETED, return []
      │
      ├── token.on_trip(_on_trip)
      ├── loop.call_later(weight * time_unit, _fire, ...)   × N
      └── await run future
             ▲                       ▲
             │ set_result            │ set_exception
      _fire: emit ELEMENT_COMPLETED  _on_trip / observer fault:
             counter == N ?            cancel pending timers
               emit COMPLETED          emit ERROR (once)

    _RunState is created by one execute() call and only reachable from the
    callbacks that call scheduled. Nothing is shared across runs.

Guarantees:
    - STARTED exactly once, before any ELEMENT_COMPLETED
    - one ELEMENT_COMPLETED per element with its original index and weight
    - COMPLETED exactly once, after all N ELEMENT_COMPLETED, never after a trip
    - a trip strictly before the N-th completion emits exactly one ERROR and
      suppresses every later timer; a trip after COMPLETED changes nothing
    - the run future is always settled, exactly once
    - an observer fault on COMPLETED is logged and the run still resolves Ok

Tags:
    asyncio, timers, cancellation, strategy, delay-spine

Doc-Types:
    api-reference
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass, field

from delay_spine.core.errors import CancellationError, ObserverFault, SpineError
from delay_spine.core.logging import get_logger
from delay_spine.engine.cancellation import CancellationToken
from delay_spine.engine.elements import Element
from delay_spine.engine.notifier import Notifier
from delay_spine.engine.strategies.base import ExecutionStrategy

logger = get_logger(__name__)


@dataclass
class _RunState:
    """Per-run arena: counter, timers and the completion signal."""

    total: int
    future: asyncio.Future[list[Element]]
    processed: list[Element] = field(default_factory=list)
    handles: list[asyncio.TimerHandle] = field(default_factory=list)
    settled: bool = False

    def cancel_timers(self) -> None:
        for handle in self.handles:
            handle.cancel()
        self.handles.clear()


class DelayedCancellableStrategy(ExecutionStrategy):
    """Completes every element after ``weight * time_unit_seconds`` seconds.

    Parameters
    ----------
    time_unit_seconds : float
        Seconds per unit of weight. The default treats weights as
        milliseconds.
    """

    kind = "delayed-cancellable"
    name = "Delayed cancellable strategy"
    description = (
        "Completes each element after a delay equal to its weight using independent "
        "timers; supports cancellation through a CancellationToken"
    )

    def __init__(self, time_unit_seconds: float = 0.001) -> None:
        if time_unit_seconds <= 0:
            raise ValueError(f"time_unit_seconds must be positive, got {time_unit_seconds}")
        self._time_unit_seconds = time_unit_seconds

    @property
    def time_unit_seconds(self) -> float:
        return self._time_unit_seconds

    async def execute(
        self,
        elements: Sequence[Element],
        notifier: Notifier,
        token: CancellationToken | None = None,
    ) -> list[Element]:
        items = list(elements)
        self._begin(notifier, token)

        if not items:
            notifier.emit_completed()
            return []

        loop = asyncio.get_running_loop()
        state = _RunState(total=len(items), future=loop.create_future())

        unsubscribe = None
        if token is not None:
            unsubscribe = token.on_trip(lambda reason: self._on_trip(state, notifier, reason))

        try:
            for index, element in enumerate(items):
                handle = loop.call_later(
                    element.weight * self._time_unit_seconds,
                    self._fire,
                    state,
                    notifier,
                    token,
                    element,
                    index,
                )
                state.handles.append(handle)
            logger.debug("strategy.scheduled", timers=len(items), time_unit_seconds=self._time_unit_seconds)

            return await state.future
        except asyncio.CancelledError:
            if state.settled and state.future.done() and not state.future.cancelled():
                # The run resolved before the cancellation reached this task.
                return state.future.result()
            # Task cancellation counts as a trip: no COMPLETED may follow.
            self._fail(state, notifier, CancellationError("Run task cancelled", reason="task-cancelled"))
            raise
        finally:
            if unsubscribe is not None:
                unsubscribe()
            state.cancel_timers()

    # ── Timer and trip callbacks ─────────────────────────────────────

    def _fire(
        self,
        state: _RunState,
        notifier: Notifier,
        token: CancellationToken | None,
        element: Element,
        index: int,
    ) -> None:
        # A cancelled future means the awaiting task was cancelled; it fails the run.
        if state.settled or state.future.done() or (token is not None and token.is_tripped()):
            return

        try:
            notifier.emit_element_completed(element, index, element.weight)
        except ObserverFault as fault:
            self._fail(state, notifier, fault.with_context(element_index=index))
            return

        # an observer may have tripped the token or cancelled the task during dispatch
        if state.settled or state.future.done():
            return

        state.processed.append(element)
        if len(state.processed) < state.total:
            return

        state.settled = True
        state.handles.clear()
        state.future.set_result(list(state.processed))
        try:
            notifier.emit_completed()
        except ObserverFault as fault:
            # COMPLETED is recorded; the run stays successful.
            logger.error(
                "strategy.completed_observer_fault",
                observer=fault.observer,
                error=str(fault),
            )
        else:
            logger.debug("strategy.completed", elements=state.total)

    def _on_trip(self, state: _RunState, notifier: Notifier, reason: str) -> None:
        if state.settled:
            return
        logger.info(
            "strategy.cancelled",
            reason=reason,
            completed=len(state.processed),
            total=state.total,
        )
        self._fail(state, notifier, CancellationError(f"Run cancelled: {reason}", reason=reason))

    def _fail(self, state: _RunState, notifier: Notifier, error: SpineError) -> None:
        """Settle the run as failed and emit its single ERROR event.

        The future is settled before ERROR is dispatched, so an observer
        faulting on ERROR cannot leave the run unresolved; that second fault
        propagates to whoever triggered the failure.
        """
        if state.settled:
            return
        state.settled = True
        state.cancel_timers()
        if not state.future.done():
            state.future.set_exception(error)
        notifier.emit_error(error)


__all__ = ["DelayedCancellableStrategy"]
