"""Execution strategy protocol shared by every variant.

A strategy consumes an element sequence plus a notifier (and optionally a
cancellation token), drives the run, and either returns the processed
elements or raises. Exactly one terminal event is emitted per call:
``COMPLETED`` when it returns, ``ERROR`` when it raises after ``STARTED``.

Related modules:
    delayed.py   ─ per-element timers, cancellable (the core variant)
    immediate.py ─ everything on one call stack, input order
    registry.py  ─ StrategyKind -> factory lookup table
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import ClassVar

from delay_spine.core.errors import CancellationError, ObserverFault
from delay_spine.engine.cancellation import CancellationToken
from delay_spine.engine.elements import Element
from delay_spine.engine.notifier import Notifier


class ExecutionStrategy(ABC):
    """Pluggable algorithm driving how elements are processed."""

    kind: ClassVar[str]
    name: ClassVar[str]
    description: ClassVar[str]
    requires_non_empty: ClassVar[bool] = False

    @abstractmethod
    async def execute(
        self,
        elements: Sequence[Element],
        notifier: Notifier,
        token: CancellationToken | None = None,
    ) -> list[Element]:
        """Run over ``elements``, emitting lifecycle events on ``notifier``.

        Returns:
            Processed elements in completion order.

        Raises:
            CancellationError: The token was tripped before completion.
            ObserverFault: An observer raised during emission.
        """

    def _begin(self, notifier: Notifier, token: CancellationToken | None) -> None:
        """Emit STARTED, then fail fast if the token is already tripped."""
        try:
            notifier.emit_started()
        except ObserverFault as fault:
            notifier.emit_error(fault)
            raise

        if token is not None and token.is_tripped():
            error = CancellationError("Run aborted before start", reason=token.reason)
            notifier.emit_error(error)
            raise error

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self.kind!r})"


__all__ = ["ExecutionStrategy"]
