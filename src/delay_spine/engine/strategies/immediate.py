"""Synchronous-immediate execution -- every element on one call stack.

Ignores weights for scheduling purposes: elements complete in input order
without waiting, each event still carrying the element's weight as ``delay``.
The run resolves explicitly after COMPLETED. Useful as a baseline and in
tests; the delayed variant is the canonical one.
"""

from __future__ import annotations

from collections.abc import Sequence

from delay_spine.core.errors import CancellationError, ObserverFault, ValidationError
from delay_spine.core.logging import get_logger
from delay_spine.engine.cancellation import CancellationToken
from delay_spine.engine.elements import Element
from delay_spine.engine.notifier import Notifier
from delay_spine.engine.strategies.base import ExecutionStrategy

logger = get_logger(__name__)


class SyncImmediateStrategy(ExecutionStrategy):
    kind = "sync-immediate"
    name = "Synchronous immediate strategy"
    description = "Completes every element immediately, in input order, on a single call stack"
    requires_non_empty = True

    async def execute(
        self,
        elements: Sequence[Element],
        notifier: Notifier,
        token: CancellationToken | None = None,
    ) -> list[Element]:
        items = list(elements)
        if not items:
            raise ValidationError(f"{self.kind} strategy cannot run an empty sequence")

        self._begin(notifier, token)

        for index, element in enumerate(items):
            try:
                notifier.emit_element_completed(element, index, element.weight)
            except ObserverFault as fault:
                notifier.emit_error(fault.with_context(element_index=index))
                raise
            # an observer may trip the token mid-run, including on the last element
            if token is not None and token.is_tripped():
                error = CancellationError(f"Run cancelled: {token.reason}", reason=token.reason)
                notifier.emit_error(error)
                raise error

        try:
            notifier.emit_completed()
        except ObserverFault as fault:
            logger.error("strategy.completed_observer_fault", observer=fault.observer, error=str(fault))
        return items


__all__ = ["SyncImmediateStrategy"]
