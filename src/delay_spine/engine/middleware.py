"""Strategy middleware -- explicit wrappers around the strategy entry point.

Cross-cutting concerns (input validation, call logging, timing) are plain
functions composed around ``strategy.execute`` by the runner. Nothing is
attached through decorators or annotations; what runs around a strategy is
exactly the list handed to ``compose``.

ARCHITECTURE
────────────
::

    Invoke      = async (elements, notifier, token) -> list[Element]
    Middleware  = Invoke -> Invoke

    compose(strategy.execute, with_call_logging(store), with_timing())
        ──► with_call_logging( with_timing( strategy.execute ) )

    validate_elements(elements, allow_empty=...)   ─ synchronous, runs
                                                     before any event

Related modules:
    runner.py ─ composes the default chain per run
"""

from __future__ import annotations

import math
import numbers
import time
from collections.abc import Awaitable, Callable, Mapping, Sequence
from typing import Any

from delay_spine.core.config import ConfigStore, EngineSettings, as_store
from delay_spine.core.errors import ValidationError
from delay_spine.core.logging import get_logger
from delay_spine.engine.cancellation import CancellationToken
from delay_spine.engine.elements import Element
from delay_spine.engine.notifier import Notifier

logger = get_logger(__name__)

Invoke = Callable[[Sequence[Element], Notifier, CancellationToken | None], Awaitable[list[Element]]]
Middleware = Callable[[Invoke], Invoke]

_MISSING = object()


def validate_elements(elements: Any, *, allow_empty: bool = True) -> list[Element]:
    """Check that ``elements`` is a sequence of validly weighted elements.

    Returns:
        A list copy of the elements, safe from later caller mutation.

    Raises:
        ValidationError: If the input is not a sequence (strings, bytes and
            mappings are rejected), is empty while ``allow_empty`` is false,
            or any element lacks a finite, non-negative, numeric weight.
    """
    if isinstance(elements, (str, bytes, bytearray, Mapping)) or not isinstance(elements, Sequence):
        raise ValidationError(
            f"Expected a sequence of elements, got {type(elements).__name__}",
            value=elements,
        )

    items = list(elements)
    if not items and not allow_empty:
        raise ValidationError("Cannot run an empty sequence with this strategy")

    for index, element in enumerate(items):
        weight = getattr(element, "weight", _MISSING)
        if weight is _MISSING:
            raise ValidationError(f"Element at index {index} has no weight", index=index, value=element)
        if isinstance(weight, bool) or not isinstance(weight, numbers.Real):
            raise ValidationError(
                f"Element at index {index} has a non-numeric weight: {weight!r}",
                index=index,
                value=weight,
            )
        if math.isnan(weight) or math.isinf(weight) or weight < 0:
            raise ValidationError(
                f"Element at index {index} needs a finite non-negative weight, got {weight!r}",
                index=index,
                value=weight,
            )
    return items


def with_call_logging(config: ConfigStore | EngineSettings | None = None) -> Middleware:
    """Log each strategy invocation while ``enable_logging`` is on."""
    store = as_store(config)

    def middleware(invoke: Invoke) -> Invoke:
        async def wrapped(
            elements: Sequence[Element],
            notifier: Notifier,
            token: CancellationToken | None,
        ) -> list[Element]:
            if store.snapshot().enable_logging:
                logger.info(
                    "middleware.invoked",
                    strategy=notifier.strategy_name,
                    elements=len(elements),
                    cancellable=token is not None,
                )
            return await invoke(elements, notifier, token)

        return wrapped

    return middleware


def with_timing(step: str = "strategy.execute") -> Middleware:
    """Log the wall-clock duration of each invocation, success or failure."""

    def middleware(invoke: Invoke) -> Invoke:
        async def wrapped(
            elements: Sequence[Element],
            notifier: Notifier,
            token: CancellationToken | None,
        ) -> list[Element]:
            started = time.perf_counter()
            try:
                processed = await invoke(elements, notifier, token)
            except Exception as e:
                logger.warning(
                    "middleware.timed",
                    step=step,
                    status="error",
                    duration_ms=round((time.perf_counter() - started) * 1000, 2),
                    error_type=type(e).__name__,
                )
                raise
            logger.info(
                "middleware.timed",
                step=step,
                status="ok",
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
                elements=len(processed),
            )
            return processed

        return wrapped

    return middleware


def compose(invoke: Invoke, *middlewares: Middleware) -> Invoke:
    """Wrap ``invoke`` so the first middleware listed is the outermost."""
    for middleware in reversed(middlewares):
        invoke = middleware(invoke)
    return invoke


__all__ = [
    "Invoke",
    "Middleware",
    "validate_elements",
    "with_call_logging",
    "with_timing",
    "compose",
]
