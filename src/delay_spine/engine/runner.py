"""
Runner -- orchestrates one run end to end.

Manifesto:
    Every run follows the same lifecycle (hooks, strategy, notifier,
    observers, invoke, result) so calling code never wires notifiers or
    converts failures by hand. Subclasses customise the hooks, not the flow.

ARCHITECTURE
────────────
::

    Runner.start(elements, kind, observers, token)
      │
      ├── before_run()                       hook
      ├── build_strategy(kind)               fresh instance from the registry
      ├── validate_elements(...)             ValidationError, no events yet
      ├── build_notifier(strategy)           one Notifier per run
      ├── attach default_observers() + caller observers
      └── asyncio task:
            compose(strategy.execute, *middlewares)(elements, notifier, token)
              ├── returns  ──► Ok(processed)
              └── raises   ──► Err(error)
            after_run(result)                hook
      ◄── RunHandle(run_id, notifier, token, task)

    Runner.run(...)  = await Runner.start(...).result()

Guardrails:
    The runner keeps no state between runs. Two runs on different runners,
    or on the same runner, share nothing mutable except observers the caller
    deliberately attaches to both.

    ``start()`` must be called with a running event loop.

Tags:
    spine-core-style, runner, template-method, lifecycle, asyncio, delay-spine

Doc-Types:
    api-reference
"""

from __future__ import annotations

import asyncio
import uuid
from collections.abc import Iterable, Sequence

from delay_spine.core.config import ConfigStore, EngineSettings, as_store
from delay_spine.core.errors import ExecutionError, SpineError
from delay_spine.core.logging import LogContext, get_logger
from delay_spine.core.result import Err, Ok, Result
from delay_spine.engine.cancellation import CancellationToken, cancel_after
from delay_spine.engine.elements import Element
from delay_spine.engine.events import Event
from delay_spine.engine.middleware import (
    Invoke,
    Middleware,
    compose,
    validate_elements,
    with_call_logging,
    with_timing,
)
from delay_spine.engine.notifier import Notifier
from delay_spine.engine.observers import LoggingObserver, Observer
from delay_spine.engine.strategies import (
    ExecutionStrategy,
    StrategyKind,
    StrategyRegistry,
    build_default_registry,
)

logger = get_logger(__name__)


class RunHandle:
    """Handle on a run in flight.

    Example::

        handle = runner.start(elements)
        handle.cancel("user")
        result = await handle.result()
        events = handle.history()
    """

    def __init__(
        self,
        run_id: str,
        strategy: ExecutionStrategy,
        notifier: Notifier,
        token: CancellationToken,
        task: asyncio.Task[Result[list[Element]]],
    ) -> None:
        self.run_id = run_id
        self.strategy = strategy
        self.notifier = notifier
        self.token = token
        self._task = task

    def cancel(self, reason: str = "cancelled") -> bool:
        """Trip the run's token. Returns False if it was already tripped."""
        return self.token.trip(reason)

    def done(self) -> bool:
        return self._task.done()

    async def result(self) -> Result[list[Element]]:
        """Suspend until the run resolves."""
        return await self._task

    def history(self) -> list[Event]:
        return self.notifier.history()

    def __repr__(self) -> str:
        return f"RunHandle(run_id={self.run_id!r}, strategy={self.strategy.kind!r}, done={self.done()})"


class Runner:
    """Template-method runner.

    Parameters
    ----------
    config : ConfigStore | EngineSettings | None
        Options threaded into strategies, middleware and the default
        LoggingObserver.
    registry : StrategyRegistry | None
        Strategy lookup table; the built-in one when omitted.
    middlewares : Iterable[Middleware] | None
        Wrappers composed around ``strategy.execute``, outermost first.
        Defaults to call logging plus timing.
    include_default_observers : bool
        Attach a LoggingObserver to every run.
    """

    def __init__(
        self,
        config: ConfigStore | EngineSettings | None = None,
        *,
        registry: StrategyRegistry | None = None,
        middlewares: Iterable[Middleware] | None = None,
        include_default_observers: bool = True,
    ) -> None:
        self._store = as_store(config)
        self._registry = registry or build_default_registry()
        if middlewares is None:
            middlewares = [with_call_logging(self._store), with_timing()]
        self._middlewares = list(middlewares)
        self._include_default_observers = include_default_observers

    @property
    def config(self) -> ConfigStore:
        return self._store

    @property
    def registry(self) -> StrategyRegistry:
        return self._registry

    # ── Hooks ────────────────────────────────────────────────────────

    def before_run(self) -> None:
        """Called at the start of every ``start()``. No-op by default."""

    def after_run(self, result: Result[list[Element]]) -> None:
        """Called once a started run resolves. No-op by default."""

    # ── Overridable build steps ──────────────────────────────────────

    def build_strategy(self, kind: StrategyKind | str) -> ExecutionStrategy:
        return self._registry.create(kind, self._store.snapshot())

    def build_notifier(self, strategy: ExecutionStrategy) -> Notifier:
        return Notifier(strategy.name)

    def default_observers(self) -> list[Observer]:
        if not self._include_default_observers:
            return []
        return [LoggingObserver(self._store)]

    # ── Entry points ─────────────────────────────────────────────────

    def start(
        self,
        elements: Sequence[Element],
        kind: StrategyKind | str = StrategyKind.DELAYED_CANCELLABLE,
        *,
        observers: Iterable[Observer] = (),
        token: CancellationToken | None = None,
    ) -> RunHandle:
        """Validate, wire and launch a run.

        Raises:
            ValidationError: Invalid input; raised before any event.
            StrategyNotFoundError: Unknown ``kind``.
            RuntimeError: No running event loop.
        """
        self.before_run()

        strategy = self.build_strategy(kind)
        items = validate_elements(elements, allow_empty=not strategy.requires_non_empty)

        notifier = self.build_notifier(strategy)
        for observer in [*self.default_observers(), *observers]:
            notifier.attach(observer)

        token = token if token is not None else CancellationToken()
        run_id = f"run-{uuid.uuid4().hex[:12]}"
        invoke = compose(strategy.execute, *self._middlewares)

        task = asyncio.create_task(
            self._execute(run_id, strategy, invoke, items, notifier, token),
            name=run_id,
        )
        logger.debug("runner.launched", run_id=run_id, strategy=strategy.kind, elements=len(items))
        return RunHandle(run_id, strategy, notifier, token, task)

    async def run(
        self,
        elements: Sequence[Element],
        kind: StrategyKind | str = StrategyKind.DELAYED_CANCELLABLE,
        *,
        observers: Iterable[Observer] = (),
        token: CancellationToken | None = None,
    ) -> Result[list[Element]]:
        """Run to resolution and return ``Ok(processed)`` or ``Err(reason)``."""
        handle = self.start(elements, kind, observers=observers, token=token)
        return await handle.result()

    async def _execute(
        self,
        run_id: str,
        strategy: ExecutionStrategy,
        invoke: Invoke,
        items: list[Element],
        notifier: Notifier,
        token: CancellationToken,
    ) -> Result[list[Element]]:
        async with LogContext(run_id=run_id, strategy=strategy.kind):
            result: Result[list[Element]]
            try:
                processed = await invoke(items, notifier, token)
                result = Ok(processed)
            except SpineError as e:
                e.with_context(run_id=run_id, strategy=strategy.kind)
                result = Err(e)
            except Exception as e:
                logger.error("runner.error", error=str(e), error_type=type(e).__name__)
                error = ExecutionError(f"Strategy {strategy.kind} failed: {e}", cause=e)
                error.with_context(run_id=run_id, strategy=strategy.kind)
                if not any(event.is_terminal for event in notifier.history()):
                    notifier.emit_error(error)
                result = Err(error)

            self.after_run(result)
            return result


class LoggingRunner(Runner):
    """Runner whose hooks report the lifecycle through structlog."""

    def before_run(self) -> None:
        logger.info("runner.starting")

    def after_run(self, result: Result[list[Element]]) -> None:
        if result.is_ok():
            logger.info("runner.finished", status="ok", processed=len(result.unwrap()))
        else:
            error = result.error  # type: ignore[union-attr]
            logger.warning("runner.finished", status="error", error=str(error), error_type=type(error).__name__)


async def run_with_timeout(
    runner: Runner,
    elements: Sequence[Element],
    timeout: float,
    kind: StrategyKind | str = StrategyKind.DELAYED_CANCELLABLE,
    *,
    observers: Iterable[Observer] = (),
) -> Result[list[Element]]:
    """Run, tripping the run's token if it has not resolved after ``timeout`` seconds.

    Raises:
        ValueError: If ``timeout`` is negative; no run is started.
    """
    if timeout < 0:
        raise ValueError(f"Timeout must be non-negative, got {timeout}")
    token = CancellationToken()
    handle = runner.start(elements, kind, observers=observers, token=token)
    timer = cancel_after(token, timeout, reason=f"timeout after {timeout}s")
    try:
        return await handle.result()
    finally:
        timer.cancel()


__all__ = ["Runner", "LoggingRunner", "RunHandle", "run_with_timeout"]
