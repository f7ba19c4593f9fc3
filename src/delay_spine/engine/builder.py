"""Engine facade and fluent builder.

The ``Engine`` bundles everything needed to launch runs over one element
sequence: the strategy kind, a runner carrying the configuration, and the
caller's observers. ``EngineBuilder`` assembles one step at a time and
validates only at ``build()``.

Example::

    engine = (
        EngineBuilder()
        .with_values([30, 10, 20])
        .with_strategy(StrategyKind.DELAYED_CANCELLABLE)
        .add_observer(StatisticsObserver())
        .with_config(log_prefix="[demo]")
        .build()
    )
    result = await engine.execute()
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any

from delay_spine.core.config import ConfigStore
from delay_spine.core.errors import ValidationError
from delay_spine.core.logging import get_logger
from delay_spine.core.result import Result
from delay_spine.engine.cancellation import CancellationToken
from delay_spine.engine.elements import Element, as_elements
from delay_spine.engine.events import Event
from delay_spine.engine.observers import Observer
from delay_spine.engine.runner import RunHandle, Runner
from delay_spine.engine.strategies import StrategyKind, StrategyRegistry

logger = get_logger(__name__)


class Engine:
    """Facade over a Runner for one fixed element sequence."""

    def __init__(
        self,
        elements: Sequence[Element],
        kind: StrategyKind | str,
        runner: Runner,
        observers: Iterable[Observer] = (),
    ) -> None:
        self._elements = list(elements)
        self._kind = kind
        self._runner = runner
        self._observers: list[Observer] = list(observers)
        self._last: RunHandle | None = None

    @property
    def elements(self) -> list[Element]:
        return list(self._elements)

    @property
    def kind(self) -> StrategyKind | str:
        return self._kind

    @property
    def config(self) -> ConfigStore:
        return self._runner.config

    @property
    def last_run(self) -> RunHandle | None:
        return self._last

    def add_observer(self, observer: Observer) -> None:
        """Attach ``observer`` to every subsequent run."""
        if observer not in self._observers:
            self._observers.append(observer)

    def remove_observer(self, observer: Observer) -> None:
        if observer in self._observers:
            self._observers.remove(observer)

    def start(self, token: CancellationToken | None = None) -> RunHandle:
        self._last = self._runner.start(self._elements, self._kind, observers=self._observers, token=token)
        return self._last

    async def execute(self, token: CancellationToken | None = None) -> Result[list[Element]]:
        """Run the sequence once and return its result."""
        return await self.start(token).result()

    def history(self) -> list[Event]:
        """Events of the most recent run, or an empty list before the first."""
        return self._last.history() if self._last is not None else []

    def __repr__(self) -> str:
        return f"Engine(kind={self._kind!r}, elements={len(self._elements)}, observers={len(self._observers)})"


class EngineBuilder:
    """Fluent assembly of an ``Engine``.

    Every ``with_*``/``add_*`` method returns the builder. ``build()`` checks
    that elements and a strategy were supplied; ``reset()`` clears all state
    so the builder can be reused.
    """

    def __init__(self) -> None:
        self.reset()

    def reset(self) -> EngineBuilder:
        self._elements: list[Element] | None = None
        self._kind: StrategyKind | str | None = None
        self._observers: list[Observer] = []
        self._store: ConfigStore | None = None
        self._overrides: dict[str, Any] = {}
        self._registry: StrategyRegistry | None = None
        self._default_observers = True
        return self

    def with_elements(self, elements: Iterable[Element]) -> EngineBuilder:
        self._elements = list(elements)
        return self

    def with_values(self, values: Iterable[float]) -> EngineBuilder:
        """Use plain numbers as elements, each its own weight."""
        self._elements = list(as_elements(values))
        return self

    def with_strategy(self, kind: StrategyKind | str) -> EngineBuilder:
        self._kind = kind
        return self

    def add_observer(self, observer: Observer) -> EngineBuilder:
        self._observers.append(observer)
        return self

    def with_config(self, store: ConfigStore | None = None, **partial: Any) -> EngineBuilder:
        """Share ``store`` with the engine and/or apply option overrides at build time."""
        if store is not None:
            self._store = store
        self._overrides.update(partial)
        return self

    def with_registry(self, registry: StrategyRegistry) -> EngineBuilder:
        self._registry = registry
        return self

    def without_default_observers(self) -> EngineBuilder:
        self._default_observers = False
        return self

    def build(self) -> Engine:
        """Create the engine.

        Raises:
            ValidationError: If elements or a strategy kind are missing.
            ConfigError: If an override is unknown or invalid.
        """
        if self._elements is None:
            raise ValidationError("EngineBuilder requires elements; call with_elements() or with_values()")
        if self._kind is None:
            raise ValidationError("EngineBuilder requires a strategy; call with_strategy()")

        store = self._store if self._store is not None else ConfigStore()
        if self._overrides:
            store.update(**self._overrides)

        runner = Runner(
            store,
            registry=self._registry,
            include_default_observers=self._default_observers,
        )
        logger.debug("builder.built", kind=getattr(self._kind, "value", self._kind), elements=len(self._elements))
        return Engine(self._elements, self._kind, runner, self._observers)


__all__ = ["Engine", "EngineBuilder"]
