"""Strategy Registry -- StrategyKind → factory lookup table.

Manifesto:
    Runners ask for a strategy by kind and get a fresh instance per run.
    The table is built explicitly at startup; registering a new variant is a
    plain ``register()`` call, never monkey-patching.

ARCHITECTURE
────────────
::

    StrategyRegistry
      ├── .register(kind, factory)  ─ factory(settings) -> ExecutionStrategy
      ├── .create(kind, settings)   ─ fresh instance per call
      ├── .has(kind)                ─ existence check
      ├── .list_kinds()             ─ registered kind strings
      └── .describe()               ─ kind / name / description rows

    build_default_registry()  ─ sync-immediate + delayed-cancellable

Tags:
    delay-spine, registry, strategy, lookup

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum

from delay_spine.core.config import EngineSettings
from delay_spine.core.errors import StrategyNotFoundError
from delay_spine.engine.strategies.base import ExecutionStrategy
from delay_spine.engine.strategies.delayed import DelayedCancellableStrategy
from delay_spine.engine.strategies.immediate import SyncImmediateStrategy


class StrategyKind(str, Enum):
    """Enumerated strategy variants."""

    SYNC_IMMEDIATE = "sync-immediate"
    DELAYED_CANCELLABLE = "delayed-cancellable"


StrategyFactory = Callable[[EngineSettings], ExecutionStrategy]


def _key(kind: StrategyKind | str) -> str:
    return kind.value if isinstance(kind, StrategyKind) else kind


class StrategyRegistry:
    """Injectable strategy lookup table.

    Example:
        >>> registry = build_default_registry()
        >>> registry.create(StrategyKind.DELAYED_CANCELLABLE).kind
        'delayed-cancellable'
    """

    def __init__(self) -> None:
        self._factories: dict[str, StrategyFactory] = {}

    def register(self, kind: StrategyKind | str, factory: StrategyFactory) -> None:
        """Register ``factory`` under ``kind``, replacing any previous entry."""
        self._factories[_key(kind)] = factory

    def create(self, kind: StrategyKind | str, settings: EngineSettings | None = None) -> ExecutionStrategy:
        """Build a new strategy instance.

        Raises:
            StrategyNotFoundError: If ``kind`` is not registered.
        """
        key = _key(kind)
        factory = self._factories.get(key)
        if factory is None:
            raise StrategyNotFoundError(key, self.list_kinds())
        return factory(settings if settings is not None else EngineSettings())

    def has(self, kind: StrategyKind | str) -> bool:
        return _key(kind) in self._factories

    def list_kinds(self) -> list[str]:
        return list(self._factories)

    def describe(self, settings: EngineSettings | None = None) -> list[dict[str, str]]:
        rows = []
        for key in self._factories:
            strategy = self.create(key, settings)
            rows.append({"kind": key, "name": strategy.name, "description": strategy.description})
        return rows


def build_default_registry() -> StrategyRegistry:
    """Registry with the two built-in variants."""
    registry = StrategyRegistry()
    registry.register(StrategyKind.SYNC_IMMEDIATE, lambda settings: SyncImmediateStrategy())
    registry.register(
        StrategyKind.DELAYED_CANCELLABLE,
        lambda settings: DelayedCancellableStrategy(time_unit_seconds=settings.time_unit_seconds),
    )
    return registry


__all__ = [
    "StrategyKind",
    "StrategyFactory",
    "StrategyRegistry",
    "build_default_registry",
]
