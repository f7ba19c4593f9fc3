"""Execution strategies and their registry."""

from delay_spine.engine.strategies.base import ExecutionStrategy
from delay_spine.engine.strategies.delayed import DelayedCancellableStrategy
from delay_spine.engine.strategies.immediate import SyncImmediateStrategy
from delay_spine.engine.strategies.registry import (
    StrategyKind,
    StrategyRegistry,
    build_default_registry,
)

__all__ = [
    "ExecutionStrategy",
    "DelayedCancellableStrategy",
    "SyncImmediateStrategy",
    "StrategyKind",
    "StrategyRegistry",
    "build_default_registry",
]
