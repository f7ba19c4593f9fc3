"""delay-spine engine -- events, observers, strategies and the runner.

Architecture::

    elements.py      Element protocol, WeightedValue
    events.py        EventKind, Event
    notifier.py      Notifier (observer fan-out + per-run history)
    observers.py     LoggingObserver, StatisticsObserver, HistoryObserver
    cancellation.py  CancellationToken, cancel_after
    strategies/      ExecutionStrategy variants + StrategyRegistry
    middleware.py    validation, call logging, timing wrappers
    runner.py        Runner (template method), RunHandle
    builder.py       Engine facade, EngineBuilder
    commands.py      CommandInvoker queue
"""

from delay_spine.engine.builder import Engine, EngineBuilder
from delay_spine.engine.cancellation import CancellationToken, cancel_after
from delay_spine.engine.commands import (
    Command,
    CommandInvoker,
    RunCommand,
    UpdateConfigCommand,
)
from delay_spine.engine.elements import Element, WeightedValue, as_elements
from delay_spine.engine.events import Event, EventKind
from delay_spine.engine.middleware import (
    compose,
    validate_elements,
    with_call_logging,
    with_timing,
)
from delay_spine.engine.notifier import Notifier
from delay_spine.engine.observers import (
    HistoryEntry,
    HistoryObserver,
    LoggingObserver,
    Observer,
    RunStatistics,
    StatisticsObserver,
)
from delay_spine.engine.runner import LoggingRunner, RunHandle, Runner, run_with_timeout
from delay_spine.engine.strategies import (
    DelayedCancellableStrategy,
    ExecutionStrategy,
    StrategyKind,
    StrategyRegistry,
    SyncImmediateStrategy,
    build_default_registry,
)

__all__ = [
    "Engine",
    "EngineBuilder",
    "CancellationToken",
    "cancel_after",
    "Command",
    "CommandInvoker",
    "RunCommand",
    "UpdateConfigCommand",
    "Element",
    "WeightedValue",
    "as_elements",
    "Event",
    "EventKind",
    "compose",
    "validate_elements",
    "with_call_logging",
    "with_timing",
    "Notifier",
    "HistoryEntry",
    "HistoryObserver",
    "LoggingObserver",
    "Observer",
    "RunStatistics",
    "StatisticsObserver",
    "LoggingRunner",
    "RunHandle",
    "Runner",
    "run_with_timeout",
    "DelayedCancellableStrategy",
    "ExecutionStrategy",
    "StrategyKind",
    "StrategyRegistry",
    "SyncImmediateStrategy",
    "build_default_registry",
]
