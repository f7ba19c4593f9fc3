"""delay-spine -- event-driven delayed, cancellable execution engine.

Manifesto:
    A strategy runs over an ordered sequence of weighted elements and reports
    every step as an immutable event. Observers (logging, statistics,
    history) consume those events without knowing anything about timers or
    cancellation, and a one-shot token stops a run cleanly at any point.

Architecture::

    core/               errors, Result, settings, structlog setup
    engine/             events, notifier, observers, strategies, runner
    cli/                Typer front-end (``delay-spine``)

Example::

    from delay_spine import Runner, StatisticsObserver, as_elements

    stats = StatisticsObserver()
    result = await Runner().run(as_elements([30, 10, 20]), observers=[stats])
    [e.weight for e in result.unwrap()]   # [10, 20, 30]
"""

__version__ = "0.1.0"

from delay_spine.core import (  # noqa: E402
    CancellationError,
    ConfigError,
    ConfigStore,
    EngineSettings,
    Err,
    ExecutionError,
    ObserverFault,
    Ok,
    Result,
    SpineError,
    StrategyNotFoundError,
    ValidationError,
)
from delay_spine.engine import (  # noqa: E402
    CancellationToken,
    Engine,
    EngineBuilder,
    Event,
    EventKind,
    HistoryObserver,
    LoggingObserver,
    Notifier,
    Runner,
    StatisticsObserver,
    StrategyKind,
    WeightedValue,
    as_elements,
)

__all__ = [
    "__version__",
    "CancellationError",
    "ConfigError",
    "ConfigStore",
    "EngineSettings",
    "Err",
    "ExecutionError",
    "ObserverFault",
    "Ok",
    "Result",
    "SpineError",
    "StrategyNotFoundError",
    "ValidationError",
    "CancellationToken",
    "Engine",
    "EngineBuilder",
    "Event",
    "EventKind",
    "HistoryObserver",
    "LoggingObserver",
    "Notifier",
    "Runner",
    "StatisticsObserver",
    "StrategyKind",
    "WeightedValue",
    "as_elements",
]
