"""delay-spine core -- errors, results, settings and logging.

Architecture::

    errors.py     Structured error hierarchy (SpineError, CancellationError, ...)
    result.py     Result[T] envelope (Ok / Err)
    config.py     EngineSettings (pydantic-settings) + ConfigStore
    logging.py    structlog configuration and bound loggers

Nothing in ``core`` depends on the engine; the engine depends on ``core``.
"""

from delay_spine.core.config import ConfigStore, EngineSettings
from delay_spine.core.errors import (
    CancellationError,
    ConfigError,
    ErrorCategory,
    ErrorContext,
    ExecutionError,
    ObserverFault,
    SpineError,
    StrategyNotFoundError,
    ValidationError,
)
from delay_spine.core.result import Err, Ok, Result

__all__ = [
    "ConfigStore",
    "EngineSettings",
    "CancellationError",
    "ConfigError",
    "ErrorCategory",
    "ErrorContext",
    "ExecutionError",
    "ObserverFault",
    "SpineError",
    "StrategyNotFoundError",
    "ValidationError",
    "Err",
    "Ok",
    "Result",
]
