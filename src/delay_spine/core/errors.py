"""
Structured error types for the delay-spine engine.

Every failure the engine can surface is a ``SpineError`` subclass carrying a
category, a structured context (run id, strategy, element index) and an
optional chained cause. None of these errors are retried internally; the
engine surfaces every failure to the caller.

Manifesto:
    - **Typed Error Hierarchy:** One class per failure mode of a run
    - **Rich Context:** Errors carry run metadata for logging
    - **Error Chaining:** Observer faults keep the original exception as cause
    - **No hidden recovery:** Nothing here is retried automatically

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────┐
        │                        SpineError                            │
        │               (category, context, cause)                     │
        ├─────────────────────────────────────────────────────────────┤
        │                                                              │
        │  ValidationError     ConfigError        CancellationError    │
        │  (VALIDATION)        (CONFIG)           (CANCELLATION)       │
        │                           │                                  │
        │                  StrategyNotFoundError                       │
        │                                                              │
        │  ObserverFault       ExecutionError                          │
        │  (OBSERVER)          (EXECUTION)                             │
        └─────────────────────────────────────────────────────────────┘

    Where each error surfaces:

    - ``ValidationError``: raised synchronously by ``Runner.start`` before
      any event is emitted; the run never starts.
    - ``CancellationError``: only through the ``ERROR`` event and an ``Err``
      run result.
    - ``ObserverFault``: raised out of ``Notifier.emit``; a run whose timer
      callback hits one resolves ``Err`` with the fault.

Examples:
    >>> error = CancellationError("Run aborted", reason="user")
    >>> error.category.value
    'CANCELLATION'
    >>> error.with_context(run_id="run-1").context.run_id
    'run-1'

Tags:
    error-handling, exception-hierarchy, error-context, cancellation,
    delay-spine

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and log routing."""

    VALIDATION = "VALIDATION"        # Bad input sequence or element weight
    CONFIG = "CONFIG"                # Unknown key, invalid value, unknown strategy
    CANCELLATION = "CANCELLATION"    # Token tripped before the run completed
    OBSERVER = "OBSERVER"            # Observer handler raised during emission
    EXECUTION = "EXECUTION"          # Strategy fault
    INTERNAL = "INTERNAL"            # Bugs, unexpected state


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Attributes:
        run_id: Identifier of the run that failed
        strategy: Strategy name driving the run
        element_index: Index of the element being processed, if any
        metadata: Additional key-value pairs
    """

    run_id: str | None = None
    strategy: str | None = None
    element_index: int | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary, excluding None values."""
        result: dict[str, Any] = {}
        if self.run_id is not None:
            result["run_id"] = self.run_id
        if self.strategy is not None:
            result["strategy"] = self.strategy
        if self.element_index is not None:
            result["element_index"] = self.element_index
        result.update(self.metadata)
        return result


class SpineError(Exception):
    """
    Base class for all delay-spine errors.

    Subclasses set ``default_category``; callers may override it per
    instance. Pass ``cause=`` when wrapping another exception so the chain is
    preserved for logging.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> SpineError:
        """
        Add context to this error (fluent API).

        Known ``ErrorContext`` fields are set directly; anything else lands in
        ``context.metadata``.
        """
        for key, value in kwargs.items():
            if key != "metadata" and hasattr(self.context, key):
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# VALIDATION ERRORS
# =============================================================================


class ValidationError(SpineError):
    """
    Input validation error.

    Raised before a run starts when the input is not a valid sequence, an
    element has no valid weight, or the input is empty for a strategy that
    needs at least one element.
    """

    default_category = ErrorCategory.VALIDATION

    def __init__(
        self,
        message: str,
        *,
        index: int | None = None,
        value: Any = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.index = index
        self.value = value
        if index is not None:
            self.context.element_index = index

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.value is not None:
            result["value"] = repr(self.value)
        return result


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigError(SpineError):
    """Configuration error: unknown key or invalid value."""

    default_category = ErrorCategory.CONFIG

    def __init__(self, message: str, *, key: str | None = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.key = key


class StrategyNotFoundError(ConfigError):
    """Requested strategy kind is not registered."""

    def __init__(self, kind: str, available: list[str] | None = None):
        self.kind = kind
        self.available = available or []
        listing = ", ".join(self.available) or "none"
        super().__init__(f"Strategy '{kind}' not found. Available: {listing}", key="strategy")


# =============================================================================
# RUN FAILURES
# =============================================================================


class CancellationError(SpineError):
    """The run was cancelled through its token before it completed."""

    default_category = ErrorCategory.CANCELLATION

    def __init__(self, message: str = "Run cancelled", *, reason: str | None = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.reason = reason

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.reason is not None:
            result["reason"] = self.reason
        return result


class ObserverFault(SpineError):
    """
    An observer's handler raised while an event was being dispatched.

    Propagates synchronously out of ``Notifier.emit``. Observers invoked
    before the faulty one keep their effects; the remaining ones are skipped
    for that event.
    """

    default_category = ErrorCategory.OBSERVER

    def __init__(
        self,
        message: str,
        *,
        observer: str | None = None,
        event_kind: str | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.observer = observer
        self.event_kind = event_kind

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.observer:
            result["observer"] = self.observer
        if self.event_kind:
            result["event_kind"] = self.event_kind
        return result


class ExecutionError(SpineError):
    """Internal strategy fault."""

    default_category = ErrorCategory.EXECUTION


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "SpineError",
    "ValidationError",
    "ConfigError",
    "StrategyNotFoundError",
    "CancellationError",
    "ObserverFault",
    "ExecutionError",
]
