"""Tests for delay_spine.core.errors — structured error hierarchy."""

from __future__ import annotations

import pytest

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


class TestErrorContext:
    def test_to_dict_drops_none(self):
        assert ErrorContext().to_dict() == {}

    def test_to_dict_includes_metadata(self):
        ctx = ErrorContext(run_id="run-1", element_index=0, metadata={"attempt": 1})
        assert ctx.to_dict() == {"run_id": "run-1", "element_index": 0, "attempt": 1}


class TestSpineError:
    def test_default_category_is_internal(self):
        err = SpineError("boom")
        assert err.category is ErrorCategory.INTERNAL
        assert err.message == "boom"
        assert str(err) == "boom"

    def test_category_override(self):
        err = SpineError("boom", category=ErrorCategory.EXECUTION)
        assert err.category is ErrorCategory.EXECUTION

    def test_cause_is_chained(self):
        original = KeyError("k")
        err = SpineError("wrapped", cause=original)
        assert err.cause is original
        assert err.__cause__ is original
        assert err.to_dict()["cause"] == str(original)

    def test_with_context_sets_known_fields_and_metadata(self):
        err = SpineError("boom").with_context(run_id="run-9", strategy="sync-immediate", attempt=2)
        assert err.context.run_id == "run-9"
        assert err.context.strategy == "sync-immediate"
        assert err.context.metadata == {"attempt": 2}

    def test_with_context_is_fluent(self):
        err = SpineError("boom")
        assert err.with_context(run_id="x") is err

    def test_to_dict_shape(self):
        d = SpineError("boom").with_context(run_id="r").to_dict()
        assert d["error_type"] == "SpineError"
        assert d["message"] == "boom"
        assert d["category"] == "INTERNAL"
        assert d["context"] == {"run_id": "r"}

    def test_repr(self):
        assert repr(SpineError("boom")) == "SpineError('boom', category=INTERNAL)"


class TestSubclasses:
    def test_validation_error_records_index(self):
        err = ValidationError("bad weight", index=3, value=-1)
        assert err.category is ErrorCategory.VALIDATION
        assert err.index == 3
        assert err.context.element_index == 3
        assert err.to_dict()["value"] == "-1"

    def test_config_error_key(self):
        err = ConfigError("unknown", key="colour")
        assert err.category is ErrorCategory.CONFIG
        assert err.key == "colour"

    def test_strategy_not_found_lists_available(self):
        err = StrategyNotFoundError("bogus", ["sync-immediate", "delayed-cancellable"])
        assert isinstance(err, ConfigError)
        assert err.kind == "bogus"
        assert "bogus" in err.message
        assert "sync-immediate, delayed-cancellable" in err.message

    def test_strategy_not_found_without_available(self):
        assert "Available: none" in StrategyNotFoundError("x").message

    def test_cancellation_error_reason(self):
        err = CancellationError(reason="user")
        assert err.message == "Run cancelled"
        assert err.category is ErrorCategory.CANCELLATION
        assert err.to_dict()["reason"] == "user"

    def test_observer_fault_fields(self):
        cause = RuntimeError("x")
        err = ObserverFault("failed", observer="StatsObserver", event_kind="STARTED", cause=cause)
        assert err.category is ErrorCategory.OBSERVER
        d = err.to_dict()
        assert d["observer"] == "StatsObserver"
        assert d["event_kind"] == "STARTED"
        assert err.__cause__ is cause

    def test_execution_error_category(self):
        assert ExecutionError("x").category is ErrorCategory.EXECUTION

    @pytest.mark.parametrize(
        "cls",
        [ValidationError, ConfigError, CancellationError, ObserverFault, ExecutionError],
    )
    def test_all_are_spine_errors(self, cls):
        assert issubclass(cls, SpineError)
