"""Tests for delay_spine.core.logging — structlog setup and scoped context."""

from __future__ import annotations

import pytest
import structlog

from delay_spine.core.logging import (
    LogContext,
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
    unbind_context,
)


class TestConfigureLogging:
    def test_json_output(self, capsys):
        configure_logging(level="INFO", json_format=True, service="test-svc", cache_loggers=False)
        get_logger("t").info("runner.started", run_id="run-1")
        out = capsys.readouterr().out
        assert '"event": "runner.started"' in out
        assert '"run_id": "run-1"' in out
        assert '"service.name": "test-svc"' in out
        assert '"log.level": "info"' in out

    def test_level_filtering(self, capsys):
        configure_logging(level="WARNING", json_format=True, cache_loggers=False)
        log = get_logger("t")
        log.info("hidden.event")
        log.warning("shown.event")
        out = capsys.readouterr().out
        assert "hidden.event" not in out
        assert "shown.event" in out

    def test_console_output(self, capsys):
        configure_logging(level="DEBUG", json_format=False, add_timestamp=False, cache_loggers=False)
        get_logger("t").debug("strategy.scheduled", timers=3)
        out = capsys.readouterr().out
        assert "strategy.scheduled" in out
        assert "timers" in out


class TestContextBinding:
    def test_bind_and_unbind(self):
        bind_context(run_id="run-7", strategy="sync-immediate")
        assert structlog.contextvars.get_contextvars()["run_id"] == "run-7"
        unbind_context("run_id")
        assert structlog.contextvars.get_contextvars() == {"strategy": "sync-immediate"}

    def test_clear_context(self):
        bind_context(run_id="x", strategy="y")
        clear_context()
        assert structlog.contextvars.get_contextvars() == {}

    def test_log_context_sync(self):
        with LogContext(run_id="run-1"):
            assert structlog.contextvars.get_contextvars()["run_id"] == "run-1"
        assert "run_id" not in structlog.contextvars.get_contextvars()

    @pytest.mark.asyncio
    async def test_log_context_async(self):
        async with LogContext(run_id="run-2", strategy="sync-immediate"):
            ctx = structlog.contextvars.get_contextvars()
            assert ctx == {"run_id": "run-2", "strategy": "sync-immediate"}
        assert structlog.contextvars.get_contextvars() == {}
