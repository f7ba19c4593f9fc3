"""Tests for delay_spine.engine.strategies.immediate — SyncImmediateStrategy."""

from __future__ import annotations

import pytest
from structlog.testing import capture_logs

from delay_spine.core.errors import CancellationError, ObserverFault, ValidationError
from delay_spine.engine.cancellation import CancellationToken
from delay_spine.engine.elements import as_elements
from delay_spine.engine.events import EventKind
from delay_spine.engine.notifier import Notifier
from delay_spine.engine.strategies import SyncImmediateStrategy


def _notifier(recorder) -> Notifier:
    notifier = Notifier(SyncImmediateStrategy.name)
    notifier.attach(recorder)
    return notifier


class TestSyncImmediate:
    @pytest.mark.asyncio
    async def test_input_order_with_weight_as_delay(self, recorder):
        processed = await SyncImmediateStrategy().execute(as_elements([30, 10, 20]), _notifier(recorder))

        assert [e.weight for e in processed] == [30, 10, 20]
        completed = [e for e in recorder.events if e.kind is EventKind.ELEMENT_COMPLETED]
        assert [(e.index, e.delay) for e in completed] == [(0, 30), (1, 10), (2, 20)]
        assert recorder.kinds[0] is EventKind.STARTED
        assert recorder.kinds[-1] is EventKind.COMPLETED

    @pytest.mark.asyncio
    async def test_empty_rejected_before_any_event(self, recorder):
        with pytest.raises(ValidationError):
            await SyncImmediateStrategy().execute([], _notifier(recorder))
        assert recorder.events == []

    @pytest.mark.asyncio
    async def test_tripped_before_start(self, recorder):
        token = CancellationToken()
        token.trip("early")
        with pytest.raises(CancellationError):
            await SyncImmediateStrategy().execute(as_elements([1]), _notifier(recorder), token)
        assert recorder.kinds == [EventKind.STARTED, EventKind.ERROR]

    @pytest.mark.asyncio
    async def test_observer_trips_token_mid_run(self, recorder):
        token = CancellationToken()

        class TripOnFirst:
            def on_event(self, event):
                if event.kind is EventKind.ELEMENT_COMPLETED:
                    token.trip("observer")

        notifier = _notifier(recorder)
        notifier.attach(TripOnFirst())
        with pytest.raises(CancellationError) as exc_info:
            await SyncImmediateStrategy().execute(as_elements([1, 2, 3]), notifier, token)
        assert exc_info.value.reason == "observer"
        assert recorder.kinds == [EventKind.STARTED, EventKind.ELEMENT_COMPLETED, EventKind.ERROR]

    @pytest.mark.asyncio
    async def test_trip_during_last_element_never_completes(self, recorder):
        token = CancellationToken()

        class TripOnElement:
            def on_event(self, event):
                if event.kind is EventKind.ELEMENT_COMPLETED:
                    token.trip("observer")

        notifier = _notifier(recorder)
        notifier.attach(TripOnElement())
        with pytest.raises(CancellationError) as exc_info:
            await SyncImmediateStrategy().execute(as_elements([1]), notifier, token)
        assert exc_info.value.reason == "observer"
        assert recorder.kinds == [EventKind.STARTED, EventKind.ELEMENT_COMPLETED, EventKind.ERROR]

    @pytest.mark.asyncio
    async def test_observer_fault(self, recorder, make_faulty):
        notifier = _notifier(recorder)
        notifier.attach(make_faulty(on=EventKind.ELEMENT_COMPLETED))
        with pytest.raises(ObserverFault) as exc_info:
            await SyncImmediateStrategy().execute(as_elements([4, 5]), notifier)
        assert exc_info.value.context.element_index == 0
        assert recorder.kinds == [EventKind.STARTED, EventKind.ELEMENT_COMPLETED, EventKind.ERROR]

    @pytest.mark.asyncio
    async def test_fault_on_completed_keeps_run_successful(self, recorder, make_faulty):
        notifier = _notifier(recorder)
        notifier.attach(make_faulty(on=EventKind.COMPLETED))
        with capture_logs() as logs:
            processed = await SyncImmediateStrategy().execute(as_elements([2]), notifier)
        assert [e.weight for e in processed] == [2]
        assert recorder.kinds[-1] is EventKind.COMPLETED
        assert EventKind.ERROR not in recorder.kinds
        assert "strategy.completed_observer_fault" in [entry["event"] for entry in logs]
