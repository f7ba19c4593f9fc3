"""Tests for delay_spine.engine.strategies.delayed — DelayedCancellableStrategy.

Covers completion order by weight, exactly-once terminal events, the empty
sequence, cancellation before start / mid-run / after completion, observer
faults, and asyncio task cancellation.
"""

from __future__ import annotations

import asyncio

import pytest
from structlog.testing import capture_logs

from delay_spine.core.errors import CancellationError, ObserverFault
from delay_spine.engine.cancellation import CancellationToken
from delay_spine.engine.elements import as_elements
from delay_spine.engine.events import EventKind
from delay_spine.engine.notifier import Notifier
from delay_spine.engine.strategies import DelayedCancellableStrategy


def _notifier(recorder) -> Notifier:
    notifier = Notifier(DelayedCancellableStrategy.name)
    notifier.attach(recorder)
    return notifier


class TestConstruction:
    def test_kind_and_name(self):
        strategy = DelayedCancellableStrategy()
        assert strategy.kind == "delayed-cancellable"
        assert strategy.requires_non_empty is False
        assert strategy.time_unit_seconds == 0.001

    @pytest.mark.parametrize("unit", [0, -0.5])
    def test_time_unit_must_be_positive(self, unit):
        with pytest.raises(ValueError):
            DelayedCancellableStrategy(time_unit_seconds=unit)


class TestCompletion:
    @pytest.mark.asyncio
    async def test_shorter_weights_complete_first(self, recorder):
        elements = as_elements([30, 10, 20])
        processed = await DelayedCancellableStrategy().execute(elements, _notifier(recorder))

        assert [e.weight for e in processed] == [10, 20, 30]
        assert recorder.kinds == [
            EventKind.STARTED,
            EventKind.ELEMENT_COMPLETED,
            EventKind.ELEMENT_COMPLETED,
            EventKind.ELEMENT_COMPLETED,
            EventKind.COMPLETED,
        ]
        completed = [e for e in recorder.events if e.kind is EventKind.ELEMENT_COMPLETED]
        assert [(e.index, e.delay) for e in completed] == [(1, 10), (2, 20), (0, 30)]
        assert recorder.events[-1].metadata["total_elements"] == 3

    @pytest.mark.asyncio
    async def test_each_index_completes_once(self, recorder):
        elements = as_elements([5, 0, 5, 3, 0])
        processed = await DelayedCancellableStrategy().execute(elements, _notifier(recorder))

        indices = sorted(e.index for e in recorder.events if e.kind is EventKind.ELEMENT_COMPLETED)
        assert indices == [0, 1, 2, 3, 4]
        assert len(processed) == 5

    @pytest.mark.asyncio
    async def test_timers_run_in_parallel(self, recorder):
        loop = asyncio.get_running_loop()
        started = loop.time()
        await DelayedCancellableStrategy().execute(as_elements([100, 100, 100, 100]), _notifier(recorder))
        # serial waits would take at least 0.4s
        assert loop.time() - started < 0.35

    @pytest.mark.asyncio
    async def test_time_unit_scales_delays(self, recorder):
        loop = asyncio.get_running_loop()
        started = loop.time()
        strategy = DelayedCancellableStrategy(time_unit_seconds=0.01)
        await strategy.execute(as_elements([5]), _notifier(recorder))
        assert loop.time() - started >= 0.045

    @pytest.mark.asyncio
    async def test_empty_sequence(self, recorder):
        processed = await DelayedCancellableStrategy().execute([], _notifier(recorder))
        assert processed == []
        assert recorder.kinds == [EventKind.STARTED, EventKind.COMPLETED]
        assert recorder.events[-1].metadata["total_elements"] == 0

    @pytest.mark.asyncio
    async def test_input_not_mutated(self, recorder):
        elements = as_elements([20, 10])
        snapshot = list(elements)
        await DelayedCancellableStrategy().execute(elements, _notifier(recorder))
        assert elements == snapshot

    @pytest.mark.asyncio
    async def test_listener_removed_after_completion(self, recorder):
        token = CancellationToken()
        await DelayedCancellableStrategy().execute(as_elements([1]), _notifier(recorder), token)
        assert token.listener_count == 0


class TestCancellation:
    @pytest.mark.asyncio
    async def test_tripped_before_start(self, recorder):
        token = CancellationToken()
        token.trip("early")
        with pytest.raises(CancellationError) as exc_info:
            await DelayedCancellableStrategy().execute(as_elements([1, 2]), _notifier(recorder), token)
        assert exc_info.value.reason == "early"
        assert recorder.kinds == [EventKind.STARTED, EventKind.ERROR]

    @pytest.mark.asyncio
    async def test_immediate_cancel_of_long_run(self, recorder):
        token = CancellationToken()
        strategy = DelayedCancellableStrategy()
        task = asyncio.create_task(strategy.execute(as_elements([1000, 2000]), _notifier(recorder), token))
        await asyncio.sleep(0)
        token.trip("user")

        with pytest.raises(CancellationError) as exc_info:
            await asyncio.wait_for(task, timeout=0.5)
        assert exc_info.value.reason == "user"
        assert recorder.kinds == [EventKind.STARTED, EventKind.ERROR]
        assert recorder.events[-1].metadata["error_type"] == "CancellationError"

    @pytest.mark.asyncio
    async def test_mid_run_cancel_suppresses_later_elements(self, recorder):
        token = CancellationToken()
        task = asyncio.create_task(
            DelayedCancellableStrategy().execute(as_elements([5, 300, 400]), _notifier(recorder), token)
        )
        await asyncio.sleep(0.1)
        token.trip("midway")
        with pytest.raises(CancellationError):
            await task
        await asyncio.sleep(0.4)

        assert recorder.kinds == [EventKind.STARTED, EventKind.ELEMENT_COMPLETED, EventKind.ERROR]
        assert token.listener_count == 0

    @pytest.mark.asyncio
    async def test_trip_after_completion_is_noop(self, recorder):
        token = CancellationToken()
        await DelayedCancellableStrategy().execute(as_elements([1, 2]), _notifier(recorder), token)
        assert token.trip("late") is True
        assert recorder.kinds[-1] is EventKind.COMPLETED
        assert EventKind.ERROR not in recorder.kinds

    @pytest.mark.asyncio
    async def test_observer_tripping_token_mid_run(self, recorder):
        token = CancellationToken()

        class TripOnFirst:
            def on_event(self, event):
                if event.kind is EventKind.ELEMENT_COMPLETED:
                    token.trip("observer")

        notifier = _notifier(recorder)
        notifier.attach(TripOnFirst())
        with pytest.raises(CancellationError):
            await DelayedCancellableStrategy().execute(as_elements([1, 50, 60]), notifier, token)
        assert recorder.kinds == [EventKind.STARTED, EventKind.ELEMENT_COMPLETED, EventKind.ERROR]

    @pytest.mark.asyncio
    async def test_task_cancellation_counts_as_trip(self, recorder):
        task = asyncio.create_task(DelayedCancellableStrategy().execute(as_elements([1000]), _notifier(recorder)))
        await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert recorder.kinds == [EventKind.STARTED, EventKind.ERROR]

    @pytest.mark.asyncio
    async def test_trip_during_last_element_never_completes(self, recorder):
        token = CancellationToken()
        loop = asyncio.get_running_loop()
        loop_errors = []
        previous_handler = loop.get_exception_handler()
        loop.set_exception_handler(lambda _loop, context: loop_errors.append(context))

        class TripOnElement:
            def on_event(self, event):
                if event.kind is EventKind.ELEMENT_COMPLETED:
                    token.trip("observer")

        notifier = _notifier(recorder)
        notifier.attach(TripOnElement())
        try:
            with pytest.raises(CancellationError) as exc_info:
                await DelayedCancellableStrategy().execute(as_elements([1]), notifier, token)
            await asyncio.sleep(0.01)
        finally:
            loop.set_exception_handler(previous_handler)

        assert exc_info.value.reason == "observer"
        assert recorder.kinds == [EventKind.STARTED, EventKind.ELEMENT_COMPLETED, EventKind.ERROR]
        assert loop_errors == []

    @pytest.mark.asyncio
    async def test_task_cancelled_after_resolution_returns_result(self, recorder):
        tasks = []

        class CancelOnCompleted:
            def on_event(self, event):
                if event.kind is EventKind.COMPLETED:
                    tasks[0].cancel()

        notifier = _notifier(recorder)
        notifier.attach(CancelOnCompleted())
        tasks.append(asyncio.create_task(DelayedCancellableStrategy().execute(as_elements([1]), notifier)))

        processed = await tasks[0]

        assert [e.weight for e in processed] == [1]
        assert recorder.kinds == [EventKind.STARTED, EventKind.ELEMENT_COMPLETED, EventKind.COMPLETED]


class TestObserverFaults:
    @pytest.mark.asyncio
    async def test_fault_on_element_fails_run(self, recorder, make_faulty):
        notifier = _notifier(recorder)
        notifier.attach(make_faulty(on=EventKind.ELEMENT_COMPLETED))
        with pytest.raises(ObserverFault) as exc_info:
            await DelayedCancellableStrategy().execute(as_elements([20, 1]), notifier)
        assert exc_info.value.context.element_index == 1
        assert recorder.kinds == [EventKind.STARTED, EventKind.ELEMENT_COMPLETED, EventKind.ERROR]
        assert recorder.events[-1].metadata["error_type"] == "ObserverFault"

    @pytest.mark.asyncio
    async def test_fault_on_completed_keeps_run_successful(self, recorder, make_faulty):
        notifier = _notifier(recorder)
        notifier.attach(make_faulty(on=EventKind.COMPLETED))
        with capture_logs() as logs:
            processed = await DelayedCancellableStrategy().execute(as_elements([1]), notifier)
        assert [e.weight for e in processed] == [1]
        assert any(entry["event"] == "strategy.completed_observer_fault" for entry in logs)
        assert recorder.kinds == [EventKind.STARTED, EventKind.ELEMENT_COMPLETED, EventKind.COMPLETED]

    @pytest.mark.asyncio
    async def test_fault_on_started(self, recorder, make_faulty):
        notifier = _notifier(recorder)
        notifier.attach(make_faulty(on=EventKind.STARTED))
        with pytest.raises(ObserverFault):
            await DelayedCancellableStrategy().execute(as_elements([1]), notifier)
        assert recorder.kinds == [EventKind.STARTED, EventKind.ERROR]
