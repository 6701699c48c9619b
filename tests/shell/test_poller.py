"""Tests for the Poller lifecycle.

Scheduling tests use a fake clock whose sleep advances logical time
instantly; stop/cancellation tests use the real loop with short intervals.
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from src.aggregator import FeedAggregator
from src.core.earthquake import Event
from src.core.errors import NoDataAvailableError
from src.core.snapshot import Snapshot
from src.poller import Poller, PollerState


def make_snapshot(*ids: str) -> Snapshot:
    return Snapshot(events=tuple(
        Event(id=i, magnitude=3.0, place="Test", time=None, coordinates=(0.0, 0.0))
        for i in ids
    ))


class FakeClock:
    """Logical clock; sleep() advances time without waiting."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds
        await asyncio.sleep(0)


class Recorder:
    """Collects callback invocations."""

    def __init__(self) -> None:
        self.snapshots: list[Snapshot] = []
        self.errors: list[NoDataAvailableError] = []

    def on_snapshot(self, snapshot: Snapshot) -> None:
        self.snapshots.append(snapshot)

    def on_error(self, error: NoDataAvailableError) -> None:
        self.errors.append(error)


def make_aggregator(*outcomes) -> AsyncMock:
    """Aggregator whose run() yields each outcome in turn, then repeats the last."""
    aggregator = AsyncMock(spec=FeedAggregator)
    remaining = list(outcomes)

    async def run():
        outcome = remaining.pop(0) if len(remaining) > 1 else remaining[0]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    aggregator.run.side_effect = run
    return aggregator


async def wait_until(predicate, timeout: float = 1.0) -> None:
    async def poll():
        while not predicate():
            await asyncio.sleep(0.001)
    await asyncio.wait_for(poll(), timeout)


class TestStart:

    @pytest.mark.asyncio
    async def test_runs_immediately_on_start(self):
        """The first cycle runs without waiting for the interval."""
        recorder = Recorder()
        snapshot = make_snapshot("a")
        poller = Poller(make_aggregator(snapshot), interval_seconds=60)

        poller.start(recorder.on_snapshot, recorder.on_error)
        await wait_until(lambda: recorder.snapshots)
        poller.stop()
        await poller.wait_stopped()

        assert recorder.snapshots == [snapshot]
        assert poller.latest_snapshot is snapshot

    @pytest.mark.asyncio
    async def test_state_transitions(self):
        """Idle -> Running on start, Running -> Stopped on stop."""
        poller = Poller(make_aggregator(make_snapshot("a")), interval_seconds=60)
        assert poller.state is PollerState.IDLE

        poller.start(lambda s: None, lambda e: None)
        assert poller.state is PollerState.RUNNING

        poller.stop()
        assert poller.state is PollerState.STOPPED
        await poller.wait_stopped()

    @pytest.mark.asyncio
    async def test_cannot_start_twice(self):
        """Starting a running poller is an error."""
        poller = Poller(make_aggregator(make_snapshot("a")), interval_seconds=60)
        poller.start(lambda s: None, lambda e: None)

        with pytest.raises(RuntimeError):
            poller.start(lambda s: None, lambda e: None)

        poller.stop()
        await poller.wait_stopped()

    @pytest.mark.asyncio
    async def test_cannot_restart_after_stop(self):
        """Stopped is terminal."""
        poller = Poller(make_aggregator(make_snapshot("a")), interval_seconds=60)
        poller.start(lambda s: None, lambda e: None)
        poller.stop()
        await poller.wait_stopped()

        with pytest.raises(RuntimeError):
            poller.start(lambda s: None, lambda e: None)

    def test_rejects_non_positive_interval(self):
        """Should reject a zero interval."""
        with pytest.raises(ValueError):
            Poller(make_aggregator(make_snapshot("a")), interval_seconds=0)


class TestScheduling:

    @pytest.mark.asyncio
    async def test_cycles_separated_by_interval(self):
        """Consecutive cycle starts are one interval apart."""
        clock = FakeClock()
        recorder = Recorder()
        started_at: list[float] = []

        aggregator = AsyncMock(spec=FeedAggregator)

        async def run():
            started_at.append(clock.now)
            return make_snapshot("a")

        aggregator.run.side_effect = run
        poller = Poller(aggregator, interval_seconds=120, clock=clock, sleep=clock.sleep)

        def on_snapshot(snapshot):
            recorder.on_snapshot(snapshot)
            if len(recorder.snapshots) == 3:
                poller.stop()

        poller.start(on_snapshot, recorder.on_error)
        await asyncio.wait_for(poller.wait_stopped(), 1.0)

        assert len(recorder.snapshots) == 3
        assert started_at == [0.0, 120.0, 240.0]
        assert all(b - a >= 120 for a, b in zip(started_at, started_at[1:]))

    @pytest.mark.asyncio
    async def test_slow_cycle_shortens_wait(self):
        """Interval is measured start-to-start, like a repeating timer."""
        clock = FakeClock()
        aggregator = AsyncMock(spec=FeedAggregator)

        async def run():
            clock.now += 30
            return make_snapshot("a")

        aggregator.run.side_effect = run
        poller = Poller(aggregator, interval_seconds=120, clock=clock, sleep=clock.sleep)

        def on_snapshot(snapshot):
            if len(clock.sleeps) >= 2:
                poller.stop()

        poller.start(on_snapshot, lambda e: None)
        await asyncio.wait_for(poller.wait_stopped(), 1.0)

        assert clock.sleeps[:2] == [90.0, 90.0]


class TestFailures:

    @pytest.mark.asyncio
    async def test_failed_cycle_keeps_previous_snapshot(self):
        """A failed cycle reports the error and keeps the last snapshot."""
        clock = FakeClock()
        recorder = Recorder()
        first = make_snapshot("a", "b")
        error = NoDataAvailableError()
        poller = Poller(
            make_aggregator(first, error),
            interval_seconds=120,
            clock=clock,
            sleep=clock.sleep,
        )

        def on_error(e):
            recorder.on_error(e)
            poller.stop()

        poller.start(recorder.on_snapshot, on_error)
        await asyncio.wait_for(poller.wait_stopped(), 1.0)

        assert recorder.snapshots == [first]
        assert recorder.errors == [error]
        assert poller.latest_snapshot is first

    @pytest.mark.asyncio
    async def test_failure_before_any_snapshot(self):
        """With no prior snapshot a failure leaves latest_snapshot unset."""
        recorder = Recorder()
        poller = Poller(make_aggregator(NoDataAvailableError()), interval_seconds=60)

        poller.start(recorder.on_snapshot, recorder.on_error)
        await wait_until(lambda: recorder.errors)
        poller.stop()
        await poller.wait_stopped()

        assert recorder.snapshots == []
        assert poller.latest_snapshot is None

    @pytest.mark.asyncio
    async def test_recovers_after_failure(self):
        """A later successful cycle publishes normally."""
        clock = FakeClock()
        recorder = Recorder()
        second = make_snapshot("c")
        poller = Poller(
            make_aggregator(NoDataAvailableError(), second),
            interval_seconds=120,
            clock=clock,
            sleep=clock.sleep,
        )

        def on_snapshot(snapshot):
            recorder.on_snapshot(snapshot)
            poller.stop()

        poller.start(on_snapshot, recorder.on_error)
        await asyncio.wait_for(poller.wait_stopped(), 1.0)

        assert len(recorder.errors) == 1
        assert recorder.snapshots == [second]
        assert poller.latest_snapshot is second

    @pytest.mark.asyncio
    async def test_callback_exception_does_not_stop_polling(self):
        """An exception from on_snapshot is logged, not fatal."""
        clock = FakeClock()
        calls = []
        poller = Poller(
            make_aggregator(make_snapshot("a")),
            interval_seconds=120,
            clock=clock,
            sleep=clock.sleep,
        )

        def on_snapshot(snapshot):
            calls.append(snapshot)
            if len(calls) == 2:
                poller.stop()
                return
            raise ValueError("view blew up")

        poller.start(on_snapshot, lambda e: None)
        await asyncio.wait_for(poller.wait_stopped(), 1.0)

        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_unexpected_aggregator_error_keeps_polling(self):
        """Non-NoData errors are logged without calling on_error."""
        clock = FakeClock()
        recorder = Recorder()
        snapshot = make_snapshot("a")
        poller = Poller(
            make_aggregator(RuntimeError("bug"), snapshot),
            interval_seconds=120,
            clock=clock,
            sleep=clock.sleep,
        )

        def on_snapshot(s):
            recorder.on_snapshot(s)
            poller.stop()

        poller.start(on_snapshot, recorder.on_error)
        await asyncio.wait_for(poller.wait_stopped(), 1.0)

        assert recorder.errors == []
        assert recorder.snapshots == [snapshot]


class TestStop:

    @pytest.mark.asyncio
    async def test_no_callbacks_after_stop(self):
        """No further cycles run once stopped."""
        recorder = Recorder()
        poller = Poller(make_aggregator(make_snapshot("a")), interval_seconds=0.05)

        poller.start(recorder.on_snapshot, recorder.on_error)
        await wait_until(lambda: recorder.snapshots)
        poller.stop()

        await asyncio.sleep(0.15)

        assert len(recorder.snapshots) == 1
        assert recorder.errors == []

    @pytest.mark.asyncio
    async def test_stop_cancels_pending_sleep(self):
        """Stopping during the wait ends the task promptly."""
        recorder = Recorder()
        poller = Poller(make_aggregator(make_snapshot("a")), interval_seconds=3600)

        task = poller.start(recorder.on_snapshot, recorder.on_error)
        await wait_until(lambda: recorder.snapshots)
        poller.stop()

        await asyncio.wait_for(poller.wait_stopped(), 1.0)
        assert task.done()

    @pytest.mark.asyncio
    async def test_in_flight_result_is_dropped(self):
        """A cycle fetching at stop time finishes, but no callback fires."""
        recorder = Recorder()
        release = asyncio.Event()
        entered = asyncio.Event()
        finished = []

        aggregator = AsyncMock(spec=FeedAggregator)

        async def run():
            entered.set()
            await release.wait()
            finished.append(True)
            return make_snapshot("late")

        aggregator.run.side_effect = run
        poller = Poller(aggregator, interval_seconds=60)

        poller.start(recorder.on_snapshot, recorder.on_error)
        await asyncio.wait_for(entered.wait(), 1.0)
        poller.stop()
        release.set()
        await asyncio.wait_for(poller.wait_stopped(), 1.0)

        assert finished == [True]
        assert recorder.snapshots == []
        assert poller.latest_snapshot is None

    @pytest.mark.asyncio
    async def test_in_flight_error_is_dropped(self):
        """An error from a cycle in flight at stop time is not reported."""
        recorder = Recorder()
        release = asyncio.Event()
        entered = asyncio.Event()
        aggregator = AsyncMock(spec=FeedAggregator)

        async def run():
            entered.set()
            await release.wait()
            raise NoDataAvailableError()

        aggregator.run.side_effect = run
        poller = Poller(aggregator, interval_seconds=60)

        poller.start(recorder.on_snapshot, recorder.on_error)
        await asyncio.wait_for(entered.wait(), 1.0)
        poller.stop()
        release.set()
        await asyncio.wait_for(poller.wait_stopped(), 1.0)

        assert recorder.errors == []

    @pytest.mark.asyncio
    async def test_cancelling_waiter_propagates(self):
        """Cancelling the caller of wait_stopped() leaves the poll task running."""
        recorder = Recorder()
        poller = Poller(make_aggregator(make_snapshot("a")), interval_seconds=3600)
        task = poller.start(recorder.on_snapshot, recorder.on_error)
        await wait_until(lambda: recorder.snapshots)

        waiter = asyncio.ensure_future(poller.wait_stopped())
        await asyncio.sleep(0)
        waiter.cancel()

        with pytest.raises(asyncio.CancelledError):
            await waiter
        assert not task.done()
        assert poller.state is PollerState.RUNNING

        poller.stop()
        await asyncio.wait_for(poller.wait_stopped(), 1.0)
        assert task.done()

    @pytest.mark.asyncio
    async def test_stop_is_idempotent(self):
        """Calling stop() twice is harmless."""
        poller = Poller(make_aggregator(make_snapshot("a")), interval_seconds=60)
        poller.start(lambda s: None, lambda e: None)

        poller.stop()
        poller.stop()
        await poller.wait_stopped()

        assert poller.state is PollerState.STOPPED

    def test_stop_before_start(self):
        """Stopping an idle poller moves it straight to Stopped."""
        poller = Poller(make_aggregator(make_snapshot("a")), interval_seconds=60)
        poller.stop()

        assert poller.state is PollerState.STOPPED
