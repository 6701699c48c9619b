"""Poller - Owns the refresh lifecycle.

Runs one aggregator cycle immediately on start and then once per interval
until stopped. A failed cycle reports the error and leaves the previously
published snapshot in place.
"""

import asyncio
import logging
import time
from enum import Enum
from typing import Any, Awaitable, Callable

from src.aggregator import FeedAggregator
from src.core.config import DEFAULT_REFRESH_INTERVAL_SECONDS
from src.core.errors import NoDataAvailableError
from src.core.snapshot import Snapshot


logger = logging.getLogger(__name__)


SnapshotCallback = Callable[[Snapshot], None]
ErrorCallback = Callable[[NoDataAvailableError], None]


class PollerState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


class Poller:
    """Re-runs the aggregator on a fixed interval.

    Lifecycle is Idle -> Running -> Stopped. Stopped is terminal; create a
    new Poller to poll again.

    All work happens on the running asyncio loop. `latest_snapshot` is
    written only by the poll loop.
    """

    def __init__(
        self,
        aggregator: FeedAggregator,
        interval_seconds: float = DEFAULT_REFRESH_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """Initialize poller.

        Args:
            aggregator: Aggregator to run each cycle
            interval_seconds: Minimum time between cycle starts
            clock: Monotonic clock in seconds (injectable for tests)
            sleep: Async sleep function (injectable for tests)
        """
        if interval_seconds <= 0:
            raise ValueError(f"interval_seconds must be positive, got {interval_seconds}")

        self.aggregator = aggregator
        self.interval_seconds = interval_seconds
        self._clock = clock
        self._sleep = sleep

        self._state = PollerState.IDLE
        self._task: asyncio.Task | None = None
        self._sleeping = False
        self._latest: Snapshot | None = None
        self._on_snapshot: SnapshotCallback | None = None
        self._on_error: ErrorCallback | None = None

    @property
    def state(self) -> PollerState:
        return self._state

    @property
    def latest_snapshot(self) -> Snapshot | None:
        """Most recent successful snapshot, kept across failed cycles."""
        return self._latest

    def start(self, on_snapshot: SnapshotCallback, on_error: ErrorCallback) -> asyncio.Task:
        """Start polling. Must be called with an asyncio loop running.

        Args:
            on_snapshot: Called once per successful cycle
            on_error: Called once per cycle that raised NoDataAvailableError

        Returns:
            The background poll task

        Raises:
            RuntimeError: If the poller was already started or stopped
        """
        if self._state is not PollerState.IDLE:
            raise RuntimeError(f"Cannot start poller in state {self._state.value}")

        self._on_snapshot = on_snapshot
        self._on_error = on_error
        self._state = PollerState.RUNNING
        self._task = asyncio.get_running_loop().create_task(self._loop())

        logger.info("Poller started, refreshing every %.0fs", self.interval_seconds)
        return self._task

    def stop(self) -> None:
        """Stop polling. Idempotent.

        A pending sleep is cancelled. A cycle already fetching is left to
        finish, but its result is dropped and no callback fires.
        """
        if self._state is PollerState.STOPPED:
            return

        was_running = self._state is PollerState.RUNNING
        self._state = PollerState.STOPPED

        if self._task is not None and self._sleeping:
            self._task.cancel()

        if was_running:
            logger.info("Poller stopped")

    async def wait_stopped(self) -> None:
        """Wait for the poll task to exit after stop()."""
        if self._task is None:
            return
        # asyncio.wait never raises the poll task's cancellation, only our own
        await asyncio.wait({self._task})
        if not self._task.cancelled():
            self._task.result()

    @property
    def _running(self) -> bool:
        return self._state is PollerState.RUNNING

    async def _loop(self) -> None:
        while self._running:
            started = self._clock()
            await self._run_cycle()

            if not self._running:
                break

            delay = max(0.0, started + self.interval_seconds - self._clock())
            self._sleeping = True
            try:
                await self._sleep(delay)
            finally:
                self._sleeping = False

    async def _run_cycle(self) -> None:
        try:
            snapshot = await self.aggregator.run()
        except NoDataAvailableError as e:
            if not self._running:
                logger.debug("Dropping failed cycle result after stop")
                return
            logger.warning("Cycle failed, keeping previous snapshot: %s", e)
            self._notify(self._on_error, e)
            return
        except Exception:
            logger.exception("Unexpected error in poll cycle")
            return

        if not self._running:
            logger.debug("Dropping cycle result after stop")
            return

        self._latest = snapshot
        self._notify(self._on_snapshot, snapshot)

    def _notify(self, callback: Callable[[Any], None] | None, payload: Any) -> None:
        if callback is None:
            return
        try:
            callback(payload)
        except Exception:
            logger.exception("Poller callback raised")
