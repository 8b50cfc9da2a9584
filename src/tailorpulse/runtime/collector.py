"""Periodic host sampling and alert evaluation."""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable

from tailorpulse.core.alerts import AlertEngine
from tailorpulse.core.models import SystemSample
from tailorpulse.core.ports import (
    ErrorStoragePort,
    HostMetricsPort,
    RequestSampleStoragePort,
    SystemSampleStoragePort,
)
from tailorpulse.core.query import collect
from tailorpulse.core.timeframes import Clock

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class PeriodicCollector:
    """Samples host metrics on a fixed interval and evaluates alerts.

    Each tick writes a SystemSample, then evaluates CPU and memory
    thresholds for it, then evaluates the API error rate over the
    configured window. The sample write completes before evaluation.

    A tick that raises is logged and the loop keeps its cadence: the next
    tick is scheduled relative to when the failed one was due.

    Args:
        host: Source of host resource readings.
        system: Store for the collected samples.
        requests: Request sample store read for the error-rate window.
        engine: Alert engine to evaluate after each sample.
        interval: Seconds between ticks.
        clock: Returns the current time in seconds.
        sleep: Awaitable sleep, replaceable for virtual time in tests.
        errors: Error store pruned along with the sample stores.
        retention_seconds: Age after which samples and error records are
            deleted at the end of each tick. None keeps everything.
    """

    def __init__(
        self,
        host: HostMetricsPort,
        system: SystemSampleStoragePort,
        requests: RequestSampleStoragePort,
        engine: AlertEngine,
        interval: float = 60.0,
        clock: Clock = time.time,
        sleep: Sleep = asyncio.sleep,
        errors: ErrorStoragePort | None = None,
        retention_seconds: float | None = None,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        if retention_seconds is not None and retention_seconds <= 0:
            raise ValueError("retention_seconds must be positive")
        self._host = host
        self._system = system
        self._requests = requests
        self._engine = engine
        self._interval = interval
        self._clock = clock
        self._sleep = sleep
        self._errors = errors
        self._retention = retention_seconds
        self._task: asyncio.Task[None] | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start ticking in a background task. No-op if already running."""
        if self.is_running:
            return
        self._task = asyncio.create_task(self.run(), name="tailorpulse-collector")
        logger.info("Collector started with a %.1fs interval", self._interval)

    async def stop(self) -> None:
        """Cancel the background task and wait for it to finish."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Collector stopped")

    async def run(self, ticks: int | None = None) -> None:
        """Tick on the interval, forever or for ``ticks`` ticks."""
        due = self._clock()
        done = 0
        while ticks is None or done < ticks:
            try:
                await self.tick()
            except Exception:
                logger.exception("Collection tick failed")
            done += 1
            if ticks is not None and done >= ticks:
                break
            due += self._interval
            await self._sleep(max(0.0, due - self._clock()))

    async def tick(self) -> SystemSample:
        """Collect one SystemSample, persist it, then evaluate alerts."""
        now = self._clock()
        memory_percent, _, _ = self._host.memory()
        sample = SystemSample(
            cpu_percent=self._host.cpu_percent(),
            memory_percent=memory_percent,
            timestamp=now,
            disk_percent=self._host.disk_percent(),
        )
        await self._system.write(sample)
        await self._engine.evaluate_system(sample)

        window = self._engine.thresholds.error_rate_window_seconds
        recent = await collect(self._requests.read(now - window, now))
        await self._engine.evaluate_error_rate(recent)
        logger.debug(
            "Collected cpu=%.1f%% memory=%.1f%% with %d recent requests",
            sample.cpu_percent,
            sample.memory_percent,
            len(recent),
        )
        await self.prune(now)
        return sample

    async def prune(self, now: float) -> int:
        """Delete samples and error records older than the retention age.

        Failures are logged. Returns the number of deleted entries.
        """
        if self._retention is None:
            return 0
        cutoff = now - self._retention
        stores: list[
            RequestSampleStoragePort | SystemSampleStoragePort | ErrorStoragePort
        ] = [self._requests, self._system]
        if self._errors is not None:
            stores.append(self._errors)
        deleted = 0
        for store in stores:
            try:
                deleted += await store.delete_before(cutoff)
            except Exception:
                logger.exception("Failed to prune %s", type(store).__name__)
        if deleted:
            logger.debug("Pruned %d entries older than %.0f", deleted, cutoff)
        return deleted
