"""Sampling scheduler driving collectors into the store.

One scheduler task is the store's only writer. Every tick it runs all
collectors concurrently, each bounded by its own timeout, then applies the
results to the store in registration order.

Key features:
- Fixed tick interval measured with an injected clock
- Per-interface failure isolation (a hung collector only loses its own tick)
- Stale detection with a single warning per outage
- Cancellable run loop with graceful stop
"""

import asyncio
from dataclasses import dataclass
from datetime import timedelta
import logging

from wifiradar import sentry
from wifiradar.collectors.base import CollectionResult, LinkCollector
from wifiradar.collectors.clock import Clock, SystemClock
from wifiradar.store.store import LinkStore

logger = logging.getLogger(__name__)


@dataclass
class CollectorInfo:
    """Information about a registered collector.

    Attributes:
        collector: The LinkCollector instance
        last_successful_result: Last result that produced a sample
        total_timeouts: Count of collection timeouts
        is_stale: Whether the interface's data should be considered stale
    """

    collector: LinkCollector
    last_successful_result: CollectionResult | None = None
    total_timeouts: int = 0
    is_stale: bool = False


@dataclass
class SchedulerStats:
    """Statistics about the scheduler's state and performance.

    Attributes:
        running: Whether the run loop is active
        collectors_registered: Number of registered collectors
        ticks: Completed ticks
        total_collections: Sum of collections across all collectors
        total_failures: Sum of failures across all collectors
        total_not_associated: Sum of "not associated" results
        total_timeouts: Sum of timeouts across all collectors
        average_latency_ms: Average collection time in milliseconds
    """

    running: bool = False
    collectors_registered: int = 0
    ticks: int = 0
    total_collections: int = 0
    total_failures: int = 0
    total_not_associated: int = 0
    total_timeouts: int = 0
    average_latency_ms: float = 0.0


class SamplingScheduler:
    """Periodically collect a sample for every interface into a LinkStore.

    Example:
        store = LinkStore(history_size=8)
        scheduler = SamplingScheduler(store, interval=0.5)
        scheduler.register(IwLinkCollector("wlan0"))

        await scheduler.start()
        # ... later ...
        await scheduler.stop()
    """

    def __init__(
        self,
        store: LinkStore,
        interval: float = 0.5,
        clock: Clock | None = None,
        stale_threshold_multiplier: float = 6.0,
    ) -> None:
        """Initialize the scheduler.

        Args:
            store: Store that receives every collected sample
            interval: Seconds between tick starts (must be positive)
            clock: Time source (SystemClock by default)
            stale_threshold_multiplier: Mark an interface stale after this
                many intervals without a successful collection

        Raises:
            ValueError: If interval is not positive
        """
        if interval <= 0:
            raise ValueError("Interval must be positive")

        self._store = store
        self._interval = interval
        self._clock: Clock = clock or SystemClock()
        self._stale_threshold_multiplier = stale_threshold_multiplier
        self._collectors: dict[str, CollectorInfo] = {}
        self._running = False
        self._task: asyncio.Task[None] | None = None
        self._ticks = 0

        # Latency tracking
        self._latencies: list[float] = []
        self._max_latency_samples = 1000

    @property
    def running(self) -> bool:
        """Check if the scheduler is running."""
        return self._running

    @property
    def interval(self) -> float:
        return self._interval

    def register(self, collector: LinkCollector) -> None:
        """Register a collector. Ticks visit collectors in registration order.

        Args:
            collector: The LinkCollector to register

        Raises:
            ValueError: If a collector for the same interface is registered
        """
        if collector.name in self._collectors:
            raise ValueError(f"Collector '{collector.name}' is already registered")
        self._collectors[collector.name] = CollectorInfo(collector=collector)

    def list_collectors(self) -> list[str]:
        """Get registered interface names in tick order."""
        return list(self._collectors.keys())

    async def start(self) -> None:
        """Start the run loop in a background task.

        Registers every collector's interface with the store first so it
        reports "no data yet" until the first sample. Does nothing if
        already running.
        """
        if self._running:
            return

        for name in self._collectors:
            await self._store.register_interface(name)

        self._running = True
        self._task = asyncio.create_task(self.run(), name="sampling-scheduler")

    async def stop(self, timeout: float = 5.0) -> None:
        """Stop the run loop and wait for it to finish.

        Args:
            timeout: Maximum seconds to wait for the task to finish
        """
        if not self._running:
            return

        self._running = False
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            # wait() leaves the task's CancelledError unraised.
            await asyncio.wait([task], timeout=timeout)

    async def run(self) -> None:
        """Tick at the configured interval until stopped.

        Cancellation propagates to the caller once the loop has been marked
        as no longer running.
        """
        self._running = True
        try:
            while self._running:
                started = self._clock.monotonic()
                try:
                    await self.tick()
                except Exception:
                    logger.warning("Sampling tick failed; will retry.", exc_info=True)
                elapsed = self._clock.monotonic() - started
                await self._clock.sleep(max(0.0, self._interval - elapsed))
        finally:
            self._running = False

    async def tick(self) -> dict[str, CollectionResult]:
        """Collect once from every collector and feed the store.

        Returns:
            Dict mapping interface names to their results, in tick order
        """
        infos = list(self._collectors.values())
        results = await asyncio.gather(*(self._collect(info) for info in infos))

        for info, result in zip(infos, results, strict=True):
            await self._apply(info, result)

        self._ticks += 1
        return {info.collector.name: result for info, result in zip(infos, results, strict=True)}

    async def _collect(self, info: CollectorInfo) -> CollectionResult:
        """Run one collection bounded by the collector's timeout."""
        collector = info.collector
        try:
            return await asyncio.wait_for(collector.safe_collect(), timeout=collector.timeout)
        except TimeoutError as e:
            info.total_timeouts += 1
            collector.record_timeout()
            return CollectionResult(
                success=False,
                error=f"Collection timed out after {collector.timeout}s",
                exception=e,
                timestamp=self._clock.now(),
                collector_name=collector.name,
            )

    async def _apply(self, info: CollectorInfo, result: CollectionResult) -> None:
        """Store a result and update stale tracking."""
        name = info.collector.name

        self._latencies.append(result.collection_time_ms)
        if len(self._latencies) > self._max_latency_samples:
            self._latencies = self._latencies[-self._max_latency_samples :]

        if result.success and result.data is not None:
            await self._store.update(result.data)
            info.last_successful_result = result
            if info.is_stale:
                logger.info("Interface '%s' recovered from stale state", name)
                info.is_stale = False
        elif result.not_associated:
            # Expected while roaming or disconnected: keep the last sample.
            pass
        else:
            logger.debug("Collection for '%s' failed: %s", name, result.error)
            sentry.add_breadcrumb(
                f"Collection failed: {name}",
                category="collector",
                level="warning",
                data={"interface": name, "error": result.error},
            )
            self._check_stale_state(info, result)

    def _check_stale_state(self, info: CollectorInfo, result: CollectionResult) -> None:
        """Mark an interface stale after too long without a successful collection.

        An interface that never produced a sample is judged by its count of
        consecutive failures instead of elapsed time.
        """
        if info.is_stale:
            return

        last = info.last_successful_result
        if last is None or last.timestamp is None:
            if info.collector.consecutive_failures < self._stale_threshold_multiplier:
                return
            logger.warning(
                "Interface '%s' has not produced a sample after %d attempts: %s",
                info.collector.name,
                info.collector.consecutive_failures,
                result.error,
            )
            since_success = None
        else:
            since_success = self._clock.now() - last.timestamp
            threshold = timedelta(seconds=self._interval * self._stale_threshold_multiplier)
            if since_success <= threshold:
                return
            logger.warning(
                "Interface '%s' data is now stale (last success: %s ago): %s",
                info.collector.name,
                since_success,
                result.error,
            )

        info.is_stale = True
        if result.exception is not None:
            sentry.capture_collector_error(
                info.collector.name,
                result.exception,
                extra={
                    "seconds_since_success": (
                        since_success.total_seconds() if since_success is not None else None
                    ),
                },
            )

    def is_collector_stale(self, name: str) -> bool:
        """Check whether an interface's data is stale."""
        info = self._collectors.get(name)
        return info.is_stale if info else False

    def get_stats(self) -> SchedulerStats:
        """Get scheduler statistics."""
        total_collections = 0
        total_failures = 0
        total_not_associated = 0
        total_timeouts = 0

        for info in self._collectors.values():
            stats = info.collector.stats
            total_collections += stats["total_collections"]
            total_failures += stats["total_failures"]
            total_not_associated += stats["total_not_associated"]
            total_timeouts += info.total_timeouts

        avg_latency = sum(self._latencies) / len(self._latencies) if self._latencies else 0.0

        return SchedulerStats(
            running=self._running,
            collectors_registered=len(self._collectors),
            ticks=self._ticks,
            total_collections=total_collections,
            total_failures=total_failures,
            total_not_associated=total_not_associated,
            total_timeouts=total_timeouts,
            average_latency_ms=avg_latency,
        )
