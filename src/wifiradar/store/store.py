"""In-memory link-quality store with live fan-out.

LinkStore is the single source of truth for collected samples. It keeps a
bounded history per interface, the latest sample of each interface and the
set of live subscriptions that receive every accepted sample.

All public methods are async and serialize on one asyncio lock. Critical
sections never await, so a reader can delay the writer by at most one short
section and a subscriber can never delay it at all.
"""

import asyncio
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime
import logging

from wifiradar.models.base import Sample, StatusSnapshot
from wifiradar.store.record import InterfaceRecord
from wifiradar.store.selector import select_best
from wifiradar.store.subscription import CloseReason, Subscription

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(UTC)


class StoreClosedError(RuntimeError):
    """Raised when subscribing to a store that has been closed."""


@dataclass
class StoreStats:
    """Statistics about the store.

    Attributes:
        interfaces: Number of known interfaces
        subscribers: Number of live subscriptions
        total_updates: Samples accepted since construction
        total_rejected: Samples refused (out of order or after close)
        total_evicted: Samples dropped from full ring buffers
        slow_consumer_disconnects: Subscriptions dropped for a full queue
    """

    interfaces: int = 0
    subscribers: int = 0
    total_updates: int = 0
    total_rejected: int = 0
    total_evicted: int = 0
    slow_consumer_disconnects: int = 0


class LinkStore:
    """Per-interface sample history, latest cache and subscriber registry.

    Example:
        store = LinkStore(history_size=8, interfaces=["wlan0", "wlan1"])
        await store.update(sample)
        snapshot = await store.status()
        best = await store.best()

        async with await store.subscribe() as subscription:
            async for sample in subscription:
                ...

        await store.close()
    """

    def __init__(
        self,
        history_size: int = 8,
        queue_size: int = 64,
        interfaces: Iterable[str] = (),
    ) -> None:
        """Initialize the store.

        Args:
            history_size: Samples kept per interface (must be positive)
            queue_size: Per-subscription delivery queue capacity (must be positive)
            interfaces: Interface names to report as "no data yet" until
                their first sample arrives

        Raises:
            ValueError: If a capacity is not positive
        """
        if history_size <= 0:
            raise ValueError("history_size must be positive")
        if queue_size <= 0:
            raise ValueError("queue_size must be positive")

        self._history_size = history_size
        self._queue_size = queue_size
        self._records: dict[str, InterfaceRecord] = {}
        self._subscriptions: dict[int, Subscription] = {}
        self._lock = asyncio.Lock()
        self._closed = False

        # Statistics
        self._total_updates = 0
        self._total_rejected = 0
        self._slow_disconnects = 0

        for name in interfaces:
            self._ensure_record(name)

    @property
    def history_size(self) -> int:
        return self._history_size

    @property
    def queue_size(self) -> int:
        return self._queue_size

    @property
    def closed(self) -> bool:
        return self._closed

    def _ensure_record(self, name: str) -> InterfaceRecord:
        """Return the record for ``name``, creating it if needed (lock held)."""
        record = self._records.get(name)
        if record is None:
            if not name:
                raise ValueError("Interface name must not be empty")
            record = InterfaceRecord(name, max_size=self._history_size)
            self._records[name] = record
        return record

    async def register_interface(self, name: str) -> None:
        """Make ``name`` known to the store without any data.

        Args:
            name: Interface name

        Raises:
            ValueError: If the name is empty
        """
        async with self._lock:
            self._ensure_record(name)

    async def update(self, sample: Sample) -> bool:
        """Record a sample and push it to every live subscription.

        The oldest sample is evicted when the interface's buffer is full.
        Subscriptions whose queue is full are disconnected rather than
        waited on.

        Args:
            sample: The sample to store

        Returns:
            True if the sample was accepted, False if it was older than the
            interface's latest sample or the store is closed
        """
        async with self._lock:
            if self._closed:
                self._total_rejected += 1
                return False

            record = self._ensure_record(sample.interface)
            if not record.accepts(sample):
                self._total_rejected += 1
                logger.debug(
                    "Ignoring out-of-order sample for '%s' (%s < %s)",
                    sample.interface,
                    sample.timestamp,
                    record.latest.timestamp if record.latest else None,
                )
                return False

            record.append(sample)
            self._total_updates += 1

            slow: list[Subscription] = []
            for subscription in self._subscriptions.values():
                if not subscription.offer(sample):
                    slow.append(subscription)

            for subscription in slow:
                self._drop(subscription, CloseReason.SLOW_CONSUMER)

        for subscription in slow:
            logger.info(
                "Disconnected slow stream consumer %d (queue size %d)",
                subscription.id,
                subscription.queue_size,
            )
        return True

    async def status(self) -> StatusSnapshot:
        """Get the latest sample of every known interface.

        Returns:
            A snapshot that later updates cannot change
        """
        async with self._lock:
            latest = {name: record.latest for name, record in self._records.items()}
        return StatusSnapshot(taken_at=_utcnow(), interfaces=latest)

    async def best(self) -> Sample | None:
        """Get the connected interface with the strongest signal.

        Returns:
            The best sample, or None if no interface is eligible
        """
        return select_best(await self.status())

    async def history(self, name: str) -> list[Sample]:
        """Get the buffered samples for one interface.

        Args:
            name: Interface name

        Returns:
            Samples oldest first

        Raises:
            KeyError: If the interface is unknown
        """
        async with self._lock:
            record = self._records.get(name)
            if record is None:
                raise KeyError(f"Interface '{name}' is not known")
            return record.samples()

    async def interfaces(self) -> list[str]:
        """Get all known interface names, sorted."""
        async with self._lock:
            return sorted(self._records)

    async def subscribe(self) -> Subscription:
        """Register a new stream consumer.

        The subscription receives samples accepted from now on; there is no
        replay of earlier samples.

        Returns:
            The new Subscription

        Raises:
            StoreClosedError: If the store has been closed
        """
        async with self._lock:
            if self._closed:
                raise StoreClosedError("Store is closed")
            subscription = Subscription(self, self._queue_size)
            self._subscriptions[subscription.id] = subscription
        logger.debug("Stream consumer %d subscribed", subscription.id)
        return subscription

    async def unsubscribe(self, subscription: Subscription) -> None:
        """Remove a subscription. Safe to call more than once.

        Args:
            subscription: Handle returned by subscribe()
        """
        async with self._lock:
            removed = self._subscriptions.get(subscription.id) is subscription
            self._drop(subscription, CloseReason.UNSUBSCRIBED)
        if removed:
            logger.debug("Stream consumer %d unsubscribed", subscription.id)

    def _drop(self, subscription: Subscription, reason: CloseReason) -> None:
        """Unregister and close a subscription (lock held)."""
        if self._subscriptions.get(subscription.id) is subscription:
            del self._subscriptions[subscription.id]
            if reason is CloseReason.SLOW_CONSUMER:
                self._slow_disconnects += 1
        subscription.close(reason)

    async def subscriber_count(self) -> int:
        async with self._lock:
            return len(self._subscriptions)

    async def close(self) -> None:
        """Disconnect all subscriptions and refuse further updates.

        Idempotent. Buffered history stays readable.
        """
        async with self._lock:
            if self._closed:
                return
            self._closed = True
            for subscription in list(self._subscriptions.values()):
                self._drop(subscription, CloseReason.STORE_CLOSED)
        logger.debug("Store closed")

    async def get_stats(self) -> StoreStats:
        """Get store statistics."""
        async with self._lock:
            return StoreStats(
                interfaces=len(self._records),
                subscribers=len(self._subscriptions),
                total_updates=self._total_updates,
                total_rejected=self._total_rejected,
                total_evicted=sum(r.total_evicted for r in self._records.values()),
                slow_consumer_disconnects=self._slow_disconnects,
            )
