"""Live delivery channel for one stream consumer.

Each Subscription owns a bounded asyncio queue. The store pushes samples
with ``put_nowait`` and never waits on a consumer; a consumer that lets its
queue fill up is disconnected instead of slowing down the writer.
"""

from __future__ import annotations

import asyncio
from enum import Enum
import itertools
from typing import TYPE_CHECKING

from wifiradar.models.base import Sample

if TYPE_CHECKING:
    from wifiradar.store.store import LinkStore


class CloseReason(str, Enum):
    """Why a subscription stopped receiving samples."""

    UNSUBSCRIBED = "unsubscribed"
    SLOW_CONSUMER = "slow_consumer"
    STORE_CLOSED = "store_closed"


_ids = itertools.count(1)


class Subscription:
    """Handle for one registered stream consumer.

    Yields every sample the store accepts after registration, in acceptance
    order, until the subscription is closed. Closing (explicitly, by the
    slow-consumer policy or by the store shutting down) ends iteration.

    Example:
        async with await store.subscribe() as subscription:
            async for sample in subscription:
                send(sample)
    """

    def __init__(self, store: LinkStore, queue_size: int) -> None:
        if queue_size <= 0:
            raise ValueError("queue_size must be positive")

        self.id = next(_ids)
        self._store = store
        self._queue_size = queue_size
        # One extra slot so the end-of-stream marker always fits.
        self._queue: asyncio.Queue[Sample | None] = asyncio.Queue(maxsize=queue_size + 1)
        self._closed = False
        self._close_reason: CloseReason | None = None

    def __repr__(self) -> str:
        state = self._close_reason.value if self._close_reason else "open"
        return f"<Subscription id={self.id} {state} pending={self.pending}>"

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def close_reason(self) -> CloseReason | None:
        return self._close_reason

    @property
    def queue_size(self) -> int:
        return self._queue_size

    @property
    def pending(self) -> int:
        """Samples waiting in the queue."""
        # A closed queue only ever holds the end-of-stream marker.
        return 0 if self._closed else self._queue.qsize()

    def offer(self, sample: Sample) -> bool:
        """Queue a sample without waiting.

        Returns:
            False if the subscription is closed or its queue is full
        """
        if self._closed or self.pending >= self._queue_size:
            return False
        self._queue.put_nowait(sample)
        return True

    def close(self, reason: CloseReason) -> None:
        """Drop pending samples and signal end-of-stream.

        Only the first call has an effect.
        """
        if self._closed:
            return
        self._closed = True
        self._close_reason = reason

        while not self._queue.empty():
            self._queue.get_nowait()
        self._queue.put_nowait(None)

    async def get(self) -> Sample | None:
        """Wait for the next sample.

        Returns:
            The next sample, or None once the subscription is closed
        """
        if self._closed and self._queue.empty():
            return None
        item = await self._queue.get()
        if item is None:
            # Keep the marker for any later reader.
            self._queue.put_nowait(None)
        return item

    async def unsubscribe(self) -> None:
        """Remove this subscription from its store."""
        await self._store.unsubscribe(self)

    def __aiter__(self) -> Subscription:
        return self

    async def __anext__(self) -> Sample:
        sample = await self.get()
        if sample is None:
            raise StopAsyncIteration
        return sample

    async def __aenter__(self) -> Subscription:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.unsubscribe()
