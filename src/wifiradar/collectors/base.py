"""Abstract base class for link collectors.

This module defines the LinkCollector interface every per-interface
collector implements, plus the result and error types the scheduler relies
on. Collectors turn whatever the operating system reports into a Sample.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
import logging
from typing import Any

from wifiradar.collectors.clock import Clock, SystemClock
from wifiradar.models.base import Sample

logger = logging.getLogger(__name__)


class CollectorError(Exception):
    """A collection attempt failed."""


class NotAssociatedError(CollectorError):
    """The interface exists but is not associated with a network.

    This is an expected state, not a failure: the scheduler skips the
    interface for the tick and keeps its last sample.
    """


@dataclass
class CollectionResult:
    """Result of a collection attempt.

    Attributes:
        success: Whether the collection produced a sample
        data: The collected Sample (None if failed)
        error: Error message if collection failed
        not_associated: The failure was a NotAssociatedError
        exception: The exception raised by collect(), if any
        collection_time_ms: How long the collection took in milliseconds
        timestamp: When the collection was attempted
        collector_name: Interface name of the collector
    """

    success: bool
    data: Sample | None = None
    error: str | None = None
    not_associated: bool = False
    exception: BaseException | None = field(default=None, repr=False)
    collection_time_ms: float = 0.0
    timestamp: datetime | None = None
    collector_name: str = ""

    def __post_init__(self) -> None:
        """Validate result consistency."""
        if self.success and self.data is None:
            raise ValueError("Successful collection must include data")
        if not self.success and self.error is None:
            raise ValueError("Failed collection must include error message")


class LinkCollector(ABC):
    """Abstract base class for per-interface link collectors.

    Subclasses implement collect(), returning a Sample for their interface
    or raising NotAssociatedError / any other exception.

    Class Attributes:
        timeout: Maximum time allowed for a single collection in seconds

    Example:
        class FixedCollector(LinkCollector):
            async def collect(self) -> Sample:
                return Sample(
                    interface=self.name,
                    timestamp=self.clock.now(),
                    signal_quality=-50.0,
                )
    """

    timeout: float = 2.0

    def __init__(self, name: str, clock: Clock | None = None) -> None:
        """Initialize the collector.

        Args:
            name: Interface name this collector samples
            clock: Time source for sample timestamps

        Raises:
            ValueError: If the name is empty
        """
        if not name:
            raise ValueError("Interface name must not be empty")
        self.name = name
        self.clock: Clock = clock or SystemClock()
        self._last_collection: datetime | None = None
        self._consecutive_failures: int = 0
        self._total_collections: int = 0
        self._total_failures: int = 0
        self._total_not_associated: int = 0

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"

    @property
    def last_collection(self) -> datetime | None:
        """Get the timestamp of the last successful collection."""
        return self._last_collection

    @property
    def consecutive_failures(self) -> int:
        """Get the count of consecutive collection failures."""
        return self._consecutive_failures

    @property
    def stats(self) -> dict[str, Any]:
        """Get collector statistics."""
        return {
            "name": self.name,
            "total_collections": self._total_collections,
            "total_failures": self._total_failures,
            "total_not_associated": self._total_not_associated,
            "consecutive_failures": self._consecutive_failures,
            "last_collection": self._last_collection,
        }

    @abstractmethod
    async def collect(self) -> Sample:
        """Collect one sample for this interface.

        Returns:
            The current Sample

        Raises:
            NotAssociatedError: The interface is not associated
            Exception: Any other failure
        """
        ...

    async def safe_collect(self) -> CollectionResult:
        """Collect a sample with error handling and timing.

        Wraps collect() and updates internal statistics. A
        NotAssociatedError is reported but not counted as a failure.

        Returns:
            CollectionResult with data or error information
        """
        started = self.clock.monotonic()
        attempted_at = self.clock.now()
        self._total_collections += 1

        try:
            sample = await self.collect()
        except NotAssociatedError as e:
            self._total_not_associated += 1
            self._consecutive_failures = 0
            logger.debug("Interface '%s' is not associated", self.name)
            return CollectionResult(
                success=False,
                error=str(e) or "not associated",
                not_associated=True,
                exception=e,
                collection_time_ms=(self.clock.monotonic() - started) * 1000,
                timestamp=attempted_at,
                collector_name=self.name,
            )
        except Exception as e:
            self._consecutive_failures += 1
            self._total_failures += 1
            return CollectionResult(
                success=False,
                error=f"{type(e).__name__}: {e!s}",
                exception=e,
                collection_time_ms=(self.clock.monotonic() - started) * 1000,
                timestamp=attempted_at,
                collector_name=self.name,
            )

        if sample.interface != self.name:
            self._consecutive_failures += 1
            self._total_failures += 1
            return CollectionResult(
                success=False,
                error=f"Collector '{self.name}' produced a sample for '{sample.interface}'",
                collection_time_ms=(self.clock.monotonic() - started) * 1000,
                timestamp=attempted_at,
                collector_name=self.name,
            )

        self._last_collection = attempted_at
        self._consecutive_failures = 0
        return CollectionResult(
            success=True,
            data=sample,
            collection_time_ms=(self.clock.monotonic() - started) * 1000,
            timestamp=attempted_at,
            collector_name=self.name,
        )

    def record_timeout(self) -> None:
        """Count a collection the scheduler abandoned after ``timeout``."""
        self._consecutive_failures += 1
        self._total_failures += 1
