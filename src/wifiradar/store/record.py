"""Per-interface ring buffer of recent samples.

An InterfaceRecord keeps the last N samples for one interface together with
a cached reference to the newest one. Records are not synchronized on their
own; LinkStore owns them and mutates them under its lock.
"""

from collections import deque

from wifiradar.models.base import Sample


class InterfaceRecord:
    """Fixed-capacity FIFO history for one interface.

    Samples are kept oldest first. Once the buffer holds ``max_size``
    samples every append evicts the oldest one, so memory stays bounded
    regardless of the update rate.

    Example:
        record = InterfaceRecord("wlan0", max_size=8)
        record.append(sample)
        record.latest  # -> sample
    """

    def __init__(self, name: str, max_size: int = 8) -> None:
        """Initialize the record.

        Args:
            name: Interface name this record belongs to
            max_size: Maximum number of samples to keep (must be positive)

        Raises:
            ValueError: If max_size is not positive
        """
        if max_size <= 0:
            raise ValueError("max_size must be positive")

        self._name = name
        self._max_size = max_size
        self._buffer: deque[Sample] = deque(maxlen=max_size)
        self._latest: Sample | None = None

        self._total_evicted = 0

    @property
    def name(self) -> str:
        return self._name

    @property
    def latest(self) -> Sample | None:
        """The newest sample, or None if nothing was recorded yet."""
        return self._latest

    @property
    def total_evicted(self) -> int:
        return self._total_evicted

    def __len__(self) -> int:
        return len(self._buffer)

    def accepts(self, sample: Sample) -> bool:
        """Check whether appending ``sample`` keeps timestamps non-decreasing."""
        return self._latest is None or sample.timestamp >= self._latest.timestamp

    def append(self, sample: Sample) -> bool:
        """Append a sample, evicting the oldest one when full.

        Args:
            sample: The sample to store

        Returns:
            True if the append evicted an older sample

        Raises:
            ValueError: If the sample belongs to another interface or is
                older than the current latest sample
        """
        if sample.interface != self._name:
            raise ValueError(
                f"Sample for '{sample.interface}' appended to record '{self._name}'"
            )
        if not self.accepts(sample):
            raise ValueError("Sample timestamp is older than the latest sample")

        evicted = len(self._buffer) >= self._max_size
        if evicted:
            self._total_evicted += 1

        self._buffer.append(sample)
        self._latest = sample
        return evicted

    def samples(self) -> list[Sample]:
        """Return a copy of the buffered samples, oldest first."""
        return list(self._buffer)
