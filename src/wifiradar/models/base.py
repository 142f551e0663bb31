"""Pydantic data models for wifi-radar.

This module defines the values that flow between collectors, the store and
the HTTP layer:
- Sample: One immutable link-quality reading for one interface
- StatusSnapshot: Latest sample per known interface at a point in time
- LinkInfo: Fields parsed from the operating system's link report
"""

from collections.abc import Iterator
from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def _utcnow() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(UTC)


class Sample(BaseModel):
    """A single link-quality reading for one wireless interface.

    Samples are produced by collectors and never mutated afterwards. The
    JSON form uses camelCase keys (``signalQuality``).

    Attributes:
        interface: Interface name (e.g., "wlan0")
        timestamp: When the reading was taken (UTC)
        signal_quality: Signal level, dBm for the iw collector
        connected: Whether the interface reported an association
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        str_strip_whitespace=True,
        allow_inf_nan=False,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    interface: str = Field(..., min_length=1, description="Interface name")
    timestamp: datetime = Field(default_factory=_utcnow)
    signal_quality: float = Field(..., description="Signal level (dBm or percent)")
    connected: bool = Field(default=True, description="Interface is associated")


class StatusSnapshot(BaseModel):
    """Latest sample for every known interface, frozen at ``taken_at``.

    Interfaces that were registered but never updated map to ``None``.
    The mapping is built fresh for every snapshot, so later store updates
    never show through an already returned snapshot.
    """

    model_config = ConfigDict(frozen=True)

    taken_at: datetime = Field(default_factory=_utcnow)
    interfaces: dict[str, Sample | None] = Field(default_factory=dict)

    def __getitem__(self, name: str) -> Sample | None:
        return self.interfaces[name]

    def __contains__(self, name: object) -> bool:
        return name in self.interfaces

    def __len__(self) -> int:
        return len(self.interfaces)

    def samples(self) -> Iterator[Sample]:
        """Iterate over the interfaces that have data."""
        for sample in self.interfaces.values():
            if sample is not None:
                yield sample


class LinkInfo(BaseModel):
    """Link details parsed from ``iw dev <iface> link`` output.

    Attributes:
        connected: Whether the interface is associated
        ssid: Network name (if associated)
        bssid: Access point MAC address
        frequency_mhz: Operating frequency
        signal_dbm: Received signal strength
        rx_bitrate_mbps: Last receive bitrate
        tx_bitrate_mbps: Last transmit bitrate
    """

    model_config = ConfigDict(frozen=True)

    connected: bool = False
    ssid: str | None = None
    bssid: str | None = None
    frequency_mhz: float | None = None
    signal_dbm: float | None = None
    rx_bitrate_mbps: float | None = None
    tx_bitrate_mbps: float | None = None
