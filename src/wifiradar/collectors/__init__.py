"""Link sampling framework for wifi-radar.

- LinkCollector: Abstract base class for per-interface collectors
- IwLinkCollector: Collector built on ``iw dev <iface> link``
- SamplingScheduler: Fixed-interval driver feeding a LinkStore
- Clock / SystemClock: Injectable time source

All collection is asyncio-based so a slow interface never blocks the others.
"""

from wifiradar.collectors.base import (
    CollectionResult,
    CollectorError,
    LinkCollector,
    NotAssociatedError,
)
from wifiradar.collectors.clock import Clock, SystemClock
from wifiradar.collectors.iw import IwLinkCollector, parse_iw_link
from wifiradar.collectors.scheduler import SamplingScheduler, SchedulerStats

__all__ = [
    "Clock",
    "CollectionResult",
    "CollectorError",
    "IwLinkCollector",
    "LinkCollector",
    "NotAssociatedError",
    "SamplingScheduler",
    "SchedulerStats",
    "SystemClock",
    "parse_iw_link",
]
