"""Sample storage and live distribution for wifi-radar.

- LinkStore: Per-interface history, latest cache and subscriber registry
- InterfaceRecord: Bounded ring buffer for one interface
- Subscription: Bounded delivery queue for one stream consumer
- select_best: Best connected interface for a status snapshot
"""

from wifiradar.store.record import InterfaceRecord
from wifiradar.store.selector import select_best
from wifiradar.store.store import LinkStore, StoreClosedError, StoreStats
from wifiradar.store.subscription import CloseReason, Subscription

__all__ = [
    "CloseReason",
    "InterfaceRecord",
    "LinkStore",
    "StoreClosedError",
    "StoreStats",
    "Subscription",
    "select_best",
]
