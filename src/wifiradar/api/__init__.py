"""HTTP surface of wifi-radar (FastAPI)."""

from wifiradar.api.app import RuntimeState, build_collectors, build_runtime, create_app
from wifiradar.api.routes import create_router, format_end_event, format_sample_event, sample_events

__all__ = [
    "RuntimeState",
    "build_collectors",
    "build_runtime",
    "create_app",
    "create_router",
    "format_end_event",
    "format_sample_event",
    "sample_events",
]
