"""Response models for the HTTP API.

Sample itself is returned as-is; these cover the endpoints that report
process state rather than samples.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class HealthResponse(BaseModel):
    """Body of ``GET /api/health``."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    status: str
    running: bool
    interfaces: list[str]
    stale: list[str]
    subscribers: int
    total_updates: int
    slow_consumer_disconnects: int
    ticks: int = 0
    total_failures: int = 0
    total_timeouts: int = 0
    average_latency_ms: float = 0.0


class StreamEnd(BaseModel):
    """Payload of the final ``end`` event of a stream closed by the server."""

    reason: str
