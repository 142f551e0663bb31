"""HTTP routes serving the store.

Every handler reads from the store only; the scheduler is the single writer.
The stream endpoint uses server-sent events: one ``data:`` line of sample
JSON per accepted update.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
import logging
from typing import TYPE_CHECKING

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import StreamingResponse

from wifiradar.api.models import HealthResponse, StreamEnd
from wifiradar.models.base import Sample
from wifiradar.store import CloseReason, StoreClosedError, Subscription

if TYPE_CHECKING:
    from wifiradar.api.app import RuntimeState

logger = logging.getLogger(__name__)

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "X-Accel-Buffering": "no",
}


def format_sample_event(sample: Sample) -> str:
    """Encode a sample as one SSE ``data`` event."""
    return f"data: {sample.model_dump_json(by_alias=True)}\n\n"


def format_end_event(reason: CloseReason) -> str:
    """Encode the final event telling the client why the stream ended."""
    return f"event: end\ndata: {StreamEnd(reason=reason.value).model_dump_json()}\n\n"


async def sample_events(subscription: Subscription) -> AsyncIterator[str]:
    """Yield SSE events for a subscription until it closes.

    A subscription closed by the server (slow consumer, shutdown) ends with
    an ``end`` event carrying the reason.
    """
    async for sample in subscription:
        yield format_sample_event(sample)

    reason = subscription.close_reason
    if reason is not None and reason is not CloseReason.UNSUBSCRIBED:
        yield format_end_event(reason)


async def unsubscribe_on_disconnect(request: Request, subscription: Subscription) -> None:
    """Unsubscribe once the client sends ``http.disconnect``, even while no samples flow."""
    while True:
        message = await request.receive()
        if message["type"] == "http.disconnect":
            logger.debug("Stream client %d disconnected", subscription.id)
            await subscription.unsubscribe()
            return


def create_router(state: RuntimeState) -> APIRouter:
    """Build the API router bound to one runtime."""
    router = APIRouter()

    @router.get("/api/status", response_model=dict[str, Sample | None])
    async def get_status() -> dict[str, Sample | None]:
        snapshot = await state.store.status()
        return dict(snapshot.interfaces)

    @router.get("/api/best", response_model=Sample)
    async def get_best() -> Sample:
        best = await state.store.best()
        if best is None:
            raise HTTPException(status_code=404, detail="no eligible interface")
        return best

    @router.get("/api/history/{interface}", response_model=list[Sample])
    async def get_history(interface: str) -> list[Sample]:
        try:
            return await state.store.history(interface)
        except KeyError as exc:
            raise HTTPException(status_code=404, detail=f"unknown interface '{interface}'") from exc

    @router.get("/api/health", response_model=HealthResponse)
    async def get_health() -> HealthResponse:
        stats = await state.store.get_stats()
        names = await state.store.interfaces()
        scheduler = state.scheduler
        if scheduler is None:
            return HealthResponse(
                status="degraded",
                running=False,
                interfaces=names,
                stale=[],
                subscribers=stats.subscribers,
                total_updates=stats.total_updates,
                slow_consumer_disconnects=stats.slow_consumer_disconnects,
            )

        sampling = scheduler.get_stats()
        stale = [name for name in names if scheduler.is_collector_stale(name)]
        return HealthResponse(
            status="degraded" if stale or not sampling.running else "ok",
            running=sampling.running,
            interfaces=names,
            stale=stale,
            subscribers=stats.subscribers,
            total_updates=stats.total_updates,
            slow_consumer_disconnects=stats.slow_consumer_disconnects,
            ticks=sampling.ticks,
            total_failures=sampling.total_failures,
            total_timeouts=sampling.total_timeouts,
            average_latency_ms=round(sampling.average_latency_ms, 3),
        )

    @router.get("/api/stream")
    async def stream(request: Request) -> StreamingResponse:
        async def events() -> AsyncIterator[str]:
            # Subscribe inside the body so a client that never starts reading
            # leaves nothing registered.
            try:
                subscription = await state.store.subscribe()
            except StoreClosedError:
                yield format_end_event(CloseReason.STORE_CLOSED)
                return
            logger.debug("Stream client attached as subscriber %d", subscription.id)
            async with subscription:
                watcher = asyncio.create_task(unsubscribe_on_disconnect(request, subscription))
                try:
                    async for chunk in sample_events(subscription):
                        yield chunk
                finally:
                    watcher.cancel()

        return StreamingResponse(events(), media_type="text/event-stream", headers=SSE_HEADERS)

    return router
