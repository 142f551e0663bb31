"""FastAPI application wiring store, scheduler and routes together.

The lifespan starts the sampling scheduler once the server is up and, on
shutdown, stops it before closing the store so open streams end cleanly.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager
from dataclasses import dataclass
import logging
from pathlib import Path

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from wifiradar import __version__
from wifiradar.api.routes import create_router
from wifiradar.collectors import Clock, IwLinkCollector, LinkCollector, SamplingScheduler
from wifiradar.config.loader import CollectorConfig, Config
from wifiradar.store import LinkStore

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class RuntimeState:
    config: Config
    store: LinkStore
    scheduler: SamplingScheduler | None = None


def build_collectors(
    interfaces: Iterable[str],
    config: CollectorConfig,
    clock: Clock | None = None,
) -> list[LinkCollector]:
    """Create one iw collector per interface, in the given order."""
    return [
        IwLinkCollector(name, clock=clock, binary=config.binary, timeout=config.timeout)
        for name in interfaces
    ]


def build_runtime(config: Config, clock: Clock | None = None) -> RuntimeState:
    """Create the store and a scheduler sampling every configured interface."""
    store = LinkStore(
        history_size=config.store.history_size,
        queue_size=config.store.queue_size,
        interfaces=config.interfaces,
    )
    scheduler = SamplingScheduler(
        store,
        interval=config.interval,
        clock=clock,
        stale_threshold_multiplier=config.collector.stale_threshold_multiplier,
    )
    for collector in build_collectors(config.interfaces, config.collector, clock):
        scheduler.register(collector)
    return RuntimeState(config=config, store=store, scheduler=scheduler)


def create_app(config: Config, runtime: RuntimeState | None = None) -> FastAPI:
    """Build the application.

    Args:
        config: Validated configuration
        runtime: Prebuilt runtime (tests inject fakes here); built from
            ``config`` when omitted

    Returns:
        The FastAPI app, with the runtime available as ``app.state.runtime``
    """
    state = runtime or build_runtime(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if state.scheduler is not None:
            await state.scheduler.start()
            logger.info(
                "Sampling %s every %.3gs",
                ", ".join(state.scheduler.list_collectors()) or "nothing",
                state.scheduler.interval,
            )
        try:
            yield
        finally:
            if state.scheduler is not None:
                await state.scheduler.stop()
            await state.store.close()

    app = FastAPI(title="wifi-radar", version=__version__, lifespan=lifespan)
    app.state.runtime = state
    app.include_router(create_router(state))

    static_dir = config.server.static_dir
    if static_dir:
        path = Path(static_dir).expanduser()
        if path.is_dir():
            app.mount("/", StaticFiles(directory=path, html=True), name="static")
        else:
            logger.info("Static directory %s not found; serving the API only", path)

    return app
