"""Sentry SDK integration for wifi-radar.

This module provides:
- Sentry initialization with asyncio support (only when a DSN is configured)
- Logging integration (logs forwarded to Sentry as breadcrumbs/events)
- Context and tags describing the monitored interfaces
- Collector error capture and breadcrumbs

Every helper is safe to call when Sentry was never initialized; the SDK
turns them into no-ops.

Usage:
    from wifiradar.sentry import init_sentry, set_radar_context

    init_sentry(dsn="https://...")  # Call at startup
    set_radar_context(interfaces=["wlan0"], listen="127.0.0.1:8888")
"""

from __future__ import annotations

import logging
import os
import platform
from typing import Any

import sentry_sdk
from sentry_sdk.integrations.asyncio import AsyncioIntegration
from sentry_sdk.integrations.logging import LoggingIntegration

from wifiradar import __version__


def init_sentry(
    *,
    dsn: str,
    environment: str | None = None,
    traces_sample_rate: float = 0.0,
    debug: bool = False,
    event_level: int = logging.ERROR,
) -> None:
    """Initialize Sentry SDK with wifi-radar specific configuration.

    Args:
        dsn: Sentry DSN
        environment: Environment name (defaults to WIFIRADAR_ENV or "production")
        traces_sample_rate: Sample rate for performance traces (0.0-1.0)
        debug: Enable Sentry debug mode for troubleshooting
        event_level: Minimum log level that creates Sentry events
    """
    sentry_sdk.init(
        dsn=dsn,
        traces_sample_rate=traces_sample_rate,
        debug=debug,
        send_default_pii=False,
        release=f"wifi-radar@{__version__}",
        environment=environment or os.environ.get("WIFIRADAR_ENV", "production"),
        integrations=[
            AsyncioIntegration(),
            LoggingIntegration(
                level=logging.INFO,  # Capture INFO+ as breadcrumbs
                event_level=event_level,
            ),
        ],
        before_send=_before_send,
    )

    sentry_sdk.set_tag("app.version", __version__)
    sentry_sdk.set_tag("python.version", platform.python_version())
    sentry_sdk.set_tag("os.name", platform.system())
    sentry_sdk.set_tag("os.version", platform.release())
    sentry_sdk.set_tag("arch", platform.machine())


def _before_send(
    event: dict[str, Any],
    hint: dict[str, Any],
) -> dict[str, Any] | None:
    """Drop events nobody needs to see (Ctrl-C)."""
    if "exc_info" in hint:
        exc_type, _, _ = hint["exc_info"]
        if exc_type is KeyboardInterrupt:
            return None
    return event


def set_radar_context(
    *,
    interfaces: list[str],
    listen: str | None = None,
    interval: float | None = None,
    config_path: str | None = None,
) -> None:
    """Set wifi-radar specific context for error tracking.

    Args:
        interfaces: Monitored interface names
        listen: HTTP bind address
        interval: Sampling interval in seconds
        config_path: Path to config file if custom
    """
    context: dict[str, Any] = {
        "interfaces": interfaces,
        "interface_count": len(interfaces),
    }
    if listen is not None:
        context["listen"] = listen
    if interval is not None:
        context["interval"] = interval
    if config_path is not None:
        context["config_path"] = config_path
        sentry_sdk.set_tag("wifiradar.custom_config", "true")

    sentry_sdk.set_context("wifiradar", context)


def capture_collector_error(
    interface: str,
    error: BaseException,
    *,
    extra: dict[str, Any] | None = None,
) -> None:
    """Capture an error from a link collector with context.

    Args:
        interface: Interface whose collector failed
        error: The exception that occurred
        extra: Additional context to include
    """
    with sentry_sdk.new_scope() as scope:
        scope.set_tag("interface", interface)
        scope.set_context("collector_error", {
            "interface": interface,
            "error_type": type(error).__name__,
            **(extra or {}),
        })
        sentry_sdk.capture_exception(error)


def add_breadcrumb(
    message: str,
    category: str = "wifiradar",
    level: str = "info",
    data: dict[str, Any] | None = None,
) -> None:
    """Add a breadcrumb for debugging.

    Args:
        message: Description of the event
        category: Category for grouping (e.g., "collector", "stream", "config")
        level: Severity level (debug, info, warning, error)
        data: Additional data to attach
    """
    sentry_sdk.add_breadcrumb(
        message=message,
        category=category,
        level=level,
        data=data,
    )
