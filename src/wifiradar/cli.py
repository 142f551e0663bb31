"""Command-line interface for wifi-radar.

This module provides:
- Typer-based CLI application
- Config file loading with CLI overrides
- Logging and error tracking setup
- The uvicorn server run

Usage:
    wifi-radar --if wlan0                      # Sample wlan0 every 500ms
    wifi-radar --if wlan0 --if wlan1           # Compare two adapters
    wifi-radar -i wlan0 --interval 1s --public # Listen on all addresses

Examples:
    # Serve on a custom address with a config file
    wifi-radar --config ~/.config/wifi-radar/lab.yaml --listen 127.0.0.1:9000

    # Verbose logging to a file as well as the console
    wifi-radar -i wlan0 --log-level debug
"""

from enum import Enum
import logging
from pathlib import Path
from typing import Annotated, Any

from rich.console import Console
from rich.markup import escape
import typer
import uvicorn

from wifiradar import __version__, sentry
from wifiradar.api import create_app
from wifiradar.config import Config, ConfigError, load_config
from wifiradar.logs import configure_logging

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="wifi-radar",
    help="Sample wireless link quality and serve it over HTTP",
    no_args_is_help=False,
    add_completion=True,
    rich_markup_mode="rich",
)

# Console for rich output
console = Console()

NO_INTERFACES_MESSAGE = "no interfaces provided; use --if <ifname>"


class LogLevel(str, Enum):
    """Log levels accepted on the command line."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


def version_callback(value: bool) -> None:
    """Display version and exit."""
    if value:
        console.print(f"wifi-radar version {__version__}")
        raise typer.Exit()


def build_cli_overrides(
    interfaces: list[str] | None = None,
    interval: str | None = None,
    listen: str | None = None,
    public: bool = False,
    static_dir: Path | None = None,
    log_level: LogLevel | None = None,
) -> dict[str, Any]:
    """Build config override dict from CLI flags.

    Flags left at their defaults are omitted so the config file and
    built-in defaults still apply.

    Args:
        interfaces: Interfaces from repeated --if flags
        interval: Sampling interval as a duration string
        listen: host:port to bind
        public: Bind all addresses
        static_dir: Directory served at /
        log_level: Logging level override

    Returns:
        Dictionary of config overrides
    """
    overrides: dict[str, Any] = {}

    if interfaces:
        overrides["interfaces"] = list(interfaces)
    if interval is not None:
        overrides["interval"] = interval

    server: dict[str, Any] = {}
    if listen is not None:
        server["listen"] = listen
    if public:
        server["public"] = True
    if static_dir is not None:
        server["static_dir"] = str(static_dir)
    if server:
        overrides["server"] = server

    if log_level is not None:
        overrides["logging"] = {"level": log_level.value.upper()}

    return overrides


InterfaceOption = Annotated[
    list[str] | None,
    typer.Option(
        "--if",
        "-i",
        help="Wireless interface to sample (repeat for several)",
    ),
]

IntervalOption = Annotated[
    str | None,
    typer.Option(
        "--interval",
        help="Sampling interval, e.g. 500ms, 1s, 2m [default: 500ms]",
    ),
]

ListenOption = Annotated[
    str | None,
    typer.Option(
        "--listen",
        help="HTTP listen address host:port [default: 127.0.0.1:8888]",
    ),
]

PublicOption = Annotated[
    bool,
    typer.Option(
        "--public",
        help="Listen on all addresses (0.0.0.0) on the listen port",
    ),
]

ConfigOption = Annotated[
    Path | None,
    typer.Option(
        "--config",
        "-c",
        help="Path to custom config file",
        envvar="WIFIRADAR_CONFIG_PATH",
        exists=False,  # We handle existence check ourselves
    ),
]

StaticDirOption = Annotated[
    Path | None,
    typer.Option(
        "--static-dir",
        help="Directory of web assets served at / [default: web/static]",
    ),
]

LogLevelOption = Annotated[
    LogLevel | None,
    typer.Option(
        "--log-level",
        case_sensitive=False,
        help="Logging level",
    ),
]

VersionOption = Annotated[
    bool | None,
    typer.Option(
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
]


@app.callback(invoke_without_command=True)
def main(
    interfaces: InterfaceOption = None,
    interval: IntervalOption = None,
    listen: ListenOption = None,
    public: PublicOption = False,
    config: ConfigOption = None,
    static_dir: StaticDirOption = None,
    log_level: LogLevelOption = None,
    version: VersionOption = None,
) -> None:
    """wifi-radar - live wireless link quality over HTTP.

    Samples every interface given with --if at a fixed interval and serves
    the latest readings, the best interface and a live event stream.
    """
    overrides = build_cli_overrides(
        interfaces=interfaces,
        interval=interval,
        listen=listen,
        public=public,
        static_dir=static_dir,
        log_level=log_level,
    )

    config_path = str(config) if config else None
    try:
        cfg = load_config(config_path=config_path, cli_overrides=overrides)
    except FileNotFoundError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from e
    except ConfigError as e:
        console.print(f"[red]Configuration error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from e

    if not cfg.interfaces:
        console.print(f"[red]Error:[/red] {NO_INTERFACES_MESSAGE}")
        raise typer.Exit(1)

    run_server(cfg, config_path=config_path)


def run_server(config: Config, config_path: str | None = None) -> None:
    """Set up logging and error tracking, then serve until interrupted.

    Args:
        config: Validated configuration object
        config_path: Custom config file path, for error context
    """
    configure_logging(config.logging)

    if config.sentry.enabled:
        sentry.init_sentry(
            dsn=config.sentry.dsn or "",
            environment=config.sentry.environment,
            traces_sample_rate=config.sentry.traces_sample_rate,
        )
    sentry.set_radar_context(
        interfaces=config.interfaces,
        listen=config.server.listen,
        interval=config.interval,
        config_path=config_path,
    )

    host, port = config.server.host, config.server.port
    application = create_app(config)
    logger.info("listening on http://%s:%d", host, port)
    uvicorn.run(
        application,
        host=host,
        port=port,
        log_config=None,
        log_level=config.logging.level.lower(),
        access_log=config.logging.access_log,
    )


def cli_main() -> None:
    """Entry point for the CLI application."""
    app()
