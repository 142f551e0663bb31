"""Logging setup for the wifi-radar server.

Console output goes through rich; an optional plain-text file handler
mirrors it. uvicorn's loggers are routed through the same handlers so the
whole process shares one format.
"""

import logging
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

from wifiradar.config.loader import LoggingConfig

FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_UVICORN_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


def configure_logging(config: LoggingConfig, console: Console | None = None) -> None:
    """Install handlers on the root logger.

    Replaces handlers installed by an earlier call, so it is safe to call
    again after the configuration changes.

    Args:
        config: Logging section of the configuration
        console: Console for rich output (stderr by default)
    """
    handlers: list[logging.Handler] = [
        RichHandler(
            console=console or Console(stderr=True),
            show_path=False,
            rich_tracebacks=True,
        )
    ]
    if config.file:
        path = Path(config.file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        handlers.append(file_handler)

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(config.level)

    for name in _UVICORN_LOGGERS:
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers.clear()
        uvicorn_logger.propagate = True
    logging.getLogger("uvicorn.access").disabled = not config.access_log
