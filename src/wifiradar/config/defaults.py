"""Default configuration values for wifi-radar.

This module defines the default configuration used when no config file exists
or when config values are not specified. All configuration options are documented
here for reference.

Environment Variables:
    WIFIRADAR_CONFIG_PATH: Override default config file path
    Any config value can reference environment variables using ${VAR} syntax

Config File Locations (in order of precedence):
    1. Path specified via --config CLI flag
    2. Path specified via WIFIRADAR_CONFIG_PATH environment variable
    3. ~/.config/wifi-radar/config.yaml (XDG default)
"""

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {
    # Interfaces to monitor, in sampling order (at least one is required to run)
    "interfaces": [],
    "interval": 0.5,  # Sampling interval in seconds ("500ms", "1s" also accepted)
    # HTTP server
    "server": {
        "listen": "127.0.0.1:8888",  # host:port to bind
        "public": False,  # Bind 0.0.0.0 on the listen port instead
        "static_dir": "web/static",  # Served at / when the directory exists
    },
    # In-memory store
    "store": {
        "history_size": 8,  # Samples kept per interface
        "queue_size": 64,  # Per-stream-client queue before it is dropped as slow
    },
    # Link collectors
    "collector": {
        "binary": "iw",  # Path to the iw tool
        "timeout": 2.0,  # Seconds before a single collection is abandoned
        "stale_threshold_multiplier": 6.0,  # Warn after N intervals without a sample
    },
    # Logging configuration
    "logging": {
        "level": "INFO",  # DEBUG, INFO, WARNING, ERROR
        "file": None,  # Optional log file path
        "access_log": False,  # uvicorn per-request access log
    },
    # Error tracking (disabled unless a DSN is set)
    "sentry": {
        "dsn": None,
        "environment": "production",
        "traces_sample_rate": 0.0,
    },
}
