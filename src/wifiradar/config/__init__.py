"""Configuration management for wifi-radar.

- Default values live in ``defaults``
- ``loader`` finds, merges and validates YAML config files and CLI overrides
"""

from wifiradar.config.defaults import DEFAULT_CONFIG
from wifiradar.config.loader import (
    CollectorConfig,
    Config,
    ConfigError,
    ConfigSyntaxError,
    ConfigValidationError,
    LoggingConfig,
    SentryConfig,
    ServerConfig,
    StoreConfig,
    get_config_path,
    load_config,
    parse_duration,
    split_host_port,
)

__all__ = [
    "DEFAULT_CONFIG",
    "CollectorConfig",
    "Config",
    "ConfigError",
    "ConfigSyntaxError",
    "ConfigValidationError",
    "LoggingConfig",
    "SentryConfig",
    "ServerConfig",
    "StoreConfig",
    "get_config_path",
    "load_config",
    "parse_duration",
    "split_host_port",
]
