"""Configuration loading and validation for wifi-radar.

This module provides:
- Pydantic models for configuration validation
- YAML config file discovery and loading
- Environment variable expansion in config values
- Duration parsing for the sampling interval ("500ms", "1s")
- Clear, user-friendly error messages for config issues
"""

from difflib import get_close_matches
import os
from pathlib import Path
import re
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
import yaml

from wifiradar.config.defaults import DEFAULT_CONFIG


class ConfigError(Exception):
    """Base exception for configuration errors.

    Attributes:
        message: The main error message
        file_path: Path to the config file (if applicable)
        line_number: Line number where the error occurred (if known)
        suggestion: Helpful suggestion for fixing the error
    """

    def __init__(
        self,
        message: str,
        *,
        file_path: str | None = None,
        line_number: int | None = None,
        column: int | None = None,
        suggestion: str | None = None,
        context_lines: list[str] | None = None,
    ) -> None:
        self.message = message
        self.file_path = file_path
        self.line_number = line_number
        self.column = column
        self.suggestion = suggestion
        self.context_lines = context_lines
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the error message with location, context and suggestion."""
        if self.file_path:
            location = f"Error in {self.file_path}"
            if self.line_number:
                location += f" line {self.line_number}"
            parts = [location + ":"]
        else:
            parts = ["Configuration error:"]

        parts.append(f"  {self.message}")

        if self.context_lines and self.column:
            parts.append("")
            parts.extend(f"    {line}" for line in self.context_lines)
            parts.append(" " * (self.column + 3) + "^")

        if self.suggestion:
            parts.append("")
            parts.append(f"  Suggestion: {self.suggestion}")

        return "\n".join(parts)


class ConfigSyntaxError(ConfigError):
    """Error for YAML syntax issues."""


class ConfigValidationError(ConfigError):
    """Error for configuration value validation failures."""


# Known keys at each level, for "did you mean" suggestions
VALID_KEYS: dict[tuple[str, ...], set[str]] = {
    (): {"interfaces", "interval", "server", "store", "collector", "logging", "sentry"},
    ("server",): {"listen", "public", "static_dir"},
    ("store",): {"history_size", "queue_size"},
    ("collector",): {"binary", "timeout", "stale_threshold_multiplier"},
    ("logging",): {"level", "file", "access_log"},
    ("sentry",): {"dsn", "environment", "traces_sample_rate"},
}

# Environment variable pattern: ${VAR} or ${VAR:-default}
ENV_VAR_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)(?::-([^}]*))?\}")

_DURATION_PATTERN = re.compile(r"^\s*(\d+(?:\.\d+)?|\.\d+)\s*(ms|s|m|h)?\s*$")
_DURATION_UNITS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0}


def parse_duration(value: str | float | int) -> float:
    """Convert a duration to seconds.

    Accepts numbers (seconds) and strings with an optional unit suffix:
    ``"500ms"``, ``"1.5s"``, ``"2m"``, ``"0.25"``.

    Args:
        value: Duration to parse

    Returns:
        Duration in seconds

    Raises:
        ValueError: If the value is not a valid duration
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid duration: {value!r}")
    if isinstance(value, int | float):
        return float(value)

    match = _DURATION_PATTERN.match(value)
    if not match:
        raise ValueError(f"Invalid duration '{value}' (expected e.g. 500ms, 1s, 2m)")
    number, unit = match.groups()
    return float(number) * _DURATION_UNITS[unit or "s"]


def _suggest_key(unknown_key: str, valid_keys: set[str]) -> str | None:
    """Suggest a similar valid key for an unknown key."""
    matches = get_close_matches(unknown_key, list(valid_keys), n=1, cutoff=0.6)
    if matches:
        return f"Did you mean '{matches[0]}'?"
    return None


_YAML_TYPE_NAMES: dict[type, str] = {
    type(None): "null",
    bool: "boolean",
    int: "integer",
    float: "number",
    list: "list",
    dict: "object",
}

# Wrong-type errors: (message prefix, suggestion)
_TYPE_ERRORS: dict[str, tuple[str, str]] = {
    "int_parsing": ("Invalid number", "Please provide a valid number"),
    "float_parsing": ("Invalid number", "Please provide a valid number"),
    "bool_type": ("Expected boolean", "Use 'true' or 'false'"),
    "bool_parsing": ("Expected boolean", "Use 'true' or 'false'"),
    "string_type": ("Expected string", "Please provide a text value"),
    "list_type": ("Expected list", "List interface names, e.g. [wlan0, wlan1]"),
}

_BOUNDS = {"gt": "greater than", "ge": "at least", "le": "at most"}

# Substrings of PyYAML errors and the hint shown for them
_YAML_HINTS = (
    ("could not find expected ':'", "Check for missing colons after keys (e.g., 'key: value')"),
    ("'\\t'", "Use spaces instead of tabs for indentation"),
    ("mapping values are not allowed", "Check that nested keys are indented consistently"),
)


def _describe(value: Any) -> str:
    """Describe a parsed YAML value for an error message."""
    if isinstance(value, str):
        return f'string "{value}"'
    return _YAML_TYPE_NAMES.get(type(value), type(value).__name__)


def _value_at(data: Any, loc: tuple[int | str, ...]) -> Any:
    """Follow a pydantic error location through the raw config data."""
    for key in loc:
        if isinstance(data, dict):
            data = data.get(key)
        elif isinstance(data, list) and isinstance(key, int):
            data = data[key]
        else:
            return None
    return data


def _format_pydantic_error(
    error: ValidationError,
    config_data: dict[str, Any],
    file_path: str | None = None,
) -> ConfigValidationError:
    """Convert the first pydantic error into a ConfigValidationError."""
    first_error = error.errors()[0]
    loc = first_error["loc"]
    error_type = first_error["type"]
    ctx = first_error.get("ctx", {})
    path = ".".join(str(part) for part in loc)
    value = _value_at(config_data, loc)
    suggestion = None

    if error_type == "extra_forbidden":
        message = f"Unknown configuration key '{path}'"
        valid = VALID_KEYS.get(tuple(str(part) for part in loc[:-1]))
        if valid:
            suggestion = _suggest_key(str(loc[-1]), valid)
        suggestion = suggestion or "Check the documentation for valid configuration options"
    elif error_type in _TYPE_ERRORS:
        prefix, suggestion = _TYPE_ERRORS[error_type]
        message = f"{prefix} for '{path}': got {_describe(value)}"
    elif error_type == "literal_error":
        message = f"Invalid value for '{path}': got {_describe(value)}"
        suggestion = f"Expected one of: {ctx['expected']}"
    elif any(bound in ctx for bound in _BOUNDS):
        message = f"Value for '{path}' is out of range: {value}"
        bound = next(bound for bound in _BOUNDS if bound in ctx)
        suggestion = f"Value must be {_BOUNDS[bound]} {ctx[bound]}"
    else:
        message = f"Invalid value for '{path}': {first_error['msg']}"

    return ConfigValidationError(message, file_path=file_path, suggestion=suggestion)


def _format_yaml_error(
    error: yaml.YAMLError,
    file_path: str | None = None,
    content: str | None = None,
) -> ConfigSyntaxError:
    """Convert a YAML error into a ConfigSyntaxError pointing at the bad line."""
    line_number: int | None = None
    column: int | None = None
    context_lines: list[str] | None = None

    mark = getattr(error, "problem_mark", None)
    if mark is not None:
        line_number = mark.line + 1  # marks are 0-indexed
        column = mark.column + 1
        lines = (content or "").splitlines()
        if mark.line < len(lines):
            context_lines = [lines[mark.line]]

    text = str(error)
    suggestion = next((hint for needle, hint in _YAML_HINTS if needle in text), None)
    problem = getattr(error, "problem", None)

    return ConfigSyntaxError(
        f"YAML syntax error: {problem}" if problem else "Invalid YAML syntax",
        file_path=file_path,
        line_number=line_number,
        column=column,
        context_lines=context_lines,
        suggestion=suggestion,
    )


def expand_env_vars(value: Any) -> Any:
    """Recursively expand environment variables in config values.

    Supports ${VAR} and ${VAR:-default} syntax. Unknown variables without a
    default are left as written.
    """
    if isinstance(value, str):

        def replace_env_var(match: re.Match[str]) -> str:
            env_value = os.environ.get(match.group(1))
            if env_value is not None:
                return env_value
            if match.group(2) is not None:
                return match.group(2)
            return match.group(0)

        return ENV_VAR_PATTERN.sub(replace_env_var, value)
    if isinstance(value, dict):
        return {k: expand_env_vars(v) for k, v in value.items()}
    if isinstance(value, list):
        return [expand_env_vars(item) for item in value]
    return value


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries, with override taking precedence."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def split_host_port(address: str) -> tuple[str, int]:
    """Split ``host:port`` (or ``[v6]:port``) into its parts.

    Raises:
        ValueError: If the address has no valid port
    """
    host, sep, port = address.rpartition(":")
    if not sep or not port.isdigit():
        raise ValueError(f"Invalid listen address '{address}' (expected host:port)")
    number = int(port)
    if not 0 < number < 65536:
        raise ValueError(f"Port out of range in '{address}'")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    return host or "127.0.0.1", number


# Pydantic Configuration Models


class ServerConfig(BaseModel):
    """HTTP server configuration."""

    model_config = ConfigDict(extra="forbid")

    listen: str = "127.0.0.1:8888"
    public: bool = False
    static_dir: str | None = "web/static"

    @field_validator("listen")
    @classmethod
    def validate_listen(cls, v: str) -> str:
        """Validate the listen address parses as host:port."""
        split_host_port(v)
        return v

    @property
    def host(self) -> str:
        """Bind host; all addresses when ``public`` is set."""
        return "0.0.0.0" if self.public else split_host_port(self.listen)[0]

    @property
    def port(self) -> int:
        return split_host_port(self.listen)[1]


class StoreConfig(BaseModel):
    """In-memory store configuration."""

    model_config = ConfigDict(extra="forbid")

    history_size: int = Field(default=8, ge=1, le=100_000)
    queue_size: int = Field(default=64, ge=1, le=100_000)


class CollectorConfig(BaseModel):
    """Link collector configuration."""

    model_config = ConfigDict(extra="forbid")

    binary: str = "iw"
    timeout: float = Field(default=2.0, gt=0, le=60)
    stale_threshold_multiplier: float = Field(default=6.0, ge=1)


class LoggingConfig(BaseModel):
    """Logging configuration."""

    model_config = ConfigDict(extra="forbid")

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    file: str | None = None
    access_log: bool = False

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v


class SentryConfig(BaseModel):
    """Error tracking configuration."""

    model_config = ConfigDict(extra="forbid")

    dsn: str | None = None
    environment: str = "production"
    traces_sample_rate: float = Field(default=0.0, ge=0.0, le=1.0)

    @property
    def enabled(self) -> bool:
        return bool(self.dsn)


class Config(BaseModel):
    """Main configuration model for wifi-radar.

    Loaded from YAML files and overridden by CLI flags.
    """

    model_config = ConfigDict(extra="forbid")

    interfaces: list[str] = Field(default_factory=list)
    interval: float = Field(default=0.5, gt=0, le=3600)

    server: ServerConfig = Field(default_factory=ServerConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    collector: CollectorConfig = Field(default_factory=CollectorConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    sentry: SentryConfig = Field(default_factory=SentryConfig)

    @field_validator("interval", mode="before")
    @classmethod
    def validate_interval(cls, v: Any) -> Any:
        """Accept durations like "500ms" as well as plain seconds."""
        if isinstance(v, str):
            return parse_duration(v)
        return v

    @field_validator("interfaces")
    @classmethod
    def validate_interfaces(cls, v: list[str]) -> list[str]:
        """Reject empty names and drop duplicates, keeping first-seen order."""
        result: list[str] = []
        for name in v:
            name = name.strip()
            if not name:
                raise ValueError("interface name cannot be empty")
            if name not in result:
                result.append(name)
        return result


def get_config_path(custom_path: str | None = None) -> Path | None:
    """Determine the configuration file path.

    Checks locations in this order:
    1. Custom path (if provided via --config flag)
    2. WIFIRADAR_CONFIG_PATH environment variable
    3. ~/.config/wifi-radar/config.yaml (XDG standard)

    Args:
        custom_path: Optional custom config path from CLI

    Returns:
        Path to config file if found, None otherwise

    Raises:
        FileNotFoundError: If custom_path is given but does not exist
    """
    if custom_path:
        path = Path(custom_path).expanduser()
        if path.exists():
            return path
        raise FileNotFoundError(f"Config file not found: {custom_path}")

    env_path = os.environ.get("WIFIRADAR_CONFIG_PATH")
    if env_path:
        path = Path(env_path).expanduser()
        if path.exists():
            return path
        return None

    xdg_path = Path.home() / ".config" / "wifi-radar" / "config.yaml"
    if xdg_path.exists():
        return xdg_path

    return None


def load_config(
    config_path: str | None = None,
    cli_overrides: dict[str, Any] | None = None,
) -> Config:
    """Load and validate configuration.

    Configuration is merged in this order (later overrides earlier):
    1. Default configuration
    2. Config file (if found)
    3. CLI overrides (if provided)

    Environment variables in config values are expanded using ${VAR} syntax.

    Args:
        config_path: Optional custom config file path
        cli_overrides: Optional dict of CLI argument overrides

    Returns:
        Validated Config object

    Raises:
        FileNotFoundError: If custom config path doesn't exist
        ConfigSyntaxError: If config file has invalid YAML syntax
        ConfigValidationError: If config values are invalid
    """
    config_data = DEFAULT_CONFIG.copy()
    resolved_path: Path | None = get_config_path(config_path)

    if resolved_path:
        file_content = resolved_path.read_text()
        try:
            file_config = yaml.safe_load(file_content) or {}
        except yaml.YAMLError as e:
            raise _format_yaml_error(e, str(resolved_path), file_content) from e
        if not isinstance(file_config, dict):
            raise ConfigValidationError(
                "Top level of the config file must be a mapping",
                file_path=str(resolved_path),
            )
        config_data = deep_merge(config_data, file_config)

    if cli_overrides:
        config_data = deep_merge(config_data, cli_overrides)

    config_data = expand_env_vars(config_data)

    try:
        return Config(**config_data)
    except ValidationError as e:
        raise _format_pydantic_error(
            e,
            config_data,
            str(resolved_path) if resolved_path else None,
        ) from e
