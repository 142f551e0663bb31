"""Tests for wifi-radar configuration system."""

import os
from pathlib import Path
from unittest.mock import patch

from pydantic import ValidationError
import pytest
import yaml

from wifiradar.config import (
    DEFAULT_CONFIG,
    CollectorConfig,
    Config,
    ConfigSyntaxError,
    ConfigValidationError,
    LoggingConfig,
    ServerConfig,
    StoreConfig,
    get_config_path,
    load_config,
    parse_duration,
    split_host_port,
)
from wifiradar.config.loader import deep_merge, expand_env_vars


class TestExpandEnvVars:
    """Tests for environment variable expansion."""

    def test_expand_simple_var(self) -> None:
        """Test expanding a simple environment variable."""
        with patch.dict(os.environ, {"RADAR_IF": "wlan0"}):
            assert expand_env_vars("${RADAR_IF}") == "wlan0"

    def test_expand_with_default(self) -> None:
        """Test ${VAR:-default} syntax."""
        env = os.environ.copy()
        env.pop("UNSET_VAR", None)
        with patch.dict(os.environ, env, clear=True):
            assert expand_env_vars("${UNSET_VAR:-127.0.0.1:8888}") == "127.0.0.1:8888"

    def test_expand_unset_var_no_default(self) -> None:
        """Test unset variable without default is kept as-is."""
        env = os.environ.copy()
        env.pop("REALLY_UNSET", None)
        with patch.dict(os.environ, env, clear=True):
            assert expand_env_vars("${REALLY_UNSET}") == "${REALLY_UNSET}"

    def test_expand_nested(self) -> None:
        """Test expanding env vars in nested structures."""
        with patch.dict(os.environ, {"HOST": "0.0.0.0", "IFACE": "wlan1"}):
            result = expand_env_vars(
                {"server": {"listen": "${HOST}:8888"}, "interfaces": ["wlan0", "${IFACE}"]}
            )
        assert result == {"server": {"listen": "0.0.0.0:8888"}, "interfaces": ["wlan0", "wlan1"]}

    def test_expand_non_string(self) -> None:
        """Test that non-string values are returned unchanged."""
        assert expand_env_vars(42) == 42
        assert expand_env_vars(True) is True
        assert expand_env_vars(None) is None


class TestDeepMerge:
    """Tests for deep_merge function."""

    def test_nested_merge(self) -> None:
        """Test nested dict merge."""
        base = {"server": {"listen": "a", "public": False}, "interval": 0.5}
        override = {"server": {"public": True}}

        assert deep_merge(base, override) == {
            "server": {"listen": "a", "public": True},
            "interval": 0.5,
        }

    def test_base_unchanged(self) -> None:
        """Test that base dict is not modified."""
        base = {"server": {"public": False}}
        deep_merge(base, {"server": {"public": True}})

        assert base == {"server": {"public": False}}


class TestParseDuration:
    """Tests for duration parsing."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("500ms", 0.5),
            ("250ms", 0.25),
            ("1s", 1.0),
            ("1.5s", 1.5),
            ("2m", 120.0),
            ("1h", 3600.0),
            ("0.75", 0.75),
            (" 3s ", 3.0),
            (2, 2.0),
            (0.5, 0.5),
        ],
    )
    def test_valid(self, value: str | float, expected: float) -> None:
        """Test accepted duration forms."""
        assert parse_duration(value) == pytest.approx(expected)

    @pytest.mark.parametrize("value", ["", "fast", "5 parsecs", "-1s", "1d"])
    def test_invalid(self, value: str) -> None:
        """Test rejected duration strings."""
        with pytest.raises(ValueError, match="Invalid duration"):
            parse_duration(value)

    def test_bool_rejected(self) -> None:
        """Test that booleans are not durations."""
        with pytest.raises(ValueError):
            parse_duration(True)


class TestServerConfig:
    """Tests for ServerConfig."""

    def test_defaults(self) -> None:
        """Test loopback default on port 8888."""
        server = ServerConfig()

        assert server.listen == "127.0.0.1:8888"
        assert server.host == "127.0.0.1"
        assert server.port == 8888

    def test_public_keeps_port(self) -> None:
        """Test that public binds all addresses on the configured port."""
        server = ServerConfig(listen="127.0.0.1:9000", public=True)

        assert server.host == "0.0.0.0"
        assert server.port == 9000

    def test_ipv6_listen(self) -> None:
        """Test bracketed IPv6 addresses."""
        assert split_host_port("[::1]:8888") == ("::1", 8888)

    def test_missing_host_defaults_to_loopback(self) -> None:
        """Test ':port' shorthand."""
        assert split_host_port(":8080") == ("127.0.0.1", 8080)

    @pytest.mark.parametrize("listen", ["localhost", "host:abc", "host:0", "host:70000"])
    def test_invalid_listen(self, listen: str) -> None:
        """Test listen addresses without a valid port."""
        with pytest.raises(ValidationError):
            ServerConfig(listen=listen)


class TestSectionConfigs:
    """Tests for the smaller config sections."""

    def test_store_defaults(self) -> None:
        """Test store defaults."""
        store = StoreConfig()

        assert store.history_size == 8
        assert store.queue_size == 64

    def test_store_sizes_positive(self) -> None:
        """Test that store sizes must be positive."""
        with pytest.raises(ValidationError):
            StoreConfig(history_size=0)

    def test_collector_timeout_positive(self) -> None:
        """Test collector timeout bounds."""
        assert CollectorConfig().timeout == 2.0
        with pytest.raises(ValidationError):
            CollectorConfig(timeout=0)

    def test_logging_level_normalized(self) -> None:
        """Test that log levels are case-insensitive."""
        assert LoggingConfig(level="debug").level == "DEBUG"
        with pytest.raises(ValidationError):
            LoggingConfig(level="TRACE")


class TestConfig:
    """Tests for the main Config model."""

    def test_defaults(self) -> None:
        """Test default values."""
        config = Config()

        assert config.interfaces == []
        assert config.interval == 0.5
        assert config.sentry.enabled is False

    def test_interval_duration_string(self) -> None:
        """Test that interval accepts duration strings."""
        assert Config(interval="250ms").interval == 0.25
        assert Config(interval="2s").interval == 2.0

    def test_interval_must_be_positive(self) -> None:
        """Test interval bounds."""
        with pytest.raises(ValidationError):
            Config(interval=0)
        with pytest.raises(ValidationError):
            Config(interval="soon")

    def test_interfaces_deduplicated(self) -> None:
        """Test that repeated interfaces collapse, keeping order."""
        config = Config(interfaces=["wlan1", "wlan0", "wlan1"])

        assert config.interfaces == ["wlan1", "wlan0"]

    def test_empty_interface_rejected(self) -> None:
        """Test that blank interface names are refused."""
        with pytest.raises(ValidationError, match="cannot be empty"):
            Config(interfaces=["wlan0", " "])

    def test_unknown_key_rejected(self) -> None:
        """Test that typos are not silently ignored."""
        with pytest.raises(ValidationError):
            Config(intervall=1)


class TestGetConfigPath:
    """Tests for config file discovery."""

    def test_custom_path_exists(self, tmp_path: Path) -> None:
        """Test that an explicit path wins."""
        path = tmp_path / "radar.yaml"
        path.write_text("interfaces: [wlan0]\n")

        assert get_config_path(str(path)) == path

    def test_custom_path_not_exists(self, tmp_path: Path) -> None:
        """Test that a missing explicit path is an error."""
        with pytest.raises(FileNotFoundError):
            get_config_path(str(tmp_path / "missing.yaml"))

    def test_env_var_path(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test WIFIRADAR_CONFIG_PATH."""
        path = tmp_path / "env.yaml"
        path.write_text("{}\n")
        monkeypatch.setenv("WIFIRADAR_CONFIG_PATH", str(path))

        assert get_config_path() == path

    def test_env_var_path_not_exists(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that a missing env path falls back to defaults."""
        monkeypatch.setenv("WIFIRADAR_CONFIG_PATH", str(tmp_path / "nope.yaml"))

        assert get_config_path() is None

    def test_xdg_path(self, tmp_path: Path) -> None:
        """Test the ~/.config/wifi-radar/config.yaml fallback."""
        path = Path.home() / ".config" / "wifi-radar" / "config.yaml"
        path.parent.mkdir(parents=True)
        path.write_text("{}\n")

        assert get_config_path() == path

    def test_no_config_found(self) -> None:
        """Test that no file means None."""
        assert get_config_path() is None


class TestLoadConfig:
    """Tests for load_config."""

    def test_load_defaults(self) -> None:
        """Test loading with no file and no overrides."""
        config = load_config()

        assert config.server.listen == DEFAULT_CONFIG["server"]["listen"]
        assert config.store.history_size == 8

    def test_load_from_file(self, tmp_path: Path) -> None:
        """Test values from a YAML file."""
        path = tmp_path / "radar.yaml"
        path.write_text(
            yaml.safe_dump(
                {
                    "interfaces": ["wlan0", "wlan1"],
                    "interval": "1s",
                    "store": {"history_size": 32},
                }
            )
        )

        config = load_config(str(path))

        assert config.interfaces == ["wlan0", "wlan1"]
        assert config.interval == 1.0
        assert config.store.history_size == 32
        assert config.store.queue_size == 64

    def test_cli_overrides_trump_file(self, tmp_path: Path) -> None:
        """Test precedence of CLI overrides."""
        path = tmp_path / "radar.yaml"
        path.write_text("interfaces: [wlan0]\nserver:\n  listen: 127.0.0.1:9000\n")

        config = load_config(
            str(path),
            cli_overrides={"interfaces": ["wlan2"], "server": {"public": True}},
        )

        assert config.interfaces == ["wlan2"]
        assert config.server.listen == "127.0.0.1:9000"
        assert config.server.host == "0.0.0.0"

    def test_env_var_expansion(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test ${VAR} expansion in file values."""
        monkeypatch.setenv("RADAR_DSN", "https://key@example.invalid/1")
        path = tmp_path / "radar.yaml"
        path.write_text("sentry:\n  dsn: ${RADAR_DSN}\n")

        config = load_config(str(path))

        assert config.sentry.dsn == "https://key@example.invalid/1"
        assert config.sentry.enabled is True

    def test_empty_file(self, tmp_path: Path) -> None:
        """Test that an empty file means defaults."""
        path = tmp_path / "radar.yaml"
        path.write_text("")

        assert load_config(str(path)).interval == 0.5

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        """Test YAML syntax errors carry file and line."""
        path = tmp_path / "radar.yaml"
        path.write_text("interfaces: [wlan0\nserver:\n  listen: x\n")

        with pytest.raises(ConfigSyntaxError) as exc_info:
            load_config(str(path))

        assert str(path) in str(exc_info.value)
        assert exc_info.value.line_number is not None

    def test_non_mapping_file(self, tmp_path: Path) -> None:
        """Test a file whose top level is a list."""
        path = tmp_path / "radar.yaml"
        path.write_text("- wlan0\n")

        with pytest.raises(ConfigValidationError, match="mapping"):
            load_config(str(path))

    def test_unknown_key_suggestion(self, tmp_path: Path) -> None:
        """Test that a misspelt key gets a suggestion."""
        path = tmp_path / "radar.yaml"
        path.write_text("store:\n  history_sise: 4\n")

        with pytest.raises(ConfigValidationError) as exc_info:
            load_config(str(path))

        assert "store.history_sise" in exc_info.value.message
        assert exc_info.value.suggestion == "Did you mean 'history_size'?"

    def test_out_of_range_value(self) -> None:
        """Test range errors are explained."""
        with pytest.raises(ConfigValidationError) as exc_info:
            load_config(cli_overrides={"store": {"queue_size": 0}})

        assert "store.queue_size" in exc_info.value.message
        assert exc_info.value.suggestion == "Value must be at least 1"

    def test_bad_interval_string(self) -> None:
        """Test an unparseable interval."""
        with pytest.raises(ConfigValidationError, match="interval"):
            load_config(cli_overrides={"interval": "quickly"})

    def test_tab_indentation_hint(self, tmp_path: Path) -> None:
        """Test a tab-indented file points at the tab and suggests spaces."""
        path = tmp_path / "radar.yaml"
        path.write_text("server:\n\tlisten: 127.0.0.1:9000\n")

        with pytest.raises(ConfigSyntaxError) as exc_info:
            load_config(str(path))

        assert exc_info.value.line_number == 2
        assert exc_info.value.context_lines == ["\tlisten: 127.0.0.1:9000"]
        assert exc_info.value.suggestion == "Use spaces instead of tabs for indentation"

    def test_interfaces_not_a_list(self, tmp_path: Path) -> None:
        """Test a single interface name given where a list is expected."""
        path = tmp_path / "radar.yaml"
        path.write_text("interfaces: wlan0\n")

        with pytest.raises(ConfigValidationError) as exc_info:
            load_config(str(path))

        assert exc_info.value.message == "Expected list for 'interfaces': got string \"wlan0\""
        assert exc_info.value.suggestion == "List interface names, e.g. [wlan0, wlan1]"

    def test_interface_name_not_a_string(self, tmp_path: Path) -> None:
        """Test errors inside a list name the offending item."""
        path = tmp_path / "radar.yaml"
        path.write_text("interfaces: [wlan0, 7]\n")

        with pytest.raises(ConfigValidationError) as exc_info:
            load_config(str(path))

        assert exc_info.value.message == "Expected string for 'interfaces.1': got integer"

    def test_bad_boolean(self, tmp_path: Path) -> None:
        """Test a boolean option given a word YAML does not treat as boolean."""
        path = tmp_path / "radar.yaml"
        path.write_text("server:\n  public: maybe\n")

        with pytest.raises(ConfigValidationError) as exc_info:
            load_config(str(path))

        assert exc_info.value.message == "Expected boolean for 'server.public': got string \"maybe\""
        assert exc_info.value.suggestion == "Use 'true' or 'false'"

    def test_bad_log_level(self) -> None:
        """Test an unknown log level lists the accepted ones."""
        with pytest.raises(ConfigValidationError) as exc_info:
            load_config(cli_overrides={"logging": {"level": "loud"}})

        assert exc_info.value.message == "Invalid value for 'logging.level': got string \"loud\""
        assert "'DEBUG'" in exc_info.value.suggestion

    def test_zero_interval(self) -> None:
        """Test an exclusive lower bound is described as such."""
        with pytest.raises(ConfigValidationError) as exc_info:
            load_config(cli_overrides={"interval": 0})

        assert exc_info.value.message == "Value for 'interval' is out of range: 0"
        assert exc_info.value.suggestion == "Value must be greater than 0"

    def test_queue_size_upper_bound(self) -> None:
        """Test an upper bound is reported."""
        with pytest.raises(ConfigValidationError) as exc_info:
            load_config(cli_overrides={"store": {"queue_size": 1_000_000}})

        assert exc_info.value.suggestion == "Value must be at most 100000"

    def test_default_config_is_valid(self) -> None:
        """Test that DEFAULT_CONFIG validates as-is."""
        config = Config(**DEFAULT_CONFIG)

        assert config.server.static_dir == "web/static"
