"""
Tests for health config module.
"""

import json
import tempfile
from pathlib import Path

import pytest

from rpc_monitor.core.entities import Endpoint
from rpc_monitor.core.errors import ConfigError
from rpc_monitor.health import config


class TestParseRegistry:
    """Tests for parse_registry function."""

    def test_valid_registry_keeps_order(self):
        """Test chains and nodes keep configuration order."""
        data = {
            "eth": [
                {"name": "public", "target": "https://x"},
                {"name": "backup", "target": "https://y"},
            ],
            "base": [{"name": "official", "target": "https://z"}],
        }

        registry = config.parse_registry(data)

        assert list(registry) == ["eth", "base"]
        assert registry["eth"] == [
            Endpoint("eth", "public", "https://x"),
            Endpoint("eth", "backup", "https://y"),
        ]

    def test_rpc_alias_for_target(self):
        """Test the legacy 'rpc' key is accepted."""
        registry = config.parse_registry({"eth": [{"name": "a", "rpc": "https://x"}]})
        assert registry["eth"][0].target == "https://x"

    def test_drops_non_list_chain(self):
        """Test chains whose value is not a list are dropped."""
        registry = config.parse_registry(
            {"bad": {"name": "a"}, "eth": [{"name": "a", "target": "https://x"}]}
        )
        assert list(registry) == ["eth"]

    def test_drops_invalid_nodes(self):
        """Test nodes without string name and target are dropped."""
        registry = config.parse_registry(
            {
                "eth": [
                    {"name": "ok", "target": "https://x"},
                    {"name": 1, "target": "https://x"},
                    {"name": "no-target"},
                    {"target": "https://x"},
                    "https://x",
                    None,
                ]
            }
        )
        assert [e.name for e in registry["eth"]] == ["ok"]

    def test_drops_empty_chain(self):
        """Test chains without valid nodes are dropped."""
        registry = config.parse_registry(
            {"empty": [], "bad": [{"name": 1}], "eth": [{"name": "a", "target": "t"}]}
        )
        assert list(registry) == ["eth"]

    @pytest.mark.parametrize("data", [{}, {"eth": []}, {"eth": "x"}, [], None, "x"])
    def test_empty_registry_raises(self, data):
        """Test an empty or malformed registry is fatal."""
        with pytest.raises(ConfigError):
            config.parse_registry(data)

    def test_is_deterministic(self):
        """Test parsing twice gives the same registry and leaves input intact."""
        data = {"eth": [{"name": "a", "target": "t"}, {"name": 2}]}
        snapshot = json.dumps(data)

        assert config.parse_registry(data) == config.parse_registry(data)
        assert json.dumps(data) == snapshot


class TestLoadRegistry:
    """Tests for load_registry function."""

    @pytest.fixture
    def temp_dir(self):
        """Create temporary directory for tests."""
        with tempfile.TemporaryDirectory() as tmpdir:
            yield Path(tmpdir)

    def test_from_json_string(self):
        """Test loading from RPC_LIST_JSON content."""
        registry = config.load_registry(
            raw_json='{"eth": [{"name": "public", "target": "https://x"}]}'
        )
        assert registry == {"eth": [Endpoint("eth", "public", "https://x")]}

    def test_from_file(self, temp_dir):
        """Test loading from a JSON file."""
        path = temp_dir / "rpc_list.json"
        path.write_text(
            json.dumps({"eth": [{"name": "public", "target": "https://x"}]}),
            encoding="utf-8",
        )
        registry = config.load_registry(config_path=str(path))
        assert registry["eth"][0].name == "public"

    def test_json_string_takes_precedence(self, temp_dir):
        """Test inline JSON wins over the file."""
        registry = config.load_registry(
            raw_json='{"eth": [{"name": "inline", "target": "t"}]}',
            config_path=str(temp_dir / "missing.json"),
        )
        assert registry["eth"][0].name == "inline"

    def test_missing_source(self):
        """Test no source is fatal."""
        with pytest.raises(ConfigError):
            config.load_registry()

    def test_missing_file(self, temp_dir):
        """Test a missing file is fatal."""
        with pytest.raises(ConfigError):
            config.load_registry(config_path=str(temp_dir / "missing.json"))

    def test_invalid_json(self):
        """Test unparseable JSON is fatal."""
        with pytest.raises(ConfigError):
            config.load_registry(raw_json="{not json")


class TestLoadSettings:
    """Tests for load_settings function."""

    def test_defaults(self):
        """Test defaults with an empty environment."""
        settings = config.load_settings({})

        assert settings.cron_expression == "*/10 * * * *"
        assert settings.max_entries == 1008
        assert settings.request_timeout == 10.0
        assert settings.probe_delay == 1.0
        assert settings.data_file == str(config.PROJECT_ROOT / "rpc_status.json")
        assert settings.port == 3000
        assert settings.lark_webhook_url == ""
        assert settings.interval_minutes == 10

    def test_overrides(self):
        """Test values read from the environment."""
        settings = config.load_settings(
            {
                "CRON_EXPRESSION": "*/5 * * * *",
                "MAX_ENTRIES": "12",
                "REQUEST_TIMEOUT": "2.5",
                "PROBE_DELAY": "0",
                "RPC_LIST_JSON": "{}",
                "LARK_WEBHOOK_URL": "https://hook",
                "PORT": "8080",
            }
        )

        assert settings.max_entries == 12
        assert settings.request_timeout == 2.5
        assert settings.probe_delay == 0.0
        assert settings.rpc_list_json == "{}"
        assert settings.lark_webhook_url == "https://hook"
        assert settings.port == 8080
        assert settings.interval_minutes == 5

    def test_data_file_anchored_to_project(self, tmp_path, monkeypatch):
        """Test a relative DATA_FILE does not depend on the working directory."""
        monkeypatch.chdir(tmp_path)

        relative = config.load_settings({"DATA_FILE": "data/history.json"})
        absolute = config.load_settings({"DATA_FILE": str(tmp_path / "h.json")})

        assert relative.data_file == str(config.PROJECT_ROOT / "data" / "history.json")
        assert absolute.data_file == str(tmp_path / "h.json")

    @pytest.mark.parametrize(
        "environ",
        [
            {"MAX_ENTRIES": "many"},
            {"MAX_ENTRIES": "-1"},
            {"REQUEST_TIMEOUT": "0"},
            {"PROBE_DELAY": "-2"},
            {"PORT": "http"},
            {"CRON_EXPRESSION": "every ten minutes"},
        ],
    )
    def test_invalid_values(self, environ):
        """Test malformed values raise ConfigError."""
        with pytest.raises(ConfigError):
            config.load_settings(environ)

    def test_summary_hides_webhook(self):
        """Test the loggable summary does not leak the webhook URL."""
        settings = config.load_settings({"LARK_WEBHOOK_URL": "https://secret"})
        summary = config.settings_summary(settings)
        assert "https://secret" not in str(summary)
        assert summary["alerts"] == "lark"


class TestParseIntervalMinutes:
    """Tests for parse_interval_minutes function."""

    @pytest.mark.parametrize(
        "expression,expected",
        [
            ("*/10 * * * *", 10),
            ("  */1 * * * *  ", 1),
            ("*/30 * * * *", 30),
            ("0 * * * *", None),
            ("*/10 */2 * * *", None),
            ("", None),
        ],
    )
    def test_parse(self, expression, expected):
        """Test only */k expressions map to minutes."""
        assert config.parse_interval_minutes(expression) == expected
