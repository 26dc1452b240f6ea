"""
Tests for the rpc-monitor CLI.
"""

import json
import os
import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest

from rpc_monitor.adapters.notifiers import AdapterLarkNotifier, AdapterStdoutNotifier
from rpc_monitor.health.config import load_settings
from rpc_monitor.interface import watch

REGISTRY_JSON = '{"eth": [{"name": "public", "target": "https://x"}]}'


class TestWatchCli:
    """Tests for main and build_monitor."""

    @pytest.fixture
    def temp_dir(self):
        """Create temporary directory for tests."""
        with tempfile.TemporaryDirectory() as tmpdir:
            yield Path(tmpdir)

    @pytest.fixture
    def environ(self, temp_dir):
        env = {
            "RPC_LIST_JSON": REGISTRY_JSON,
            "DATA_FILE": str(temp_dir / "rpc_status.json"),
            "PROBE_DELAY": "0",
        }
        with patch.dict(os.environ, env, clear=True):
            yield env

    @patch("rpc_monitor.interface.watch.AdapterJsonRpcProber.probe")
    def test_check_healthy(self, mock_probe, environ, temp_dir):
        """Test a healthy sweep exits 0 and writes the snapshot."""
        mock_probe.return_value = 100

        assert watch.main(["check"]) == watch.EXIT_OK

        with open(temp_dir / "rpc_status.json", "r", encoding="utf-8") as f:
            data = json.load(f)
        assert data["eth"]["public"][0]["status"] == 100

    @patch("rpc_monitor.interface.watch.AdapterJsonRpcProber.probe")
    def test_check_failure_dry_run(self, mock_probe, environ, temp_dir):
        """Test a failing endpoint exits 2 and dry-run saves nothing."""
        mock_probe.return_value = "timeout"

        assert watch.main(["check", "--dry-run"]) == watch.EXIT_WARN
        assert not (temp_dir / "rpc_status.json").exists()

    def test_check_without_registry(self, temp_dir):
        """Test a missing registry exits 3."""
        with patch.dict(os.environ, {"DATA_FILE": str(temp_dir / "x.json")}, clear=True):
            assert watch.main(["check"]) == watch.EXIT_FAIL

    def test_invalid_settings(self):
        """Test malformed settings exit 3."""
        with patch.dict(os.environ, {"MAX_ENTRIES": "lots"}, clear=True):
            assert watch.main(["check"]) == watch.EXIT_FAIL

    @patch("rpc_monitor.interface.watch.AdapterJsonRpcProber.probe")
    def test_check_with_config_file(self, mock_probe, temp_dir):
        """Test --config loads the registry from a file."""
        mock_probe.return_value = 1
        path = temp_dir / "rpc_list.json"
        path.write_text(
            json.dumps({"base": [{"name": "official", "target": "https://z"}]}),
            encoding="utf-8",
        )
        env = {"DATA_FILE": str(temp_dir / "rpc_status.json"), "PROBE_DELAY": "0"}

        with patch.dict(os.environ, env, clear=True):
            assert watch.main(["check", "--config", str(path)]) == watch.EXIT_OK

        mock_probe.assert_called_once()

    @patch("rpc_monitor.interface.watch.AdapterJsonRpcProber.probe")
    def test_settings_from_env_file(self, mock_probe, temp_dir):
        """Test settings in a dotenv file are picked up."""
        mock_probe.return_value = 5
        env_file = temp_dir / "monitor.env"
        env_file.write_text(
            f"RPC_LIST_JSON='{REGISTRY_JSON}'\n"
            f"DATA_FILE={temp_dir / 'from_env_file.json'}\n"
            "PROBE_DELAY=0\n",
            encoding="utf-8",
        )

        with patch.dict(os.environ, {}, clear=True):
            code = watch.main(["check", "--env-file", str(env_file)])

        assert code == watch.EXIT_OK
        data = json.loads((temp_dir / "from_env_file.json").read_text(encoding="utf-8"))
        assert data["eth"]["public"][0]["status"] == 5

    def test_environment_wins_over_env_file(self, temp_dir):
        """Test variables already set are not overridden by the dotenv file."""
        env_file = temp_dir / "monitor.env"
        env_file.write_text("MAX_ENTRIES=lots\n", encoding="utf-8")

        with patch.dict(os.environ, {"MAX_ENTRIES": "5"}, clear=True):
            watch.main(["check", "--env-file", str(env_file)])
            assert os.environ["MAX_ENTRIES"] == "5"

    def test_build_monitor_loads_previous_history(self, environ, temp_dir):
        """Test the store starts from the persisted snapshot."""
        snapshot = {"eth": {"public": [{"ts": 1, "status": 7}]}}
        (temp_dir / "rpc_status.json").write_text(json.dumps(snapshot), encoding="utf-8")

        monitor = watch.build_monitor(load_settings())
        try:
            assert monitor.store.to_dict() == snapshot
            assert isinstance(monitor.notifier, AdapterStdoutNotifier)
        finally:
            monitor.prober.close()

    def test_build_monitor_uses_lark_when_configured(self, environ):
        """Test the Lark notifier is used when a webhook is set."""
        with patch.dict(os.environ, {"LARK_WEBHOOK_URL": "https://hook"}):
            monitor = watch.build_monitor(load_settings())
        try:
            assert isinstance(monitor.notifier, AdapterLarkNotifier)
        finally:
            monitor.prober.close()

    @patch("rpc_monitor.interface.watch.uvicorn.run")
    @patch("rpc_monitor.interface.watch.SweepScheduler")
    def test_serve_starts_and_stops_scheduler(self, mock_scheduler, mock_run, environ):
        """Test serve wires the scheduler around the HTTP server."""
        assert watch.main(["serve"]) == watch.EXIT_OK

        mock_scheduler.return_value.start.assert_called_once()
        mock_scheduler.return_value.stop.assert_called_once()
        mock_run.assert_called_once()
        assert mock_run.call_args.kwargs["port"] == 3000
