"""
Health configuration - Loads and validates the endpoint registry and settings.

The registry comes from the RPC_LIST_JSON environment variable or from a
JSON file. Process settings are read from environment variables once at
startup and are static for the process lifetime.
"""

import json
import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from apscheduler.triggers.cron import CronTrigger  # type: ignore

from rpc_monitor.core.entities import Endpoint, Registry
from rpc_monitor.core.errors import ConfigError

logger = logging.getLogger(__name__)


# Registry schema structure
# {
#   "chain": [
#     {"name": str, "target": str},  # "rpc" is accepted for "target"
#     ...
#   ]
# }

DEFAULT_CRON_EXPRESSION = "*/10 * * * *"
DEFAULT_MAX_ENTRIES = 1008
DEFAULT_REQUEST_TIMEOUT = 10.0
DEFAULT_PROBE_DELAY = 1.0
PROJECT_ROOT = Path(__file__).parent.parent.parent
DEFAULT_DATA_FILE = str(PROJECT_ROOT / "rpc_status.json")

_INTERVAL_PATTERN = re.compile(r"^\s*\*/(\d+)\s+\*\s+\*\s+\*\s+\*\s*$")


@dataclass(frozen=True)
class Settings:
    """Process settings, loaded once by load_settings()."""

    cron_expression: str = DEFAULT_CRON_EXPRESSION
    max_entries: int = DEFAULT_MAX_ENTRIES
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    probe_delay: float = DEFAULT_PROBE_DELAY
    rpc_list_json: Optional[str] = None
    rpc_list_file: Optional[str] = None
    lark_webhook_url: str = ""
    data_file: str = DEFAULT_DATA_FILE
    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"

    @property
    def interval_minutes(self) -> Optional[int]:
        return parse_interval_minutes(self.cron_expression)


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Load settings from environment variables.

    Args:
        environ: Mapping to read from. If None, uses os.environ

    Returns:
        Settings instance

    Raises:
        ConfigError: If a value is malformed
    """
    if environ is None:
        environ = os.environ

    cron_expression = environ.get("CRON_EXPRESSION", DEFAULT_CRON_EXPRESSION)
    try:
        CronTrigger.from_crontab(cron_expression)
    except ValueError as e:
        raise ConfigError(f"Invalid CRON_EXPRESSION {cron_expression!r}: {e}")

    max_entries = _env_int(environ, "MAX_ENTRIES", DEFAULT_MAX_ENTRIES)
    if max_entries < 0:
        raise ConfigError("MAX_ENTRIES must be >= 0")

    request_timeout = _env_float(environ, "REQUEST_TIMEOUT", DEFAULT_REQUEST_TIMEOUT)
    if request_timeout <= 0:
        raise ConfigError("REQUEST_TIMEOUT must be > 0")

    probe_delay = _env_float(environ, "PROBE_DELAY", DEFAULT_PROBE_DELAY)
    if probe_delay < 0:
        raise ConfigError("PROBE_DELAY must be >= 0")

    return Settings(
        cron_expression=cron_expression,
        max_entries=max_entries,
        request_timeout=request_timeout,
        probe_delay=probe_delay,
        rpc_list_json=environ.get("RPC_LIST_JSON") or None,
        rpc_list_file=environ.get("RPC_LIST_FILE") or None,
        lark_webhook_url=environ.get("LARK_WEBHOOK_URL", ""),
        data_file=_data_file(environ.get("DATA_FILE")),
        host=environ.get("HOST", "0.0.0.0"),
        port=_env_int(environ, "PORT", 3000),
        log_level=environ.get("LOG_LEVEL", "INFO"),
    )


def load_registry(
    raw_json: Optional[str] = None, config_path: Optional[str] = None
) -> Registry:
    """
    Load the endpoint registry from a JSON string or a JSON file.

    The inline JSON takes precedence over the file.

    Args:
        raw_json: Registry as a JSON string (RPC_LIST_JSON)
        config_path: Path to a JSON file with the same structure

    Returns:
        Validated registry

    Raises:
        ConfigError: If no source is given, or it is unreadable or invalid
    """
    if raw_json:
        source = "RPC_LIST_JSON"
        text = raw_json
    elif config_path:
        source = config_path
        config_file = Path(config_path)
        if not config_file.exists():
            raise ConfigError(f"Config file not found: {config_path}")
        try:
            text = config_file.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"Cannot read config file {config_path}: {e}")
    else:
        raise ConfigError("RPC_LIST_JSON or a registry config file is required")

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in {source}: {e}")

    registry = parse_registry(data)

    logger.info(
        "Loaded registry: %d chains, %d endpoints from %s",
        len(registry),
        sum(len(nodes) for nodes in registry.values()),
        source,
    )
    return registry


def parse_registry(data: Any) -> Registry:
    """
    Validate a raw registry object.

    Chains whose value is not a list are dropped, node entries without a
    string name and target are dropped, and chains left without nodes are
    dropped.

    Args:
        data: Decoded JSON object, chain -> list of node descriptors

    Returns:
        Registry preserving chain and node order

    Raises:
        ConfigError: If data is not an object or no valid node remains
    """
    if not isinstance(data, dict):
        raise ConfigError("Registry must be a JSON object keyed by chain")

    registry: Registry = {}
    for chain, nodes in data.items():
        if not isinstance(nodes, list):
            logger.warning("Skipping chain %s: nodes must be a list", chain)
            continue

        endpoints = []
        for node in nodes:
            endpoint = _parse_node(chain, node)
            if endpoint is None:
                logger.warning("Skipping invalid node in chain %s: %r", chain, node)
                continue
            endpoints.append(endpoint)

        if endpoints:
            registry[chain] = endpoints
        else:
            logger.warning("Skipping chain %s: no valid nodes", chain)

    if not registry:
        raise ConfigError("Registry does not include any valid nodes")

    return registry


def parse_interval_minutes(expression: str) -> Optional[int]:
    """
    Extract the sweep interval from a cron expression.

    Only the "*/k * * * *" form is expressible in minutes.

    Args:
        expression: 5-field cron expression

    Returns:
        k for "*/k * * * *", None for anything else
    """
    match = _INTERVAL_PATTERN.match(expression or "")
    if not match:
        return None
    return int(match.group(1))


def _parse_node(chain: str, node: Any) -> Optional[Endpoint]:
    if not isinstance(node, dict):
        return None
    name = node.get("name")
    target = node.get("target", node.get("rpc"))
    if not isinstance(name, str) or not isinstance(target, str):
        return None
    return Endpoint(chain=chain, name=name, target=target)


def _env_int(environ: Mapping[str, str], key: str, default: int) -> int:
    raw = environ.get(key)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{key} must be an integer, got {raw!r}")


def _env_float(environ: Mapping[str, str], key: str, default: float) -> float:
    raw = environ.get(key)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigError(f"{key} must be a number, got {raw!r}")


def _data_file(raw: Optional[str]) -> str:
    # Relative paths are anchored to the project root, not the working dir
    if not raw:
        return DEFAULT_DATA_FILE
    path = Path(raw)
    if not path.is_absolute():
        path = PROJECT_ROOT / path
    return str(path)


def settings_summary(settings: Settings) -> Dict[str, Any]:
    """Loggable view of the settings, without the webhook secret."""
    return {
        "cron_expression": settings.cron_expression,
        "max_entries": settings.max_entries,
        "request_timeout": settings.request_timeout,
        "probe_delay": settings.probe_delay,
        "alerts": "lark" if settings.lark_webhook_url else "stdout",
        "data_file": settings.data_file,
        "bind": f"{settings.host}:{settings.port}",
    }
