#!/usr/bin/env python3
"""
RPC Watch CLI - Command-line interface for the RPC monitor.

Usage:
    rpc-monitor serve [--config configs/rpc_list.json] [-v]
    rpc-monitor check [--config configs/rpc_list.json] [--dry-run] [-v]
    rpc-monitor serve --env-file /etc/rpc-monitor.env

Exit codes:
    0: All endpoints healthy (check) / clean shutdown (serve)
    2: At least one endpoint failed (check)
    3: Configuration or unexpected error
"""

import argparse
import logging
import sys
from dataclasses import dataclass
from typing import List, Optional

import uvicorn
from dotenv import load_dotenv

from rpc_monitor.adapters.notifiers import AdapterLarkNotifier, AdapterStdoutNotifier
from rpc_monitor.adapters.probers import AdapterJsonRpcProber
from rpc_monitor.application.sweep_use_case import SweepUseCase
from rpc_monitor.core.entities import Registry
from rpc_monitor.core.errors import ConfigError
from rpc_monitor.core.ports import AlertNotifier
from rpc_monitor.health.config import (
    Settings,
    load_registry,
    load_settings,
    settings_summary,
)
from rpc_monitor.health.runner import SweepScheduler
from rpc_monitor.health.store import HistoryStore
from rpc_monitor.interface.api import create_app

EXIT_OK = 0
EXIT_WARN = 2
EXIT_FAIL = 3

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False, level_name: str = "INFO") -> None:
    """
    Setup logging configuration.

    Args:
        verbose: If True, enable DEBUG level logging
        level_name: Level used when not verbose
    """
    if verbose:
        level = logging.DEBUG
    else:
        level = getattr(logging, level_name.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


@dataclass
class Monitor:
    """Process composition: every long-lived object, created once."""

    settings: Settings
    registry: Registry
    store: HistoryStore
    prober: AdapterJsonRpcProber
    notifier: AlertNotifier
    sweep: SweepUseCase


def build_monitor(
    settings: Settings, config_path: Optional[str] = None, dry_run: bool = False
) -> Monitor:
    """
    Wire the monitor components together.

    Args:
        settings: Process settings
        config_path: Registry file, overriding RPC_LIST_FILE
        dry_run: Print alerts instead of sending them, never write the snapshot

    Returns:
        Monitor with the store already loaded from disk

    Raises:
        ConfigError: If the registry cannot be loaded
    """
    registry = load_registry(
        raw_json=settings.rpc_list_json,
        config_path=config_path or settings.rpc_list_file,
    )

    store = HistoryStore(max_entries=settings.max_entries, data_file=settings.data_file)
    store.load_from_disk()

    notifier: AlertNotifier
    if settings.lark_webhook_url and not dry_run:
        notifier = AdapterLarkNotifier(settings.lark_webhook_url)
    else:
        if not dry_run:
            logger.warning("LARK_WEBHOOK_URL not set, alerts will be printed to stdout")
        notifier = AdapterStdoutNotifier()

    prober = AdapterJsonRpcProber(timeout=settings.request_timeout)
    sweep = SweepUseCase(
        registry=registry,
        prober=prober,
        store=store,
        notifier=notifier,
        probe_delay=settings.probe_delay,
        persist=not dry_run,
    )
    return Monitor(
        settings=settings,
        registry=registry,
        store=store,
        prober=prober,
        notifier=notifier,
        sweep=sweep,
    )


def serve(monitor: Monitor) -> int:
    """Run the scheduler and the HTTP API until interrupted."""
    settings = monitor.settings
    scheduler = SweepScheduler(monitor.sweep, settings.cron_expression)
    app = create_app(monitor.store, monitor.registry, settings)

    logger.info("RPC monitor listening on %s:%d", settings.host, settings.port)
    scheduler.start()
    try:
        uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)
    finally:
        scheduler.stop()
        monitor.prober.close()
    return EXIT_OK


def check(monitor: Monitor) -> int:
    """Run a single sweep and map its outcome to an exit code."""
    try:
        report = monitor.sweep.execute()
    finally:
        monitor.prober.close()
    return EXIT_OK if report.healthy else EXIT_WARN


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rpc-monitor",
        description="Health monitor for blockchain RPC endpoints",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Exit codes:
  0  - All endpoints healthy / clean shutdown
  2  - At least one endpoint failed (check)
  3  - Configuration or unexpected error

Examples:
  RPC_LIST_JSON='{"eth":[{"name":"public","target":"https://x"}]}' rpc-monitor serve
  rpc-monitor serve --config configs/rpc_list.json
  rpc-monitor check --config configs/rpc_list.json --dry-run
        """,
    )

    parser.add_argument(
        "command",
        choices=("serve", "check"),
        help="'serve' runs the scheduler and HTTP API, 'check' runs one sweep",
    )

    parser.add_argument(
        "--config",
        default=None,
        help="Path to registry JSON file (default: RPC_LIST_JSON or RPC_LIST_FILE)",
    )

    parser.add_argument(
        "--env-file",
        default=".env",
        help="dotenv file with settings, env vars win (default: .env)",
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print alerts instead of sending them and don't save history",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging (DEBUG level)",
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Returns:
        Exit code: 0 (OK), 2 (WARN), 3 (FAIL)
    """
    args = build_parser().parse_args(argv)
    # Variables already in the environment win over the file
    load_dotenv(args.env_file)

    try:
        settings = load_settings()
    except ConfigError as e:
        setup_logging(verbose=args.verbose)
        logger.error("Invalid configuration: %s", e)
        return EXIT_FAIL

    setup_logging(verbose=args.verbose, level_name=settings.log_level)
    logger.info("Starting rpc-monitor %s: %s", args.command, settings_summary(settings))

    if args.dry_run:
        logger.info("Dry-run mode: No notifications will be sent")

    try:
        monitor = build_monitor(settings, config_path=args.config, dry_run=args.dry_run)
        if args.command == "serve":
            return serve(monitor)
        exit_code = check(monitor)
        logger.info("RPC check completed with exit code: %d", exit_code)
        return exit_code
    except ConfigError as e:
        logger.error("Invalid configuration: %s", e)
        return EXIT_FAIL
    except KeyboardInterrupt:
        logger.error("Interrupted by user")
        return 130
    except Exception as e:  # pylint: disable=broad-except
        logger.error("RPC monitor failed: %s", e, exc_info=True)
        return EXIT_FAIL


if __name__ == "__main__":
    sys.exit(main())
