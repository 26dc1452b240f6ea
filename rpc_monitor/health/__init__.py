"""
Health module - Endpoint registry, bounded history, alerting and scheduling.

This module turns raw probe outcomes into a persisted per-endpoint history,
decides when an endpoint has started failing, and drives periodic sweeps.
"""

from rpc_monitor.health.alerts import should_alert
from rpc_monitor.health.config import load_registry, load_settings
from rpc_monitor.health.runner import SweepScheduler
from rpc_monitor.health.store import HistoryStore

__all__ = [
    "HistoryStore",
    "SweepScheduler",
    "load_registry",
    "load_settings",
    "should_alert",
]
