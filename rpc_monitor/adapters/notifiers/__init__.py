"""
Notifiers module - AlertNotifier port implementations.

This module contains adapters that deliver alerts about failing endpoints
(Lark webhook, stdout).
"""

from rpc_monitor.adapters.notifiers.lark import AdapterLarkNotifier
from rpc_monitor.adapters.notifiers.stdout import AdapterStdoutNotifier

__all__ = [
    "AdapterLarkNotifier",
    "AdapterStdoutNotifier",
]
