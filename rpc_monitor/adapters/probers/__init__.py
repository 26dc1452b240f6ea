"""
Probers module - Prober port implementations.
"""

from rpc_monitor.adapters.probers.jsonrpc import AdapterJsonRpcProber

__all__ = ["AdapterJsonRpcProber"]
