"""
Core errors - Exception taxonomy for the monitor.

Only ConfigError is fatal. Probe errors are recorded as data, persistence
and delivery errors are logged by the sweep, and load corruption degrades
to an empty store.
"""


class RpcMonitorError(Exception):
    """Base class for all monitor errors."""


class ConfigError(RpcMonitorError):
    """Invalid or missing configuration; the process cannot start."""


class ProbeFailure(RpcMonitorError):
    """A probe failed for a reason other than a timeout."""


class ProbeTimeout(ProbeFailure):
    """A probe did not complete within its time budget."""


class PersistenceError(RpcMonitorError):
    """The history snapshot could not be written to disk."""


class LoadCorruptionError(RpcMonitorError):
    """The persisted snapshot could not be decoded."""


class AlertDeliveryError(RpcMonitorError):
    """An alert could not be delivered."""
