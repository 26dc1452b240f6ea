"""
RPC Monitor - Periodic health tracking for blockchain RPC endpoints.

Probes every configured endpoint on a fixed cadence, keeps a bounded
history per endpoint, raises edge-triggered alerts and serves the
history over a small HTTP API.
"""

__version__ = "1.0.0"
