"""
Stdout notifier - Prints alerts to standard output.

Used when no webhook is configured and in dry-run checks.
"""

import logging

from rpc_monitor.core.entities import Endpoint, Status
from rpc_monitor.core.ports import AlertNotifier

logger = logging.getLogger(__name__)


class AdapterStdoutNotifier(AlertNotifier):
    """Adapter that implements AlertNotifier by printing a banner."""

    def notify(self, chain: str, endpoint: Endpoint, status: Status) -> bool:
        print()
        print("=" * 80)
        print(f"❌ RPC alert: {chain} - {endpoint.name}")
        print("=" * 80)
        print(f"Target: {endpoint.target}")
        print(f"Status: {status}")
        print("=" * 80)
        print()

        logger.debug("Printed alert for %s - %s", chain, endpoint.name)
        return True
