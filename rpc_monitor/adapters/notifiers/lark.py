"""
Lark notifier - Sends alerts to a Lark (Feishu) incoming webhook.

Delivery is best-effort: failures are logged and reported as False,
never raised to the sweep.
"""

import logging
from typing import Any, Dict

import requests  # type: ignore

from rpc_monitor.core.entities import Endpoint, Status
from rpc_monitor.core.errors import AlertDeliveryError
from rpc_monitor.core.ports import AlertNotifier

logger = logging.getLogger(__name__)


class AdapterLarkNotifier(AlertNotifier):
    """Adapter that implements AlertNotifier with a Lark text message."""

    def __init__(self, webhook_url: str, timeout: float = 10.0):
        """
        Initialize the notifier.

        Args:
            webhook_url: Lark incoming webhook URL
            timeout: Request timeout in seconds
        """
        self.webhook_url = webhook_url
        self.timeout = timeout

    def notify(self, chain: str, endpoint: Endpoint, status: Status) -> bool:
        """
        Post an alert to the webhook.

        Args:
            chain: Chain identifier
            endpoint: Failing endpoint
            status: Latest error status

        Returns:
            True if Lark accepted the message, False otherwise
        """
        try:
            self._post(build_payload(chain, endpoint, status))
        except AlertDeliveryError as e:
            logger.error(
                "Failed to send Lark alert for %s - %s: %s", chain, endpoint.name, e
            )
            return False

        logger.info("Sent Lark alert for %s - %s", chain, endpoint.name)
        return True

    def _post(self, payload: Dict[str, Any]) -> None:
        try:
            response = requests.post(
                self.webhook_url,
                json=payload,
                headers={"Content-Type": "application/json"},
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise AlertDeliveryError(str(e)) from e

        if not response.ok:
            raise AlertDeliveryError(f"HTTP {response.status_code}: {response.text}")


def build_payload(chain: str, endpoint: Endpoint, status: Status) -> Dict[str, Any]:
    """
    Build the Lark text message for an alert.

    The text has three lines: chain and node name, RPC target, status.
    """
    return {
        "msg_type": "text",
        "content": {"text": f"{chain} {endpoint.name}\n{endpoint.target}\n{status}"},
    }
