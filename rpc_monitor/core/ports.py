"""
Core ports - Interfaces implemented by the adapters.

The application layer depends only on these abstractions, so probes and
alert transports can be swapped or mocked without touching the sweep.
"""

from abc import ABC, abstractmethod

from rpc_monitor.core.entities import Endpoint, Status


class Prober(ABC):
    """Port for issuing one bounded-time health request to an endpoint."""

    @abstractmethod
    def probe(self, endpoint: Endpoint) -> Status:
        """
        Probe an endpoint.

        Args:
            endpoint: Endpoint to probe

        Returns:
            Chain height on success, error label otherwise. Must not raise
            for failures attributable to the endpoint.
        """

    def close(self) -> None:
        """Release any resources held by the prober."""


class AlertNotifier(ABC):  # pylint: disable=too-few-public-methods
    """Port for delivering an alert about a failing endpoint."""

    @abstractmethod
    def notify(self, chain: str, endpoint: Endpoint, status: Status) -> bool:
        """
        Deliver an alert.

        Args:
            chain: Chain identifier
            endpoint: Failing endpoint
            status: Latest error status

        Returns:
            True if the alert was delivered, False otherwise
        """
