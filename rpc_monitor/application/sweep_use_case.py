"""
Sweep Use Case - One full pass over every registered endpoint.

The sweep probes endpoints one at a time in registry order, records each
result, raises alerts for endpoints entering a failing run, and persists
the history once at the end:
- Prober to fetch each endpoint's status
- HistoryStore to record samples and persist them
- AlertNotifier to deliver alerts
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable

from rpc_monitor.application.use_cases import UseCase
from rpc_monitor.core.entities import (
    Endpoint,
    Registry,
    Sample,
    Status,
    format_error_label,
    iter_endpoints,
)
from rpc_monitor.core.errors import PersistenceError
from rpc_monitor.core.ports import AlertNotifier, Prober
from rpc_monitor.health.alerts import should_alert
from rpc_monitor.health.store import HistoryStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SweepReport:
    """Outcome of one sweep."""

    timestamp: int
    probed: int
    failures: int
    alerts: int
    persisted: bool

    @property
    def healthy(self) -> bool:
        return self.failures == 0


class SweepUseCase(UseCase):  # pylint: disable=too-few-public-methods
    """
    Use case probing every endpoint and recording the results.

    Probes are strictly sequential with a fixed delay after each one, to
    keep the request rate towards RPC providers predictable.
    """

    def __init__(
        self,
        registry: Registry,
        prober: Prober,
        store: HistoryStore,
        notifier: AlertNotifier,
        probe_delay: float = 1.0,
        persist: bool = True,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize the use case with its dependencies.

        Args:
            registry: Endpoints to probe, in order
            prober: Implementation of the Prober port
            store: History store shared with the status API
            notifier: Implementation of the AlertNotifier port
            probe_delay: Seconds to wait after each probe
            persist: If False, the snapshot is not written (dry runs)
            clock: Time source for the sweep timestamp
            sleep: Delay function between probes
        """
        self.registry = registry
        self.prober = prober
        self.store = store
        self.notifier = notifier
        self.probe_delay = probe_delay
        self.persist = persist
        self.clock = clock
        self.sleep = sleep

    def execute(self) -> SweepReport:
        """
        Run one sweep.

        Returns:
            SweepReport with counters for the sweep
        """
        ts = int(self.clock())
        probed = failures = alerts = 0

        for chain, endpoint in iter_endpoints(self.registry):
            logger.info("Checking %s - %s (%s)", chain, endpoint.name, endpoint.target)
            status = self._probe(endpoint)
            logger.info("  %s - %s: %s", chain, endpoint.name, status)

            sample = Sample(timestamp=ts, status=status)
            recent = self.store.append(chain, endpoint.name, sample)
            probed += 1
            if sample.is_error:
                failures += 1

            if should_alert(recent):
                alerts += 1
                self._notify(chain, endpoint, status)

            self.sleep(self.probe_delay)

        persisted = self._persist()

        logger.info(
            "RPC check completed: %d probed, %d failed, %d alerts",
            probed,
            failures,
            alerts,
        )
        return SweepReport(
            timestamp=ts,
            probed=probed,
            failures=failures,
            alerts=alerts,
            persisted=persisted,
        )

    def _probe(self, endpoint: Endpoint) -> Status:
        try:
            return self.prober.probe(endpoint)
        except Exception as e:  # pylint: disable=broad-except
            # Probers report failures as data; this only guards the sweep
            logger.error(
                "Prober raised for %s - %s: %s",
                endpoint.chain,
                endpoint.name,
                e,
                exc_info=True,
            )
            return format_error_label(e)

    def _notify(self, chain: str, endpoint: Endpoint, status: Status) -> None:
        logger.warning(
            "Endpoint %s - %s failed twice in a row: %s", chain, endpoint.name, status
        )
        try:
            self.notifier.notify(chain, endpoint, status)
        except Exception as e:  # pylint: disable=broad-except
            logger.error(
                "Alert delivery failed for %s - %s: %s", chain, endpoint.name, e
            )

    def _persist(self) -> bool:
        if not self.persist:
            logger.info("Dry run: history not saved")
            return False

        logger.info("Saving results...")
        try:
            self.store.snapshot_to_disk()
        except PersistenceError as e:
            logger.error("Failed to save history, will retry next sweep: %s", e)
            return False
        return True
