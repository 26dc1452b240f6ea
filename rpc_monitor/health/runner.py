"""
Health runner - Drives sweeps on a cron cadence, one at a time.

The scheduler has two states, IDLE and SWEEPING. A sweep requested while
another one is running is dropped rather than queued, and the state always
returns to IDLE when a sweep ends, whether it succeeded or failed.
"""

import enum
import logging
import threading
from typing import Optional

from apscheduler.schedulers.background import BackgroundScheduler  # type: ignore
from apscheduler.triggers.cron import CronTrigger  # type: ignore

from rpc_monitor.application.use_cases import UseCase
from rpc_monitor.health.config import DEFAULT_CRON_EXPRESSION, parse_interval_minutes

logger = logging.getLogger(__name__)


class SchedulerState(str, enum.Enum):
    IDLE = "idle"
    SWEEPING = "sweeping"


class SweepScheduler:
    """
    Runs a sweep use case immediately and then on every cron tick.

    The cron mechanism is APScheduler's; request_sweep() is the tick
    handler and can also be called directly.
    """

    def __init__(
        self,
        use_case: UseCase,
        cron_expression: str = DEFAULT_CRON_EXPRESSION,
        scheduler: Optional[BackgroundScheduler] = None,
    ):
        """
        Initialize the scheduler.

        Args:
            use_case: Sweep to run on each tick
            cron_expression: 5-field crontab expression for the ticks
            scheduler: APScheduler instance. If None, a BackgroundScheduler
                       is created
        """
        self.use_case = use_case
        self.cron_expression = cron_expression
        self.trigger = CronTrigger.from_crontab(cron_expression)
        self._scheduler = scheduler or BackgroundScheduler()
        self._sweep_lock = threading.Lock()
        self._state = SchedulerState.IDLE

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def interval_minutes(self) -> Optional[int]:
        return parse_interval_minutes(self.cron_expression)

    def request_sweep(self) -> bool:
        """
        Run a sweep unless one is already in progress.

        Errors raised by the sweep are logged and never propagate.

        Returns:
            True if a sweep ran, False if the request was dropped
        """
        if not self._sweep_lock.acquire(blocking=False):
            logger.warning("Previous check is still running, skipping this cycle")
            return False

        try:
            self._state = SchedulerState.SWEEPING
            self.use_case.execute()
        except Exception as e:  # pylint: disable=broad-except
            logger.error("Failed to complete RPC check: %s", e, exc_info=True)
        finally:
            self._state = SchedulerState.IDLE
            self._sweep_lock.release()
        return True

    def start(self) -> None:
        """Start ticking: one sweep right away, then one per cron tick."""
        self._scheduler.add_job(
            self.request_sweep,
            trigger="date",
            misfire_grace_time=None,
            id="initial-sweep",
            name="Initial RPC sweep",
        )
        self._scheduler.add_job(
            self.request_sweep,
            trigger=self.trigger,
            id="sweep",
            name="RPC sweep",
            max_instances=2,
            coalesce=True,
        )
        self._scheduler.start()
        logger.info("Sweep scheduler started with cadence %r", self.cron_expression)

    def stop(self) -> None:
        """Stop ticking; a sweep already running is not interrupted."""
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
            logger.info("Sweep scheduler stopped")
