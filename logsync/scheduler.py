"""Scheduler guard: cron-driven sync runs that never overlap."""

import datetime
import logging
import threading
from typing import Optional
from zoneinfo import ZoneInfo

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from logsync.sync import SyncOutcome

logger = logging.getLogger(__name__)


class SchedulerGuard:
    """Fires the sync service on a cron schedule evaluated in a fixed timezone.

    APScheduler runs jobs on pool threads, so the in-progress state is a
    lock taken without blocking: a tick that cannot take it is dropped.
    """

    def __init__(self, service, cron_schedule: str = "*/1 * * * *",
                 timezone: str = "America/Lima"):
        self._service = service
        self._cron_schedule = cron_schedule
        self._timezone = ZoneInfo(timezone)
        self._run_lock = threading.Lock()
        self._scheduler: Optional[BackgroundScheduler] = None

    @property
    def running(self) -> bool:
        """True while a synchronization run holds the guard."""
        return self._run_lock.locked()

    def tick(self) -> Optional[SyncOutcome]:
        """Run one sync pass unless one is already in progress.

        Returns the run outcome, or None when the tick was skipped.
        """
        now = datetime.datetime.now(self._timezone)
        logger.info("Executing synchronization cron at %s", now.strftime("%A, %B %d, %Y %I:%M %p"))

        if not self._run_lock.acquire(blocking=False):
            logger.info("Ignoring execution, the previous run has not yet concluded")
            self._service.metrics.record_skip()
            return None

        try:
            return self._service.run_once()
        except Exception:
            logger.exception("Synchronization run crashed")
            return SyncOutcome.ERROR
        finally:
            self._run_lock.release()

    def start(self):
        """Register the tick on a background scheduler and start it."""
        trigger = CronTrigger.from_crontab(self._cron_schedule, timezone=self._timezone)
        self._scheduler = BackgroundScheduler(timezone=self._timezone)
        # A second instance is allowed so an overlapping tick reaches the guard
        self._scheduler.add_job(
            self.tick,
            trigger,
            id="log-index-sync",
            max_instances=2,
            coalesce=True,
        )
        self._scheduler.start()
        logger.info(
            "Scheduled synchronization with cron '%s' in timezone %s",
            self._cron_schedule, self._timezone.key,
        )

    def shutdown(self, wait: bool = True):
        """Stop the scheduler, waiting for a running sync by default."""
        if self._scheduler is not None:
            self._scheduler.shutdown(wait=wait)
            self._scheduler = None
