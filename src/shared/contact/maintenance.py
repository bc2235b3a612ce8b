"""
Scheduled maintenance for the contact form service
Prunes old rate limit entries and rotates stale log files on a fixed interval
"""

import time
import logging
from datetime import datetime
from typing import Callable, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from src.shared.contact.config import ContactSettings
from src.shared.contact.rate_limit import RateLimitStore
from src.shared.contact.submission_log import SubmissionLog

logger = logging.getLogger(__name__)

MAINTENANCE_JOB_ID = "contact_maintenance_job"


class ContactMaintenance:
    """Runs cleanup tasks outside of request handling."""

    def __init__(self, settings: ContactSettings, rate_limit_store: RateLimitStore,
                 submission_log: SubmissionLog, clock: Callable[[], float] = time.time):
        self.settings = settings
        self.rate_limit_store = rate_limit_store
        self.submission_log = submission_log
        self.clock = clock
        self.scheduler: Optional[BackgroundScheduler] = None

    def run_once(self, now: Optional[float] = None) -> int:
        """
        Prune rate limit entries past the retention window and rotate old logs.

        Args:
            now: Unix timestamp to treat as the current time (defaults to the clock)

        Returns:
            Number of rate limit entries removed
        """
        if now is None:
            now = self.clock()
        pruned = self.rate_limit_store.prune(now - self.settings.rate_limit_retention_seconds)
        if pruned:
            logger.info(f"Pruned {pruned} expired rate limit entries")

        if self.settings.enable_logging:
            self.submission_log.rotate_old_logs(datetime.fromtimestamp(now, tz=self.settings.local_timezone()))
        return pruned

    def _job(self) -> None:
        try:
            self.run_once()
        except Exception as e:
            logger.error(f"Error in scheduled contact maintenance job: {str(e)}", exc_info=True)

    def start(self) -> BackgroundScheduler:
        """Initialize and start the background scheduler."""
        if self.scheduler is not None:
            return self.scheduler

        scheduler = BackgroundScheduler(daemon=True)
        scheduler.add_job(
            func=self._job,
            trigger=IntervalTrigger(seconds=self.settings.maintenance_interval_seconds),
            id=MAINTENANCE_JOB_ID,
            name="Prune contact rate limits and rotate logs",
            replace_existing=True,
        )
        scheduler.start()
        self.scheduler = scheduler
        logger.info(f"Maintenance scheduler started - runs every {self.settings.maintenance_interval_seconds}s")
        return scheduler

    def shutdown(self) -> None:
        if self.scheduler is not None:
            self.scheduler.shutdown(wait=False)
            self.scheduler = None
