"""Scheduler service - fires monitoring cycles on a fixed interval.

The recurring cycle, the delayed first cycle and the log cleanup are
APScheduler jobs. ``start()`` registers them and ``stop()`` removes them, which
prevents future runs without cancelling a cycle that is already executing.
Overlap between scheduled and manual cycles is prevented by the cycle
runner's own guard.
"""
import logging
from datetime import datetime, timedelta
from typing import List, Optional

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.date import DateTrigger
from apscheduler.triggers.interval import IntervalTrigger

from .cycle_runner import MonitoringCycleRunner, CycleSummary

logger = logging.getLogger(__name__)

# Cleanup job interval in hours
CLEANUP_INTERVAL_HOURS = 1


class SchedulerService:
    """Owns the timing of monitoring cycles."""

    def __init__(
        self,
        runner: MonitoringCycleRunner,
        interval_minutes: int = 5,
        initial_delay_seconds: int = 5,
        log_retention_days: Optional[int] = 30,
    ):
        if interval_minutes < 1:
            raise ValueError("interval_minutes must be at least 1")
        self.runner = runner
        self.interval_minutes = interval_minutes
        self.initial_delay_seconds = initial_delay_seconds
        self.log_retention_days = log_retention_days
        self.scheduler: Optional[AsyncIOScheduler] = None
        self._jobs: List = []
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    def start(self):
        """Start periodic monitoring; a no-op if already running."""
        if self._running:
            logger.warning("Scheduler is already running")
            return

        if self.scheduler is None:
            self.scheduler = AsyncIOScheduler()
            self.scheduler.start()

        logger.info(f"Starting monitoring scheduler (every {self.interval_minutes} minutes)")

        self._jobs = [
            self.scheduler.add_job(
                self.runner.run_monitoring_cycle,
                trigger=IntervalTrigger(minutes=self.interval_minutes),
                id="monitoring_cycle",
                replace_existing=True,
                max_instances=1,
                coalesce=True,
            ),
            # One-off run shortly after start
            self.scheduler.add_job(
                self.runner.run_monitoring_cycle,
                trigger=DateTrigger(run_date=datetime.now() + timedelta(seconds=self.initial_delay_seconds)),
                id="initial_monitoring_cycle",
                replace_existing=True,
            ),
        ]

        if self.log_retention_days:
            self._jobs.append(self.scheduler.add_job(
                self._cleanup_old_records,
                trigger=IntervalTrigger(hours=CLEANUP_INTERVAL_HOURS),
                id="cleanup_old_records",
                replace_existing=True,
                max_instances=1,
            ))

        self._running = True
        logger.info("Scheduler started successfully")

    def stop(self):
        """Stop periodic monitoring; a no-op if not running."""
        if not self._running:
            logger.warning("Scheduler is not running")
            return

        for job in self._jobs:
            try:
                job.remove()
            except JobLookupError:
                # One-shot jobs are dropped by APScheduler after they fire
                pass
        self._jobs = []
        self._running = False
        logger.info("Scheduler stopped")

    def shutdown(self):
        """Stop and release the underlying scheduler (application exit)."""
        if self._running:
            self.stop()
        if self.scheduler is not None:
            self.scheduler.shutdown(wait=False)
            self.scheduler = None

    async def trigger_manual_check(self) -> Optional[CycleSummary]:
        """Run one cycle outside the schedule."""
        logger.info("Manual monitoring check triggered")
        return await self.runner.run_monitoring_cycle()

    def get_status(self) -> dict:
        next_run_time = None
        if self._running and self.scheduler is not None:
            job = self.scheduler.get_job("monitoring_cycle")
            if job is not None:
                next_run_time = job.next_run_time

        return {
            "is_running": self._running,
            "interval_minutes": self.interval_minutes,
            "next_run_time": next_run_time,
            "monitoring_stats": self.runner.get_stats(),
        }

    async def _cleanup_old_records(self):
        """Delete monitoring log entries past the retention window."""
        try:
            deleted = await self.runner.store.delete_old_logs(self.log_retention_days)
            logger.info(f"Cleaned up {deleted} old monitoring log entries")
        except Exception as e:
            logger.error(f"Error cleaning up records: {e}")
