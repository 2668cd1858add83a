"""Background scheduler for due deliveries, retention cleanup and digests.

Three APScheduler cron jobs run on a ``BackgroundScheduler``. Each job runs
inside the domain context, never overlaps itself (``max_instances=1``,
missed runs coalesced) and logs its own failures so one broken job cannot
stop the others or the host process. The ``*_now`` entry points run the
same work synchronously and let errors propagate to the caller. A trigger
that arrives while the same job is running is skipped.
"""

import threading

import structlog
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from notifier.config import Settings
from notifier.utils.logging import add_context, clear_context

logger = structlog.get_logger(__name__)

PROCESS_SCHEDULED = "process_scheduled"
CLEANUP = "cleanup"
DIGEST = "digest"


class NotificationScheduler:
    def __init__(self, orchestrator, domain, settings: Settings | None = None):
        self.orchestrator = orchestrator
        self.domain = domain
        self.settings = settings or orchestrator.settings
        self._scheduler: BackgroundScheduler | None = None
        self._running_jobs: set[str] = set()
        self._lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    def start(self) -> None:
        if self.is_running:
            logger.info("Notification scheduler already running")
            return

        scheduler = BackgroundScheduler(timezone="UTC")
        jobs = (
            (PROCESS_SCHEDULED, self.settings.process_scheduled_interval, self.process_scheduled_now),
            (CLEANUP, self.settings.cleanup_interval, self.cleanup_now),
            (DIGEST, self.settings.digest_interval, self.digest_now),
        )
        for job_id, crontab, func in jobs:
            scheduler.add_job(
                self._guarded,
                trigger=CronTrigger.from_crontab(crontab, timezone="UTC"),
                args=[job_id, func],
                id=job_id,
                replace_existing=True,
                max_instances=1,
                coalesce=True,
            )
        scheduler.start()
        self._scheduler = scheduler

        logger.info(
            "Notification scheduler started",
            process_scheduled=self.settings.process_scheduled_interval,
            cleanup=self.settings.cleanup_interval,
            digest=self.settings.digest_interval,
        )

    def stop(self) -> None:
        """Stop future firings. Jobs already running finish on their own."""
        if not self.is_running:
            return
        self._scheduler.shutdown(wait=False)
        self._scheduler = None
        logger.info("Notification scheduler stopped")

    def _guarded(self, job_id, func) -> None:
        add_context(job=job_id)
        try:
            func()
        except Exception as exc:
            logger.error("Scheduled job failed", job=job_id, error=str(exc), exc_info=True)
        finally:
            clear_context()

    def _run(self, job_id, work, idle=None):
        """Run ``work`` in the domain context. A job already in flight is skipped and ``idle`` returned."""
        with self._lock:
            if job_id in self._running_jobs:
                logger.info("Job already running, skipped", job=job_id)
                return idle
            self._running_jobs.add(job_id)
        try:
            with self.domain.domain_context():
                return work()
        finally:
            with self._lock:
                self._running_jobs.discard(job_id)

    # -------------------------------------------------------------------
    # Manual triggers
    # -------------------------------------------------------------------
    def process_scheduled_now(self, as_of=None):
        results = self._run(
            PROCESS_SCHEDULED,
            lambda: self.orchestrator.process_scheduled_notifications(as_of),
            idle=[],
        )
        logger.info("Due notifications processed", count=len(results))
        return results

    def cleanup_now(self, older_than_days=None) -> int:
        days = self.settings.cleanup_older_than_days if older_than_days is None else older_than_days
        return self._run(CLEANUP, lambda: self.orchestrator.cleanup_old_notifications(days), idle=0)

    def digest_now(self) -> list[str]:
        """Collect users with digests enabled. Digest content is not built yet."""
        recipients = self._run(DIGEST, self.orchestrator.digest_recipients, idle=[])
        logger.info("Digest run", users=len(recipients))
        return recipients

    def status(self) -> dict:
        jobs = {}
        for job_id in (PROCESS_SCHEDULED, CLEANUP, DIGEST):
            job = self._scheduler.get_job(job_id) if self.is_running else None
            next_run = getattr(job, "next_run_time", None) if job else None
            with self._lock:
                running = job_id in self._running_jobs
            jobs[job_id] = {
                "scheduled": job is not None,
                "running": running,
                "next_run": next_run.isoformat() if next_run else None,
            }
        return {"is_running": self.is_running, "jobs": jobs}
