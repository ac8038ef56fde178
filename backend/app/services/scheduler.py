"""Periodic and on-demand triggering of deadline sweeps.

One ``DeadlineScheduler`` exists per process. It owns the APScheduler interval
job and the single-flight lock; both the periodic job and the manual trigger
go through that lock, so two sweeps never run at the same time.

Busy policy: a manual trigger that arrives while a sweep is running is
rejected with ``SweepInProgressError``; a periodic tick that finds a sweep
running is skipped.
"""
import asyncio
import logging
from datetime import datetime, timezone

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from app.services.escalation import EscalationEngine, SweepResult

logger = logging.getLogger(__name__)

SWEEP_JOB_ID = "deadline_sweep"


class SweepInProgressError(Exception):
    """Raised by the manual trigger when another sweep holds the lock."""


class DeadlineScheduler:
    def __init__(
        self,
        engine: EscalationEngine,
        interval_seconds: int = 300,
        run_on_startup: bool = True,
    ):
        self.engine = engine
        self.interval_seconds = interval_seconds
        self.run_on_startup = run_on_startup
        self.last_result: SweepResult | None = None
        self._lock = asyncio.Lock()
        self._scheduler = AsyncIOScheduler(timezone=timezone.utc)

    @property
    def running(self) -> bool:
        return self._scheduler.running

    @property
    def sweep_in_progress(self) -> bool:
        return self._lock.locked()

    def start(self) -> None:
        """Register the interval job and start the scheduler (needs a running loop)."""
        if self.running:
            logger.warning("Deadline scheduler already running")
            return

        job_kwargs = {}
        if self.run_on_startup:
            # next_run_time=None would add the job paused; omit it instead.
            job_kwargs["next_run_time"] = datetime.now(timezone.utc)

        self._scheduler.add_job(
            self._run_periodic,
            trigger=IntervalTrigger(seconds=self.interval_seconds),
            id=SWEEP_JOB_ID,
            name="Booking deadline sweep",
            max_instances=1,
            coalesce=True,
            misfire_grace_time=max(self.interval_seconds // 2, 1),
            replace_existing=True,
            **job_kwargs,
        )
        self._scheduler.start()
        logger.info(
            "Deadline scheduler started (interval=%ds, run_on_startup=%s)",
            self.interval_seconds, self.run_on_startup,
        )

    def shutdown(self) -> None:
        if not self.running:
            return
        self._scheduler.shutdown(wait=False)
        logger.info("Deadline scheduler stopped")

    async def run_now(self) -> SweepResult:
        """Manual trigger: run one sweep and return its result.

        Raises:
            SweepInProgressError: a periodic or manual sweep is already running.
        """
        if self._lock.locked():
            raise SweepInProgressError("Deadline sweep already in progress")
        logger.info("Manual deadline sweep requested")
        return await self._run_locked()

    async def _run_periodic(self) -> None:
        if self._lock.locked():
            logger.info("Periodic deadline sweep skipped: previous sweep still running")
            return
        await self._run_locked()

    async def _run_locked(self) -> SweepResult:
        async with self._lock:
            result = await self.engine.run_sweep()
            self.last_result = result
            return result


def create_deadline_scheduler() -> DeadlineScheduler:
    """Wire the production scheduler: SQL store, Redis/Celery notifications."""
    from app.core.config import settings
    from app.core.redis import get_redis
    from app.db.session import AsyncSessionLocal
    from app.services.alert_dispatcher import AlertDispatcher
    from app.services.deadline_store import SqlDeadlineStore
    from app.services.notifications import NotificationService
    from app.workers.notification_tasks import send_alert_email

    notifications = NotificationService(AsyncSessionLocal, get_redis(), email_task=send_alert_email)
    engine = EscalationEngine(
        store=SqlDeadlineStore(AsyncSessionLocal),
        dispatcher=AlertDispatcher(notifications),
        store_timeout=settings.DEADLINE_STORE_TIMEOUT_SECONDS,
        dispatch_timeout=settings.DEADLINE_DISPATCH_TIMEOUT_SECONDS,
    )
    return DeadlineScheduler(
        engine,
        interval_seconds=settings.DEADLINE_SWEEP_INTERVAL_SECONDS,
        run_on_startup=settings.DEADLINE_SWEEP_ON_STARTUP,
    )
