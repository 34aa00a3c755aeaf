"""In-process scheduler for the daily profit accrual.

The scheduler is an explicit handle: the application lifespan creates it,
starts it and shuts it down, and admin endpoints read its status from
``app.state``. Nothing is registered at import time.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone as dt_timezone
from typing import TYPE_CHECKING, Any

import structlog
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from safevault.profits.service import AccrualSummary, run_daily_accrual

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

logger = structlog.get_logger()

JOB_ID = "daily_profit_accrual"


@dataclass
class SchedulerStatus:
    running: bool
    next_run_time: datetime | None
    jobs: list[dict[str, Any]] = field(default_factory=list)


class AccrualScheduler:
    """Runs ``run_daily_accrual`` once a day on a cron trigger (00:00 UTC by default)."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        hour: int = 0,
        minute: int = 0,
        timezone: str = "UTC",
    ) -> None:
        self._session_factory = session_factory
        self._trigger = CronTrigger(hour=hour, minute=minute, timezone=timezone)
        self._scheduler = AsyncIOScheduler(
            job_defaults={
                "coalesce": True,
                "max_instances": 1,
                "misfire_grace_time": 3600,
            },
            timezone=timezone,
        )
        self.last_summary: AccrualSummary | None = None

    @property
    def running(self) -> bool:
        return self._scheduler.running

    def start(self) -> None:
        """Register the accrual job and start the scheduler. Must be called inside a running event loop."""
        if self.running:
            return
        self._scheduler.add_job(
            self._run,
            trigger=self._trigger,
            id=JOB_ID,
            name="Daily profit accrual",
            replace_existing=True,
        )
        self._scheduler.start()
        logger.info("accrual_scheduler_started", next_run_time=str(self.next_run_time()))

    def shutdown(self) -> None:
        if not self.running:
            return
        self._scheduler.shutdown(wait=False)
        logger.info("accrual_scheduler_stopped")

    def next_run_time(self) -> datetime | None:
        """Next fire time computed from the trigger, also valid while stopped."""
        return self._trigger.get_next_fire_time(None, datetime.now(dt_timezone.utc))

    def status(self) -> SchedulerStatus:
        jobs = []
        if self.running:
            for job in self._scheduler.get_jobs():
                jobs.append({"id": job.id, "name": job.name, "next_run_time": job.next_run_time})
        return SchedulerStatus(running=self.running, next_run_time=self.next_run_time(), jobs=jobs)

    async def run_now(self) -> AccrualSummary:
        """Run the batch immediately, outside the cron schedule."""
        return await self._run()

    async def _run(self) -> AccrualSummary:
        summary = await run_daily_accrual(self._session_factory)
        self.last_summary = summary
        return summary
