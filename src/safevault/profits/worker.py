"""Profit accrual arq worker.

Alternative to the in-process scheduler for deployments that run background
jobs out of process. Disable the in-process scheduler
(``SAFEVAULT_SCHEDULER_ENABLED=false``) when running this worker.

Import path for arq CLI: arq safevault.profits.worker.ProfitWorkerSettings
"""

from __future__ import annotations

import logging

from arq import cron
from arq.connections import RedisSettings

from safevault.config import get_settings
from safevault.database import close_db, get_session_factory, init_db
from safevault.profits.service import AccrualSummary, run_daily_accrual

logger = logging.getLogger(__name__)


async def profit_startup(ctx: dict) -> None:  # type: ignore[type-arg]
    """Initialize DB connections on worker startup."""
    settings = get_settings()
    await init_db(settings.database_url)
    logger.info("Profit worker started")


async def profit_shutdown(ctx: dict) -> None:  # type: ignore[type-arg]
    """Clean up on worker shutdown."""
    await close_db()
    logger.info("Profit worker shut down")


async def daily_profit_accrual(ctx: dict) -> AccrualSummary:  # type: ignore[type-arg]
    """Scheduled arq task: credits daily profit at 00:00 UTC.

    Idempotent: accounts already credited for the day are skipped.
    """
    summary = await run_daily_accrual(get_session_factory())
    logger.info(
        "Profit accrual complete: %d credited, %d skipped, %d failed",
        summary.credited, summary.skipped, summary.failed,
    )
    return summary


class ProfitWorkerSettings:
    """arq worker settings for the profit accrual cron job."""

    functions = [daily_profit_accrual]
    cron_jobs = [cron(daily_profit_accrual, hour=0, minute=0, run_at_startup=False)]
    on_startup = profit_startup
    on_shutdown = profit_shutdown
    redis_settings = RedisSettings.from_dsn(get_settings().redis_url)
    max_jobs = 1
    job_timeout = 1800
