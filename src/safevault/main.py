"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from sqlalchemy.exc import SQLAlchemyError

from safevault.admin.router import router as admin_router
from safevault.admin.seed import seed_admin
from safevault.auth.router import router as auth_router
from safevault.config import get_settings
from safevault.database import close_db, get_session_factory, init_db
from safevault.deposits.router import router as deposits_router
from safevault.health.router import router as health_router
from safevault.media.router import router as media_router
from safevault.middleware import setup_middleware
from safevault.notifications.router import router as notifications_router
from safevault.profits.scheduler import AccrualScheduler
from safevault.redis_client import close_redis, init_redis
from safevault.users.router import router as users_router
from safevault.wallet.router import router as wallet_router
from safevault.withdrawals.router import router as withdrawals_router

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle. Owns the accrual scheduler handle."""
    settings = get_settings()
    await init_db(settings.database_url)
    await init_redis(settings.redis_url, settings.redis_max_connections)

    # Seed the admin account (idempotent)
    try:
        async with get_session_factory()() as db:
            await seed_admin(db, settings.admin_email, settings.admin_password)
    except SQLAlchemyError:
        logger.warning("admin_seed_failed", exc_info=True)

    scheduler: AccrualScheduler | None = None
    if settings.scheduler_enabled:
        scheduler = AccrualScheduler(
            get_session_factory(),
            hour=settings.accrual_hour,
            minute=settings.accrual_minute,
        )
        scheduler.start()
    app.state.accrual_scheduler = scheduler

    yield

    if scheduler is not None:
        scheduler.shutdown()
    app.state.accrual_scheduler = None

    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="SafeVault API",
        description="Custodial wallet backend: deposits, withdrawals, daily profit and notifications",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(wallet_router)
    app.include_router(deposits_router)
    app.include_router(withdrawals_router)
    app.include_router(notifications_router)
    app.include_router(media_router)
    app.include_router(admin_router)

    return app


app = create_app()
