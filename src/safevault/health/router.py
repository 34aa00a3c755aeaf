"""Liveness, readiness and version probes. Exempt from rate limiting."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from safevault.config import get_settings
from safevault.database import get_session
from safevault.redis_client import check_redis

router = APIRouter()


async def _check_database(db: AsyncSession) -> str:
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        return f"error: {exc}"
    return "ok"


@router.get("/health")
async def health() -> dict[str, str]:
    """Liveness probe: 200 while the process is alive."""
    return {"status": "healthy"}


@router.get("/ready")
async def readiness(
    request: Request,
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> dict[str, object]:
    """Readiness probe.

    Always 200; ``status`` is ``degraded`` when any dependency check fails.
    The scheduler is only reported when the lifespan started one.
    """
    checks: dict[str, str] = {
        "database": await _check_database(db),
        "redis": await check_redis(),
    }
    scheduler = getattr(request.app.state, "accrual_scheduler", None)
    if scheduler is not None:
        checks["scheduler"] = "ok" if scheduler.running else "stopped"

    status = "ready" if all(v == "ok" for v in checks.values()) else "degraded"
    return {"status": status, "checks": checks}


@router.get("/version")
async def version() -> dict[str, str]:
    settings = get_settings()
    return {"version": settings.app_version, "environment": settings.environment}
