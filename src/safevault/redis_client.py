"""Shared Redis client for rate limiting and readiness checks.

Redis is optional at runtime: when it has not been initialised the rate
limiter serves requests unthrottled and ``/ready`` reports it as degraded.
"""

import redis.asyncio as redis

_client: redis.Redis | None = None


async def init_redis(url: str, max_connections: int = 50) -> None:
    """Create the shared client. No connection is opened until first use."""
    global _client  # noqa: PLW0603
    _client = redis.from_url(  # type: ignore[no-untyped-call]
        url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=max_connections,
    )


async def close_redis() -> None:
    global _client  # noqa: PLW0603
    if _client is not None:
        await _client.aclose()
        _client = None


def get_redis() -> redis.Redis:
    """Return the shared client.

    Raises:
        RuntimeError: ``init_redis`` has not been called.
    """
    if _client is None:
        msg = "Redis is not configured"
        raise RuntimeError(msg)
    return _client


async def check_redis() -> str:
    """Readiness status string: ``"ok"`` or ``"error: ..."``."""
    try:
        await get_redis().ping()
    except (RuntimeError, redis.RedisError, OSError) as exc:
        return f"error: {exc}"
    return "ok"
