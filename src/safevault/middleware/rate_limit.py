"""Redis-backed fixed window rate limiting middleware.

Credential endpoints (``/api/v1/auth/*``) get their own, tighter budget so
password guessing cannot borrow from the general allowance.
"""

import time
from typing import Any

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from safevault.redis_client import get_redis

_EXEMPT_PATHS = frozenset({"/health", "/ready", "/version"})
_AUTH_PREFIX = "/api/v1/auth/"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Rate limit requests per client IP and endpoint group using Redis counters."""

    def __init__(
        self,
        app: Any,  # noqa: ANN401
        requests_per_window: int = 100,
        auth_requests_per_window: int = 10,
        window_seconds: int = 60,
    ) -> None:
        super().__init__(app)
        self.requests_per_window = requests_per_window
        self.auth_requests_per_window = auth_requests_per_window
        self.window_seconds = window_seconds

    def _bucket(self, path: str) -> tuple[str, int]:
        if path.startswith(_AUTH_PREFIX):
            return "auth", self.auth_requests_per_window
        return "api", self.requests_per_window

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        """Check rate limit, return 429 if exceeded."""
        path = request.url.path
        if path in _EXEMPT_PATHS:
            return await call_next(request)

        group, limit = self._bucket(path)
        client_ip = request.client.host if request.client else "unknown"
        window = int(time.time()) // self.window_seconds
        rate_key = f"ratelimit:{group}:{client_ip}:{window}"

        try:
            redis = get_redis()
        except RuntimeError:
            # Redis not initialized: serve without limiting
            return await call_next(request)

        pipe = redis.pipeline()
        pipe.incr(rate_key)
        pipe.expire(rate_key, self.window_seconds + 1)
        results: list[Any] = await pipe.execute()

        current_count: int = results[0]
        remaining = max(0, limit - current_count)

        if current_count > limit:
            return JSONResponse(
                status_code=429,
                content={"detail": "Rate limit exceeded. Try again later."},
                headers={
                    "Retry-After": str(self.window_seconds),
                    "X-RateLimit-Remaining": "0",
                    "X-RateLimit-Limit": str(limit),
                },
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Remaining"] = str(remaining)
        response.headers["X-RateLimit-Limit"] = str(limit)
        return response
