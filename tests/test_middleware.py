"""Middleware tests: request ID, rate limiting, CORS, error handling."""

import pytest
from httpx import AsyncClient

from safevault.middleware import rate_limit


class _FakePipeline:
    def __init__(self, store: dict[str, int]) -> None:
        self.store = store
        self.ops: list[tuple[str, str]] = []

    def incr(self, key: str) -> None:
        self.ops.append(("incr", key))

    def expire(self, key: str, _seconds: int) -> None:
        self.ops.append(("expire", key))

    async def execute(self) -> list[int | bool]:
        results: list[int | bool] = []
        for op, key in self.ops:
            if op == "incr":
                self.store[key] = self.store.get(key, 0) + 1
                results.append(self.store[key])
            else:
                results.append(True)
        return results


class _FakeRedis:
    """Counter store with the pipeline surface the limiter uses."""

    def __init__(self) -> None:
        self.store: dict[str, int] = {}

    def pipeline(self) -> _FakePipeline:
        return _FakePipeline(self.store)


@pytest.fixture
def fake_redis(monkeypatch: pytest.MonkeyPatch) -> _FakeRedis:
    redis = _FakeRedis()
    monkeypatch.setattr(rate_limit, "get_redis", lambda: redis)
    return redis


@pytest.mark.asyncio
async def test_request_id_generated(client: AsyncClient) -> None:
    """Request ID is auto-generated when not provided."""
    response = await client.get("/health")
    assert len(response.headers["x-request-id"]) == 36  # UUID format


@pytest.mark.asyncio
async def test_request_id_preserved(client: AsyncClient) -> None:
    """Custom request ID is echoed back in response."""
    response = await client.get("/health", headers={"X-Request-Id": "test-abc-123"})
    assert response.headers["x-request-id"] == "test-abc-123"


@pytest.mark.asyncio
async def test_rate_limit_headers(client: AsyncClient, fake_redis: _FakeRedis) -> None:
    """Rate limit headers are present on non-exempt endpoints."""
    response = await client.get("/api/v1/wallet")
    assert response.headers["x-ratelimit-limit"] == "100"
    assert response.headers["x-ratelimit-remaining"] == "99"


@pytest.mark.asyncio
async def test_auth_endpoints_have_tighter_budget(client: AsyncClient, fake_redis: _FakeRedis) -> None:
    """The 11th credential attempt in a window returns 429 with Retry-After."""
    body = {"email": "nobody@example.com", "password": "whatever"}
    for _ in range(10):
        response = await client.post("/api/v1/auth/login", json=body)
        assert response.status_code == 400
    response = await client.post("/api/v1/auth/login", json=body)
    assert response.status_code == 429
    assert "retry-after" in response.headers
    assert "detail" in response.json()

    # The general budget is tracked separately
    assert (await client.get("/api/v1/wallet")).status_code != 429


@pytest.mark.asyncio
async def test_health_exempt_from_rate_limit(client: AsyncClient, fake_redis: _FakeRedis) -> None:
    """Probes never touch the limiter."""
    for _ in range(150):
        response = await client.get("/health")
        assert response.status_code == 200
    assert fake_redis.store == {}


@pytest.mark.asyncio
async def test_cors_preflight(client: AsyncClient) -> None:
    """CORS preflight returns access-control-allow-origin for configured origin."""
    response = await client.options(
        "/api/v1/wallet",
        headers={
            "Origin": "http://localhost:5173",
            "Access-Control-Request-Method": "GET",
        },
    )
    assert response.headers["access-control-allow-origin"] == "http://localhost:5173"


@pytest.mark.asyncio
async def test_404_returns_json(client: AsyncClient) -> None:
    """Unknown paths return 404 with JSON body."""
    response = await client.get("/nonexistent-path")
    assert response.status_code == 404
    assert response.json()["detail"] == "Not Found"


@pytest.mark.asyncio
async def test_422_shape(client: AsyncClient) -> None:
    """Schema failures return a summary message plus per-field errors."""
    response = await client.post("/api/v1/auth/login", json={"email": "x@example.com"})
    assert response.status_code == 422
    data = response.json()
    assert data["detail"] == "Validation error"
    assert data["errors"][0]["loc"] == ["body", "password"]
