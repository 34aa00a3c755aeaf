"""Shared test fixtures.

Every test gets its own temporary SQLite database (aiosqlite) with tables
created from the ORM metadata. Redis is never initialised, so the rate
limiter lets every request through.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from decimal import Decimal

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from safevault.auth.jwt import create_access_token, reset_keys
from safevault.auth.password import hash_password
from safevault.config import get_settings
from safevault.database import close_db, get_engine, get_session_factory, init_db
from safevault.db.models import Account, Base
from safevault.main import create_app
from safevault.media.service import MockMediaHost, get_media_host

ADMIN_EMAIL = "admin@safevault.test"
USER_PASSWORD = "secret123"


@pytest.fixture(autouse=True)
def _test_settings(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    """Point the app at a throwaway SQLite file and keep it offline."""
    monkeypatch.setenv("SAFEVAULT_DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path}/test.db")
    monkeypatch.setenv("SAFEVAULT_SCHEDULER_ENABLED", "false")
    monkeypatch.setenv("SAFEVAULT_LOG_FORMAT", "console")
    monkeypatch.setenv("SAFEVAULT_IMAGEKIT_PUBLIC_KEY", "")
    monkeypatch.setenv("SAFEVAULT_IMAGEKIT_PRIVATE_KEY", "")
    get_settings.cache_clear()
    reset_keys()
    yield
    get_settings.cache_clear()
    reset_keys()


@pytest_asyncio.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Initialised engine with all tables created."""
    await init_db(get_settings().database_url)
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield get_session_factory()
    await close_db()


@pytest_asyncio.fixture
async def db_session(session_factory: async_sessionmaker[AsyncSession]) -> AsyncGenerator[AsyncSession, None]:
    """Direct database session for setup and assertions."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def app(session_factory: async_sessionmaker[AsyncSession]) -> FastAPI:
    application = create_app()
    application.dependency_overrides[get_media_host] = MockMediaHost
    return application


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the app (lifespan is not run)."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


async def make_account(
    db: AsyncSession,
    email: str = "user@example.com",
    *,
    deposit: str | Decimal = "0",
    profit: str | Decimal = "0",
    role: str = "user",
    status: str = "active",
    account_status: str = "approved",
    password: str = USER_PASSWORD,
) -> Account:
    """Insert an account with the given balances (total kept consistent)."""
    deposit, profit = Decimal(deposit), Decimal(profit)
    account = Account(
        first_name="Test",
        last_name="User",
        email=email,
        password_hash=hash_password(password),
        deposit_amount=deposit,
        profit_amount=profit,
        total_amount=deposit + profit,
        role=role,
        status=status,
        account_status=account_status,
    )
    db.add(account)
    await db.commit()
    return account


def auth_headers(account: Account) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(account.id, account.role)}"}


@pytest_asyncio.fixture
async def user(db_session: AsyncSession) -> Account:
    return await make_account(db_session, "user@example.com", deposit="1000")


@pytest_asyncio.fixture
async def admin(db_session: AsyncSession) -> Account:
    return await make_account(db_session, ADMIN_EMAIL, role="admin")


@pytest.fixture
def user_headers(user: Account) -> dict[str, str]:
    return auth_headers(user)


@pytest.fixture
def admin_headers(admin: Account) -> dict[str, str]:
    return auth_headers(admin)
