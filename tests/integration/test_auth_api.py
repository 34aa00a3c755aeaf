"""Integration tests for /api/v1/auth."""

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from safevault.auth.jwt import create_access_token
from safevault.config import get_settings
from tests.conftest import ADMIN_EMAIL, USER_PASSWORD, make_account

REGISTRATION = {
    "first_name": "  Ada ",
    "last_name": "Lovelace",
    "email": "Ada@Example.com",
    "password": "engine42",
}


class TestRegister:
    @pytest.mark.asyncio
    async def test_pending_by_default(self, client: AsyncClient):
        resp = await client.post("/api/v1/auth/register", json=REGISTRATION)
        assert resp.status_code == 201
        data = resp.json()
        assert data["requires_approval"] is True
        assert data["access_token"] is None
        assert data["user"]["email"] == "ada@example.com"
        assert data["user"]["first_name"] == "Ada"
        assert data["user"]["account_status"] == "pending"
        assert data["user"]["total_amount"] == 0

    @pytest.mark.asyncio
    async def test_token_when_approval_disabled(self, client: AsyncClient, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("SAFEVAULT_REQUIRE_ACCOUNT_APPROVAL", "false")
        get_settings.cache_clear()

        resp = await client.post("/api/v1/auth/register", json=REGISTRATION)
        assert resp.status_code == 201
        data = resp.json()
        assert data["requires_approval"] is False
        assert data["access_token"]
        assert data["user"]["account_status"] == "approved"

    @pytest.mark.asyncio
    async def test_duplicate_email(self, client: AsyncClient):
        await client.post("/api/v1/auth/register", json=REGISTRATION)
        resp = await client.post("/api/v1/auth/register", json={**REGISTRATION, "email": "ADA@example.com"})
        assert resp.status_code == 400
        assert resp.json()["detail"] == "User with this email already exists"

    @pytest.mark.asyncio
    async def test_short_password(self, client: AsyncClient):
        resp = await client.post("/api/v1/auth/register", json={**REGISTRATION, "password": "abc"})
        assert resp.status_code == 400
        assert "at least 6" in resp.json()["detail"]

    @pytest.mark.asyncio
    async def test_blank_name(self, client: AsyncClient):
        resp = await client.post("/api/v1/auth/register", json={**REGISTRATION, "first_name": "   "})
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_invalid_email(self, client: AsyncClient):
        resp = await client.post("/api/v1/auth/register", json={**REGISTRATION, "email": "not-an-email"})
        assert resp.status_code == 422


class TestLogin:
    @pytest.mark.asyncio
    async def test_success(self, client: AsyncClient, user):
        resp = await client.post("/api/v1/auth/login", json={"email": "USER@example.com", "password": USER_PASSWORD})
        assert resp.status_code == 200
        data = resp.json()
        assert data["token_type"] == "bearer"
        assert data["access_token"]
        assert data["expires_in"] > 0
        assert data["user"]["id"] == user.id
        assert data["user"]["deposit_amount"] == 1000

    @pytest.mark.asyncio
    async def test_wrong_password(self, client: AsyncClient, user):
        resp = await client.post("/api/v1/auth/login", json={"email": user.email, "password": "nope-nope"})
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Invalid credentials"

    @pytest.mark.asyncio
    async def test_unknown_email(self, client: AsyncClient):
        resp = await client.post("/api/v1/auth/login", json={"email": "ghost@example.com", "password": "whatever"})
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Invalid credentials"

    @pytest.mark.asyncio
    async def test_pending_account(self, client: AsyncClient, db_session: AsyncSession):
        await make_account(db_session, "wait@example.com", account_status="pending")
        resp = await client.post("/api/v1/auth/login", json={"email": "wait@example.com", "password": USER_PASSWORD})
        assert resp.status_code == 403
        assert resp.json()["account_status"] == "pending"

    @pytest.mark.asyncio
    async def test_blocked_account(self, client: AsyncClient, db_session: AsyncSession):
        await make_account(db_session, "bad@example.com", status="blocked")
        resp = await client.post("/api/v1/auth/login", json={"email": "bad@example.com", "password": USER_PASSWORD})
        assert resp.status_code == 403
        assert resp.json()["detail"] == "Account is blocked"


class TestAdminLogin:
    @pytest.mark.asyncio
    async def test_admin(self, client: AsyncClient, admin):
        resp = await client.post("/api/v1/auth/admin/login", json={"email": ADMIN_EMAIL, "password": USER_PASSWORD})
        assert resp.status_code == 200
        assert resp.json()["user"]["role"] == "admin"

    @pytest.mark.asyncio
    async def test_regular_user_refused(self, client: AsyncClient, user):
        resp = await client.post("/api/v1/auth/admin/login", json={"email": user.email, "password": USER_PASSWORD})
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Invalid admin credentials"


class TestVerify:
    @pytest.mark.asyncio
    async def test_valid_token(self, client: AsyncClient, user, user_headers):
        resp = await client.post("/api/v1/auth/verify", headers=user_headers)
        assert resp.status_code == 200
        assert resp.json()["email"] == user.email

    @pytest.mark.asyncio
    async def test_missing_token(self, client: AsyncClient):
        resp = await client.post("/api/v1/auth/verify")
        assert resp.status_code in (401, 403)

    @pytest.mark.asyncio
    async def test_garbage_token(self, client: AsyncClient):
        resp = await client.post("/api/v1/auth/verify", headers={"Authorization": "Bearer not.a.jwt"})
        assert resp.status_code == 401

    @pytest.mark.asyncio
    async def test_token_for_unknown_account(self, client: AsyncClient):
        token = create_access_token(987654)
        resp = await client.post("/api/v1/auth/verify", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401
        assert resp.json() == {"detail": "Invalid token"}

    @pytest.mark.asyncio
    async def test_user_token_on_admin_route(self, client: AsyncClient, user):
        token = create_access_token(user.id)
        resp = await client.get("/api/v1/admin/dashboard-stats", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 403
        assert resp.json() == {"detail": "Admin access required"}


class TestChangePassword:
    @pytest.mark.asyncio
    async def test_change_then_login(self, client: AsyncClient, user, user_headers):
        resp = await client.put(
            "/api/v1/auth/change-password",
            json={"old_password": USER_PASSWORD, "new_password": "brand-new-pw"},
            headers=user_headers,
        )
        assert resp.status_code == 200
        assert resp.json()["detail"] == "Password changed successfully"

        old = await client.post("/api/v1/auth/login", json={"email": user.email, "password": USER_PASSWORD})
        assert old.status_code == 400
        new = await client.post("/api/v1/auth/login", json={"email": user.email, "password": "brand-new-pw"})
        assert new.status_code == 200

    @pytest.mark.asyncio
    async def test_wrong_current_password(self, client: AsyncClient, user_headers):
        resp = await client.put(
            "/api/v1/auth/change-password",
            json={"old_password": "incorrect", "new_password": "brand-new-pw"},
            headers=user_headers,
        )
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Current password is incorrect"

    @pytest.mark.asyncio
    async def test_same_password(self, client: AsyncClient, user_headers):
        resp = await client.put(
            "/api/v1/auth/change-password",
            json={"old_password": USER_PASSWORD, "new_password": USER_PASSWORD},
            headers=user_headers,
        )
        assert resp.status_code == 400
