"""Integration tests for /api/v1/deposits."""

from decimal import Decimal

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from safevault.db.models import Deposit, Notification
from tests.conftest import auth_headers, make_account

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


async def _submit(client: AsyncClient, headers: dict[str, str], amount: str = "250") -> dict:
    resp = await client.post(
        "/api/v1/deposits",
        data={"amount": amount},
        files={"screenshot": ("proof.png", PNG, "image/png")},
        headers=headers,
    )
    assert resp.status_code == 201, resp.text
    return resp.json()["deposit"]


class TestSubmitDeposit:
    @pytest.mark.asyncio
    async def test_creates_pending_deposit(self, client: AsyncClient, user, user_headers, db_session: AsyncSession):
        deposit = await _submit(client, user_headers)

        assert deposit["status"] == "pending"
        assert deposit["amount"] == 250
        assert deposit["user_id"] == user.id
        assert "/deposit-proofs/" in deposit["screenshot_url"]

        # Balance is untouched until an admin approves
        await db_session.refresh(user)
        assert user.deposit_amount == Decimal("1000")

        notifications = (
            (await db_session.execute(select(Notification).where(Notification.user_id == user.id))).scalars().all()
        )
        assert len(notifications) == 1
        assert notifications[0].type == "deposit"
        assert notifications[0].action_url == f"/admin/deposits/{deposit['id']}"

    @pytest.mark.asyncio
    async def test_zero_amount(self, client: AsyncClient, user_headers):
        resp = await client.post(
            "/api/v1/deposits",
            data={"amount": "0"},
            files={"screenshot": ("proof.png", PNG, "image/png")},
            headers=user_headers,
        )
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_missing_screenshot(self, client: AsyncClient, user_headers):
        resp = await client.post("/api/v1/deposits", data={"amount": "10"}, headers=user_headers)
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_non_image_screenshot(self, client: AsyncClient, user_headers, db_session: AsyncSession):
        resp = await client.post(
            "/api/v1/deposits",
            data={"amount": "10"},
            files={"screenshot": ("proof.pdf", b"%PDF-1.4", "application/pdf")},
            headers=user_headers,
        )
        assert resp.status_code == 400
        assert (await db_session.execute(select(Deposit))).first() is None


class TestDepositHistory:
    @pytest.mark.asyncio
    async def test_list_newest_first(self, client: AsyncClient, user_headers):
        first = await _submit(client, user_headers, "100")
        second = await _submit(client, user_headers, "200")

        resp = await client.get("/api/v1/deposits", headers=user_headers)
        assert resp.status_code == 200
        data = resp.json()
        assert [d["id"] for d in data["deposits"]] == [second["id"], first["id"]]
        assert data["pagination"]["total_items"] == 2
        assert data["pagination"]["items_per_page"] == 10

    @pytest.mark.asyncio
    async def test_pagination(self, client: AsyncClient, user_headers):
        for amount in ("1", "2", "3"):
            await _submit(client, user_headers, amount)

        resp = await client.get("/api/v1/deposits", params={"page": 2, "limit": 2}, headers=user_headers)
        data = resp.json()
        assert len(data["deposits"]) == 1
        assert data["pagination"]["total_pages"] == 2
        assert data["pagination"]["current_page"] == 2

    @pytest.mark.asyncio
    async def test_detail_is_owner_scoped(self, client: AsyncClient, user_headers, db_session: AsyncSession):
        deposit = await _submit(client, user_headers)

        resp = await client.get(f"/api/v1/deposits/{deposit['id']}", headers=user_headers)
        assert resp.status_code == 200

        stranger = await make_account(db_session, "stranger@example.com")
        resp = await client.get(f"/api/v1/deposits/{deposit['id']}", headers=auth_headers(stranger))
        assert resp.status_code == 404
        assert resp.json()["detail"] == "Deposit not found"
