"""Integration tests for the notification inbox (user and admin scopes)."""

import pytest
import pytest_asyncio
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from safevault.db.models import Notification
from safevault.notifications.service import create_notification
from tests.conftest import auth_headers, make_account


@pytest_asyncio.fixture
async def inbox(db_session: AsyncSession, user) -> list[Notification]:
    """Three notifications for ``user`` plus one for another account."""
    other = await make_account(db_session, "other@example.com")
    created = [
        await create_notification(db_session, user.id, f"message {i}", "general") for i in range(3)
    ]
    await create_notification(db_session, other.id, "not yours", "general")
    await db_session.commit()
    return created


class TestUserInbox:
    @pytest.mark.asyncio
    async def test_list_own_only(self, client: AsyncClient, user_headers, inbox):
        resp = await client.get("/api/v1/notifications", headers=user_headers)
        assert resp.status_code == 200
        data = resp.json()
        assert [n["message"] for n in data["notifications"]] == ["message 2", "message 1", "message 0"]
        assert data["unread_count"] == 3
        assert data["pagination"]["items_per_page"] == 20

    @pytest.mark.asyncio
    async def test_mark_read_is_idempotent(self, client: AsyncClient, user_headers, inbox):
        url = f"/api/v1/notifications/{inbox[0].id}/read"
        first = await client.put(url, headers=user_headers)
        assert first.json()["detail"] == "Notification marked as read"
        second = await client.put(url, headers=user_headers)
        assert second.status_code == 200
        assert second.json()["detail"] == "Notification already read"

        count = await client.get("/api/v1/notifications/unread-count", headers=user_headers)
        assert count.json()["unread_count"] == 2

    @pytest.mark.asyncio
    async def test_filter_by_status(self, client: AsyncClient, user_headers, inbox):
        await client.put(f"/api/v1/notifications/{inbox[1].id}/read", headers=user_headers)

        read = await client.get("/api/v1/notifications", params={"status": "read"}, headers=user_headers)
        assert [n["id"] for n in read.json()["notifications"]] == [inbox[1].id]

        bad = await client.get("/api/v1/notifications", params={"status": "archived"}, headers=user_headers)
        assert bad.status_code == 422

    @pytest.mark.asyncio
    async def test_read_all(self, client: AsyncClient, user_headers, inbox):
        resp = await client.put("/api/v1/notifications/read-all", headers=user_headers)
        assert resp.json()["updated"] == 3
        again = await client.put("/api/v1/notifications/read-all", headers=user_headers)
        assert again.json()["updated"] == 0

    @pytest.mark.asyncio
    async def test_cannot_touch_others(self, client: AsyncClient, db_session: AsyncSession, inbox):
        stranger = await make_account(db_session, "stranger@example.com")
        headers = auth_headers(stranger)

        assert (await client.put(f"/api/v1/notifications/{inbox[0].id}/read", headers=headers)).status_code == 404
        assert (await client.delete(f"/api/v1/notifications/{inbox[0].id}", headers=headers)).status_code == 404

    @pytest.mark.asyncio
    async def test_delete_one_and_all(self, client: AsyncClient, user_headers, inbox):
        resp = await client.delete(f"/api/v1/notifications/{inbox[0].id}", headers=user_headers)
        assert resp.status_code == 200

        resp = await client.delete("/api/v1/notifications", headers=user_headers)
        assert resp.json()["deleted"] == 2

        resp = await client.get("/api/v1/notifications", headers=user_headers)
        assert resp.json()["notifications"] == []


class TestReadFlagsAreIndependent:
    @pytest.mark.asyncio
    async def test_user_read_leaves_admin_unread(
        self, client: AsyncClient, user_headers, admin_headers, inbox, db_session: AsyncSession
    ):
        await client.put(f"/api/v1/notifications/{inbox[0].id}/read", headers=user_headers)

        await db_session.refresh(inbox[0])
        assert inbox[0].user_status == "read"
        assert inbox[0].admin_status == "unread"

        admin_view = await client.get("/api/v1/admin/notifications", headers=admin_headers)
        assert admin_view.json()["unread_count"] == 4

    @pytest.mark.asyncio
    async def test_admin_read_leaves_user_unread(
        self, client: AsyncClient, user_headers, admin_headers, inbox, db_session: AsyncSession
    ):
        resp = await client.put("/api/v1/admin/notifications/read-all", headers=admin_headers)
        assert resp.json()["updated"] == 4

        user_view = await client.get("/api/v1/notifications", headers=user_headers)
        assert user_view.json()["unread_count"] == 3

        await db_session.refresh(inbox[2])
        assert inbox[2].admin_status == "read"
        assert inbox[2].user_status == "unread"

    @pytest.mark.asyncio
    async def test_admin_mark_one(self, client: AsyncClient, admin_headers, inbox):
        url = f"/api/v1/admin/notifications/{inbox[0].id}/read"
        assert (await client.put(url, headers=admin_headers)).json()["detail"] == "Notification marked as read"
        assert (await client.put(url, headers=admin_headers)).json()["detail"] == "Notification already read"

    @pytest.mark.asyncio
    async def test_user_cannot_use_admin_inbox(self, client: AsyncClient, user_headers):
        resp = await client.get("/api/v1/admin/notifications", headers=user_headers)
        assert resp.status_code == 403
