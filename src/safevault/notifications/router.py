"""Notification inbox endpoints for the account owner."""

from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from safevault.auth.dependencies import get_current_account
from safevault.database import get_session
from safevault.db.models import Account
from safevault.notifications.schemas import (
    NotificationListResponse,
    NotificationResponse,
    UnreadCountResponse,
)
from safevault.notifications.service import (
    delete_all_user_notifications,
    delete_user_notification,
    get_user_unread_count,
    list_user_notifications,
    mark_all_user_read,
    mark_user_read,
)

router = APIRouter(prefix="/api/v1/notifications", tags=["Notifications"])


@router.get("", response_model=NotificationListResponse)
async def list_notifications(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status: Literal["read", "unread"] | None = Query(None),
    account: Account = Depends(get_current_account),
    db: AsyncSession = Depends(get_session),
) -> NotificationListResponse:
    """List the caller's notifications (paginated)."""
    notifications, pagination = await list_user_notifications(db, account.id, page, limit, status)
    return NotificationListResponse(
        notifications=[NotificationResponse.from_model(n) for n in notifications],
        pagination=pagination,
        unread_count=await get_user_unread_count(db, account.id),
    )


@router.get("/unread-count", response_model=UnreadCountResponse)
async def unread_count(
    account: Account = Depends(get_current_account),
    db: AsyncSession = Depends(get_session),
) -> UnreadCountResponse:
    return UnreadCountResponse(unread_count=await get_user_unread_count(db, account.id))


@router.put("/read-all")
async def mark_all_read(
    account: Account = Depends(get_current_account),
    db: AsyncSession = Depends(get_session),
) -> dict[str, str | int]:
    """Mark all of the caller's notifications as read."""
    count = await mark_all_user_read(db, account.id)
    await db.commit()
    return {"detail": f"Marked {count} notifications as read", "updated": count}


@router.put("/{notification_id}/read")
async def mark_read(
    notification_id: int,
    account: Account = Depends(get_current_account),
    db: AsyncSession = Depends(get_session),
) -> dict[str, str]:
    """Mark one notification as read. Marking an already-read notification is a no-op."""
    changed = await mark_user_read(db, account.id, notification_id)
    if not changed:
        return {"detail": "Notification already read"}
    await db.commit()
    return {"detail": "Notification marked as read"}


@router.delete("")
async def delete_all(
    account: Account = Depends(get_current_account),
    db: AsyncSession = Depends(get_session),
) -> dict[str, str | int]:
    count = await delete_all_user_notifications(db, account.id)
    await db.commit()
    return {"detail": f"Deleted {count} notifications", "deleted": count}


@router.delete("/{notification_id}")
async def delete_one(
    notification_id: int,
    account: Account = Depends(get_current_account),
    db: AsyncSession = Depends(get_session),
) -> dict[str, str]:
    await delete_user_notification(db, account.id, notification_id)
    await db.commit()
    return {"detail": "Notification deleted"}
