"""Notification inbox.

Every notification carries two independent read flags: ``user_status`` is
owned by the account the notification belongs to, ``admin_status`` by the
admin team. Operations in the user scope only touch ``user_status`` and only
the caller's own rows; admin-scope operations only touch ``admin_status``.
Notifications are otherwise immutable.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from sqlalchemy import delete, func, select, update

from safevault.db.models import NOTIFICATION_TYPES, READ_FLAGS, Notification
from safevault.exceptions import NotFound, ValidationError
from safevault.pagination import Pagination, paginate

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

MAX_MESSAGE_LENGTH = 500


async def create_notification(
    db: AsyncSession,
    user_id: int | None,
    message: str,
    type_: str,
    action_url: str | None = None,
) -> Notification:
    """Append a notification. ``user_id=None`` makes it visible to admins only."""
    if type_ not in NOTIFICATION_TYPES:
        msg = f"Invalid notification type: {type_}"
        raise ValidationError(msg)
    if not message or len(message) > MAX_MESSAGE_LENGTH:
        msg = f"Notification message must be 1-{MAX_MESSAGE_LENGTH} characters"
        raise ValidationError(msg)

    notification = Notification(user_id=user_id, message=message, type=type_, action_url=action_url)
    db.add(notification)
    await db.flush()
    return notification


def _check_flag(status: str | None) -> None:
    if status is not None and status not in READ_FLAGS:
        msg = "Status must be 'read' or 'unread'"
        raise ValidationError(msg)


# ---------------------------------------------------------------------------
# User scope
# ---------------------------------------------------------------------------


async def list_user_notifications(
    db: AsyncSession,
    user_id: int,
    page: int = 1,
    per_page: int = 20,
    status: str | None = None,
) -> tuple[list[Notification], Pagination]:
    """The caller's notifications, newest first, optionally filtered by ``user_status``."""
    _check_flag(status)
    query = select(Notification).where(Notification.user_id == user_id)
    if status is not None:
        query = query.where(Notification.user_status == status)
    query = query.order_by(Notification.created_at.desc(), Notification.id.desc())
    return await paginate(db, query, page, per_page)


async def get_user_unread_count(db: AsyncSession, user_id: int) -> int:
    result = await db.execute(
        select(func.count())
        .select_from(Notification)
        .where(Notification.user_id == user_id, Notification.user_status == "unread")
    )
    return result.scalar_one()


async def _get_owned(db: AsyncSession, user_id: int, notification_id: int) -> Notification:
    result = await db.execute(
        select(Notification).where(Notification.id == notification_id, Notification.user_id == user_id)
    )
    notification = result.scalar_one_or_none()
    if notification is None:
        msg = "Notification not found"
        raise NotFound(msg)
    return notification


async def mark_user_read(db: AsyncSession, user_id: int, notification_id: int) -> bool:
    """Set ``user_status`` to read. Returns False if it was already read."""
    notification = await _get_owned(db, user_id, notification_id)
    if notification.user_status == "read":
        return False
    notification.user_status = "read"
    await db.flush()
    return True


async def mark_all_user_read(db: AsyncSession, user_id: int) -> int:
    """Mark every unread notification of the caller as read. Returns the count."""
    result = await db.execute(
        update(Notification)
        .where(Notification.user_id == user_id, Notification.user_status == "unread")
        .values(user_status="read")
    )
    return result.rowcount


async def delete_user_notification(db: AsyncSession, user_id: int, notification_id: int) -> None:
    notification = await _get_owned(db, user_id, notification_id)
    await db.delete(notification)
    await db.flush()


async def delete_all_user_notifications(db: AsyncSession, user_id: int) -> int:
    result = await db.execute(delete(Notification).where(Notification.user_id == user_id))
    return result.rowcount


# ---------------------------------------------------------------------------
# Admin scope
# ---------------------------------------------------------------------------


async def list_admin_notifications(
    db: AsyncSession,
    page: int = 1,
    per_page: int = 20,
    status: str | None = None,
) -> tuple[list[Notification], Pagination]:
    """All notifications, newest first, optionally filtered by ``admin_status``."""
    _check_flag(status)
    query = select(Notification)
    if status is not None:
        query = query.where(Notification.admin_status == status)
    query = query.order_by(Notification.created_at.desc(), Notification.id.desc())
    return await paginate(db, query, page, per_page)


async def get_admin_unread_count(db: AsyncSession) -> int:
    result = await db.execute(
        select(func.count()).select_from(Notification).where(Notification.admin_status == "unread")
    )
    return result.scalar_one()


async def mark_admin_read(db: AsyncSession, notification_id: int) -> bool:
    """Set ``admin_status`` to read. Returns False if it was already read."""
    notification = await db.get(Notification, notification_id)
    if notification is None:
        msg = "Notification not found"
        raise NotFound(msg)
    if notification.admin_status == "read":
        return False
    notification.admin_status = "read"
    await db.flush()
    return True


async def mark_all_admin_read(db: AsyncSession) -> int:
    result = await db.execute(
        update(Notification).where(Notification.admin_status == "unread").values(admin_status="read")
    )
    return result.rowcount
