"""Notification schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from safevault.db.models import Notification
from safevault.pagination import Pagination


class NotificationResponse(BaseModel):
    id: int
    user_id: int | None
    message: str
    type: str
    user_status: str
    admin_status: str
    action_url: str | None = None
    created_at: datetime

    @classmethod
    def from_model(cls, n: Notification) -> NotificationResponse:
        return cls(
            id=n.id,
            user_id=n.user_id,
            message=n.message,
            type=n.type,
            user_status=n.user_status,
            admin_status=n.admin_status,
            action_url=n.action_url,
            created_at=n.created_at,
        )


class NotificationListResponse(BaseModel):
    notifications: list[NotificationResponse]
    pagination: Pagination
    unread_count: int


class UnreadCountResponse(BaseModel):
    unread_count: int


class SendNotificationRequest(BaseModel):
    """Admin message to a single user."""

    user_id: int
    message: str = Field(..., min_length=1, max_length=500)
    type: str = "general"
    action_url: str | None = Field(None, max_length=256)
