"""Notification schemas."""

from datetime import datetime

from pydantic import Field

from arena.models.notification import NotificationType
from arena.schemas.common import BaseSchema


class NotificationResponse(BaseSchema):
    id: str
    title: str | None = None
    message: str
    type: NotificationType
    link: str | None = None
    is_read: bool
    created_at: datetime


class NotificationListResponse(BaseSchema):
    items: list[NotificationResponse]
    unread_count: int


class AdminMessageRequest(BaseSchema):
    user_id: str
    title: str | None = Field(default=None, max_length=150)
    message: str = Field(..., min_length=1, max_length=2000)
    link: str | None = Field(default=None, max_length=300)
