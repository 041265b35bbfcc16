from datetime import datetime
from typing import Literal

from app.schemas.common import CamelModel

NotificationType = Literal[
    "new_participant",
    "participant_cancel",
    "deadline_soon",
    "post_completed",
    "post_cancelled",
    "favorite_deadline",
    "favorite_completed",
]


class NotificationRead(CamelModel):
    id: str
    user_id: str
    type: NotificationType
    title: str
    message: str
    post_id: str | None
    is_read: bool
    created_at: datetime
    updated_at: datetime


class NotificationListResponse(CamelModel):
    notifications: list[NotificationRead]
    unread_count: int
    total: int


class MarkAllReadResponse(CamelModel):
    updated_count: int
