from __future__ import annotations

from datetime import datetime

from pydantic import ConfigDict

from common.ids import NotificationId, UserId
from common.utils.json_model import JsonModel
from shared_db.models.enums import NotificationType


class NotificationCreate(JsonModel):
    user_id: UserId
    title: str
    message: str
    type: NotificationType
    link: str | None = None
    dedup_key: str | None = None


class NotificationRead(NotificationCreate):
    id: NotificationId
    is_read: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
