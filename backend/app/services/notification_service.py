"""Student notifications and the "already notified today?" check used by reminders."""

from __future__ import annotations

import hashlib
from datetime import date, datetime

from sqlalchemy.ext.asyncio import AsyncSession

from common.ids import UserId
from common.utils.utils import get_logger
from shared_db.crud.notification import NotificationDAO
from shared_db.models.enums import NotificationType
from shared_db.schemas.notification import NotificationCreate, NotificationRead

logger = get_logger()


class NotificationService:
    def __init__(self, notification_dao: NotificationDAO) -> None:
        self.notification_dao = notification_dao

    @staticmethod
    def dedup_key(user_id: UserId, event_type: str, event_id: str, local_date: date) -> str:
        raw = f"{user_id}|{event_type}|{event_id}|{local_date.isoformat()}"
        return hashlib.sha256(raw.encode("utf-8")).hexdigest()

    async def already_notified(
        self,
        db: AsyncSession,
        *,
        user_id: UserId,
        title_pattern: str,
        since: datetime,
        message_contains: str,
        dedup_key: str | None = None,
    ) -> bool:
        """True when the dedup key or the title/message substring rule finds a prior notification.

        When a key is given, the substring rule only looks at rows stored without a key, so one keyed
        reminder never hides another event whose title contains it.
        """
        if dedup_key is not None and await self.notification_dao.exists_with_dedup_key(db, dedup_key):
            return True
        return await self.notification_dao.exists_matching(
            db,
            user_id=user_id,
            title_contains=title_pattern,
            since=since,
            message_contains=message_contains,
            unkeyed_only=dedup_key is not None,
        )

    async def notify(
        self,
        db: AsyncSession,
        *,
        user_id: UserId,
        title: str,
        message: str,
        notification_type: NotificationType,
        now: datetime,
        link: str | None = None,
        dedup_key: str | None = None,
    ) -> NotificationRead:
        notification = await self.notification_dao.create(
            db,
            NotificationCreate(user_id=user_id, title=title, message=message, type=notification_type, link=link, dedup_key=dedup_key),
            now=now,
        )
        logger.debug("Notification queued", user_id=user_id, title=title, notification_type=notification_type)
        return notification
