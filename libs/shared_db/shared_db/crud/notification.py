"""DAO for notifications, including the lookups behind reminder dedup."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from common.ids import UserId
from shared_db.models.notification import Notification
from shared_db.schemas.notification import NotificationCreate, NotificationRead


class NotificationDAO:
    async def create(self, db: AsyncSession, payload: NotificationCreate, *, now: datetime) -> NotificationRead:
        notification = Notification(**payload.model_dump(), is_read=False, created_at=now, updated_at=now)
        db.add(notification)
        await db.flush()
        return NotificationRead.model_validate(notification)

    async def exists_matching(
        self,
        db: AsyncSession,
        *,
        user_id: UserId,
        title_contains: str,
        since: datetime,
        message_contains: str,
        unkeyed_only: bool = False,
    ) -> bool:
        """Substring match on title and message for one recipient, created at or after ``since``.

        With ``unkeyed_only`` rows carrying a dedup key are ignored; those are matched by key alone.
        """
        query = select(Notification.id).where(
            Notification.user_id == user_id,
            Notification.title.contains(title_contains, autoescape=True),
            Notification.created_at >= since,
            Notification.message.contains(message_contains, autoescape=True),
        )
        if unkeyed_only:
            query = query.where(Notification.dedup_key.is_(None))
        result = await db.execute(query.limit(1))
        return result.scalar_one_or_none() is not None

    async def exists_with_dedup_key(self, db: AsyncSession, dedup_key: str) -> bool:
        result = await db.execute(select(Notification.id).where(Notification.dedup_key == dedup_key).limit(1))
        return result.scalar_one_or_none() is not None

    async def list_for_user(self, db: AsyncSession, user_id: UserId) -> list[NotificationRead]:
        result = await db.execute(
            select(Notification).where(Notification.user_id == user_id).order_by(Notification.created_at, Notification.id)
        )
        return [NotificationRead.model_validate(row) for row in result.scalars().all()]
