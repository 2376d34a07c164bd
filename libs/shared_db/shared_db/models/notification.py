from __future__ import annotations

from sqlalchemy import Boolean, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from common.ids import NotificationId, UserId, new_id
from shared_db.db import Base
from shared_db.models.enums import NotificationType


class Notification(Base):
    __tablename__ = "notifications"
    __table_args__ = (Index("ix_notifications_user_created", "user_id", "created_at"),)

    id: Mapped[NotificationId] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[UserId] = mapped_column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[NotificationType] = mapped_column(String(32), nullable=False, default=NotificationType.SYSTEM)
    link: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    # sha256 hex of (user, event type, event id, local date); reminders only
    dedup_key: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
