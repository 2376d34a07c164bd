from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from zoneinfo import ZoneInfo

from sqlalchemy.ext.asyncio import AsyncSession

from app.schemas.reconciliation import TaskDetails
from app.services.notification_service import NotificationService
from app.services.reconciliation.base import EntityOutcome, ReconciliationTask, SessionFactory
from shared_db.crud.enrollment import EnrollmentDAO
from shared_db.models.enums import EnrollmentStatus, NotificationType
from shared_db.schemas.enrollment import EnrollmentRead

SUBSCRIPTION_ENDED_TITLE = "Subscription Ended"


class SubscriptionExpiryTask(ReconciliationTask[EnrollmentRead]):
    """ACTIVE enrollments past their expiry date move to EXPIRED; the seat stays held until the grace deadline."""

    name = "subscription-expiry"

    def __init__(
        self,
        new_session: SessionFactory,
        enrollment_dao: EnrollmentDAO,
        notification_service: NotificationService,
        business_timezone: str,
    ) -> None:
        super().__init__(new_session)
        self.enrollment_dao = enrollment_dao
        self.notification_service = notification_service
        self.business_timezone = ZoneInfo(business_timezone)

    async def _load(self, db: AsyncSession, now: datetime) -> Sequence[EnrollmentRead]:
        return await self.enrollment_dao.list_active_past_expiry(db, now=now)

    async def _process(self, db: AsyncSession, item: EnrollmentRead, now: datetime) -> EntityOutcome:
        context = await self.enrollment_dao.get_context(db, item.id)

        moved = await self.enrollment_dao.transition(db, item.id, from_status=EnrollmentStatus.ACTIVE, to_status=EnrollmentStatus.EXPIRED)
        if not moved:
            return EntityOutcome.SKIPPED

        program = context.program_name or "your class"
        message = f'Your subscription to "{program}" has ended.'
        if item.grace_expiry_date is not None:
            deadline = item.grace_expiry_date.astimezone(self.business_timezone).strftime("%d %b %Y %H:%M %Z")
            message += f" Renew before {deadline} to keep your seat."
        else:
            message += " Renew soon to keep your seat."

        _ = await self.notification_service.notify(
            db,
            user_id=context.student.user_id,
            title=SUBSCRIPTION_ENDED_TITLE,
            message=message,
            notification_type=NotificationType.SUBSCRIPTION,
            now=now,
        )
        return EntityOutcome.PROCESSED

    def _entity_id(self, item: EnrollmentRead) -> str:
        return item.id

    def _summary(self, details: TaskDetails, items: Sequence[EnrollmentRead]) -> str:
        return f"Processed {details.processed}/{details.total} expired subscriptions"
