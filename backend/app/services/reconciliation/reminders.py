"""Same-day reminders for meetings and assignment deadlines.

"Today" is the calendar day of the run in the business timezone. A recipient is reminded at most once
per event per day. The stored dedup key finds earlier keyed reminders; rows written without a key
are matched by the title/message rule.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime
from typing import Any
from zoneinfo import ZoneInfo

from sqlalchemy.ext.asyncio import AsyncSession

from app.schemas.reconciliation import TaskDetails
from app.services.notification_service import NotificationService
from app.services.reconciliation.base import EntityOutcome, ReconciliationTask, SessionFactory
from common.utils.json_model import ImmutableJsonModel
from common.utils.utils import local_day_bounds
from shared_db.crud.schedule import AssignmentDAO, ScheduledMeetingDAO
from shared_db.models.enums import NotificationType
from shared_db.schemas.schedule import AssignmentReminderTarget, MeetingReminderTarget, ReminderRecipient

MEETING_REMINDER_TITLE = "Meeting Today"
ASSIGNMENT_REMINDER_TITLE = "Assignment Due Today!"
# Substring matched against earlier reminders' titles
ASSIGNMENT_REMINDER_TITLE_PATTERN = "Assignment Due Today"


class MeetingReminder(ImmutableJsonModel):
    target: MeetingReminderTarget
    recipient: ReminderRecipient
    day_start: datetime


class AssignmentReminder(ImmutableJsonModel):
    target: AssignmentReminderTarget
    recipient: ReminderRecipient
    day_start: datetime


class ReminderBatch[T](list[T]):
    """One reminder per (event, recipient), plus how many events fall on the day, recipients or not."""

    def __init__(self, reminders: Iterable[T], events: int) -> None:
        super().__init__(reminders)
        self.events = events


def _event_count(items: Sequence[Any]) -> int:
    return items.events if isinstance(items, ReminderBatch) else 0


class MeetingReminderTask(ReconciliationTask[MeetingReminder]):
    name = "meeting-reminder"

    def __init__(
        self,
        new_session: SessionFactory,
        meeting_dao: ScheduledMeetingDAO,
        notification_service: NotificationService,
        business_timezone: str,
    ) -> None:
        super().__init__(new_session)
        self.meeting_dao = meeting_dao
        self.notification_service = notification_service
        self.business_timezone = ZoneInfo(business_timezone)

    async def _load(self, db: AsyncSession, now: datetime) -> Sequence[MeetingReminder]:
        start, end = local_day_bounds(now, self.business_timezone.key)
        targets = await self.meeting_dao.list_reminder_targets(db, start=start, end=end)
        return ReminderBatch(
            (MeetingReminder(target=target, recipient=recipient, day_start=start) for target in targets for recipient in target.recipients),
            events=len(targets),
        )

    async def _process(self, db: AsyncSession, item: MeetingReminder, now: datetime) -> EntityOutcome:
        meeting = item.target.meeting
        user_id = item.recipient.user_id
        dedup_key = self.notification_service.dedup_key(user_id, "meeting", meeting.id, now.astimezone(self.business_timezone).date())

        if await self.notification_service.already_notified(
            db,
            user_id=user_id,
            title_pattern=MEETING_REMINDER_TITLE,
            since=item.day_start,
            message_contains=meeting.title,
            dedup_key=dedup_key,
        ):
            return EntityOutcome.SKIPPED

        local_time = meeting.scheduled_at.astimezone(self.business_timezone).strftime("%H:%M %Z")
        _ = await self.notification_service.notify(
            db,
            user_id=user_id,
            title=MEETING_REMINDER_TITLE,
            message=f'The class "{meeting.title}" is scheduled today at {local_time}. Don\'t forget to join!',
            notification_type=NotificationType.CLASS,
            now=now,
            link=meeting.meeting_url,
            dedup_key=dedup_key,
        )
        return EntityOutcome.PROCESSED

    def _entity_id(self, item: MeetingReminder) -> str:
        return f"{item.target.meeting.id}:{item.recipient.student_id}"

    def _summary(self, details: TaskDetails, items: Sequence[MeetingReminder]) -> str:
        return f"Sent {details.processed} meeting reminders for {_event_count(items)} meetings today"


class AssignmentReminderTask(ReconciliationTask[AssignmentReminder]):
    name = "assignment-reminder"

    def __init__(
        self,
        new_session: SessionFactory,
        assignment_dao: AssignmentDAO,
        notification_service: NotificationService,
        business_timezone: str,
    ) -> None:
        super().__init__(new_session)
        self.assignment_dao = assignment_dao
        self.notification_service = notification_service
        self.business_timezone = ZoneInfo(business_timezone)

    async def _load(self, db: AsyncSession, now: datetime) -> Sequence[AssignmentReminder]:
        start, end = local_day_bounds(now, self.business_timezone.key)
        targets = await self.assignment_dao.list_reminder_targets(db, start=start, end=end)
        return ReminderBatch(
            (AssignmentReminder(target=target, recipient=recipient, day_start=start) for target in targets for recipient in target.recipients),
            events=len(targets),
        )

    async def _process(self, db: AsyncSession, item: AssignmentReminder, now: datetime) -> EntityOutcome:
        assignment = item.target.assignment
        if item.recipient.student_id in item.target.submitted_student_ids:
            return EntityOutcome.SKIPPED

        user_id = item.recipient.user_id
        dedup_key = self.notification_service.dedup_key(user_id, "assignment", assignment.id, now.astimezone(self.business_timezone).date())
        if await self.notification_service.already_notified(
            db,
            user_id=user_id,
            title_pattern=ASSIGNMENT_REMINDER_TITLE_PATTERN,
            since=item.day_start,
            message_contains=assignment.title,
            dedup_key=dedup_key,
        ):
            return EntityOutcome.SKIPPED

        program = item.target.program_name or "your class"
        _ = await self.notification_service.notify(
            db,
            user_id=user_id,
            title=ASSIGNMENT_REMINDER_TITLE,
            message=f'The assignment "{assignment.title}" for "{program}" is due today. Submit it before the deadline!',
            notification_type=NotificationType.ASSIGNMENT,
            now=now,
            dedup_key=dedup_key,
        )
        return EntityOutcome.PROCESSED

    def _entity_id(self, item: AssignmentReminder) -> str:
        return f"{item.target.assignment.id}:{item.recipient.student_id}"

    def _summary(self, details: TaskDetails, items: Sequence[AssignmentReminder]) -> str:
        return f"Sent {details.processed} assignment reminders for {_event_count(items)} assignments due today"
