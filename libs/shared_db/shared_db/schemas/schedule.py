from __future__ import annotations

from datetime import datetime

from pydantic import ConfigDict

from common.ids import AssignmentId, ClassSectionId, ScheduledMeetingId, StudentId, UserId
from common.utils.json_model import JsonModel
from shared_db.models.enums import AssignmentStatus, MeetingStatus


class ReminderRecipient(JsonModel):
    """An actively enrolled student of the event's section."""

    student_id: StudentId
    user_id: UserId


class ScheduledMeetingRead(JsonModel):
    id: ScheduledMeetingId
    section_id: ClassSectionId
    title: str
    scheduled_at: datetime
    meeting_url: str | None = None
    status: MeetingStatus

    model_config = ConfigDict(from_attributes=True)


class AssignmentRead(JsonModel):
    id: AssignmentId
    section_id: ClassSectionId
    title: str
    due_date: datetime
    status: AssignmentStatus

    model_config = ConfigDict(from_attributes=True)


class MeetingReminderTarget(JsonModel):
    meeting: ScheduledMeetingRead
    program_name: str | None = None
    recipients: list[ReminderRecipient]


class AssignmentReminderTarget(JsonModel):
    assignment: AssignmentRead
    program_name: str | None = None
    recipients: list[ReminderRecipient]
    submitted_student_ids: set[StudentId]
