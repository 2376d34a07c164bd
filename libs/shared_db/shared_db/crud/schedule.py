"""DAOs for the events the reminder tasks scan: meetings and assignments."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from common.ids import AssignmentId, ClassSectionId, StudentId
from shared_db.models.classes import ClassSection, ClassTemplate
from shared_db.models.enrollment import Enrollment
from shared_db.models.enums import AssignmentStatus, EnrollmentStatus, MeetingStatus
from shared_db.models.schedule import Assignment, AssignmentSubmission, ScheduledMeeting
from shared_db.models.users import Student
from shared_db.schemas.schedule import (
    AssignmentRead,
    AssignmentReminderTarget,
    MeetingReminderTarget,
    ReminderRecipient,
    ScheduledMeetingRead,
)


async def _active_recipients(db: AsyncSession, section_id: ClassSectionId) -> list[ReminderRecipient]:
    result = await db.execute(
        select(Enrollment.student_id, Student.user_id)
        .join(Student, Student.id == Enrollment.student_id)
        .where(Enrollment.section_id == section_id, Enrollment.status == EnrollmentStatus.ACTIVE)
        .order_by(Enrollment.student_id)
    )
    return [ReminderRecipient(student_id=student_id, user_id=user_id) for student_id, user_id in result.all()]


async def _program_name(db: AsyncSession, section_id: ClassSectionId) -> str | None:
    result = await db.execute(
        select(ClassTemplate.name).join(ClassSection, ClassSection.template_id == ClassTemplate.id).where(ClassSection.id == section_id)
    )
    return result.scalar_one_or_none()


class ScheduledMeetingDAO:
    async def list_reminder_targets(self, db: AsyncSession, *, start: datetime, end: datetime) -> list[MeetingReminderTarget]:
        """SCHEDULED meetings in ``[start, end)`` with their actively enrolled recipients."""
        result = await db.execute(
            select(ScheduledMeeting)
            .where(
                ScheduledMeeting.status == MeetingStatus.SCHEDULED,
                ScheduledMeeting.scheduled_at >= start,
                ScheduledMeeting.scheduled_at < end,
            )
            .order_by(ScheduledMeeting.scheduled_at, ScheduledMeeting.id)
        )
        targets: list[MeetingReminderTarget] = []
        for meeting in result.scalars().all():
            targets.append(
                MeetingReminderTarget(
                    meeting=ScheduledMeetingRead.model_validate(meeting),
                    program_name=await _program_name(db, meeting.section_id),
                    recipients=await _active_recipients(db, meeting.section_id),
                )
            )
        return targets


class AssignmentDAO:
    async def list_reminder_targets(self, db: AsyncSession, *, start: datetime, end: datetime) -> list[AssignmentReminderTarget]:
        """PUBLISHED assignments due in ``[start, end)`` with recipients and who already submitted."""
        result = await db.execute(
            select(Assignment)
            .where(
                Assignment.status == AssignmentStatus.PUBLISHED,
                Assignment.due_date >= start,
                Assignment.due_date < end,
            )
            .order_by(Assignment.due_date, Assignment.id)
        )
        targets: list[AssignmentReminderTarget] = []
        for assignment in result.scalars().all():
            targets.append(
                AssignmentReminderTarget(
                    assignment=AssignmentRead.model_validate(assignment),
                    program_name=await _program_name(db, assignment.section_id),
                    recipients=await _active_recipients(db, assignment.section_id),
                    submitted_student_ids=await self.submitted_student_ids(db, assignment.id),
                )
            )
        return targets

    async def submitted_student_ids(self, db: AsyncSession, assignment_id: AssignmentId) -> set[StudentId]:
        result = await db.execute(select(AssignmentSubmission.student_id).where(AssignmentSubmission.assignment_id == assignment_id))
        return set(result.scalars().all())
