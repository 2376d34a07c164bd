from __future__ import annotations

from datetime import datetime

from sqlalchemy import ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from common.db.db_utils import DateTimeUTC
from common.ids import AssignmentId, AssignmentSubmissionId, ClassSectionId, ScheduledMeetingId, StudentId, new_id
from shared_db.db import Base
from shared_db.models.enums import AssignmentStatus, MeetingStatus


class ScheduledMeeting(Base):
    __tablename__ = "scheduled_meetings"

    id: Mapped[ScheduledMeetingId] = mapped_column(String(36), primary_key=True, default=new_id)
    section_id: Mapped[ClassSectionId] = mapped_column(String(36), ForeignKey("class_sections.id"), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    scheduled_at: Mapped[datetime] = mapped_column(DateTimeUTC(), nullable=False, index=True)
    meeting_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[MeetingStatus] = mapped_column(String(32), nullable=False, default=MeetingStatus.SCHEDULED)


class Assignment(Base):
    __tablename__ = "assignments"

    id: Mapped[AssignmentId] = mapped_column(String(36), primary_key=True, default=new_id)
    section_id: Mapped[ClassSectionId] = mapped_column(String(36), ForeignKey("class_sections.id"), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    due_date: Mapped[datetime] = mapped_column(DateTimeUTC(), nullable=False, index=True)
    status: Mapped[AssignmentStatus] = mapped_column(String(32), nullable=False, default=AssignmentStatus.DRAFT)


class AssignmentSubmission(Base):
    __tablename__ = "assignment_submissions"
    __table_args__ = (UniqueConstraint("assignment_id", "student_id", name="uq_assignment_submissions_assignment_student"),)

    id: Mapped[AssignmentSubmissionId] = mapped_column(String(36), primary_key=True, default=new_id)
    assignment_id: Mapped[AssignmentId] = mapped_column(String(36), ForeignKey("assignments.id", ondelete="CASCADE"), nullable=False)
    student_id: Mapped[StudentId] = mapped_column(String(36), ForeignKey("students.id"), nullable=False)
    submitted_at: Mapped[datetime] = mapped_column(DateTimeUTC(), nullable=False)
