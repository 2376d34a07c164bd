from __future__ import annotations

from datetime import datetime

from sqlalchemy import ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from common.db.db_utils import DateTimeUTC
from common.ids import ClassSectionId, EnrollmentId, StudentId, new_id
from shared_db.db import Base
from shared_db.models.enums import EnrollmentStatus


class Enrollment(Base):
    """A student's subscription to a section.

    ``expiry_date`` is meaningful for ACTIVE and EXPIRED rows, ``grace_expiry_date`` only for EXPIRED.
    """

    __tablename__ = "enrollments"
    __table_args__ = (
        Index("ix_enrollments_status_expiry_date", "status", "expiry_date"),
        Index("ix_enrollments_status_grace_expiry_date", "status", "grace_expiry_date"),
    )

    id: Mapped[EnrollmentId] = mapped_column(String(36), primary_key=True, default=new_id)
    student_id: Mapped[StudentId] = mapped_column(String(36), ForeignKey("students.id"), nullable=False, index=True)
    section_id: Mapped[ClassSectionId | None] = mapped_column(String(36), ForeignKey("class_sections.id"), nullable=True, index=True)
    status: Mapped[EnrollmentStatus] = mapped_column(String(32), nullable=False, default=EnrollmentStatus.PENDING)
    expiry_date: Mapped[datetime | None] = mapped_column(DateTimeUTC(), nullable=True)
    grace_expiry_date: Mapped[datetime | None] = mapped_column(DateTimeUTC(), nullable=True)
