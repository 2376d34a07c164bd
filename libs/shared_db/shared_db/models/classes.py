from __future__ import annotations

from decimal import Decimal

from sqlalchemy import CheckConstraint, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from common.ids import ClassSectionId, ClassTemplateId, StudentId, WaitingListEntryId, new_id
from shared_db.db import Base
from shared_db.models.enums import SectionStatus, WaitingListStatus


class ClassTemplate(Base):
    """A program offered for monthly subscription."""

    __tablename__ = "class_templates"

    id: Mapped[ClassTemplateId] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    price_per_month: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    max_students_per_section: Mapped[int] = mapped_column(Integer, nullable=False, default=10)


class ClassSection(Base):
    """Bounded-capacity cohort of a template."""

    __tablename__ = "class_sections"
    __table_args__ = (CheckConstraint("current_enrollments >= 0", name="current_enrollments_non_negative"),)

    id: Mapped[ClassSectionId] = mapped_column(String(36), primary_key=True, default=new_id)
    template_id: Mapped[ClassTemplateId] = mapped_column(String(36), ForeignKey("class_templates.id"), nullable=False, index=True)
    section_label: Mapped[str] = mapped_column(String(32), nullable=False)
    current_enrollments: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    # Denormalized from the template at section creation
    max_students_per_section: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[SectionStatus] = mapped_column(String(32), nullable=False, default=SectionStatus.ACTIVE)


class WaitingListEntry(Base):
    __tablename__ = "waiting_list"

    id: Mapped[WaitingListEntryId] = mapped_column(String(36), primary_key=True, default=new_id)
    student_id: Mapped[StudentId] = mapped_column(String(36), ForeignKey("students.id"), nullable=False, index=True)
    template_id: Mapped[ClassTemplateId] = mapped_column(String(36), ForeignKey("class_templates.id"), nullable=False, index=True)
    status: Mapped[WaitingListStatus] = mapped_column(String(32), nullable=False, default=WaitingListStatus.PENDING)
