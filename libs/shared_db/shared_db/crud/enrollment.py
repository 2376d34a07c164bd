"""DAO for enrollments and the context the reconciliation tasks need around them."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from common.core.app_error import Errors
from common.ids import ClassSectionId, EnrollmentId
from common.utils.utils import get_logger
from shared_db.models.classes import ClassSection, ClassTemplate
from shared_db.models.enrollment import Enrollment
from shared_db.models.enums import EnrollmentStatus
from shared_db.models.users import Student, User
from shared_db.schemas.classes import ClassSectionRead, ClassTemplateRead
from shared_db.schemas.enrollment import EnrollmentContext, EnrollmentRead, StudentContact

logger = get_logger(__name__)

# Statuses that hold a seat in the section counter
OCCUPYING_STATUSES = (EnrollmentStatus.ACTIVE, EnrollmentStatus.EXPIRED)


class EnrollmentDAO:
    async def get(self, db: AsyncSession, enrollment_id: EnrollmentId) -> EnrollmentRead | None:
        result = await db.execute(select(Enrollment).where(Enrollment.id == enrollment_id))
        row = result.scalar_one_or_none()
        return EnrollmentRead.model_validate(row) if row else None

    async def list_active_past_expiry(self, db: AsyncSession, *, now: datetime) -> list[EnrollmentRead]:
        """ACTIVE enrollments whose paid period ended before ``now``."""
        return await self._list(
            db,
            Enrollment.status == EnrollmentStatus.ACTIVE,
            Enrollment.expiry_date < now,
            order_by=Enrollment.expiry_date,
        )

    async def list_grace_elapsed(self, db: AsyncSession, *, now: datetime) -> list[EnrollmentRead]:
        """EXPIRED enrollments whose grace window closed before ``now``."""
        return await self._list(
            db,
            Enrollment.status == EnrollmentStatus.EXPIRED,
            Enrollment.grace_expiry_date < now,
            order_by=Enrollment.grace_expiry_date,
        )

    async def list_expiring_between(self, db: AsyncSession, *, start: datetime, end: datetime) -> list[EnrollmentRead]:
        """ACTIVE enrollments expiring within ``[start, end]``."""
        return await self._list(
            db,
            Enrollment.status == EnrollmentStatus.ACTIVE,
            Enrollment.expiry_date >= start,
            Enrollment.expiry_date <= end,
            order_by=Enrollment.expiry_date,
        )

    async def _list(self, db: AsyncSession, *criteria: object, order_by: object) -> list[EnrollmentRead]:
        result = await db.execute(select(Enrollment).where(*criteria).order_by(order_by, Enrollment.id))  # type: ignore[arg-type]
        return [EnrollmentRead.model_validate(row) for row in result.scalars().all()]

    async def get_context(self, db: AsyncSession, enrollment_id: EnrollmentId) -> EnrollmentContext:
        """Load an enrollment with its student contact, section and template.

        Raises MISSING_RELATION when the enrollment or its student/user does not exist.
        A missing section or template is reported as ``None`` so callers can decide.
        """
        result = await db.execute(
            select(Enrollment, Student, User)
            .outerjoin(Student, Student.id == Enrollment.student_id)
            .outerjoin(User, User.id == Student.user_id)
            .where(Enrollment.id == enrollment_id)
        )
        row = result.one_or_none()
        if row is None:
            raise Errors.Reconciliation.MISSING_RELATION.create(
                message=f"Enrollment not found: {enrollment_id}", details={"enrollment_id": enrollment_id}
            )
        enrollment, student, user = row
        if student is None or user is None:
            raise Errors.Reconciliation.MISSING_RELATION.create(
                message=f"Enrollment {enrollment_id} has no student user",
                details={"enrollment_id": enrollment_id, "student_id": enrollment.student_id},
            )

        section: ClassSectionRead | None = None
        template: ClassTemplateRead | None = None
        if enrollment.section_id is not None:
            section_row = (
                await db.execute(
                    select(ClassSection, ClassTemplate)
                    .outerjoin(ClassTemplate, ClassTemplate.id == ClassSection.template_id)
                    .where(ClassSection.id == enrollment.section_id)
                )
            ).one_or_none()
            if section_row is not None:
                section = ClassSectionRead.model_validate(section_row[0])
                template = ClassTemplateRead.model_validate(section_row[1]) if section_row[1] is not None else None

        return EnrollmentContext(
            enrollment=EnrollmentRead.model_validate(enrollment),
            student=StudentContact(student_id=student.id, user_id=user.id, name=user.name, email=user.email, phone=user.phone),
            section=section,
            template=template,
        )

    async def transition(
        self,
        db: AsyncSession,
        enrollment_id: EnrollmentId,
        *,
        from_status: EnrollmentStatus,
        to_status: EnrollmentStatus,
    ) -> bool:
        """Compare-and-set the status. Returns False when the row was not in ``from_status``."""
        result = await db.execute(
            update(Enrollment)
            .where(Enrollment.id == enrollment_id, Enrollment.status == from_status)
            .values(status=to_status)
            .execution_options(synchronize_session=False)
        )
        moved = result.rowcount == 1  # type: ignore[attr-defined]
        if not moved:
            logger.info("Enrollment status already moved", enrollment_id=enrollment_id, expected=from_status, target=to_status)
        return moved

    async def count_occupying(self, db: AsyncSession, section_id: ClassSectionId) -> int:
        result = await db.execute(
            select(func.count(Enrollment.id)).where(Enrollment.section_id == section_id, Enrollment.status.in_(OCCUPYING_STATUSES))
        )
        return int(result.scalar_one())
