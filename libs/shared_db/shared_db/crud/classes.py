"""DAOs for sections and waiting-list entries.

``current_enrollments`` is the only cross-record counter in the schema; it is only ever
changed with single-statement atomic updates.
"""

from __future__ import annotations

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from common.ids import ClassSectionId, ClassTemplateId, StudentId
from common.utils.utils import get_logger
from shared_db.crud.enrollment import EnrollmentDAO
from shared_db.models.classes import ClassSection, WaitingListEntry
from shared_db.models.enums import SectionStatus, WaitingListStatus
from shared_db.schemas.classes import ClassSectionRead, SectionOccupancy

logger = get_logger(__name__)


class ClassSectionDAO:
    def __init__(self, enrollment_dao: EnrollmentDAO | None = None) -> None:
        self._enrollment_dao = enrollment_dao or EnrollmentDAO()

    async def get(self, db: AsyncSession, section_id: ClassSectionId) -> ClassSectionRead | None:
        result = await db.execute(select(ClassSection).where(ClassSection.id == section_id))
        row = result.scalar_one_or_none()
        return ClassSectionRead.model_validate(row) if row else None

    async def list_ids(self, db: AsyncSession, *, include_archived: bool = False) -> list[ClassSectionId]:
        query = select(ClassSection.id).order_by(ClassSection.id)
        if not include_archived:
            query = query.where(ClassSection.status != SectionStatus.ARCHIVED)
        result = await db.execute(query)
        return list(result.scalars().all())

    async def decrement_enrollments(self, db: AsyncSession, section_id: ClassSectionId) -> SectionOccupancy | None:
        """Atomically release one seat and return the post-decrement state.

        Returns None when the section does not exist or its counter is already zero.
        """
        result = await db.execute(
            update(ClassSection)
            .where(ClassSection.id == section_id, ClassSection.current_enrollments > 0)
            .values(current_enrollments=ClassSection.current_enrollments - 1)
            .returning(
                ClassSection.id,
                ClassSection.current_enrollments,
                ClassSection.max_students_per_section,
                ClassSection.status,
            )
            .execution_options(synchronize_session=False)
        )
        row = result.one_or_none()
        return SectionOccupancy.model_validate(dict(row._mapping)) if row else None

    async def set_status(
        self,
        db: AsyncSession,
        section_id: ClassSectionId,
        *,
        from_status: SectionStatus,
        to_status: SectionStatus,
    ) -> bool:
        result = await db.execute(
            update(ClassSection)
            .where(ClassSection.id == section_id, ClassSection.status == from_status)
            .values(status=to_status)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1  # type: ignore[attr-defined]

    async def recount_enrollments(self, db: AsyncSession, section_id: ClassSectionId) -> SectionOccupancy | None:
        """Recompute the counter from the enrollments that hold a seat and restore FULL <=> count == max.

        ARCHIVED sections keep their status. Returns None for an unknown section.
        """
        section = await self.get(db, section_id)
        if section is None:
            return None

        count = await self._enrollment_dao.count_occupying(db, section_id)
        status = section.status
        if status != SectionStatus.ARCHIVED:
            status = SectionStatus.FULL if count >= section.max_students_per_section else SectionStatus.ACTIVE

        if count != section.current_enrollments or status != section.status:
            logger.warning(
                "Section counter drift corrected",
                section_id=section_id,
                stored=section.current_enrollments,
                counted=count,
                stored_status=section.status,
                status=status,
            )
            _ = await db.execute(
                update(ClassSection)
                .where(ClassSection.id == section_id)
                .values(current_enrollments=count, status=status)
                .execution_options(synchronize_session=False)
            )

        return SectionOccupancy(
            id=section_id,
            current_enrollments=count,
            max_students_per_section=section.max_students_per_section,
            status=status,
        )


class WaitingListDAO:
    async def expire_approved(
        self,
        db: AsyncSession,
        student_id: StudentId,
        *,
        template_id: ClassTemplateId | None = None,
    ) -> int:
        """APPROVED -> EXPIRED for the student's entries, optionally limited to one template."""
        query = update(WaitingListEntry).where(
            WaitingListEntry.student_id == student_id,
            WaitingListEntry.status == WaitingListStatus.APPROVED,
        )
        if template_id is not None:
            query = query.where(WaitingListEntry.template_id == template_id)
        result = await db.execute(query.values(status=WaitingListStatus.EXPIRED).execution_options(synchronize_session=False))
        return int(result.rowcount)  # type: ignore[attr-defined]
