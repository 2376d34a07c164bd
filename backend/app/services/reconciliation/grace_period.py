from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from app.schemas.reconciliation import TaskDetails
from app.services.notification_service import NotificationService
from app.services.reconciliation.base import EntityOutcome, ReconciliationTask, SessionFactory
from common.core.app_error import Errors
from common.utils.utils import get_logger
from shared_db.crud.classes import ClassSectionDAO, WaitingListDAO
from shared_db.crud.enrollment import EnrollmentDAO
from shared_db.models.enums import EnrollmentStatus, NotificationType, SectionStatus
from shared_db.schemas.enrollment import EnrollmentContext, EnrollmentRead

logger = get_logger()

SLOT_RELEASED_TITLE = "Slot Released"


class GracePeriodTask(ReconciliationTask[EnrollmentRead]):
    """EXPIRED enrollments past the grace deadline give their seat back to the section.

    The status flip and the counter decrement share one transaction; once the enrollment is
    SLOT_RELEASED it never matches again, so each enrollment releases exactly one seat.
    """

    name = "grace-period"

    def __init__(
        self,
        new_session: SessionFactory,
        enrollment_dao: EnrollmentDAO,
        section_dao: ClassSectionDAO,
        waiting_list_dao: WaitingListDAO,
        notification_service: NotificationService,
    ) -> None:
        super().__init__(new_session)
        self.enrollment_dao = enrollment_dao
        self.section_dao = section_dao
        self.waiting_list_dao = waiting_list_dao
        self.notification_service = notification_service

    async def _load(self, db: AsyncSession, now: datetime) -> Sequence[EnrollmentRead]:
        return await self.enrollment_dao.list_grace_elapsed(db, now=now)

    async def _process(self, db: AsyncSession, item: EnrollmentRead, now: datetime) -> EntityOutcome:
        context = await self.enrollment_dao.get_context(db, item.id)

        moved = await self.enrollment_dao.transition(
            db, item.id, from_status=EnrollmentStatus.EXPIRED, to_status=EnrollmentStatus.SLOT_RELEASED
        )
        if not moved:
            return EntityOutcome.SKIPPED

        if item.section_id is not None:
            await self._release_seat(db, context)

        if context.template is not None:
            _ = await self.waiting_list_dao.expire_approved(db, context.student.student_id, template_id=context.template.id)

        program = context.program_name or "your class"
        _ = await self.notification_service.notify(
            db,
            user_id=context.student.user_id,
            title=SLOT_RELEASED_TITLE,
            message=f'The grace period for "{program}" has ended and your seat has been released. Register again to rejoin.',
            notification_type=NotificationType.SUBSCRIPTION,
            now=now,
        )
        return EntityOutcome.PROCESSED

    async def _release_seat(self, db: AsyncSession, context: EnrollmentContext) -> None:
        section_id = context.enrollment.section_id
        assert section_id is not None

        occupancy = await self.section_dao.decrement_enrollments(db, section_id)
        if occupancy is None:
            if await self.section_dao.get(db, section_id) is None:
                raise Errors.Reconciliation.MISSING_RELATION.create(
                    message="Enrollment points at a missing section",
                    details={"enrollment_id": context.enrollment.id, "section_id": section_id},
                )
            logger.warning("Section counter already at zero", section_id=section_id, enrollment_id=context.enrollment.id)
            return

        if occupancy.status == SectionStatus.FULL and not occupancy.is_full:
            _ = await self.section_dao.set_status(db, section_id, from_status=SectionStatus.FULL, to_status=SectionStatus.ACTIVE)

        logger.info(
            "Section seat released",
            section_id=section_id,
            enrollment_id=context.enrollment.id,
            current_enrollments=occupancy.current_enrollments,
        )

    def _entity_id(self, item: EnrollmentRead) -> str:
        return item.id

    def _summary(self, details: TaskDetails, items: Sequence[EnrollmentRead]) -> str:
        return f"Released {details.processed}/{details.total} slots after grace period"
