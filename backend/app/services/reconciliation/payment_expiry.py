from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from app.schemas.reconciliation import TaskDetails
from app.services.notification_service import NotificationService
from app.services.reconciliation.base import EntityOutcome, ReconciliationTask, SessionFactory
from common.utils.utils import get_logger
from shared_db.crud.billing import InvoiceDAO, PaymentDAO
from shared_db.crud.classes import WaitingListDAO
from shared_db.crud.enrollment import EnrollmentDAO
from shared_db.models.enums import EnrollmentStatus, NotificationType
from shared_db.schemas.billing import PaymentRead

logger = get_logger()

PAYMENT_EXPIRED_TITLE = "Payment Expired"


class PaymentExpiryTask(ReconciliationTask[PaymentRead]):
    """PENDING payments past their deadline: expire the payment, its invoice and a still-pending enrollment."""

    name = "payment-expiry"

    def __init__(
        self,
        new_session: SessionFactory,
        payment_dao: PaymentDAO,
        invoice_dao: InvoiceDAO,
        enrollment_dao: EnrollmentDAO,
        waiting_list_dao: WaitingListDAO,
        notification_service: NotificationService,
    ) -> None:
        super().__init__(new_session)
        self.payment_dao = payment_dao
        self.invoice_dao = invoice_dao
        self.enrollment_dao = enrollment_dao
        self.waiting_list_dao = waiting_list_dao
        self.notification_service = notification_service

    async def _load(self, db: AsyncSession, now: datetime) -> Sequence[PaymentRead]:
        return await self.payment_dao.list_expired_pending(db, now=now)

    async def _process(self, db: AsyncSession, item: PaymentRead, now: datetime) -> EntityOutcome:
        context = await self.enrollment_dao.get_context(db, item.enrollment_id)

        if not await self.payment_dao.mark_expired(db, item.id):
            # Settled by the webhook after the candidate list was loaded
            return EntityOutcome.SKIPPED

        invoice = await self.invoice_dao.get_by_payment_id(db, item.id)
        if invoice is not None:
            _ = await self.invoice_dao.mark_overdue(db, invoice.id)

        if context.enrollment.status == EnrollmentStatus.PENDING:
            cancelled = await self.enrollment_dao.transition(
                db,
                context.enrollment.id,
                from_status=EnrollmentStatus.PENDING,
                to_status=EnrollmentStatus.CANCELLED,
            )
            if cancelled:
                released = await self.waiting_list_dao.expire_approved(db, context.student.student_id)
                logger.info(
                    "Pending enrollment cancelled",
                    enrollment_id=context.enrollment.id,
                    payment_id=item.id,
                    waiting_list_expired=released,
                )

        reference = invoice.invoice_number if invoice is not None else item.order_id
        _ = await self.notification_service.notify(
            db,
            user_id=context.student.user_id,
            title=PAYMENT_EXPIRED_TITLE,
            message=f"The payment deadline for {reference} has passed. Please contact the admin or register again.",
            notification_type=NotificationType.PAYMENT,
            now=now,
        )
        return EntityOutcome.PROCESSED

    def _entity_id(self, item: PaymentRead) -> str:
        return item.id

    def _summary(self, details: TaskDetails, items: Sequence[PaymentRead]) -> str:
        return f"Processed {details.processed}/{details.total} expired payments"
