from __future__ import annotations

import math
import secrets
import string
from collections.abc import Sequence
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from sqlalchemy.ext.asyncio import AsyncSession

from app.schemas.billing import GatewayCustomer, GatewayLineItem
from app.schemas.reconciliation import TaskDetails
from app.services.notification_service import NotificationService
from app.services.reconciliation.base import EntityOutcome, ReconciliationTask, SessionFactory
from app.services.stripe_service import PaymentGateway
from common.core.app_error import Errors
from common.core.config_service import ReconciliationSection
from common.utils.utils import get_logger
from shared_db.crud.billing import InvoiceDAO, PaymentDAO
from shared_db.crud.enrollment import EnrollmentDAO
from shared_db.models.enums import NotificationType
from shared_db.schemas.billing import InvoiceCreate, PaymentCreate
from shared_db.schemas.enrollment import EnrollmentRead

logger = get_logger()

RENEWAL_TITLE = "Renew Your Subscription"
RENEWAL_NOTE = "Subscription renewal"

_INVOICE_SUFFIX_ALPHABET = string.digits + string.ascii_uppercase
_INVOICE_NUMBER_ATTEMPTS = 5


def generate_invoice_number(now: datetime, timezone: ZoneInfo) -> str:
    """``INV-YYYYMMDD-XXXX`` with the business-local date and a random base36 suffix."""
    suffix = "".join(secrets.choice(_INVOICE_SUFFIX_ALPHABET) for _ in range(4))
    return f"INV-{now.astimezone(timezone):%Y%m%d}-{suffix}"


class RenewalInvoiceTask(ReconciliationTask[EnrollmentRead]):
    """Issue the next period's invoice and a hosted payment for ACTIVE enrollments about to expire.

    The invoice is flushed but not committed while the gateway is called, so a gateway failure rolls
    it back and the enrollment is picked up again on the next run. The hosted payment stays open for
    the same window as the invoice due date, and the Payment row expires when the gateway says it does.
    """

    name = "renewal-reminder"

    def __init__(
        self,
        new_session: SessionFactory,
        enrollment_dao: EnrollmentDAO,
        invoice_dao: InvoiceDAO,
        payment_dao: PaymentDAO,
        gateway: PaymentGateway,
        notification_service: NotificationService,
        settings: ReconciliationSection,
    ) -> None:
        super().__init__(new_session)
        self.enrollment_dao = enrollment_dao
        self.invoice_dao = invoice_dao
        self.payment_dao = payment_dao
        self.gateway = gateway
        self.notification_service = notification_service
        self.settings = settings
        self.business_timezone = ZoneInfo(settings.business_timezone)

    async def _load(self, db: AsyncSession, now: datetime) -> Sequence[EnrollmentRead]:
        return await self.enrollment_dao.list_expiring_between(db, start=now, end=now + timedelta(days=self.settings.renewal_window_days))

    async def _process(self, db: AsyncSession, item: EnrollmentRead, now: datetime) -> EntityOutcome:
        since = now - timedelta(days=self.settings.renewal_dedup_days)
        if await self.invoice_dao.has_recent_unpaid(db, item.id, since=since):
            logger.debug("Renewal invoice already pending", enrollment_id=item.id)
            return EntityOutcome.SKIPPED

        context = await self.enrollment_dao.get_context(db, item.id)
        if context.section is None or context.template is None or item.expiry_date is None:
            logger.warning("Skipping renewal for enrollment without section", enrollment_id=item.id, section_id=item.section_id)
            return EntityOutcome.SKIPPED

        program = context.template.name
        section_label = context.section.section_label
        price = context.template.price_per_month
        period_start = item.expiry_date
        due_date = now + timedelta(hours=self.settings.invoice_due_hours)

        invoice = await self.invoice_dao.create(
            db,
            InvoiceCreate(
                invoice_number=await self._unique_invoice_number(db, now),
                enrollment_id=item.id,
                student_name=context.student.name,
                student_email=context.student.email,
                student_phone=context.student.phone,
                program_name=program,
                section_label=section_label,
                period_start=period_start,
                period_end=period_start + timedelta(days=self.settings.billing_period_days),
                amount=price,
                total_amount=price,
                due_date=due_date,
                notes=RENEWAL_NOTE,
            ),
            now=now,
        )

        transaction = await self.gateway.create_transaction(
            order_id=invoice.invoice_number,
            gross_amount=invoice.total_amount,
            customer=GatewayCustomer(name=context.student.name, email=context.student.email, phone=context.student.phone),
            line_items=[
                GatewayLineItem(
                    id=context.template.id,
                    name=f"[RENEWAL] {program} - Section {section_label}",
                    price=invoice.total_amount,
                    quantity=1,
                )
            ],
            expiry_minutes=self.settings.invoice_due_hours * 60,
        )

        payment = await self.payment_dao.create(
            db,
            PaymentCreate(
                enrollment_id=item.id,
                amount=invoice.total_amount,
                payment_method=self.gateway.method_name,
                order_id=invoice.invoice_number,
                gateway_token=transaction.token,
                redirect_url=transaction.redirect_url,
                expired_at=transaction.expires_at or due_date,
            ),
            now=now,
        )
        await self.invoice_dao.attach_payment(db, invoice.id, payment.id)

        days_left = math.ceil((item.expiry_date - now) / timedelta(days=1))
        _ = await self.notification_service.notify(
            db,
            user_id=context.student.user_id,
            title=RENEWAL_TITLE,
            message=f'Your subscription to "{program}" ends in {days_left} days. Pay invoice {invoice.invoice_number} to keep your seat.',
            notification_type=NotificationType.SUBSCRIPTION,
            now=now,
            link=transaction.redirect_url,
        )
        logger.info("Renewal invoice issued", enrollment_id=item.id, invoice_number=invoice.invoice_number, payment_id=payment.id)
        return EntityOutcome.PROCESSED

    async def _unique_invoice_number(self, db: AsyncSession, now: datetime) -> str:
        for _ in range(_INVOICE_NUMBER_ATTEMPTS):
            number = generate_invoice_number(now, self.business_timezone)
            if not await self.invoice_dao.number_exists(db, number):
                return number
        raise Errors.Generic.INTERNAL_ERROR.create(message="Could not allocate a unique invoice number")

    def _entity_id(self, item: EnrollmentRead) -> str:
        return item.id

    def _summary(self, details: TaskDetails, items: Sequence[EnrollmentRead]) -> str:
        return f"Created {details.processed}/{details.total} renewal invoices"
