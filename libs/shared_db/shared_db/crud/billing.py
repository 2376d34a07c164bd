"""DAOs for payments and invoices."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from common.ids import EnrollmentId, InvoiceId, PaymentId
from common.utils.utils import get_logger
from shared_db.models.billing import Invoice, Payment
from shared_db.models.enums import InvoiceStatus, PaymentStatus
from shared_db.schemas.billing import InvoiceCreate, InvoiceRead, PaymentCreate, PaymentRead

logger = get_logger(__name__)

# Only invoices still awaiting money can become overdue
_OVERDUE_FROM = (InvoiceStatus.UNPAID, InvoiceStatus.OVERDUE)


class PaymentDAO:
    async def list_expired_pending(self, db: AsyncSession, *, now: datetime) -> list[PaymentRead]:
        """PENDING payments whose gateway window closed before ``now``."""
        result = await db.execute(
            select(Payment)
            .where(Payment.status == PaymentStatus.PENDING, Payment.expired_at < now)
            .order_by(Payment.expired_at, Payment.id)
        )
        return [PaymentRead.model_validate(row) for row in result.scalars().all()]

    async def create(self, db: AsyncSession, payload: PaymentCreate, *, now: datetime) -> PaymentRead:
        payment = Payment(**payload.model_dump(), status=PaymentStatus.PENDING, created_at=now, updated_at=now)
        db.add(payment)
        await db.flush()
        return PaymentRead.model_validate(payment)

    async def mark_expired(self, db: AsyncSession, payment_id: PaymentId) -> bool:
        """PENDING -> EXPIRED. Returns False if the payment left PENDING meanwhile (e.g. the webhook paid it)."""
        result = await db.execute(
            update(Payment)
            .where(Payment.id == payment_id, Payment.status == PaymentStatus.PENDING)
            .values(status=PaymentStatus.EXPIRED)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1  # type: ignore[attr-defined]


class InvoiceDAO:
    async def get_by_payment_id(self, db: AsyncSession, payment_id: PaymentId) -> InvoiceRead | None:
        result = await db.execute(select(Invoice).where(Invoice.payment_id == payment_id))
        row = result.scalar_one_or_none()
        return InvoiceRead.model_validate(row) if row else None

    async def has_recent_unpaid(self, db: AsyncSession, enrollment_id: EnrollmentId, *, since: datetime) -> bool:
        """Whether an UNPAID invoice for the enrollment was created at or after ``since``."""
        result = await db.execute(
            select(Invoice.id)
            .where(Invoice.enrollment_id == enrollment_id, Invoice.status == InvoiceStatus.UNPAID, Invoice.created_at >= since)
            .limit(1)
        )
        return result.scalar_one_or_none() is not None

    async def number_exists(self, db: AsyncSession, invoice_number: str) -> bool:
        result = await db.execute(select(Invoice.id).where(Invoice.invoice_number == invoice_number).limit(1))
        return result.scalar_one_or_none() is not None

    async def create(self, db: AsyncSession, payload: InvoiceCreate, *, now: datetime) -> InvoiceRead:
        invoice = Invoice(**payload.model_dump(), status=InvoiceStatus.UNPAID, created_at=now, updated_at=now)
        db.add(invoice)
        await db.flush()
        return InvoiceRead.model_validate(invoice)

    async def attach_payment(self, db: AsyncSession, invoice_id: InvoiceId, payment_id: PaymentId) -> None:
        _ = await db.execute(
            update(Invoice)
            .where(Invoice.id == invoice_id)
            .values(payment_id=payment_id)
            .execution_options(synchronize_session="fetch")
        )

    async def mark_overdue(self, db: AsyncSession, invoice_id: InvoiceId) -> bool:
        """UNPAID -> OVERDUE. PAID and CANCELLED invoices are left alone."""
        result = await db.execute(
            update(Invoice)
            .where(Invoice.id == invoice_id, Invoice.status.in_(_OVERDUE_FROM))
            .values(status=InvoiceStatus.OVERDUE)
            .execution_options(synchronize_session=False)
        )
        moved = result.rowcount == 1  # type: ignore[attr-defined]
        if not moved:
            logger.warning("Invoice not overdue-able, left unchanged", invoice_id=invoice_id)
        return moved
