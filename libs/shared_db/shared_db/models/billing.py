"""Payment and invoice models.

A payment is one gateway-backed attempt; an invoice is the billing document it settles.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import ForeignKey, Index, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from common.db.db_utils import DateTimeUTC
from common.ids import EnrollmentId, InvoiceId, PaymentId, new_id
from shared_db.db import Base
from shared_db.models.enums import InvoiceStatus, PaymentStatus


class Payment(Base):
    __tablename__ = "payments"
    __table_args__ = (Index("ix_payments_status_expired_at", "status", "expired_at"),)

    id: Mapped[PaymentId] = mapped_column(String(36), primary_key=True, default=new_id)
    enrollment_id: Mapped[EnrollmentId] = mapped_column(String(36), ForeignKey("enrollments.id"), nullable=False, index=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    payment_method: Mapped[str] = mapped_column(String(32), nullable=False, default="stripe")
    order_id: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    gateway_token: Mapped[str | None] = mapped_column(String(255), nullable=True)
    redirect_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[PaymentStatus] = mapped_column(String(32), nullable=False, default=PaymentStatus.PENDING)
    expired_at: Mapped[datetime | None] = mapped_column(DateTimeUTC(), nullable=True)
    paid_at: Mapped[datetime | None] = mapped_column(DateTimeUTC(), nullable=True)


class Invoice(Base):
    __tablename__ = "invoices"
    __table_args__ = (Index("ix_invoices_enrollment_status_created", "enrollment_id", "status", "created_at"),)

    id: Mapped[InvoiceId] = mapped_column(String(36), primary_key=True, default=new_id)
    invoice_number: Mapped[str] = mapped_column(String(32), nullable=False, unique=True)
    enrollment_id: Mapped[EnrollmentId] = mapped_column(String(36), ForeignKey("enrollments.id"), nullable=False)
    payment_id: Mapped[PaymentId | None] = mapped_column(String(36), ForeignKey("payments.id"), nullable=True, unique=True)

    # Snapshot of the billed party and product at issue time
    student_name: Mapped[str] = mapped_column(String(255), nullable=False)
    student_email: Mapped[str] = mapped_column(String(255), nullable=False)
    student_phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    program_name: Mapped[str] = mapped_column(String(255), nullable=False)
    section_label: Mapped[str] = mapped_column(String(32), nullable=False)

    period_start: Mapped[datetime] = mapped_column(DateTimeUTC(), nullable=False)
    period_end: Mapped[datetime] = mapped_column(DateTimeUTC(), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    tax: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    discount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    status: Mapped[InvoiceStatus] = mapped_column(String(32), nullable=False, default=InvoiceStatus.UNPAID)
    due_date: Mapped[datetime] = mapped_column(DateTimeUTC(), nullable=False)
    paid_at: Mapped[datetime | None] = mapped_column(DateTimeUTC(), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
