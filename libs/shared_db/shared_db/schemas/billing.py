"""Read and create schemas for payments and invoices."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import ConfigDict

from common.ids import EnrollmentId, InvoiceId, PaymentId
from common.utils.json_model import JsonModel
from shared_db.models.enums import InvoiceStatus, PaymentStatus


class PaymentCreate(JsonModel):
    enrollment_id: EnrollmentId
    amount: Decimal
    payment_method: str
    order_id: str
    gateway_token: str | None = None
    redirect_url: str | None = None
    expired_at: datetime | None = None


class PaymentRead(PaymentCreate):
    id: PaymentId
    status: PaymentStatus
    paid_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class InvoiceCreate(JsonModel):
    invoice_number: str
    enrollment_id: EnrollmentId
    student_name: str
    student_email: str
    student_phone: str | None = None
    program_name: str
    section_label: str
    period_start: datetime
    period_end: datetime
    amount: Decimal
    tax: Decimal = Decimal("0")
    discount: Decimal = Decimal("0")
    total_amount: Decimal
    due_date: datetime
    notes: str | None = None


class InvoiceRead(InvoiceCreate):
    id: InvoiceId
    payment_id: PaymentId | None = None
    status: InvoiceStatus
    paid_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
