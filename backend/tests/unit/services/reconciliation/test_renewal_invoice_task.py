"""Unit tests for the renewal invoice task."""

from __future__ import annotations

import re
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from zoneinfo import ZoneInfo

import pytest

from app.schemas.billing import GatewayTransaction
from app.services.reconciliation.renewal_invoice import generate_invoice_number
from common.core.app_error import Errors
from shared_db.models.billing import Invoice, Payment
from shared_db.models.enums import EnrollmentStatus, InvoiceStatus, NotificationType, PaymentStatus

TASK = "renewal-reminder"


@pytest.mark.asyncio
async def test_expiring_enrollment_gets_one_invoice_and_payment(services, seed, gateway, now) -> None:
    student = await seed.student(name="Budi Santoso", phone="+628111111111")
    section = await seed.section(template_name="English Conversation", label="B", price=Decimal("300000"))
    expiry = now + timedelta(days=2)
    enrollment = await seed.enrollment(student, section, status=EnrollmentStatus.ACTIVE, expiry_date=expiry)

    result = await services.task_runner.run_task(TASK, now)

    assert result.message == "Created 1/1 renewal invoices"
    invoices = await seed.all(Invoice, enrollment_id=enrollment.id)
    payments = await seed.all(Payment, enrollment_id=enrollment.id)
    assert len(invoices) == 1
    assert len(payments) == 1
    invoice, payment = invoices[0], payments[0]

    assert re.fullmatch(r"INV-20260310-[0-9A-Z]{4}", invoice.invoice_number)
    assert invoice.status == InvoiceStatus.UNPAID
    assert invoice.payment_id == payment.id
    assert invoice.period_start == expiry
    assert invoice.period_end == expiry + timedelta(days=30)
    assert invoice.amount == Decimal("300000")
    assert invoice.total_amount == Decimal("300000")
    assert invoice.due_date == now + timedelta(hours=24)
    assert (invoice.student_name, invoice.student_phone) == ("Budi Santoso", "+628111111111")
    assert (invoice.program_name, invoice.section_label) == ("English Conversation", "B")
    assert invoice.notes == "Subscription renewal"

    assert payment.status == PaymentStatus.PENDING
    assert payment.order_id == invoice.invoice_number
    assert payment.redirect_url == f"https://checkout.example.com/pay/{invoice.invoice_number}"
    assert payment.gateway_token == f"cs_test_{invoice.invoice_number}"
    assert payment.expired_at == invoice.due_date
    assert payment.payment_method == "stripe"

    gateway.create_transaction.assert_awaited_once()
    kwargs = gateway.create_transaction.await_args.kwargs
    assert kwargs["order_id"] == invoice.invoice_number
    assert kwargs["gross_amount"] == Decimal("300000")
    assert kwargs["expiry_minutes"] == 1440
    assert kwargs["customer"].name == "Budi Santoso"
    assert [item.name for item in kwargs["line_items"]] == ["[RENEWAL] English Conversation - Section B"]

    notifications = await seed.notifications(student.user_id)
    assert len(notifications) == 1
    assert notifications[0].title == "Renew Your Subscription"
    assert notifications[0].type == NotificationType.SUBSCRIPTION
    assert notifications[0].link == payment.redirect_url
    assert "ends in 2 days" in notifications[0].message


@pytest.mark.asyncio
async def test_second_run_same_day_creates_nothing(services, seed, gateway, now) -> None:
    student = await seed.student()
    section = await seed.section()
    enrollment = await seed.enrollment(student, section, status=EnrollmentStatus.ACTIVE, expiry_date=now + timedelta(days=2))

    _ = await services.task_runner.run_task(TASK, now)
    second = await services.task_runner.run_task(TASK, now + timedelta(hours=1))

    assert second.details is not None
    assert (second.details.total, second.details.skipped) == (1, 1)
    assert len(await seed.all(Invoice, enrollment_id=enrollment.id)) == 1
    assert gateway.create_transaction.await_count == 1


@pytest.mark.asyncio
async def test_recent_unpaid_invoice_blocks_renewal(services, seed, gateway, now) -> None:
    student = await seed.student()
    section = await seed.section()
    enrollment = await seed.enrollment(student, section, status=EnrollmentStatus.ACTIVE, expiry_date=now + timedelta(days=2))
    _ = await seed.invoice(enrollment, created_at=now - timedelta(days=3))

    result = await services.task_runner.run_task(TASK, now)

    assert result.details is not None
    assert result.details.skipped == 1
    assert len(await seed.all(Invoice, enrollment_id=enrollment.id)) == 1
    gateway.create_transaction.assert_not_awaited()


@pytest.mark.asyncio
async def test_old_or_paid_invoices_do_not_block_renewal(services, seed, now) -> None:
    student = await seed.student()
    section = await seed.section()
    enrollment = await seed.enrollment(student, section, status=EnrollmentStatus.ACTIVE, expiry_date=now + timedelta(days=1))
    _ = await seed.invoice(enrollment, created_at=now - timedelta(days=8))
    _ = await seed.invoice(enrollment, created_at=now - timedelta(days=1), status=InvoiceStatus.PAID)

    result = await services.task_runner.run_task(TASK, now)

    assert result.details is not None
    assert result.details.processed == 1
    assert len(await seed.all(Invoice, enrollment_id=enrollment.id)) == 3


@pytest.mark.asyncio
async def test_gateway_failure_leaves_no_rows_and_next_run_retries(services, seed, gateway, now) -> None:
    student = await seed.student()
    section = await seed.section()
    enrollment = await seed.enrollment(student, section, status=EnrollmentStatus.ACTIVE, expiry_date=now + timedelta(days=2))
    working = gateway.create_transaction.side_effect
    gateway.create_transaction.side_effect = Errors.Gateway.TRANSACTION_FAILED.create(message="Stripe request timed out")

    failed_run = await services.task_runner.run_task(TASK, now)

    assert failed_run.success is True
    assert failed_run.details is not None
    assert failed_run.details.failed == [enrollment.id]
    assert await seed.all(Invoice, enrollment_id=enrollment.id) == []
    assert await seed.all(Payment, enrollment_id=enrollment.id) == []
    assert await seed.notifications(student.user_id) == []

    gateway.create_transaction.side_effect = working
    retry = await services.task_runner.run_task(TASK, now + timedelta(days=1))

    assert retry.details is not None
    assert retry.details.processed == 1
    assert len(await seed.all(Invoice, enrollment_id=enrollment.id)) == 1


@pytest.mark.asyncio
async def test_enrollment_without_section_is_skipped(services, seed, gateway, now) -> None:
    student = await seed.student()
    enrollment = await seed.enrollment(student, None, status=EnrollmentStatus.ACTIVE, expiry_date=now + timedelta(days=2))

    result = await services.task_runner.run_task(TASK, now)

    assert result.details is not None
    assert result.details.skipped == 1
    assert await seed.all(Invoice, enrollment_id=enrollment.id) == []
    gateway.create_transaction.assert_not_awaited()


@pytest.mark.asyncio
async def test_only_the_renewal_window_is_considered(services, seed, gateway, now) -> None:
    student = await seed.student()
    section = await seed.section()
    _ = await seed.enrollment(student, section, status=EnrollmentStatus.ACTIVE, expiry_date=now + timedelta(days=5))
    _ = await seed.enrollment(student, section, status=EnrollmentStatus.ACTIVE, expiry_date=now - timedelta(hours=1))

    result = await services.task_runner.run_task(TASK, now)

    assert result.details is not None
    assert result.details.total == 0
    gateway.create_transaction.assert_not_awaited()


def test_invoice_number_uses_the_business_date() -> None:
    # 20:00 UTC on the 10th is already the 11th in Jakarta
    late_evening = datetime(2026, 3, 10, 20, 0, tzinfo=UTC)

    number = generate_invoice_number(late_evening, ZoneInfo("Asia/Jakarta"))

    assert re.fullmatch(r"INV-20260311-[0-9A-Z]{4}", number)


@pytest.mark.asyncio
async def test_payment_expires_with_the_gateway_session(services, seed, gateway, now) -> None:
    student = await seed.student()
    section = await seed.section()
    enrollment = await seed.enrollment(student, section, status=EnrollmentStatus.ACTIVE, expiry_date=now + timedelta(days=2))
    session_deadline = now + timedelta(hours=24, seconds=3)
    gateway.create_transaction.side_effect = lambda **kwargs: GatewayTransaction(
        token="cs_test_deadline", redirect_url="https://checkout.example.com/pay/deadline", expires_at=session_deadline
    )

    _ = await services.task_runner.run_task(TASK, now)

    payments = await seed.all(Payment, enrollment_id=enrollment.id)
    assert len(payments) == 1
    assert payments[0].expired_at == session_deadline
    assert gateway.create_transaction.await_args.kwargs["expiry_minutes"] == 24 * 60
