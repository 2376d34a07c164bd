"""Entity store tests for the section counter and guarded state transitions."""

from __future__ import annotations

from datetime import timedelta

import pytest

from shared_db.crud.billing import InvoiceDAO, PaymentDAO
from shared_db.crud.classes import ClassSectionDAO
from shared_db.crud.enrollment import EnrollmentDAO
from shared_db.models.classes import ClassSection
from shared_db.models.enums import EnrollmentStatus, InvoiceStatus, PaymentStatus, SectionStatus


@pytest.fixture
def section_dao() -> ClassSectionDAO:
    return ClassSectionDAO(enrollment_dao=EnrollmentDAO())


@pytest.mark.asyncio
async def test_decrement_returns_post_update_state(db, seed, section_dao) -> None:
    section = await seed.section(current=5, max_students=5, status=SectionStatus.FULL)

    async with db.new_session() as session:
        occupancy = await section_dao.decrement_enrollments(session, section.id)
        await session.commit()

    assert occupancy is not None
    assert occupancy.current_enrollments == 4
    assert occupancy.status == SectionStatus.FULL
    assert not occupancy.is_full


@pytest.mark.asyncio
async def test_decrement_stops_at_zero(db, seed, section_dao) -> None:
    section = await seed.section(current=0)

    async with db.new_session() as session:
        assert await section_dao.decrement_enrollments(session, section.id) is None
        assert await section_dao.decrement_enrollments(session, "no-such-section") is None
        await session.commit()

    assert (await seed.get(ClassSection, section.id)).current_enrollments == 0


@pytest.mark.asyncio
async def test_recount_repairs_drift_and_full_flag(db, seed, section_dao, now) -> None:
    section = await seed.section(current=1, max_students=2, status=SectionStatus.ACTIVE)
    for status in (EnrollmentStatus.ACTIVE, EnrollmentStatus.EXPIRED, EnrollmentStatus.SLOT_RELEASED, EnrollmentStatus.PENDING):
        student = await seed.student()
        _ = await seed.enrollment(student, section, status=status, expiry_date=now)

    async with db.new_session() as session:
        occupancy = await section_dao.recount_enrollments(session, section.id)
        await session.commit()

    assert occupancy is not None
    assert (occupancy.current_enrollments, occupancy.status) == (2, SectionStatus.FULL)
    stored = await seed.get(ClassSection, section.id)
    assert (stored.current_enrollments, stored.status) == (2, SectionStatus.FULL)


@pytest.mark.asyncio
async def test_recount_keeps_archived_status(db, seed, section_dao) -> None:
    section = await seed.section(current=3, status=SectionStatus.ARCHIVED)

    async with db.new_session() as session:
        occupancy = await section_dao.recount_enrollments(session, section.id)
        ids = await section_dao.list_ids(session)
        await session.commit()

    assert occupancy is not None
    assert (occupancy.current_enrollments, occupancy.status) == (0, SectionStatus.ARCHIVED)
    assert section.id not in ids


@pytest.mark.asyncio
async def test_transition_is_compare_and_set(db, seed) -> None:
    dao = EnrollmentDAO()
    student = await seed.student()
    section = await seed.section()
    enrollment = await seed.enrollment(student, section, status=EnrollmentStatus.ACTIVE)

    async with db.new_session() as session:
        first = await dao.transition(session, enrollment.id, from_status=EnrollmentStatus.ACTIVE, to_status=EnrollmentStatus.EXPIRED)
        second = await dao.transition(session, enrollment.id, from_status=EnrollmentStatus.ACTIVE, to_status=EnrollmentStatus.EXPIRED)
        await session.commit()
        stored = await dao.get(session, enrollment.id)

    assert (first, second) == (True, False)
    assert stored is not None
    assert stored.status == EnrollmentStatus.EXPIRED


@pytest.mark.asyncio
async def test_payment_and_invoice_guards(db, seed, now) -> None:
    payment_dao, invoice_dao = PaymentDAO(), InvoiceDAO()
    student = await seed.student()
    section = await seed.section()
    enrollment = await seed.enrollment(student, section, status=EnrollmentStatus.PENDING)
    paid = await seed.payment(enrollment, expired_at=now - timedelta(days=1), status=PaymentStatus.PAID)
    paid_invoice = await seed.invoice(enrollment, created_at=now - timedelta(days=1), status=InvoiceStatus.PAID)

    async with db.new_session() as session:
        assert not await payment_dao.mark_expired(session, paid.id)
        assert not await invoice_dao.mark_overdue(session, paid_invoice.id)
        assert not await invoice_dao.has_recent_unpaid(session, enrollment.id, since=now - timedelta(days=7))
        assert await invoice_dao.number_exists(session, paid_invoice.invoice_number)
        await session.commit()
