"""Shared fixtures: an in-memory SQLite entity store, a seeder and a fake payment gateway."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from sqlalchemy import select

from app.schemas.billing import GatewayTransaction
from app.service_container import Services
from app.services.stripe_service import PaymentGateway
from common.core.config_service import ConfigService
from common.db.db import Db, DBConfig
from common.ids import UserId, new_id
from shared_db.crud.notification import NotificationDAO
from shared_db.db import Base
from shared_db.db.init_db import create_tables
from shared_db.models.billing import Invoice, Payment
from shared_db.models.classes import ClassSection, ClassTemplate, WaitingListEntry
from shared_db.models.enrollment import Enrollment
from shared_db.models.enums import (
    AssignmentStatus,
    EnrollmentStatus,
    InvoiceStatus,
    MeetingStatus,
    PaymentStatus,
    SectionStatus,
    WaitingListStatus,
)
from shared_db.models.schedule import Assignment, AssignmentSubmission, ScheduledMeeting
from shared_db.models.users import Student, User
from shared_db.schemas.notification import NotificationRead

# 10:00 in Asia/Jakarta
NOW = datetime(2026, 3, 10, 3, 0, tzinfo=UTC)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest_asyncio.fixture
async def db() -> AsyncGenerator[Db]:
    database = Db(DBConfig(url="sqlite+aiosqlite:///:memory:"))
    await database.start()
    await create_tables(database)
    yield database
    await database.stop()


class Seeder:
    """Inserts rows through independent committed sessions and reads them back fresh."""

    def __init__(self, db: Db) -> None:
        self.db = db

    async def add(self, *rows: Base) -> None:
        async with self.db.new_session() as session:
            session.add_all(rows)
            await session.commit()

    async def get[M: Base](self, model: type[M], row_id: str) -> M:
        async with self.db.new_session() as session:
            row = await session.get(model, row_id)
            assert row is not None, f"{model.__name__} {row_id} not found"
            return row

    async def all[M: Base](self, model: type[M], **filters: Any) -> list[M]:
        async with self.db.new_session() as session:
            query = select(model).filter_by(**filters)
            return list((await session.execute(query)).scalars().all())

    async def notifications(self, user_id: str) -> list[NotificationRead]:
        async with self.db.new_session() as session:
            return await NotificationDAO().list_for_user(session, UserId(user_id))

    async def student(self, name: str = "Siti Rahma", phone: str | None = "+6281234567890") -> Student:
        user = User(id=new_id(), name=name, email=f"{new_id()[:8]}@example.com", phone=phone)
        student = Student(id=new_id(), user_id=user.id)
        await self.add(user, student)
        return student

    async def section(
        self,
        *,
        template_name: str = "Math Grade 7",
        price: Decimal = Decimal("250000"),
        label: str = "A",
        max_students: int = 5,
        current: int = 0,
        status: SectionStatus = SectionStatus.ACTIVE,
    ) -> ClassSection:
        template = ClassTemplate(id=new_id(), name=template_name, price_per_month=price, max_students_per_section=max_students)
        section = ClassSection(
            id=new_id(),
            template_id=template.id,
            section_label=label,
            current_enrollments=current,
            max_students_per_section=max_students,
            status=status,
        )
        await self.add(template, section)
        return section

    async def enrollment(
        self,
        student: Student,
        section: ClassSection | None,
        *,
        status: EnrollmentStatus,
        expiry_date: datetime | None = None,
        grace_expiry_date: datetime | None = None,
        section_id: str | None = None,
    ) -> Enrollment:
        enrollment = Enrollment(
            id=new_id(),
            student_id=student.id,
            section_id=section.id if section is not None else section_id,
            status=status,
            expiry_date=expiry_date,
            grace_expiry_date=grace_expiry_date,
        )
        await self.add(enrollment)
        return enrollment

    async def payment(
        self,
        enrollment: Enrollment,
        *,
        expired_at: datetime,
        status: PaymentStatus = PaymentStatus.PENDING,
        amount: Decimal = Decimal("250000"),
    ) -> Payment:
        payment = Payment(
            id=new_id(),
            enrollment_id=enrollment.id,
            amount=amount,
            payment_method="stripe",
            order_id=f"ORD-{new_id()[:12]}",
            status=status,
            expired_at=expired_at,
        )
        await self.add(payment)
        return payment

    async def invoice(
        self,
        enrollment: Enrollment,
        *,
        created_at: datetime,
        payment: Payment | None = None,
        status: InvoiceStatus = InvoiceStatus.UNPAID,
        amount: Decimal = Decimal("250000"),
    ) -> Invoice:
        invoice = Invoice(
            id=new_id(),
            invoice_number=f"INV-20260101-{new_id()[:4].upper()}",
            enrollment_id=enrollment.id,
            payment_id=payment.id if payment is not None else None,
            student_name="Siti Rahma",
            student_email="siti@example.com",
            program_name="Math Grade 7",
            section_label="A",
            period_start=created_at,
            period_end=created_at + timedelta(days=30),
            amount=amount,
            total_amount=amount,
            status=status,
            due_date=created_at + timedelta(days=1),
            created_at=created_at,
            updated_at=created_at,
        )
        await self.add(invoice)
        return invoice

    async def waiting_list_entry(
        self, student: Student, section: ClassSection, *, status: WaitingListStatus = WaitingListStatus.APPROVED
    ) -> WaitingListEntry:
        entry = WaitingListEntry(id=new_id(), student_id=student.id, template_id=section.template_id, status=status)
        await self.add(entry)
        return entry

    async def meeting(
        self,
        section: ClassSection,
        *,
        scheduled_at: datetime,
        title: str = "Algebra Basics",
        status: MeetingStatus = MeetingStatus.SCHEDULED,
        meeting_url: str | None = "https://meet.example.com/algebra",
    ) -> ScheduledMeeting:
        meeting = ScheduledMeeting(
            id=new_id(), section_id=section.id, title=title, scheduled_at=scheduled_at, meeting_url=meeting_url, status=status
        )
        await self.add(meeting)
        return meeting

    async def assignment(
        self,
        section: ClassSection,
        *,
        due_date: datetime,
        title: str = "Worksheet 3",
        status: AssignmentStatus = AssignmentStatus.PUBLISHED,
    ) -> Assignment:
        assignment = Assignment(id=new_id(), section_id=section.id, title=title, due_date=due_date, status=status)
        await self.add(assignment)
        return assignment

    async def submission(self, assignment: Assignment, student: Student, *, submitted_at: datetime) -> AssignmentSubmission:
        submission = AssignmentSubmission(id=new_id(), assignment_id=assignment.id, student_id=student.id, submitted_at=submitted_at)
        await self.add(submission)
        return submission


@pytest.fixture
def seed(db: Db) -> Seeder:
    return Seeder(db)


def _fake_transaction(**kwargs: Any) -> GatewayTransaction:
    order_id = kwargs["order_id"]
    return GatewayTransaction(token=f"cs_test_{order_id}", redirect_url=f"https://checkout.example.com/pay/{order_id}")


@pytest.fixture
def gateway() -> MagicMock:
    fake = MagicMock(spec=["method_name", "create_transaction"])
    fake.method_name = "stripe"
    fake.create_transaction = AsyncMock(side_effect=_fake_transaction)
    return fake


class ServicesForTest(Services):
    """Container wired to the test database and gateway."""

    def __init__(self, db: Db, gateway: PaymentGateway) -> None:
        self._test_db = db
        self._test_gateway = gateway
        super().__init__()

    def _create_db(self, config_service: ConfigService) -> Db:
        return self._test_db

    def _create_payment_gateway(self, config_service: ConfigService) -> PaymentGateway:
        return self._test_gateway


@pytest.fixture
def services(db: Db, gateway: MagicMock) -> Services:
    return ServicesForTest(db, gateway)
