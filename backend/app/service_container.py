from __future__ import annotations

from app.services.notification_service import NotificationService
from app.services.reconciliation import (
    AssignmentReminderTask,
    GracePeriodTask,
    MeetingReminderTask,
    PaymentExpiryTask,
    RenewalInvoiceTask,
    SubscriptionExpiryTask,
    TaskRunner,
)
from app.services.stripe_service import PaymentGateway, StripeService
from common.core.config_service import ConfigService, config_service
from common.core.lifecycle import Lifecycle
from common.db.db import Db, DBConfig
from common.utils.utils import cached_classmethod, get_logger
from shared_db.crud.billing import InvoiceDAO, PaymentDAO
from shared_db.crud.classes import ClassSectionDAO, WaitingListDAO
from shared_db.crud.enrollment import EnrollmentDAO
from shared_db.crud.notification import NotificationDAO
from shared_db.crud.schedule import AssignmentDAO, ScheduledMeetingDAO

logger = get_logger()


class Services(Lifecycle):
    config_service: ConfigService
    db: Db

    enrollment_dao: EnrollmentDAO
    payment_dao: PaymentDAO
    invoice_dao: InvoiceDAO
    section_dao: ClassSectionDAO
    waiting_list_dao: WaitingListDAO
    notification_dao: NotificationDAO
    meeting_dao: ScheduledMeetingDAO
    assignment_dao: AssignmentDAO

    payment_gateway: PaymentGateway
    notification_service: NotificationService
    task_runner: TaskRunner

    def __init__(self) -> None:
        super().__init__()

        # Initialize core infrastructure
        self.config_service = self._create_config_service()
        self.db = self._create_db(config_service=self.config_service)

        # Initialize database access objects
        self.enrollment_dao = EnrollmentDAO()
        self.payment_dao = PaymentDAO()
        self.invoice_dao = InvoiceDAO()
        self.section_dao = ClassSectionDAO(enrollment_dao=self.enrollment_dao)
        self.waiting_list_dao = WaitingListDAO()
        self.notification_dao = NotificationDAO()
        self.meeting_dao = ScheduledMeetingDAO()
        self.assignment_dao = AssignmentDAO()

        # Initialize collaborators
        self.payment_gateway = self._create_payment_gateway(config_service=self.config_service)
        self.notification_service = NotificationService(notification_dao=self.notification_dao)

        self.task_runner = self._create_task_runner()

    async def _start(self) -> None:
        await self.db.start()

    async def _stop(self) -> None:
        await self.db.stop()

    # Protected creation methods for dependency injection/overriding
    def _create_config_service(self) -> ConfigService:
        return config_service

    def _create_db(self, config_service: ConfigService) -> Db:
        return Db(DBConfig(url=config_service.get_database_url(), echo=bool(config_service.get("database.echo", False))))

    def _create_payment_gateway(self, config_service: ConfigService) -> PaymentGateway:
        return StripeService(config_service.payment_gateway)

    def _create_task_runner(self) -> TaskRunner:
        """Tasks in execution order: payment state first, then subscriptions, then reminders."""
        settings = self.config_service.reconciliation
        new_session = self.db.new_session
        return TaskRunner(
            [
                PaymentExpiryTask(
                    new_session,
                    payment_dao=self.payment_dao,
                    invoice_dao=self.invoice_dao,
                    enrollment_dao=self.enrollment_dao,
                    waiting_list_dao=self.waiting_list_dao,
                    notification_service=self.notification_service,
                ),
                SubscriptionExpiryTask(
                    new_session,
                    enrollment_dao=self.enrollment_dao,
                    notification_service=self.notification_service,
                    business_timezone=settings.business_timezone,
                ),
                GracePeriodTask(
                    new_session,
                    enrollment_dao=self.enrollment_dao,
                    section_dao=self.section_dao,
                    waiting_list_dao=self.waiting_list_dao,
                    notification_service=self.notification_service,
                ),
                RenewalInvoiceTask(
                    new_session,
                    enrollment_dao=self.enrollment_dao,
                    invoice_dao=self.invoice_dao,
                    payment_dao=self.payment_dao,
                    gateway=self.payment_gateway,
                    notification_service=self.notification_service,
                    settings=settings,
                ),
                MeetingReminderTask(
                    new_session,
                    meeting_dao=self.meeting_dao,
                    notification_service=self.notification_service,
                    business_timezone=settings.business_timezone,
                ),
                AssignmentReminderTask(
                    new_session,
                    assignment_dao=self.assignment_dao,
                    notification_service=self.notification_service,
                    business_timezone=settings.business_timezone,
                ),
            ]
        )

    @cached_classmethod
    def instance(cls) -> Services:
        """Get the singleton instance of Services."""
        return Services()
