from app.services.reconciliation.base import EntityOutcome, ReconciliationTask, SessionFactory
from app.services.reconciliation.grace_period import GracePeriodTask
from app.services.reconciliation.payment_expiry import PaymentExpiryTask
from app.services.reconciliation.reminders import AssignmentReminderTask, MeetingReminderTask
from app.services.reconciliation.renewal_invoice import RenewalInvoiceTask
from app.services.reconciliation.subscription_expiry import SubscriptionExpiryTask
from app.services.reconciliation.task_runner import TaskRunner

__all__ = [
    "AssignmentReminderTask",
    "EntityOutcome",
    "GracePeriodTask",
    "MeetingReminderTask",
    "PaymentExpiryTask",
    "ReconciliationTask",
    "RenewalInvoiceTask",
    "SessionFactory",
    "SubscriptionExpiryTask",
    "TaskRunner",
]
