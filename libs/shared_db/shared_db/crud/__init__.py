# shared_db/crud/__init__.py

from .billing import InvoiceDAO, PaymentDAO
from .classes import ClassSectionDAO, WaitingListDAO
from .enrollment import EnrollmentDAO
from .notification import NotificationDAO
from .schedule import AssignmentDAO, ScheduledMeetingDAO

__all__ = [
    "AssignmentDAO",
    "ClassSectionDAO",
    "EnrollmentDAO",
    "InvoiceDAO",
    "NotificationDAO",
    "PaymentDAO",
    "ScheduledMeetingDAO",
    "WaitingListDAO",
]
