# shared_db/models/__init__.py
"""Import all models so Alembic can detect them for migrations."""

from shared_db.models.billing import Invoice, Payment
from shared_db.models.classes import ClassSection, ClassTemplate, WaitingListEntry
from shared_db.models.enrollment import Enrollment
from shared_db.models.notification import Notification
from shared_db.models.schedule import Assignment, AssignmentSubmission, ScheduledMeeting
from shared_db.models.users import Student, User

__all__ = [
    "Assignment",
    "AssignmentSubmission",
    "ClassSection",
    "ClassTemplate",
    "Enrollment",
    "Invoice",
    "Notification",
    "Payment",
    "ScheduledMeeting",
    "Student",
    "User",
    "WaitingListEntry",
]
