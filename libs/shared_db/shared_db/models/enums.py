"""Status and type enums shared by the ORM models and the read schemas.

Values are persisted as plain strings (``String(32)`` columns).
"""

from enum import StrEnum


class PaymentStatus(StrEnum):
    PENDING = "PENDING"
    PAID = "PAID"
    EXPIRED = "EXPIRED"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


class InvoiceStatus(StrEnum):
    UNPAID = "UNPAID"
    PAID = "PAID"
    OVERDUE = "OVERDUE"
    CANCELLED = "CANCELLED"


class EnrollmentStatus(StrEnum):
    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    EXPIRED = "EXPIRED"
    SLOT_RELEASED = "SLOT_RELEASED"
    CANCELLED = "CANCELLED"


class SectionStatus(StrEnum):
    ACTIVE = "ACTIVE"
    FULL = "FULL"
    ARCHIVED = "ARCHIVED"


class WaitingListStatus(StrEnum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    EXPIRED = "EXPIRED"


class NotificationType(StrEnum):
    PAYMENT = "PAYMENT"
    SUBSCRIPTION = "SUBSCRIPTION"
    CLASS = "CLASS"
    ASSIGNMENT = "ASSIGNMENT"
    SYSTEM = "SYSTEM"


class MeetingStatus(StrEnum):
    SCHEDULED = "SCHEDULED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class AssignmentStatus(StrEnum):
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"
    CLOSED = "CLOSED"
