from __future__ import annotations

from typing import NewType
from uuid import uuid4

RequestId = NewType("RequestId", str)
RunId = NewType("RunId", str)
UserId = NewType("UserId", str)
StudentId = NewType("StudentId", str)
ClassTemplateId = NewType("ClassTemplateId", str)
ClassSectionId = NewType("ClassSectionId", str)
WaitingListEntryId = NewType("WaitingListEntryId", str)
EnrollmentId = NewType("EnrollmentId", str)
PaymentId = NewType("PaymentId", str)
InvoiceId = NewType("InvoiceId", str)
NotificationId = NewType("NotificationId", str)
ScheduledMeetingId = NewType("ScheduledMeetingId", str)
AssignmentId = NewType("AssignmentId", str)
AssignmentSubmissionId = NewType("AssignmentSubmissionId", str)


def new_id() -> str:
    return uuid4().hex
