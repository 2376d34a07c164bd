from __future__ import annotations

from datetime import datetime

from pydantic import ConfigDict

from common.ids import ClassSectionId, EnrollmentId, StudentId, UserId
from common.utils.json_model import JsonModel
from shared_db.models.enums import EnrollmentStatus
from shared_db.schemas.classes import ClassSectionRead, ClassTemplateRead


class EnrollmentRead(JsonModel):
    id: EnrollmentId
    student_id: StudentId
    section_id: ClassSectionId | None = None
    status: EnrollmentStatus
    expiry_date: datetime | None = None
    grace_expiry_date: datetime | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class StudentContact(JsonModel):
    student_id: StudentId
    user_id: UserId
    name: str
    email: str
    phone: str | None = None


class EnrollmentContext(JsonModel):
    """An enrollment with the student, section and template it points at.

    ``section``/``template`` are ``None`` when the enrollment has no section or the reference dangles.
    """

    enrollment: EnrollmentRead
    student: StudentContact
    section: ClassSectionRead | None = None
    template: ClassTemplateRead | None = None

    @property
    def program_name(self) -> str | None:
        return self.template.name if self.template else None
