from __future__ import annotations

from decimal import Decimal

from pydantic import ConfigDict

from common.ids import ClassSectionId, ClassTemplateId
from common.utils.json_model import JsonModel
from shared_db.models.enums import SectionStatus


class ClassTemplateRead(JsonModel):
    id: ClassTemplateId
    name: str
    price_per_month: Decimal
    max_students_per_section: int

    model_config = ConfigDict(from_attributes=True)


class ClassSectionRead(JsonModel):
    id: ClassSectionId
    template_id: ClassTemplateId
    section_label: str
    current_enrollments: int
    max_students_per_section: int
    status: SectionStatus

    model_config = ConfigDict(from_attributes=True)


class SectionOccupancy(JsonModel):
    """Post-update counter state returned by the atomic decrement and by recounts."""

    id: ClassSectionId
    current_enrollments: int
    max_students_per_section: int
    status: SectionStatus

    model_config = ConfigDict(from_attributes=True)

    @property
    def is_full(self) -> bool:
        return self.current_enrollments >= self.max_students_per_section
