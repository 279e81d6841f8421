"""Datenmodell für eine Lehrauftrags-Zuordnung (Pydantic v2)."""

from typing import Literal, Optional

from pydantic import BaseModel, field_validator


class Assignment(BaseModel):
    """Lehrkraft × Kurs × Ziel-Sections bzw. Ziel-Gruppen.

    Referenzen werden wie die IDs der Entitäten von Leerzeichen befreit.
    """

    id: str
    teacher_id: Optional[str] = None
    course_id: Optional[str] = None
    type: Literal["section", "group"] = "section"
    section_or_group_ids: list[str] = []

    @field_validator("id", "teacher_id", "course_id")
    @classmethod
    def strip_ref(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v is not None else None

    @field_validator("section_or_group_ids")
    @classmethod
    def strip_targets(cls, v: list[str]) -> list[str]:
        return [t.strip() for t in v]
