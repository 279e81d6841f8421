"""Datenmodell für eine Gruppenveranstaltung über mehrere Sections (Pydantic v2)."""

from typing import Optional

from pydantic import BaseModel, Field, field_validator


class GroupClass(BaseModel):
    """Mehrere Sections, die einen Kurs gemeinsam im selben Raum hören.

    WICHTIG: Alle beteiligten Sections müssen im Slot gleichzeitig frei sein!
    """

    id: str
    name: str                           # "BSCS-1 Combined"
    sections: list[str]                 # IDs ALLER beteiligten Sections
    course_id: Optional[str] = None
    sessions_override: Optional[int] = Field(None, ge=1)  # ersetzt sessions_per_week

    @field_validator("id")
    @classmethod
    def strip_id(cls, v: str) -> str:
        return v.strip()

    @field_validator("sections")
    @classmethod
    def strip_sections(cls, v: list[str]) -> list[str]:
        return [s.strip() for s in v]
