"""Datenmodell für eine Lehrveranstaltung (Pydantic v2)."""

from pydantic import BaseModel, Field, field_validator

from config.defaults import LECTURE_ROOM_TYPE


class Course(BaseModel):
    """Repräsentiert eine Lehrveranstaltung (Vorlesung oder Labor)."""

    id: str
    code: str                          # "CS-101"
    name: str                          # "Programming Fundamentals"
    sessions_per_week: int = Field(ge=1)
    number_of_hours: int = Field(1, ge=1)  # Dauer einer Sitzung in Slots
    room_type: str                     # "lecture_hall", "computer_lab", ...
    no_back_to_back: list[str] = []    # Kurs-IDs, die nicht direkt angrenzen dürfen

    @field_validator("id")
    @classmethod
    def strip_id(cls, v: str) -> str:
        return v.strip()

    @field_validator("no_back_to_back")
    @classmethod
    def strip_refs(cls, v: list[str]) -> list[str]:
        return [c.strip() for c in v]

    @property
    def label(self) -> str:
        """Anzeigename wie im Stundenplan ("CS-101 - Programming Fundamentals")."""
        return f"{self.code} - {self.name}"

    @property
    def is_lab(self) -> bool:
        return self.room_type != LECTURE_ROOM_TYPE
