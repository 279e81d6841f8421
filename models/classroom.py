"""Datenmodell für einen Raum (Pydantic v2)."""

from pydantic import BaseModel, Field, field_validator


class Classroom(BaseModel):
    """Repräsentiert einen Hörsaal oder ein Labor."""

    id: str
    name: str        # "Room 101"
    room_type: str   # "lecture_hall", "computer_lab", etc.
    capacity: int = Field(ge=0)

    @field_validator("id")
    @classmethod
    def strip_id(cls, v: str) -> str:
        return v.strip()
