"""Datenmodell für eine Lehrkraft (Pydantic v2)."""

from pydantic import BaseModel, Field, field_validator

from config.defaults import DAYS, TIME_SLOTS


class Teacher(BaseModel):
    """Repräsentiert eine Lehrkraft mit ihrer Verfügbarkeit."""

    id: str
    name: str                                     # "Dr. Ayesha Khan"
    available_days: list[str] = Field(default_factory=lambda: list(DAYS[:5]))
    available_slots: list[str] = Field(default_factory=lambda: list(TIME_SLOTS))
    days_off: list[str] = []
    max_hours_per_day: int = Field(0, ge=0)       # 0 = kein Limit
    max_hours_per_week: int = Field(0, ge=0)      # 0 = kein Limit

    @field_validator("id")
    @classmethod
    def strip_id(cls, v: str) -> str:
        return v.strip()

    def is_available(self, day: str, time: str) -> bool:
        """True wenn die Lehrkraft an diesem Tag zu diesem Zeitfenster kann."""
        return (
            day in self.available_days
            and day not in self.days_off
            and time in self.available_slots
        )
