"""Datenmodell für eine Section (Pydantic v2)."""

import re
from typing import Optional

from pydantic import BaseModel, Field, field_validator

_TIMING_RE = re.compile(r"^(\d{1,2})-(\d{1,2})$")


class Section(BaseModel):
    """Eine Studierendengruppe, die gemeinsam unterrichtet wird (z.B. BSCS-1A)."""

    id: str
    code: str
    student_count: int = Field(ge=0)
    lecture_timings: Optional[str] = None  # "8-1", "10-4", "1-4"

    @field_validator("id")
    @classmethod
    def strip_id(cls, v: str) -> str:
        return v.strip()

    @field_validator("lecture_timings")
    @classmethod
    def _check_timings(cls, v: Optional[str]) -> Optional[str]:
        if v is None or v == "":
            return None
        if not _TIMING_RE.match(v):
            raise ValueError(f"Ungültiges Zeitfenster '{v}' (erwartet z.B. '8-1')")
        return v

    def timing_window(self) -> Optional[tuple[int, int]]:
        """Erlaubtes Unterrichtsfenster in Minuten ab Mitternacht oder None.

        Stunden 1–7 sind Nachmittagsstunden ("1-4" = 13:00–16:00).
        """
        if self.lecture_timings is None:
            return None
        start_h, end_h = (int(x) for x in self.lecture_timings.split("-"))
        if start_h < 8:
            start_h += 12
        if end_h < 8:
            end_h += 12
        return start_h * 60, end_h * 60
