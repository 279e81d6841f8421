from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing import Optional
from enum import Enum
import re


# Nur die ersten fünf Kalendertage werden verplant (Mo–Fr)
WORKING_DAYS = 5

_WINDOW_RE = re.compile(r"^(\d{1,2}):(\d{2})-(\d{1,2}):(\d{2})$")


def parse_time_window(label: str) -> tuple[int, int]:
    """Wandelt ein Zeitfenster "8:00-8:55" in (Beginn, Ende) in Minuten um."""
    match = _WINDOW_RE.match(label.strip())
    if match is None:
        raise ValueError(f"Ungültiges Zeitfenster '{label}' (erwartet 'H:MM-H:MM')")
    h1, m1, h2, m2 = (int(g) for g in match.groups())
    start, end = h1 * 60 + m1, h2 * 60 + m2
    if m1 > 59 or m2 > 59 or end <= start:
        raise ValueError(f"Ungültiges Zeitfenster '{label}'")
    return start, end


class SearchStrategy(str, Enum):
    BACKTRACKING = "backtracking"
    GREEDY = "greedy"


# ─── ZEITRASTER ───

class TimeGridConfig(BaseModel):
    """Raster des Standorts: Wochentage und alle Zeitfenster eines Tages.

    Die Reihenfolge von time_slots bestimmt die Ordinalzahl der Slots und
    damit jede Nachbarschafts-Prüfung.
    """
    model_config = ConfigDict(extra="forbid")

    # Namen aller Kalendertage (Mo..So), verplant werden nur die ersten fünf
    day_names: list[str] = Field(
        default=["Monday", "Tuesday", "Wednesday", "Thursday",
                 "Friday", "Saturday", "Sunday"],
        min_length=WORKING_DAYS,
        description="Kalendertage, nur die ersten fünf werden verplant")
    # Alle Zeitfenster eines Tages im Format "H:MM-H:MM"
    time_slots: list[str] = Field(
        min_length=1,
        description="Zeitfenster eines Tages, aufsteigend sortiert")

    @field_validator("time_slots")
    @classmethod
    def _check_time_slots(cls, v: list[str]) -> list[str]:
        if len(set(v)) != len(v):
            raise ValueError("Zeitfenster dürfen nicht doppelt vorkommen")
        previous_end = -1
        for label in v:
            start, end = parse_time_window(label)
            if start < previous_end:
                raise ValueError(
                    f"Zeitfenster '{label}' überlappt oder ist nicht aufsteigend sortiert")
            previous_end = end
        return v

    @property
    def slots_per_day(self) -> int:
        return len(self.time_slots)

    @property
    def working_days(self) -> list[str]:
        return self.day_names[:WORKING_DAYS]

    def time_index(self, label: str) -> int:
        """Position eines Zeitfensters im Tagesraster (ValueError wenn unbekannt)."""
        try:
            return self.time_slots.index(label)
        except ValueError:
            raise ValueError(f"Zeitfenster '{label}' existiert nicht im Raster") from None


# ─── REGELN ───

class SectionBreakRule(BaseModel):
    """Individuelle Pause einer Section (z.B. fester Pausenslot)."""
    model_config = ConfigDict(extra="forbid")

    has_break: bool
    break_slot: Optional[str] = None

    @model_validator(mode="after")
    def _check_slot(self):
        if self.has_break and not self.break_slot:
            raise ValueError("has_break=True verlangt einen break_slot")
        return self


class RulesConfig(BaseModel):
    """Harte Regeln eines Studiengangs.

    Geschlossene Struktur: unbekannte Felder werden abgelehnt, Pflichtfelder
    ohne Default müssen in der Konfiguration stehen.
    """
    model_config = ConfigDict(extra="forbid")

    # Mittagspause als geschlossenes Intervall [Start, Ende] im Tagesraster
    lunch_start_slot: str
    lunch_end_slot: str
    # Mindestabstand in Minuten zwischen Hörsaal und Labor am selben Tag; > 0 verbietet
    # zusätzlich jede direkte Nachbarschaft
    travel_gap_minutes: int = Field(ge=0, le=120)
    # Tageslimits pro Section, getrennt nach Kategorie
    max_lectures_per_day: int = Field(ge=1)
    max_labs_per_day: int = Field(ge=1)
    # Zeitfenster, in denen überhaupt unterrichtet werden darf
    allowed_slots: list[str]
    # Section-ID → individuelle Pause
    section_break_rules: dict[str, SectionBreakRule] = Field(default_factory=dict)


# ─── SUCHE ───

class SearchConfig(BaseModel):
    """Steuerung der Suche und ihrer Budgets."""
    model_config = ConfigDict(extra="forbid")

    strategy: SearchStrategy = Field(
        SearchStrategy.BACKTRACKING,
        description="backtracking (Standard) oder greedy (First-Fit ohne Rücksprung)")
    # Maximal geprüfte (Session, Slot)-Paare, 0 = kein Limit
    node_limit: int = Field(500_000, ge=0,
        description="Max. geprüfte Slot-Versuche (0=kein Limit)")
    # Zeitlimit der Suche in Sekunden, 0 = kein Limit
    time_limit_seconds: float = Field(60.0, ge=0,
        description="Zeitlimit Suche (Sekunden, 0=kein Limit)")
    # Anzahl paralleler Zweige für die erste Session (1 = sequentiell)
    num_workers: int = Field(1, ge=1, le=64,
        description="Parallele Suchzweige (1=sequentiell)")
    # Tiefsten Teilplan nach einem Fehlschlag greedy auffüllen
    fill_partial: bool = Field(False,
        description="Teilplan greedy auffüllen")


# ─── GESAMT-CONFIG ───

class ProgramConfig(BaseModel):
    """Gesamtkonfiguration eines Studiengangs."""
    model_config = ConfigDict(extra="forbid")

    program_name: str = Field("Informatik (B.Sc.)")
    time_grid: TimeGridConfig
    rules: RulesConfig
    search: SearchConfig = Field(default_factory=SearchConfig)

    @model_validator(mode="after")
    def _check_rules_against_grid(self):
        """Alle Slot-Angaben der Regeln müssen im Raster existieren."""
        tg = self.time_grid
        lunch_start = tg.time_index(self.rules.lunch_start_slot)
        lunch_end = tg.time_index(self.rules.lunch_end_slot)
        if lunch_start > lunch_end:
            raise ValueError(
                f"Mittagspause beginnt ({self.rules.lunch_start_slot}) "
                f"nach ihrem Ende ({self.rules.lunch_end_slot})")
        for label in self.rules.allowed_slots:
            tg.time_index(label)
        for section_id, rule in self.rules.section_break_rules.items():
            if rule.break_slot is not None:
                try:
                    tg.time_index(rule.break_slot)
                except ValueError as e:
                    raise ValueError(f"Section {section_id}: {e}") from None
        return self

    def lunch_time_indices(self) -> range:
        """Positionen der Mittagspause im Tagesraster (inklusive Grenzen)."""
        tg = self.time_grid
        return range(tg.time_index(self.rules.lunch_start_slot),
                     tg.time_index(self.rules.lunch_end_slot) + 1)
