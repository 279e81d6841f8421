"""ScheduleState: der während der Suche wachsende und schrumpfende Teilplan.

Drei unabhängige Belegungs-Indizes (Lehrkraft, Section, Raum) × Slot-Ordinalzahl.
Invariante: kein Schlüssel zeigt jemals auf mehr als eine Placement.
Einzige Mutatoren sind commit() und uncommit(), die exakt invers zueinander sind.
"""

from collections import Counter
from dataclasses import dataclass
from typing import Optional

from models.timeslot import Slot
from solver.sessions import Session


class ScheduleConflictError(RuntimeError):
    """Commit auf einen belegten Schlüssel oder Uncommit einer fremden Placement."""


@dataclass(frozen=True)
class Placement:
    """Eine platzierte Session: Startslot, belegte Slots und Raum."""

    session: Session
    start_slot: Slot
    occupied_slots: tuple[Slot, ...]
    classroom_id: str

    @property
    def day_index(self) -> int:
        return self.start_slot.day_index

    @property
    def ordinals(self) -> tuple[int, ...]:
        return tuple(s.ordinal for s in self.occupied_slots)


class ScheduleState:
    """Belegungs-Indizes eines (Teil-)Plans."""

    def __init__(self) -> None:
        self.teacher_index: dict[tuple[str, int], Placement] = {}
        self.section_index: dict[tuple[str, int], Placement] = {}
        self.room_index: dict[tuple[str, int], Placement] = {}
        self._placements: list[Placement] = []

        # Abgeleitete Zähler, gepflegt nur von commit()/uncommit()
        self._teacher_day_hours: Counter = Counter()      # (teacher_id, day) → Slots
        self._teacher_week_hours: Counter = Counter()     # teacher_id → Slots
        self._section_day_sessions: Counter = Counter()   # (section_id, day, kategorie) → Sessions

    # ─── Mutatoren ────────────────────────────────────────────────────────────

    def commit(self, placement: Placement) -> None:
        """Trägt eine Placement atomar in alle Indizes ein."""
        keys = self._keys(placement)
        for index, key in keys:
            if key in index:
                raise ScheduleConflictError(
                    f"Schlüssel {key} ist bereits belegt durch "
                    f"{index[key].session.session_id} (neu: {placement.session.session_id})"
                )
        for index, key in keys:
            index[key] = placement
        self._placements.append(placement)

        session = placement.session
        hours = len(placement.occupied_slots)
        self._teacher_day_hours[(session.teacher_id, placement.day_index)] += hours
        self._teacher_week_hours[session.teacher_id] += hours
        for section_id in session.section_ids:
            self._section_day_sessions[(section_id, placement.day_index, session.category)] += 1

    def uncommit(self, placement: Placement) -> None:
        """Entfernt eine zuvor committete Placement (exakte Umkehrung von commit)."""
        keys = self._keys(placement)
        for index, key in keys:
            if index.get(key) != placement:
                raise ScheduleConflictError(
                    f"Schlüssel {key} gehört nicht zu {placement.session.session_id}"
                )
        for index, key in keys:
            del index[key]
        if self._placements and self._placements[-1] == placement:
            self._placements.pop()
        else:
            self._placements.remove(placement)

        session = placement.session
        hours = len(placement.occupied_slots)
        self._decrement(self._teacher_day_hours, (session.teacher_id, placement.day_index), hours)
        self._decrement(self._teacher_week_hours, session.teacher_id, hours)
        for section_id in session.section_ids:
            self._decrement(
                self._section_day_sessions,
                (section_id, placement.day_index, session.category), 1,
            )

    @staticmethod
    def _decrement(counter: Counter, key, amount: int) -> None:
        counter[key] -= amount
        if counter[key] <= 0:
            del counter[key]

    def _keys(self, placement: Placement) -> list[tuple[dict, tuple[str, int]]]:
        session = placement.session
        keys: list[tuple[dict, tuple[str, int]]] = []
        for ordinal in placement.ordinals:
            keys.append((self.teacher_index, (session.teacher_id, ordinal)))
            for section_id in session.section_ids:
                keys.append((self.section_index, (section_id, ordinal)))
            keys.append((self.room_index, (placement.classroom_id, ordinal)))
        return keys

    # ─── Abfragen ─────────────────────────────────────────────────────────────

    @property
    def placements(self) -> tuple[Placement, ...]:
        """Alle Placements in Commit-Reihenfolge."""
        return tuple(self._placements)

    def __len__(self) -> int:
        return len(self._placements)

    def teacher_at(self, teacher_id: str, ordinal: int) -> Optional[Placement]:
        return self.teacher_index.get((teacher_id, ordinal))

    def section_at(self, section_id: str, ordinal: int) -> Optional[Placement]:
        return self.section_index.get((section_id, ordinal))

    def room_at(self, classroom_id: str, ordinal: int) -> Optional[Placement]:
        return self.room_index.get((classroom_id, ordinal))

    def teacher_hours_on_day(self, teacher_id: str, day_index: int) -> int:
        return self._teacher_day_hours.get((teacher_id, day_index), 0)

    def teacher_hours_in_week(self, teacher_id: str) -> int:
        return self._teacher_week_hours.get(teacher_id, 0)

    def section_sessions_on_day(self, section_id: str, day_index: int, category: str) -> int:
        return self._section_day_sessions.get((section_id, day_index, category), 0)

    # ─── Kopie / Vergleich ────────────────────────────────────────────────────

    def clone(self) -> "ScheduleState":
        """Unabhängige Kopie (Placements selbst sind unveränderlich)."""
        other = ScheduleState()
        other.teacher_index = dict(self.teacher_index)
        other.section_index = dict(self.section_index)
        other.room_index = dict(self.room_index)
        other._placements = list(self._placements)
        other._teacher_day_hours = Counter(self._teacher_day_hours)
        other._teacher_week_hours = Counter(self._teacher_week_hours)
        other._section_day_sessions = Counter(self._section_day_sessions)
        return other

    def snapshot(self) -> tuple:
        """Vergleichbarer Abzug aller Indizes und Zähler."""
        return (
            frozenset(self.teacher_index.items()),
            frozenset(self.section_index.items()),
            frozenset(self.room_index.items()),
            frozenset(self._teacher_day_hours.items()),
            frozenset(self._teacher_week_hours.items()),
            frozenset(self._section_day_sessions.items()),
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ScheduleState):
            return NotImplemented
        return self.snapshot() == other.snapshot()

    __hash__ = None

    def __repr__(self) -> str:
        return f"ScheduleState({len(self._placements)} placements)"
