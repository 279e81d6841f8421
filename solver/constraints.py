"""ConstraintEngine: harte Regeln für eine einzelne Platzierung.

Alle Regeln sind reine Prädikate über (Session, Slots, Raum, Zustand). Sie
werfen nie für eine Regelverletzung; die erste verletzte Regel wird als Name
zurückgegeben und auf DEBUG protokolliert.

Reihenfolge der Prüfung (Abbruch bei der ersten Verletzung):
  1.  teacher_availability   Tage, Zeitfenster und freie Tage der Lehrkraft
  1b. teacher_hours          Tages- und Wochenlimit der Lehrkraft
  2.  teacher_conflict       Lehrkraft bereits belegt
  3.  section_conflict       eine der Sections bereits belegt
  4.  lunch_window           Mittagspause
  5.  section_break          individuelle Pause einer Section
  5b. section_timing         Unterrichtsfenster einer Section ("8-1", ...)
  6.  back_to_back           verbotene direkte Nachbarschaft zweier Kurse
  7.  daily_quota            Vorlesungen/Labore pro Tag
  8.  travel_gap             Hörsaal und Labor direkt nacheinander oder
                             mit weniger als travel_gap_minutes Abstand
  9.  allowed_slot           Zeitfenster nicht freigegeben
"""

import logging
from typing import Optional

from config.schema import parse_time_window
from models.classroom import Classroom
from models.program_data import ProgramData
from models.timeslot import Slot
from solver.calendar import SlotCalendar
from solver.sessions import LECTURE, Session
from solver.state import Placement, ScheduleState

logger = logging.getLogger(__name__)

RULE_NAMES: tuple[str, ...] = (
    "teacher_availability",
    "teacher_hours",
    "teacher_conflict",
    "section_conflict",
    "lunch_window",
    "section_break",
    "section_timing",
    "back_to_back",
    "daily_quota",
    "travel_gap",
    "allowed_slot",
)


class ConstraintEngine:
    """Prüft eine Platzierung gegen alle harten Regeln eines Laufs."""

    def __init__(self, data: ProgramData, calendar: SlotCalendar) -> None:
        self.data = data
        self.calendar = calendar
        self.rules = data.config.rules
        self._teachers = data.teacher_map()
        self._courses = data.course_map()
        self._sections = data.section_map()

        self._lunch = set(data.config.lunch_time_indices())
        self._allowed = set(self.rules.allowed_slots)
        self._grid: list[str] = list(data.config.time_grid.time_slots)
        self._windows = {label: parse_time_window(label) for label in self._grid}
        self._break_slots: dict[str, str] = {
            section_id: rule.break_slot
            for section_id, rule in self.rules.section_break_rules.items()
            if rule.has_break and rule.break_slot
        }
        self._timing: dict[str, tuple[int, int]] = {}
        for section in data.sections:
            window = section.timing_window()
            if window is not None:
                self._timing[section.id] = window

        # Verbotene Nachbarschaften gelten in beide Richtungen
        self._no_adjacent: dict[str, set[str]] = {}
        for course in data.courses:
            for other in course.no_back_to_back:
                self._no_adjacent.setdefault(course.id, set()).add(other)
                self._no_adjacent.setdefault(other, set()).add(course.id)

        self._checks = [(rule, getattr(self, f"_{rule}")) for rule in RULE_NAMES]

    # ─── Öffentliche API ───

    def admissible(
        self,
        session: Session,
        start_slot: Slot,
        classroom: Classroom,
        state: ScheduleState,
        occupied: Optional[tuple[Slot, ...]] = None,
    ) -> bool:
        return self.first_violation(session, start_slot, classroom, state, occupied) is None

    def first_violation(
        self,
        session: Session,
        start_slot: Slot,
        classroom: Classroom,
        state: ScheduleState,
        occupied: Optional[tuple[Slot, ...]] = None,
    ) -> Optional[str]:
        """Name der ersten verletzten Regel oder None wenn zulässig.

        occupied kann vom AvailabilityResolver übernommen werden; sonst wird
        der Bereich aus start_slot und Dauer berechnet.
        """
        if occupied is None:
            occupied = self.calendar.span(start_slot, session.duration_in_slots)
            if occupied is None:
                raise ValueError(
                    f"{session.session_id}: {session.duration_in_slots} Slots ab "
                    f"{start_slot} liegen nicht zusammenhängend an einem Tag"
                )
        for rule, check in self._checks:
            if not check(session, occupied, state):
                if logger.isEnabledFor(logging.DEBUG):
                    logger.debug(
                        f"rule={rule} session={session.session_id} "
                        f"slot={occupied[0]} room={classroom.id}"
                    )
                return rule
        return None

    # ─── Regeln ───

    def _teacher_availability(self, session, occupied, state) -> bool:
        teacher = self._teachers.get(session.teacher_id)
        if teacher is None:
            return False
        return all(teacher.is_available(s.day, s.time) for s in occupied)

    def _teacher_hours(self, session, occupied, state) -> bool:
        teacher = self._teachers[session.teacher_id]
        hours = len(occupied)
        if teacher.max_hours_per_day:
            day_load = state.teacher_hours_on_day(teacher.id, occupied[0].day_index)
            if day_load + hours > teacher.max_hours_per_day:
                return False
        if teacher.max_hours_per_week:
            if state.teacher_hours_in_week(teacher.id) + hours > teacher.max_hours_per_week:
                return False
        return True

    def _teacher_conflict(self, session, occupied, state) -> bool:
        return all(state.teacher_at(session.teacher_id, s.ordinal) is None for s in occupied)

    def _section_conflict(self, session, occupied, state) -> bool:
        # Gruppen: alle Mitglieder müssen in allen Slots frei sein
        return all(
            state.section_at(section_id, s.ordinal) is None
            for section_id in session.section_ids
            for s in occupied
        )

    def _lunch_window(self, session, occupied, state) -> bool:
        return not any(s.time_index in self._lunch for s in occupied)

    def _section_break(self, session, occupied, state) -> bool:
        times = {s.time for s in occupied}
        for section_id in session.section_ids:
            if self._break_slots.get(section_id) in times:
                return False
        return True

    def _section_timing(self, session, occupied, state) -> bool:
        begin = self._windows[occupied[0].time][0]
        end = self._windows[occupied[-1].time][1]
        for section_id in session.section_ids:
            window = self._timing.get(section_id)
            if window is None:
                continue
            if begin < window[0] or end > window[1]:
                return False
        return True

    def _back_to_back(self, session, occupied, state) -> bool:
        banned = self._no_adjacent.get(session.course_id)
        if not banned:
            return True
        for section_id in session.section_ids:
            for s in occupied:
                for neighbour in (s.ordinal - 1, s.ordinal + 1):
                    placement = self._neighbour(state, section_id, s.ordinal, neighbour)
                    if placement is not None and placement.session.course_id in banned:
                        return False
        return True

    def _daily_quota(self, session, occupied, state) -> bool:
        if session.category == LECTURE:
            limit = self.rules.max_lectures_per_day
        else:
            limit = self.rules.max_labs_per_day
        day = occupied[0].day_index
        return all(
            state.section_sessions_on_day(section_id, day, session.category) + 1 <= limit
            for section_id in session.section_ids
        )

    def _travel_gap(self, session, occupied, state) -> bool:
        gap = self.rules.travel_gap_minutes
        if gap <= 0:
            return True
        first, last = occupied[0].ordinal, occupied[-1].ordinal
        begin = self._windows[occupied[0].time][0]
        end = self._windows[occupied[-1].time][1]
        day_start = occupied[0].day_index * self.calendar.slots_per_day
        for section_id in session.section_ids:
            # direkte Nachbarschaft ist bei gap > 0 immer verboten
            for origin, neighbour in ((first, first - 1), (last, last + 1)):
                placement = self._neighbour(state, section_id, origin, neighbour)
                if placement is not None and placement.session.category != session.category:
                    return False
            # darüber hinaus: Abstand in Minuten zu jeder anderen Kategorie am selben Tag
            for time_index, label in enumerate(self._grid):
                placement = state.section_at(section_id, day_start + time_index)
                if placement is None or placement.session.category == session.category:
                    continue
                other_begin, other_end = self._windows[label]
                if other_end <= begin:
                    distance = begin - other_end
                elif other_begin >= end:
                    distance = other_begin - end
                else:
                    return False
                if distance < gap:
                    return False
        return True

    def _allowed_slot(self, session, occupied, state) -> bool:
        return all(s.time in self._allowed for s in occupied)

    def _neighbour(
        self, state: ScheduleState, section_id: str, origin: int, neighbour: int,
    ) -> Optional[Placement]:
        """Placement der Section im Nachbar-Slot, nur am selben Tag."""
        if neighbour < 0 or not self.calendar.same_day(origin, neighbour):
            return None
        return state.section_at(section_id, neighbour)
