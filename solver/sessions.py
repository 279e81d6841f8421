"""SessionExpander: zerlegt Lehraufträge in einzelne, zu platzierende Sitzungen.

Eine Sitzung (Session) ist eine atomare Unterrichtseinheit: Lehrkraft + Kurs +
Section bzw. Gruppe für eine feste Dauer. Jede Session wird genau einmal
platziert oder bleibt ungeplant.
"""

import logging
from dataclasses import dataclass, replace
from typing import Optional

from config.defaults import LECTURE_ROOM_TYPE
from models.assignment import Assignment
from models.program_data import ProgramData

logger = logging.getLogger(__name__)

LECTURE = "lecture"
LAB = "lab"


@dataclass(frozen=True)
class Session:
    """Eine atomare Sitzung mit ihrem Ressourcenbedarf."""

    session_id: str               # "<assignment>:<ziel>[#n]:<nr>", eindeutig pro Lauf
    section_or_group_id: str
    teacher_id: str
    course_id: str
    duration_in_slots: int
    room_type: str
    required_capacity: int        # Summe der Studierenden aller Sections
    is_group_session: bool = False
    member_section_ids: tuple[str, ...] = ()

    @property
    def section_ids(self) -> tuple[str, ...]:
        """Alle Sections, deren Kalender diese Session belegt."""
        if self.is_group_session:
            return self.member_section_ids
        return (self.section_or_group_id,)

    @property
    def category(self) -> str:
        """Vorlesung oder Labor (für Tageslimits und Wegezeit)."""
        return LECTURE if self.room_type == LECTURE_ROOM_TYPE else LAB


class SessionExpander:
    """Erzeugt die sortierte Session-Liste eines Laufs.

    Verwaiste Referenzen (Lehrkraft, Kurs, Section, Gruppe) werden mit einer
    Warnung übersprungen, der Lauf geht mit den übrigen Sessions weiter.
    """

    def __init__(self, data: ProgramData) -> None:
        self.data = data
        self._sections = data.section_map()
        self._teachers = data.teacher_map()
        self._courses = data.course_map()
        self._groups = data.group_map()

    def expand(self, assignments: Optional[list[Assignment]] = None) -> list[Session]:
        """Alle Sessions, längste und größte zuerst (most-constrained-first)."""
        if assignments is None:
            assignments = self.data.assignments

        sessions: list[Session] = []
        used: set[str] = set()
        for assignment in assignments:
            for session in self._expand_assignment(assignment):
                if session.session_id in used:
                    logger.warning(
                        f"Lehrauftrag {assignment.id}: ID mehrfach vergeben – "
                        f"Session {session.session_id} wird umbenannt"
                    )
                    n = 2
                    while f"{session.session_id}#{n}" in used:
                        n += 1
                    session = replace(session, session_id=f"{session.session_id}#{n}")
                used.add(session.session_id)
                sessions.append(session)

        # sorted() ist stabil: Gleichstände behalten die Erzeugungsreihenfolge
        return sorted(
            sessions,
            key=lambda s: (-s.duration_in_slots, -s.required_capacity),
        )

    def _expand_assignment(self, assignment: Assignment) -> list[Session]:
        course = self._courses.get(assignment.course_id or "")
        teacher = self._teachers.get(assignment.teacher_id or "")
        if course is None or teacher is None:
            logger.warning(
                f"Lehrauftrag {assignment.id}: Kurs '{assignment.course_id}' oder "
                f"Lehrkraft '{assignment.teacher_id}' fehlt – übersprungen"
            )
            return []

        sessions: list[Session] = []
        seen: dict[str, int] = {}
        for target in assignment.section_or_group_ids:
            # doppelt gelistete Ziele ergeben eigene Sessions mit eigener ID
            seen[target] = seen.get(target, 0) + 1
            key = target if seen[target] == 1 else f"{target}#{seen[target]}"
            if assignment.type == "group":
                group = self._groups.get(target)
                if group is None:
                    logger.warning(f"Lehrauftrag {assignment.id}: Gruppe '{target}' fehlt – übersprungen")
                    continue
                members: list[str] = []
                for section_id in group.sections:
                    if section_id not in self._sections:
                        logger.warning(f"Gruppe {group.id}: Section '{section_id}' fehlt – ignoriert")
                    elif section_id not in members:
                        members.append(section_id)
                if not members:
                    logger.warning(f"Gruppe {group.id}: keine gültigen Sections – übersprungen")
                    continue
                count = (
                    group.sessions_override
                    if group.sessions_override is not None
                    else course.sessions_per_week
                )
                is_group = True
            else:
                if target not in self._sections:
                    logger.warning(f"Lehrauftrag {assignment.id}: Section '{target}' fehlt – übersprungen")
                    continue
                members = [target]
                count = course.sessions_per_week
                is_group = False

            capacity = sum(self._sections[s].student_count for s in members)
            for i in range(count):
                sessions.append(Session(
                    session_id=f"{assignment.id}:{key}:{i + 1}",
                    section_or_group_id=target,
                    teacher_id=teacher.id,
                    course_id=course.id,
                    duration_in_slots=course.number_of_hours,
                    room_type=course.room_type,
                    required_capacity=capacity,
                    is_group_session=is_group,
                    member_section_ids=tuple(members) if is_group else (),
                ))
        return sessions
