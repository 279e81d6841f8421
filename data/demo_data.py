"""Demo-Daten-Generator für den Vorlesungsplan.

Erzeugt einen reproduzierbaren, lösbaren Beispiel-Studiengang:
  - zwei Semester mit je zwei Sections
  - pro Semester zwei Vorlesungen pro Section, ein Labor (Doppelslot)
    und eine gemeinsame Gruppenvorlesung beider Sections
  - je eine Lehrkraft pro Kurs, einige mit freiem Tag
  - drei Hörsäle und zwei Rechnerlabore

Lösbarkeits-Garantien:
  - jede Section hat höchstens sieben Sessions pro Woche und selbst mit
    eingeschränktem Unterrichtsfenster mindestens 20 freie Slots
  - der größte Hörsaal fasst jede Gruppe, jedes Labor jede Section
"""

import random
from typing import Optional

from config.schema import ProgramConfig
from config.defaults import LECTURE_ROOM_TYPE
from models.teacher import Teacher
from models.course import Course
from models.section import Section
from models.group_class import GroupClass
from models.assignment import Assignment
from models.classroom import Classroom
from models.program_data import ProgramData

# ─── Namens-Listen ────────────────────────────────────────────────────────────

_TITLES = ["Dr.", "Prof.", "Prof. Dr.", ""]

_FIRST_NAMES = [
    "Ayesha", "Bilal", "Clara", "Daniel", "Elif", "Farid", "Greta",
    "Hassan", "Ines", "Jonas", "Katrin", "Lukas", "Mira", "Nadia",
]

_LAST_NAMES = [
    "Khan", "Weber", "Yilmaz", "Schneider", "Ahmed", "Fischer",
    "Hoffmann", "Malik", "Becker", "Richter", "Qureshi", "Neumann",
]

# (Code, Name, Sessions/Woche, Dauer in Slots, Raumtyp) pro Semester
_CURRICULUM: dict[int, list[tuple[str, str, int, int, str]]] = {
    1: [
        ("CS-101", "Programming Fundamentals", 2, 1, LECTURE_ROOM_TYPE),
        ("CS-102", "Discrete Structures", 2, 1, LECTURE_ROOM_TYPE),
        ("CS-101L", "Programming Fundamentals Lab", 1, 2, "computer_lab"),
    ],
    2: [
        ("CS-201", "Object Oriented Programming", 2, 1, LECTURE_ROOM_TYPE),
        ("CS-202", "Digital Logic Design", 2, 1, LECTURE_ROOM_TYPE),
        ("CS-201L", "Object Oriented Programming Lab", 1, 2, "computer_lab"),
    ],
}

# Gemeinsame Gruppenvorlesung pro Semester
_GROUP_COURSES: dict[int, tuple[str, str, int]] = {
    1: ("MT-101", "Calculus and Analytic Geometry", 2),
    2: ("MT-201", "Linear Algebra", 2),
}


class DemoDataGenerator:
    """Generiert einen vollständigen Demo-Datensatz auf Basis der ProgramConfig."""

    def __init__(self, config: ProgramConfig, seed: Optional[int] = None) -> None:
        self.config = config
        self.rng = random.Random(seed)
        self._used_names: set[str] = set()

    # ─── Sections ─────────────────────────────────────────────────────────────

    def _generate_sections(self) -> list[Section]:
        sections = []
        for semester in _CURRICULUM:
            for label in ("A", "B"):
                sections.append(Section(
                    id=f"S{semester}{label}",
                    code=f"BSCS-{semester}{label}",
                    student_count=self.rng.randint(20, 35),
                    lecture_timings=self.rng.choice([None, None, "8-1", "10-4"]),
                ))
        return sections

    # ─── Räume ────────────────────────────────────────────────────────────────

    def _generate_classrooms(self) -> list[Classroom]:
        return [
            Classroom(id="R101", name="Room 101", room_type=LECTURE_ROOM_TYPE, capacity=40),
            Classroom(id="R102", name="Room 102", room_type=LECTURE_ROOM_TYPE, capacity=60),
            Classroom(id="H1", name="Main Hall", room_type=LECTURE_ROOM_TYPE, capacity=80),
            Classroom(id="LAB1", name="Computer Lab 1", room_type="computer_lab", capacity=40),
            Classroom(id="LAB2", name="Computer Lab 2", room_type="computer_lab", capacity=40),
        ]

    # ─── Lehrkräfte ───────────────────────────────────────────────────────────

    def _make_teacher(self, teacher_id: str) -> Teacher:
        """Erstellt eine Lehrkraft mit zufälligem Namen und evtl. freiem Tag."""
        while True:
            title = self.rng.choice(_TITLES)
            name = f"{title} {self.rng.choice(_FIRST_NAMES)} {self.rng.choice(_LAST_NAMES)}".strip()
            if name not in self._used_names:
                self._used_names.add(name)
                break

        days_off: list[str] = []
        if self.rng.random() < 0.3:
            days_off = [self.rng.choice(self.config.time_grid.working_days)]

        return Teacher(
            id=teacher_id,
            name=name,
            available_days=list(self.config.time_grid.working_days),
            available_slots=list(self.config.time_grid.time_slots),
            days_off=days_off,
            max_hours_per_day=0,
            max_hours_per_week=0,
        )

    # ─── Gesamt ───────────────────────────────────────────────────────────────

    def generate(self) -> ProgramData:
        """Erzeugt den vollständigen Datensatz als ProgramData-Objekt."""
        sections = self._generate_sections()
        classrooms = self._generate_classrooms()
        teachers: list[Teacher] = []
        courses: list[Course] = []
        groups: list[GroupClass] = []
        assignments: list[Assignment] = []

        for semester, curriculum in _CURRICULUM.items():
            section_ids = [s.id for s in sections if s.id.startswith(f"S{semester}")]

            for code, name, per_week, hours, room_type in curriculum:
                course = Course(
                    id=code,
                    code=code,
                    name=name,
                    sessions_per_week=per_week,
                    number_of_hours=hours,
                    room_type=room_type,
                )
                teacher = self._make_teacher(f"T{len(teachers) + 1:02d}")
                courses.append(course)
                teachers.append(teacher)
                assignments.append(Assignment(
                    id=f"A{len(assignments) + 1:02d}",
                    teacher_id=teacher.id,
                    course_id=course.id,
                    type="section",
                    section_or_group_ids=section_ids,
                ))

            code, name, per_week = _GROUP_COURSES[semester]
            course = Course(
                id=code,
                code=code,
                name=name,
                sessions_per_week=per_week,
                number_of_hours=1,
                room_type=LECTURE_ROOM_TYPE,
                no_back_to_back=[code],
            )
            group = GroupClass(
                id=f"G{semester}",
                name=f"BSCS-{semester} Combined",
                sections=section_ids,
                course_id=course.id,
            )
            teacher = self._make_teacher(f"T{len(teachers) + 1:02d}")
            courses.append(course)
            groups.append(group)
            teachers.append(teacher)
            assignments.append(Assignment(
                id=f"A{len(assignments) + 1:02d}",
                teacher_id=teacher.id,
                course_id=course.id,
                type="group",
                section_or_group_ids=[group.id],
            ))

        return ProgramData(
            sections=sections,
            teachers=teachers,
            courses=courses,
            groups=groups,
            assignments=assignments,
            classrooms=classrooms,
            config=self.config,
        )

    # ─── Ausgabe ──────────────────────────────────────────────────────────────

    def print_summary(self, data: ProgramData) -> None:
        """Gibt eine Rich-Tabelle mit Übersicht der erzeugten Daten aus."""
        from rich.console import Console
        from rich.table import Table
        from rich import box

        console = Console()
        table = Table(title="Erzeugte Demo-Daten", box=box.ROUNDED)
        table.add_column("Kategorie", style="bold cyan")
        table.add_column("Anzahl", justify="right")
        table.add_column("Details")

        restricted = sum(1 for s in data.sections if s.lecture_timings)
        with_day_off = sum(1 for t in data.teachers if t.days_off)
        labs = sum(1 for c in data.courses if c.is_lab)
        table.add_row("Sections", str(len(data.sections)),
                      f"{restricted} mit Unterrichtsfenster")
        table.add_row("Lehrkräfte", str(len(data.teachers)), f"{with_day_off} mit freiem Tag")
        table.add_row("Kurse", str(len(data.courses)),
                      f"{labs} Labore, {len(data.courses) - labs} Vorlesungen")
        table.add_row("Gruppen", str(len(data.groups)), "")
        table.add_row("Lehraufträge", str(len(data.assignments)), "")
        table.add_row("Räume", str(len(data.classrooms)), "")

        console.print(table)
