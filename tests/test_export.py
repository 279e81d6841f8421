"""Tests für die Terminal-Darstellung der Pläne."""

import pytest

from config.defaults import LECTURE_ROOM_TYPE, default_program_config
from models.assignment import Assignment
from models.classroom import Classroom
from models.course import Course
from models.group_class import GroupClass
from models.program_data import ProgramData
from models.section import Section
from models.teacher import Teacher
from solver.scheduler import ScheduleSolution, TimetableScheduler
from export.tui_renderer import LUNCH_CELL, render_section_rows, render_teacher_rows


# ─── Fixtures ─────────────────────────────────────────────────────────────────

@pytest.fixture(scope="module")
def group_solution() -> ScheduleSolution:
    """Eine Gruppenvorlesung (S1+S2) und eine Einzelvorlesung für S1."""
    data = ProgramData(
        sections=[
            Section(id="S1", code="BSCS-1A", student_count=30),
            Section(id="S2", code="BSCS-1B", student_count=25),
        ],
        teachers=[Teacher(id="T1", name="Dr. Khan"), Teacher(id="T2", name="Prof. Weber")],
        courses=[
            Course(id="MT", code="MT-101", name="Calculus", sessions_per_week=1,
                   room_type=LECTURE_ROOM_TYPE),
            Course(id="CS", code="CS-101", name="Programming", sessions_per_week=1,
                   room_type=LECTURE_ROOM_TYPE),
        ],
        groups=[GroupClass(id="G1", name="Combined", sections=["S1", "S2"])],
        assignments=[
            Assignment(id="A1", teacher_id="T1", course_id="MT", type="group",
                       section_or_group_ids=["G1"]),
            Assignment(id="A2", teacher_id="T2", course_id="CS", section_or_group_ids=["S1"]),
        ],
        classrooms=[Classroom(id="H1", name="Main Hall", room_type=LECTURE_ROOM_TYPE,
                              capacity=80)],
        config=default_program_config(),
    )
    solution = TimetableScheduler(data).solve()
    assert solution.status == "COMPLETE"
    return solution


# ─── Tests: Section-Ansicht ───────────────────────────────────────────────────

class TestRenderSectionRows:
    def test_shape(self, group_solution):
        rows = render_section_rows("S1", group_solution, group_solution.config_snapshot)
        assert len(rows) == 10
        assert all(len(r) == 6 for r in rows)
        assert rows[0][0] == "8:00-8:55"

    def test_lunch_rows(self, group_solution):
        rows = render_section_rows("S1", group_solution, group_solution.config_snapshot)
        assert rows[4][1:] == [LUNCH_CELL] * 5
        assert rows[5][1:] == [LUNCH_CELL] * 5

    def test_cells(self, group_solution):
        rows = render_section_rows("S1", group_solution, group_solution.config_snapshot)
        # Gruppe (Kapazität 55) zuerst auf Mo 8:00, danach CS auf Mo 9:05
        assert rows[0][1] == "MT-101 - Calculus\nDr. Khan\nMain Hall"
        assert rows[1][1] == "CS-101 - Programming\nProf. Weber\nMain Hall"
        assert rows[2][1] == "—"

    def test_group_member_sees_group_only(self, group_solution):
        rows = render_section_rows("S2", group_solution, group_solution.config_snapshot)
        assert rows[0][1].startswith("MT-101")
        assert rows[1][1] == "—"

    def test_unknown_section_is_empty(self, group_solution):
        rows = render_section_rows("S9", group_solution, group_solution.config_snapshot)
        assert all(cell in ("—", LUNCH_CELL) for row in rows for cell in row[1:])


# ─── Tests: Lehrkraft-Ansicht ─────────────────────────────────────────────────

class TestRenderTeacherRows:
    def test_group_shown_once(self, group_solution):
        rows = render_teacher_rows("T1", group_solution, group_solution.config_snapshot)
        assert rows[0][1] == "MT-101 - Calculus\nG1\nMain Hall"

    def test_section_label_for_plain_session(self, group_solution):
        rows = render_teacher_rows("T2", group_solution, group_solution.config_snapshot)
        assert rows[1][1] == "CS-101 - Programming\nBSCS-1A\nMain Hall"
