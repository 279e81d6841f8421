"""Tests für das Konfigurationssystem, die Datenmodelle und die Demo-Daten."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from config.schema import (
    ProgramConfig,
    RulesConfig,
    SearchConfig,
    SearchStrategy,
    SectionBreakRule,
    TimeGridConfig,
    parse_time_window,
)
from config.defaults import (
    DAYS,
    LECTURE_ROOM_TYPE,
    TIME_SLOTS,
    default_program_config,
    default_rules,
    default_time_grid,
)
from config.manager import ConfigManager
from data.demo_data import DemoDataGenerator
from models.assignment import Assignment
from models.classroom import Classroom
from models.course import Course
from models.group_class import GroupClass
from models.program_data import ProgramData
from models.section import Section
from models.teacher import Teacher


def _rules(**overrides) -> dict:
    base = default_rules().model_dump()
    base.update(overrides)
    return base


# ─── DEFAULT-KONFIGURATION ────────────────────────────────────────────────────

class TestDefaultConfig:
    def test_default_time_grid_valid(self):
        """Default-Raster: sieben Tage, zehn Zeitfenster, fünf Arbeitstage."""
        tg = default_time_grid()
        assert tg.slots_per_day == 10
        assert tg.day_names == DAYS
        assert tg.working_days == DAYS[:5]
        assert tg.time_slots[0] == "8:00-8:55"
        assert tg.time_slots[-1] == "17:05-17:55"

    def test_default_rules_values(self):
        rules = default_rules()
        assert rules.lunch_start_slot == "12:05-12:55"
        assert rules.lunch_end_slot == "13:05-13:55"
        assert rules.travel_gap_minutes == 10
        assert rules.max_lectures_per_day == 6
        assert rules.max_labs_per_day == 3
        assert rules.allowed_slots == TIME_SLOTS
        assert rules.section_break_rules == {}

    def test_default_program_config_valid(self):
        """Vollständige Default-Config ist valide."""
        config = default_program_config()
        assert config.program_name == "Informatik (B.Sc.)"
        assert config.search.strategy == SearchStrategy.BACKTRACKING
        assert config.search.num_workers == 1
        assert config.search.fill_partial is False

    def test_lunch_time_indices(self):
        """Mittagspause 12:05–13:55 umfasst die Rasterpositionen 4 und 5."""
        assert list(default_program_config().lunch_time_indices()) == [4, 5]


# ─── PYDANTIC-VALIDIERUNG ─────────────────────────────────────────────────────

class TestPydanticValidation:
    def test_parse_time_window(self):
        assert parse_time_window("8:00-8:55") == (480, 535)
        assert parse_time_window("17:05-17:55") == (1025, 1075)

    @pytest.mark.parametrize("label", ["8-9", "8:00", "9:00-8:00", "8:75-9:00"])
    def test_parse_time_window_invalid(self, label):
        with pytest.raises(ValueError):
            parse_time_window(label)

    def test_time_slots_must_increase(self):
        with pytest.raises(ValidationError):
            TimeGridConfig(time_slots=["9:00-9:50", "8:00-8:50"])

    def test_time_slots_no_duplicates(self):
        with pytest.raises(ValidationError):
            TimeGridConfig(time_slots=["8:00-8:50", "8:00-8:50"])

    def test_time_index_unknown_raises(self):
        with pytest.raises(ValueError):
            default_time_grid().time_index("7:00-7:55")

    def test_rules_reject_unknown_field(self):
        """Geschlossene Regel-Struktur: unbekannte Felder → Fehler."""
        with pytest.raises(ValidationError):
            RulesConfig(**_rules(max_exams_per_day=2))

    def test_rules_require_all_fields(self):
        """Fehlende Pflichtfelder werden beim Laden abgelehnt."""
        data = _rules()
        del data["max_labs_per_day"]
        with pytest.raises(ValidationError):
            RulesConfig(**data)

    def test_travel_gap_bounds(self):
        with pytest.raises(ValidationError):
            RulesConfig(**_rules(travel_gap_minutes=-5))

    def test_break_rule_requires_slot(self):
        with pytest.raises(ValidationError):
            SectionBreakRule(has_break=True)
        assert SectionBreakRule(has_break=False).break_slot is None

    def test_lunch_start_after_end_raises(self):
        with pytest.raises(ValidationError):
            ProgramConfig(
                time_grid=default_time_grid(),
                rules=RulesConfig(**_rules(lunch_start_slot="13:05-13:55",
                                           lunch_end_slot="12:05-12:55")),
            )

    def test_allowed_slot_not_in_grid_raises(self):
        with pytest.raises(ValidationError):
            ProgramConfig(
                time_grid=default_time_grid(),
                rules=RulesConfig(**_rules(allowed_slots=["7:00-7:55"])),
            )

    def test_break_slot_not_in_grid_raises(self):
        with pytest.raises(ValidationError):
            ProgramConfig(
                time_grid=default_time_grid(),
                rules=RulesConfig(**_rules(section_break_rules={
                    "S1": {"has_break": True, "break_slot": "7:00-7:55"},
                })),
            )

    def test_search_workers_bounds(self):
        with pytest.raises(ValidationError):
            SearchConfig(num_workers=0)
        assert SearchConfig(strategy="greedy").strategy == SearchStrategy.GREEDY


# ─── CONFIG-MANAGER ───────────────────────────────────────────────────────────

class TestConfigManager:
    def test_save_and_load_roundtrip(self, tmp_path: Path):
        """Config speichern und wieder laden ergibt identisches Objekt."""
        config = default_program_config()
        mgr = ConfigManager()
        mgr.CONFIG_DIR = tmp_path
        mgr.DEFAULT_CONFIG = tmp_path / "program_config.yaml"
        mgr.save(config)
        loaded = mgr.load()
        assert loaded == config

    def test_saved_yaml_has_comments(self, tmp_path: Path):
        mgr = ConfigManager()
        target = tmp_path / "cfg.yaml"
        mgr.save(default_program_config(), target)
        text = target.read_text(encoding="utf-8")
        assert "Vorlesungsplan" in text
        assert "─── Regeln ───" in text
        assert "travel_gap_minutes: 10" in text

    def test_first_run_check_no_file(self, tmp_path: Path):
        mgr = ConfigManager()
        mgr.DEFAULT_CONFIG = tmp_path / "nonexistent.yaml"
        assert mgr.first_run_check() is True

    def test_first_run_check_with_file(self, tmp_path: Path):
        mgr = ConfigManager()
        mgr.CONFIG_DIR = tmp_path
        mgr.DEFAULT_CONFIG = tmp_path / "program_config.yaml"
        mgr.save(default_program_config())
        assert mgr.first_run_check() is False

    def test_load_nonexistent_raises(self, tmp_path: Path):
        mgr = ConfigManager()
        with pytest.raises(FileNotFoundError):
            mgr.load(tmp_path / "not_there.yaml")

    def test_load_empty_raises(self, tmp_path: Path):
        target = tmp_path / "empty.yaml"
        target.write_text("", encoding="utf-8")
        with pytest.raises(ValueError, match="leer"):
            ConfigManager().load(target)

    def test_load_invalid_names_file(self, tmp_path: Path):
        """Pydantic-Fehler werden in ValueError mit Dateinamen verpackt."""
        target = tmp_path / "broken.yaml"
        target.write_text(
            "time_grid:\n  time_slots: ['8:00-8:55']\nrules:\n  lunch_start_slot: '8:00-8:55'\n",
            encoding="utf-8",
        )
        with pytest.raises(ValueError, match="broken.yaml"):
            ConfigManager().load(target)


# ─── DATENMODELLE ─────────────────────────────────────────────────────────────

class TestModels:
    def test_teacher_defaults(self):
        t = Teacher(id=" T1 ", name="Dr. Ayesha Khan")
        assert t.id == "T1"
        assert t.available_days == DAYS[:5]
        assert t.available_slots == TIME_SLOTS
        assert t.max_hours_per_day == 0

    def test_teacher_is_available(self):
        t = Teacher(id="T1", name="X", available_days=["Monday", "Tuesday"],
                    available_slots=["8:00-8:55"], days_off=["Tuesday"])
        assert t.is_available("Monday", "8:00-8:55")
        assert not t.is_available("Tuesday", "8:00-8:55")    # freier Tag
        assert not t.is_available("Monday", "9:05-9:55")     # Zeitfenster fehlt
        assert not t.is_available("Wednesday", "8:00-8:55")  # Tag fehlt

    def test_course_label_and_category(self):
        c = Course(id="C1", code="CS-101", name="Programming Fundamentals",
                   sessions_per_week=2, room_type=LECTURE_ROOM_TYPE)
        assert c.label == "CS-101 - Programming Fundamentals"
        assert not c.is_lab
        lab = c.model_copy(update={"room_type": "computer_lab"})
        assert lab.is_lab

    def test_course_sessions_positive(self):
        with pytest.raises(ValidationError):
            Course(id="C1", code="X", name="X", sessions_per_week=0, room_type="lecture_hall")

    @pytest.mark.parametrize("timing,window", [
        ("8-1", (480, 780)),
        ("10-4", (600, 960)),
        ("1-4", (780, 960)),
    ])
    def test_section_timing_window(self, timing, window):
        s = Section(id="S1", code="BSCS-1A", student_count=30, lecture_timings=timing)
        assert s.timing_window() == window

    def test_section_without_timing(self):
        s = Section(id="S1", code="BSCS-1A", student_count=30, lecture_timings="")
        assert s.lecture_timings is None
        assert s.timing_window() is None

    def test_section_invalid_timing_raises(self):
        with pytest.raises(ValidationError):
            Section(id="S1", code="X", student_count=1, lecture_timings="morning")

    def test_group_override_positive(self):
        with pytest.raises(ValidationError):
            GroupClass(id="G1", name="G", sections=["S1"], sessions_override=0)

    def test_ids_and_references_stripped(self):
        """IDs und Verweise darauf werden gleich normalisiert."""
        a = Assignment(id=" A1", teacher_id="T1 ", course_id=" C1 ",
                       section_or_group_ids=[" S1", "G1 "])
        assert (a.id, a.teacher_id, a.course_id) == ("A1", "T1", "C1")
        assert a.section_or_group_ids == ["S1", "G1"]
        assert Assignment(id="A2").teacher_id is None
        assert Section(id=" S1 ", code="X", student_count=1).id == "S1"
        assert Classroom(id="R1 ", name="R", room_type="lecture_hall", capacity=1).id == "R1"
        c = Course(id=" C1", code="X", name="X", sessions_per_week=1,
                   room_type=LECTURE_ROOM_TYPE, no_back_to_back=["C2 "])
        assert (c.id, c.no_back_to_back) == ("C1", ["C2"])
        g = GroupClass(id="G1 ", name="G", sections=["S1 ", " S2"])
        assert (g.id, g.sections) == ("G1", ["S1", "S2"])


# ─── PROGRAM DATA ─────────────────────────────────────────────────────────────

def _make_program(**overrides) -> ProgramData:
    fields = dict(
        sections=[
            Section(id="S1", code="BSCS-1A", student_count=30),
            Section(id="S2", code="BSCS-1B", student_count=25),
        ],
        teachers=[Teacher(id="T1", name="Dr. Khan", max_hours_per_week=3)],
        courses=[
            Course(id="C1", code="CS-101", name="PF", sessions_per_week=2,
                   room_type=LECTURE_ROOM_TYPE),
            Course(id="L1", code="CS-101L", name="PF Lab", sessions_per_week=1,
                   number_of_hours=2, room_type="computer_lab"),
        ],
        groups=[GroupClass(id="G1", name="Combined", sections=["S1", "S2"])],
        assignments=[
            Assignment(id="A1", teacher_id="T1", course_id="C1",
                       section_or_group_ids=["S1", "S2"]),
        ],
        classrooms=[Classroom(id="R1", name="Room 1", room_type=LECTURE_ROOM_TYPE, capacity=40)],
        config=default_program_config(),
    )
    fields.update(overrides)
    return ProgramData(**fields)


class TestProgramData:
    def test_lookup_maps(self):
        data = _make_program()
        assert set(data.section_map()) == {"S1", "S2"}
        assert data.course_map()["L1"].is_lab
        assert data.classroom_map()["R1"].capacity == 40

    def test_summary_contains_counts(self):
        summary = _make_program().summary()
        assert "Sections: 2 (55 Studierende)" in summary
        assert "Gesamtbedarf: 4 Slots/Woche" in summary

    def test_feasible_with_warning_for_weekly_cap(self):
        report = _make_program().validate_feasibility()
        assert report.is_feasible
        assert any("Wochenlimit" in w for w in report.warnings)

    def test_missing_room_type_is_error(self):
        data = _make_program(assignments=[
            Assignment(id="A1", teacher_id="T1", course_id="L1", section_or_group_ids=["S1"]),
        ])
        report = data.validate_feasibility()
        assert not report.is_feasible
        assert any("computer_lab" in e for e in report.errors)

    def test_empty_allowed_slots_is_error(self):
        config = default_program_config()
        config = config.model_copy(update={
            "rules": config.rules.model_copy(update={"allowed_slots": []}),
        })
        report = _make_program(config=config).validate_feasibility()
        assert not report.is_feasible

    def test_dangling_references_are_warnings(self):
        data = _make_program(assignments=[
            Assignment(id="A1", teacher_id="T1", course_id="C1", section_or_group_ids=["S9"]),
            Assignment(id="A2", teacher_id="T9", course_id="C1", section_or_group_ids=["S1"]),
            Assignment(id="A3", teacher_id="T1", course_id="C9", section_or_group_ids=["S1"]),
            Assignment(id="A4", teacher_id="T1", course_id="C1", type="group",
                       section_or_group_ids=["G9"]),
        ])
        report = data.validate_feasibility()
        assert report.is_feasible
        text = " ".join(report.warnings)
        for ref in ("S9", "T9", "C9", "G9"):
            assert ref in text

    def test_capacity_warning(self):
        data = _make_program(sections=[
            Section(id="S1", code="BSCS-1A", student_count=90),
            Section(id="S2", code="BSCS-1B", student_count=25),
        ])
        report = data.validate_feasibility()
        assert any("groß genug" in w for w in report.warnings)

    def test_padded_references_resolve(self):
        """Eine Lehrkraft-ID mit Leerzeichen im Lehrauftrag ist keine verwaiste Referenz."""
        data = _make_program(assignments=[
            Assignment(id="A1", teacher_id="T1 ", course_id=" C1",
                       section_or_group_ids=["S1 "]),
        ])
        report = data.validate_feasibility()
        assert not any("existiert nicht" in w for w in report.warnings)

    def test_unknown_room_type_warning(self):
        data = _make_program(classrooms=[
            Classroom(id="R1", name="Room 1", room_type=LECTURE_ROOM_TYPE, capacity=40),
            Classroom(id="X1", name="Bay", room_type="robotics_bay", capacity=20),
        ])
        report = data.validate_feasibility()
        assert report.is_feasible
        assert any("robotics_bay" in w for w in report.warnings)
        assert not any("lecture_hall" in w for w in report.warnings)

    def test_save_and_load_json(self, tmp_path: Path):
        data = _make_program()
        json_path = tmp_path / "program_data.json"
        data.save_json(json_path)
        loaded = ProgramData.load_json(json_path)
        assert loaded.created_at is not None
        assert loaded.modified_at is not None
        assert loaded.sections == data.sections
        assert loaded.config == data.config

    def test_load_json_nonexistent_raises(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            ProgramData.load_json(tmp_path / "does_not_exist.json")


# ─── DEMO-DATEN ───────────────────────────────────────────────────────────────

class TestDemoData:
    @pytest.fixture(scope="class")
    def demo(self) -> ProgramData:
        return DemoDataGenerator(default_program_config(), seed=42).generate()

    def test_counts(self, demo: ProgramData):
        assert len(demo.sections) == 4
        assert len(demo.groups) == 2
        assert len(demo.courses) == 8
        assert len(demo.teachers) == 8
        assert len(demo.assignments) == 8
        assert sum(1 for c in demo.courses if c.is_lab) == 2

    def test_feasible(self, demo: ProgramData):
        report = demo.validate_feasibility()
        assert report.is_feasible
        assert report.warnings == []

    def test_reproducible(self, demo: ProgramData):
        again = DemoDataGenerator(default_program_config(), seed=42).generate()
        assert again == demo

    def test_unique_teacher_names(self, demo: ProgramData):
        names = [t.name for t in demo.teachers]
        assert len(names) == len(set(names))


# ─── CLI ──────────────────────────────────────────────────────────────────────

class TestCli:
    def test_help(self):
        """main.py --help gibt Usage aus."""
        from click.testing import CliRunner
        from main import cli
        runner = CliRunner()
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "Usage" in result.output
        for command in ("init", "demo", "validate", "solve", "show", "check"):
            assert command in result.output

    def test_config_show_no_file(self):
        """config show ohne Konfiguration → Fehlermeldung."""
        from click.testing import CliRunner
        from main import cli
        runner = CliRunner()
        with runner.isolated_filesystem():
            result = runner.invoke(cli, ["config", "show"])
            assert result.exit_code == 1
            assert "Keine Konfiguration" in result.output

    def test_solve_options_registered(self):
        from click.testing import CliRunner
        from main import cli
        runner = CliRunner()
        result = runner.invoke(cli, ["solve", "--help"])
        assert result.exit_code == 0
        for option in ("--strategy", "--workers", "--node-limit", "--time-limit",
                       "--fill-partial", "--show"):
            assert option in result.output

    def test_full_pipeline(self, tmp_path: Path):
        """init → demo → validate → solve → show → check im leeren Verzeichnis."""
        from click.testing import CliRunner
        from main import cli
        runner = CliRunner()
        with runner.isolated_filesystem(temp_dir=tmp_path):
            result = runner.invoke(cli, ["init"])
            assert result.exit_code == 0, result.output
            assert Path("config/program_config.yaml").exists()

            result = runner.invoke(cli, ["config", "show"])
            assert result.exit_code == 0, result.output
            assert "Informatik" in result.output

            result = runner.invoke(cli, ["demo", "--seed", "42"])
            assert result.exit_code == 0, result.output
            assert Path("output/program_data.json").exists()

            result = runner.invoke(cli, ["validate"])
            assert result.exit_code == 0, result.output

            result = runner.invoke(cli, ["solve", "--show", "S1A"])
            assert result.exit_code == 0, result.output
            assert "COMPLETE" in result.output
            assert Path("output/solution.json").exists()

            result = runner.invoke(cli, ["show", "--teacher", "T01"])
            assert result.exit_code == 0, result.output

            result = runner.invoke(cli, ["check"])
            assert result.exit_code == 0, result.output
            assert "VALIDE" in result.output

    def test_solve_partial_exit_code(self, tmp_path: Path):
        """Teilplan → Exit-Code 2."""
        from click.testing import CliRunner
        from main import cli
        data = _make_program(
            teachers=[Teacher(id="T1", name="Dr. Khan", available_days=["Monday"],
                              available_slots=["8:00-8:55"])],
            assignments=[Assignment(id="A1", teacher_id="T1", course_id="C1",
                                    section_or_group_ids=["S1"])],
        )
        data.save_json(tmp_path / "data.json")
        runner = CliRunner()
        result = runner.invoke(cli, [
            "solve", "--json-path", str(tmp_path / "data.json"),
            "--output", str(tmp_path / "solution.json"),
        ])
        assert result.exit_code == 2, result.output
        assert "PARTIAL" in result.output

    def test_solve_precondition_exit_code(self, tmp_path: Path):
        """Fehlender Raumtyp → Exit-Code 1."""
        from click.testing import CliRunner
        from main import cli
        data = _make_program(assignments=[
            Assignment(id="A1", teacher_id="T1", course_id="L1", section_or_group_ids=["S1"]),
        ])
        data.save_json(tmp_path / "data.json")
        runner = CliRunner()
        result = runner.invoke(cli, [
            "solve", "--json-path", str(tmp_path / "data.json"),
            "--output", str(tmp_path / "solution.json"),
        ])
        assert result.exit_code == 1
        assert "computer_lab" in result.output

    def test_show_requires_target(self):
        from click.testing import CliRunner
        from main import cli
        runner = CliRunner()
        result = runner.invoke(cli, ["show"])
        assert result.exit_code == 2
