"""ProgramData: Vollständiger Datensatz eines Studiengangs + Machbarkeits-Check (Pydantic v2)."""

from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from pydantic import BaseModel

from models.teacher import Teacher
from models.course import Course
from models.section import Section
from models.group_class import GroupClass
from models.assignment import Assignment
from models.classroom import Classroom
from config.defaults import ROOM_TYPES
from config.schema import ProgramConfig


class FeasibilityReport(BaseModel):
    """Ergebnis des Machbarkeits-Checks."""

    is_feasible: bool
    errors: list[str]      # Kritische Probleme (Suche kann nicht starten)
    warnings: list[str]    # Hinweise (Teile des Plans bleiben evtl. leer)

    def print_rich(self) -> None:
        """Gibt den Report formatiert über Rich aus."""
        from rich.console import Console
        from rich.panel import Panel

        console = Console()
        if self.is_feasible:
            status = "[bold green]✓ PLANBAR[/bold green]"
        else:
            status = "[bold red]✗ NICHT PLANBAR[/bold red]"

        lines = [status]
        if self.errors:
            lines.append("\n[red bold]Fehler (kritisch):[/red bold]")
            for e in self.errors:
                lines.append(f"  [red]• {e}[/red]")
        if self.warnings:
            lines.append("\n[yellow bold]Warnungen:[/yellow bold]")
            for w in self.warnings:
                lines.append(f"  [yellow]• {w}[/yellow]")
        if not self.errors and not self.warnings:
            lines.append("[dim]Keine Probleme gefunden.[/dim]")

        console.print(Panel("\n".join(lines), title="Machbarkeits-Check", border_style="cyan"))


class ProgramData(BaseModel):
    """Vollständiger Datensatz: Sections, Lehrkräfte, Kurse, Gruppen, Aufträge, Räume."""

    sections: list[Section]
    teachers: list[Teacher]
    courses: list[Course]
    groups: list[GroupClass] = []
    assignments: list[Assignment]
    classrooms: list[Classroom]
    config: ProgramConfig
    created_at: Optional[datetime] = None
    modified_at: Optional[datetime] = None
    data_version: str = "1.0"

    # ─── Lookups ───

    def section_map(self) -> dict[str, Section]:
        return {s.id: s for s in self.sections}

    def teacher_map(self) -> dict[str, Teacher]:
        return {t.id: t for t in self.teachers}

    def course_map(self) -> dict[str, Course]:
        return {c.id: c for c in self.courses}

    def group_map(self) -> dict[str, GroupClass]:
        return {g.id: g for g in self.groups}

    def classroom_map(self) -> dict[str, Classroom]:
        return {r.id: r for r in self.classrooms}

    # ─── Übersicht ───

    def summary(self) -> str:
        """Kurze Übersicht über den Datensatz."""
        courses = self.course_map()
        groups = self.group_map()
        demand = 0
        for a in self.assignments:
            course = courses.get(a.course_id or "")
            if course is None:
                continue
            for target in a.section_or_group_ids:
                sessions = course.sessions_per_week
                if a.type == "group" and target in groups:
                    sessions = groups[target].sessions_override or sessions
                demand += sessions * course.number_of_hours
        rules = self.config.rules
        lines = [
            f"Studiengang: {self.config.program_name}",
            f"Sections: {len(self.sections)} "
            f"({sum(s.student_count for s in self.sections)} Studierende)",
            f"Lehrkräfte: {len(self.teachers)}",
            f"Kurse: {len(self.courses)} "
            f"({sum(1 for c in self.courses if c.is_lab)} Labore)",
            f"Gruppen: {len(self.groups)}",
            f"Lehraufträge: {len(self.assignments)}",
            f"Räume: {len(self.classrooms)}",
            f"Gesamtbedarf: {demand} Slots/Woche",
            f"Erlaubte Zeitfenster: {len(rules.allowed_slots)} pro Tag",
        ]
        return "\n".join(lines)

    # ─── Machbarkeits-Check ───

    def validate_feasibility(self) -> FeasibilityReport:
        """Prüft ob die Suche grundsätzlich starten kann.

        Prüfungen:
        1. Erlaubte Zeitfenster vorhanden
        2. Pro benötigtem Raumtyp: mindestens ein Raum
        3. Verwaiste Referenzen in Lehraufträgen und Gruppen
        4. Sections größer als jeder passende Raum
        5. Lehrer-Wochenlimit ≥ zugewiesene Stunden
        6. Raumtypen von Kursen und Räumen aus der Standardliste
        """
        errors: list[str] = []
        warnings: list[str] = []

        sections = self.section_map()
        teachers = self.teacher_map()
        courses = self.course_map()
        groups = self.group_map()

        # ── 1. Erlaubte Zeitfenster ─────────────────────────────────────
        if not self.config.rules.allowed_slots:
            errors.append("Keine erlaubten Zeitfenster konfiguriert – nichts ist planbar.")

        # ── 3. Verwaiste Referenzen ─────────────────────────────────────
        demanded_types: dict[str, list[str]] = {}
        teacher_load: dict[str, int] = {}
        for a in self.assignments:
            course = courses.get(a.course_id or "")
            if course is None:
                warnings.append(
                    f"Lehrauftrag {a.id}: Kurs '{a.course_id}' existiert nicht – wird übersprungen.")
                continue
            if a.teacher_id not in teachers:
                warnings.append(
                    f"Lehrauftrag {a.id}: Lehrkraft '{a.teacher_id}' existiert nicht – wird übersprungen.")
                continue
            for target in a.section_or_group_ids:
                sessions = course.sessions_per_week
                if a.type == "group":
                    group = groups.get(target)
                    if group is None:
                        warnings.append(
                            f"Lehrauftrag {a.id}: Gruppe '{target}' existiert nicht – wird übersprungen.")
                        continue
                    sessions = group.sessions_override or sessions
                    members = [sections[s] for s in group.sections if s in sections]
                elif target not in sections:
                    warnings.append(
                        f"Lehrauftrag {a.id}: Section '{target}' existiert nicht – wird übersprungen.")
                    continue
                else:
                    members = [sections[target]]
                demanded_types.setdefault(course.room_type, []).append(course.code)
                teacher_load[a.teacher_id] = (
                    teacher_load.get(a.teacher_id, 0) + sessions * course.number_of_hours
                )

                # ── 4. Kapazität ────────────────────────────────────────
                need = sum(s.student_count for s in members)
                fitting = [
                    r for r in self.classrooms
                    if r.room_type == course.room_type and r.capacity >= need
                ]
                if not fitting and any(r.room_type == course.room_type for r in self.classrooms):
                    warnings.append(
                        f"Kurs {course.code} für '{target}': {need} Studierende, aber kein "
                        f"'{course.room_type}'-Raum ist groß genug."
                    )

        for group in self.groups:
            missing = [s for s in group.sections if s not in sections]
            if missing:
                warnings.append(
                    f"Gruppe {group.id}: unbekannte Sections {', '.join(missing)}.")

        # ── 2. Raumtypen ────────────────────────────────────────────────
        available_types = {r.room_type for r in self.classrooms}
        for room_type, codes in sorted(demanded_types.items()):
            if room_type not in available_types:
                errors.append(
                    f"Raumtyp '{room_type}' wird von {', '.join(sorted(set(codes)))} "
                    f"benötigt, aber kein solcher Raum ist konfiguriert!"
                )

        # ── 6. Unbekannte Raumtypen ────────────────────────────────────
        known = set(ROOM_TYPES)
        used_types = {c.room_type for c in self.courses} | available_types
        for room_type in sorted(used_types - known):
            warnings.append(
                f"Raumtyp '{room_type}' ist kein Standard-Raumtyp (Tippfehler?)."
            )

        # ── 5. Lehrer-Wochenlimit ───────────────────────────────────────
        for teacher_id, load in sorted(teacher_load.items()):
            teacher = teachers[teacher_id]
            if teacher.max_hours_per_week and load > teacher.max_hours_per_week:
                warnings.append(
                    f"Lehrkraft {teacher.id} ({teacher.name}): {load} Slots zugewiesen, "
                    f"Wochenlimit {teacher.max_hours_per_week} – Teile bleiben ungeplant."
                )

        return FeasibilityReport(
            is_feasible=len(errors) == 0,
            errors=errors,
            warnings=warnings,
        )

    # ─── Persistenz ────────────────────────────────────────────────────────

    def save_json(self, path: Path) -> None:
        """Speichert den kompletten Datensatz als JSON-Datei."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        now = datetime.now(timezone.utc)
        updated = self.model_copy(update={
            "modified_at": now,
            "created_at": self.created_at or now,
        })
        with open(path, "w", encoding="utf-8") as f:
            f.write(updated.model_dump_json(indent=2))

    @classmethod
    def load_json(cls, path: Path) -> "ProgramData":
        """Lädt einen Datensatz aus einer JSON-Datei."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"JSON-Datei nicht gefunden: {path}")
        with open(path, "r", encoding="utf-8") as f:
            return cls.model_validate_json(f.read())
