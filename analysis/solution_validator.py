"""Post-Solve Validierung der fertigen Stundenpläne.

Prüft die fertige Lösung auf Regelverletzungen als Sicherheitsnetz
unabhängig vom Scheduler. Grundlage sind nur die Ausgabezeilen und die
Stammdaten, nicht der interne ScheduleState.
"""

from collections import defaultdict
from typing import Literal

from pydantic import BaseModel

from models.program_data import ProgramData
from solver.scheduler import ScheduleSolution


class ValidationViolation(BaseModel):
    """Eine einzelne Regelverletzung."""

    severity: Literal["error", "warning"]
    constraint: str      # z.B. "teacher_double_booking"
    description: str
    entity: str          # teacher_id / section_id / classroom_id


class ValidationReport(BaseModel):
    """Ergebnis der Post-Solve Validierung."""

    violations: list[ValidationViolation]
    is_valid: bool       # True wenn keine Errors (Warnings ok)

    def print_rich(self) -> None:
        """Gibt den Report formatiert über Rich aus."""
        from rich.console import Console
        from rich.panel import Panel
        from rich.table import Table
        from rich import box

        console = Console()
        errors = [v for v in self.violations if v.severity == "error"]
        warnings = [v for v in self.violations if v.severity == "warning"]

        status = (
            "[bold green]✓ VALIDE[/bold green]"
            if self.is_valid
            else "[bold red]✗ VERLETZUNGEN GEFUNDEN[/bold red]"
        )
        lines = [status, f"Fehler: {len(errors)} | Warnungen: {len(warnings)}"]
        console.print(Panel("\n".join(lines), title="Lösung-Validierung", border_style="cyan"))

        if not self.violations:
            console.print("[dim]Keine Verletzungen gefunden.[/dim]")
            return

        table = Table(box=box.ROUNDED, show_lines=True)
        table.add_column("Typ", width=8)
        table.add_column("Regel", width=24)
        table.add_column("Entität", width=12)
        table.add_column("Beschreibung")

        for v in self.violations:
            color = "red" if v.severity == "error" else "yellow"
            table.add_row(
                f"[{color}]{v.severity.upper()}[/{color}]",
                v.constraint,
                v.entity,
                v.description,
            )
        console.print(table)


class SolutionValidator:
    """Prüft eine fertige ScheduleSolution auf Regelverletzungen."""

    def validate(self, solution: ScheduleSolution, data: ProgramData) -> ValidationReport:
        """Führt alle Validierungschecks durch und gibt einen ValidationReport zurück."""
        violations: list[ValidationViolation] = []

        violations.extend(self._check_teacher_double_booking(solution))
        violations.extend(self._check_section_double_booking(solution))
        violations.extend(self._check_room_double_booking(solution))
        violations.extend(self._check_capacity(solution, data))
        violations.extend(self._check_lunch_window(solution))
        violations.extend(self._check_allowed_slots(solution))
        violations.extend(self._check_teacher_availability(solution, data))
        violations.extend(self._check_unplaced(solution))

        has_errors = any(v.severity == "error" for v in violations)
        return ValidationReport(violations=violations, is_valid=not has_errors)

    # ── Einzelne Prüfungen ────────────────────────────────────────────────────

    def _check_teacher_double_booking(
        self, solution: ScheduleSolution
    ) -> list[ValidationViolation]:
        """Keine Lehrkraft darf zur selben Zeit zwei Placements haben."""
        violations: list[ValidationViolation] = []
        # Gruppen-Zeilen teilen placement_id und zählen einmal
        seen: dict[tuple, set[int]] = defaultdict(set)
        for e in solution.entries:
            seen[(e.teacher_id, e.day, e.time)].add(e.placement_id)

        for (teacher_id, day, time), placements in seen.items():
            if len(placements) > 1:
                violations.append(ValidationViolation(
                    severity="error",
                    constraint="teacher_double_booking",
                    entity=teacher_id,
                    description=f"{day} {time}: {len(placements)} Veranstaltungen gleichzeitig.",
                ))
        return violations

    def _check_section_double_booking(
        self, solution: ScheduleSolution
    ) -> list[ValidationViolation]:
        """Eine Section darf pro Slot nur einen Eintrag haben (auch Gruppen-Mitglieder)."""
        violations: list[ValidationViolation] = []
        by_slot: dict[tuple, list[str]] = defaultdict(list)
        for e in solution.entries:
            by_slot[(e.section_id, e.day, e.time)].append(e.course_label)

        for (section_id, day, time), courses in by_slot.items():
            if len(courses) > 1:
                violations.append(ValidationViolation(
                    severity="error",
                    constraint="section_double_booking",
                    entity=section_id,
                    description=f"{day} {time}: mehrere Einträge ({', '.join(courses)}).",
                ))
        return violations

    def _check_room_double_booking(
        self, solution: ScheduleSolution
    ) -> list[ValidationViolation]:
        """Ein Raum darf pro Slot nur einmal belegt sein."""
        violations: list[ValidationViolation] = []
        seen: dict[tuple, set[int]] = defaultdict(set)
        for e in solution.entries:
            seen[(e.classroom_id, e.day, e.time)].add(e.placement_id)

        for (classroom_id, day, time), placements in seen.items():
            if len(placements) > 1:
                violations.append(ValidationViolation(
                    severity="error",
                    constraint="room_double_booking",
                    entity=classroom_id,
                    description=f"{day} {time}: {len(placements)} Belegungen gleichzeitig.",
                ))
        return violations

    def _check_capacity(
        self, solution: ScheduleSolution, data: ProgramData
    ) -> list[ValidationViolation]:
        """Raumkapazität ≥ Summe der Studierenden aller Sections einer Placement."""
        violations: list[ValidationViolation] = []
        sections = data.section_map()
        rooms = data.classroom_map()

        members: dict[int, set[str]] = defaultdict(set)
        room_of: dict[int, str] = {}
        for e in solution.entries:
            members[e.placement_id].add(e.section_id)
            room_of[e.placement_id] = e.classroom_id

        for placement_id, section_ids in sorted(members.items()):
            room = rooms.get(room_of[placement_id])
            if room is None:
                violations.append(ValidationViolation(
                    severity="error",
                    constraint="unknown_room",
                    entity=room_of[placement_id],
                    description=f"Placement {placement_id}: Raum existiert nicht.",
                ))
                continue
            need = sum(sections[s].student_count for s in section_ids if s in sections)
            if need > room.capacity:
                violations.append(ValidationViolation(
                    severity="error",
                    constraint="capacity",
                    entity=room.id,
                    description=(
                        f"Placement {placement_id}: {need} Studierende, "
                        f"Kapazität {room.capacity}."
                    ),
                ))
        return violations

    def _check_lunch_window(self, solution: ScheduleSolution) -> list[ValidationViolation]:
        """Kein Eintrag in der Mittagspause."""
        lunch = set(solution.config_snapshot.lunch_time_indices())
        return [
            ValidationViolation(
                severity="error",
                constraint="lunch_window",
                entity=e.section_id,
                description=f"{e.day} {e.time}: {e.course_label} in der Mittagspause.",
            )
            for e in solution.entries
            if e.time_index in lunch
        ]

    def _check_allowed_slots(self, solution: ScheduleSolution) -> list[ValidationViolation]:
        """Nur freigegebene Zeitfenster und nur Montag–Freitag."""
        config = solution.config_snapshot
        allowed = set(config.rules.allowed_slots)
        working_days = set(config.time_grid.working_days)
        return [
            ValidationViolation(
                severity="error",
                constraint="allowed_slot",
                entity=e.section_id,
                description=f"{e.day} {e.time}: Zeitfenster nicht freigegeben.",
            )
            for e in solution.entries
            if e.time not in allowed or e.day not in working_days
        ]

    def _check_teacher_availability(
        self, solution: ScheduleSolution, data: ProgramData
    ) -> list[ValidationViolation]:
        """Lehrkräfte nur an verfügbaren Tagen und Zeitfenstern."""
        violations: list[ValidationViolation] = []
        teachers = data.teacher_map()
        reported: set[tuple] = set()
        for e in solution.entries:
            teacher = teachers.get(e.teacher_id)
            key = (e.teacher_id, e.day, e.time)
            if teacher is None or key in reported:
                continue
            if not teacher.is_available(e.day, e.time):
                reported.add(key)
                violations.append(ValidationViolation(
                    severity="error",
                    constraint="teacher_availability",
                    entity=e.teacher_id,
                    description=f"{e.day} {e.time}: {teacher.name} ist nicht verfügbar.",
                ))
        return violations

    def _check_unplaced(self, solution: ScheduleSolution) -> list[ValidationViolation]:
        """Ungeplante Sessions sind kein Fehler, aber ein Hinweis."""
        return [
            ValidationViolation(
                severity="warning",
                constraint="unplaced_session",
                entity=u.section_or_group_id,
                description=(
                    f"{u.session_id} ({u.course_id}) nicht platziert"
                    + (f": {', '.join(f'{k}={v}' for k, v in sorted(u.reasons.items()))}"
                       if u.reasons else "")
                ),
            )
            for u in solution.unplaced
        ]
