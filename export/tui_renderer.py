"""Gemeinsamer Renderer für die Terminal-Anzeige eines Plans.

Wird von `solve --show` und `show` (Rich) verwendet.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from solver.scheduler import ScheduleSolution, ScheduleEntry
    from config.schema import ProgramConfig

LUNCH_CELL = "Mittagspause"


def _grid_rows(
    entries: list["ScheduleEntry"],
    config: "ProgramConfig",
    cell,
) -> list[list[str]]:
    """Zeilen [Zeitfenster, Mo..Fr]; cell(entry) liefert den Zelltext."""
    slot_map: dict[tuple[int, int], list["ScheduleEntry"]] = {}
    for e in entries:
        slot_map.setdefault((e.day_index, e.time_index), []).append(e)

    lunch = set(config.lunch_time_indices())
    days = config.time_grid.working_days
    rows: list[list[str]] = []
    for time_idx, time in enumerate(config.time_grid.time_slots):
        if time_idx in lunch:
            rows.append([time] + [LUNCH_CELL] * len(days))
            continue
        cells = [time]
        for day_idx in range(len(days)):
            found = slot_map.get((day_idx, time_idx))
            if not found:
                cells.append("—")
            else:
                # Gruppen-Zeilen derselben Placement nur einmal zeigen
                seen: dict[int, "ScheduleEntry"] = {}
                for e in found:
                    seen.setdefault(e.placement_id, e)
                cells.append("\n".join(cell(e) for e in seen.values()))
        rows.append(cells)
    return rows


def render_section_rows(
    section_id: str,
    solution: "ScheduleSolution",
    config: "ProgramConfig",
) -> list[list[str]]:
    """Tabellenzeilen für den Plan einer Section.

    Jede Zeile: [Zeitfenster, Mo, Di, Mi, Do, Fr]; Zelle "Kurs\\nLehrkraft\\nRaum".
    """
    return _grid_rows(
        solution.get_section_schedule(section_id),
        config,
        lambda e: f"{e.course_label}\n{e.teacher_name}\n{e.room}",
    )


def render_teacher_rows(
    teacher_id: str,
    solution: "ScheduleSolution",
    config: "ProgramConfig",
) -> list[list[str]]:
    """Tabellenzeilen für den Plan einer Lehrkraft (Gruppen mit Gruppen-ID)."""
    return _grid_rows(
        solution.get_teacher_schedule(teacher_id),
        config,
        lambda e: f"{e.course_label}\n{e.group_id or e.section_label}\n{e.room}",
    )
