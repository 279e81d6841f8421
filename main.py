"""Vorlesungsplan — Haupt-CLI.

Verwendung:
  python main.py init                     Standard-Konfiguration anlegen
  python main.py config show              Konfiguration anzeigen
  python main.py demo                     Demo-Datensatz erzeugen (JSON)
  python main.py validate                 Machbarkeits-Check
  python main.py solve                    Vorlesungsplan berechnen
  python main.py solve --show S1A         ... und Plan einer Section anzeigen
  python main.py show --section S1A       Gespeicherten Plan anzeigen
  python main.py check                    Gespeicherten Plan nachprüfen

Globale Option: --verbose schaltet DEBUG-Logging ein (jede Regel-Ablehnung).
"""

import sys
import logging
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich import box

console = Console()

# Standard-Pfade für Datensatz und Lösung
DEFAULT_DATA_JSON = Path("output/program_data.json")
DEFAULT_SOLUTION_JSON = Path("output/solution.json")

# Exit-Codes von solve
EXIT_COMPLETE = 0
EXIT_PRECONDITION = 1
EXIT_PARTIAL = 2


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _load_config_or_abort():
    """Lädt die Konfiguration oder bricht mit Fehlermeldung ab."""
    from config.manager import ConfigManager
    mgr = ConfigManager()
    if mgr.first_run_check():
        console.print(
            "[red]Keine Konfiguration gefunden.[/red]\n"
            "Führen Sie zunächst [bold]python main.py init[/bold] aus."
        )
        sys.exit(1)
    try:
        return mgr, mgr.load()
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)


def _load_data_or_abort(json_path: str):
    """Lädt den Datensatz oder bricht mit Fehlermeldung ab."""
    from models.program_data import ProgramData

    p = Path(json_path)
    if not p.exists():
        console.print(
            f"[red]Keine Datendatei gefunden: {p}[/red]\n"
            "Verwenden Sie [bold]python main.py demo[/bold] zum Erzeugen."
        )
        sys.exit(1)
    console.print(f"[bold]Lade Datensatz:[/bold] {p}")
    return ProgramData.load_json(p)


def _print_grid(title: str, rows: list[list[str]], day_names: list[str]) -> None:
    table = Table(title=title, box=box.ROUNDED, show_lines=True)
    table.add_column("Zeit", style="bold")
    for day in day_names:
        table.add_column(day)
    for row in rows:
        table.add_row(*row)
    console.print(table)


# ─── INIT ─────────────────────────────────────────────────────────────────────

@click.command("init")
@click.option("--force", is_flag=True, default=False,
              help="Bestehende Konfiguration überschreiben.")
def cmd_init(force: bool):
    """Legt die Standard-Konfiguration des Studiengangs an."""
    from config.defaults import default_program_config
    from config.manager import ConfigManager

    mgr = ConfigManager()
    if not mgr.first_run_check() and not force:
        console.print(
            "[yellow]Eine Konfiguration existiert bereits.[/yellow]\n"
            "Verwenden Sie [bold]--force[/bold] zum Überschreiben."
        )
        return

    mgr.save(default_program_config())
    console.print("Führen Sie jetzt [bold]python main.py demo[/bold] aus.")


# ─── CONFIG ───────────────────────────────────────────────────────────────────

@click.group("config")
def cmd_config():
    """Konfiguration anzeigen."""


@cmd_config.command("show")
def config_show():
    """Zeigt die aktuelle Konfiguration an."""
    mgr, config = _load_config_or_abort()

    console.print(Panel(
        f"[bold]{config.program_name}[/bold]  |  "
        f"{', '.join(config.time_grid.working_days)}",
        title="Studiengangskonfiguration",
        border_style="cyan",
    ))

    rules = config.rules
    lunch = set(config.lunch_time_indices())
    allowed = set(rules.allowed_slots)
    table = Table(title="Zeitraster", box=box.ROUNDED)
    table.add_column("Nr.")
    table.add_column("Zeitfenster")
    table.add_column("Status")
    for i, label in enumerate(config.time_grid.time_slots):
        if i in lunch:
            status = "[yellow]Mittagspause[/yellow]"
        elif label in allowed:
            status = "[green]erlaubt[/green]"
        else:
            status = "[dim]gesperrt[/dim]"
        table.add_row(str(i + 1), label, status)
    console.print(table)

    console.print(
        f"\n[bold]Regeln:[/bold] max. {rules.max_lectures_per_day} Vorlesungen / "
        f"{rules.max_labs_per_day} Labore pro Tag | Wegezeit {rules.travel_gap_minutes} min | "
        f"{len(rules.section_break_rules)} individuelle Pausen"
    )

    sc = config.search
    console.print(
        f"[bold]Suche:[/bold] {sc.strategy.value} | Knotenlimit {sc.node_limit} | "
        f"Zeitlimit {sc.time_limit_seconds}s | Worker {sc.num_workers}"
    )


# ─── DEMO ─────────────────────────────────────────────────────────────────────

@click.command("demo")
@click.option("--seed", default=42, help="Zufalls-Seed für reproduzierbare Daten.")
@click.option("--json-path", default=str(DEFAULT_DATA_JSON),
              help="Pfad für den JSON-Datensatz.")
@click.option("--validate/--no-validate", "run_validate", default=True,
              help="Machbarkeits-Check nach Generierung.")
def cmd_demo(seed: int, json_path: str, run_validate: bool):
    """Erzeugt einen Demo-Datensatz (Sections, Lehrkräfte, Kurse, Räume)."""
    mgr, config = _load_config_or_abort()
    from data.demo_data import DemoDataGenerator

    console.print("[bold]Demo-Daten werden generiert...[/bold]")
    gen = DemoDataGenerator(config, seed=seed)
    data = gen.generate()
    gen.print_summary(data)

    console.print(f"\n[dim]{data.summary()}[/dim]")

    if run_validate:
        data.validate_feasibility().print_rich()

    out_path = Path(json_path)
    data.save_json(out_path)
    console.print(f"[green]✓[/green] JSON gespeichert: {out_path}")


# ─── VALIDATE ─────────────────────────────────────────────────────────────────

@click.command("validate")
@click.option("--json-path", default=str(DEFAULT_DATA_JSON),
              help="Pfad zur gespeicherten JSON-Datei.")
def cmd_validate(json_path: str):
    """Führt einen Machbarkeits-Check auf dem Datensatz durch."""
    data = _load_data_or_abort(json_path)

    console.print(f"\n{data.summary()}\n")
    report = data.validate_feasibility()
    report.print_rich()

    sys.exit(0 if report.is_feasible else 1)


# ─── SOLVE ────────────────────────────────────────────────────────────────────

@click.command("solve")
@click.option("--json-path", default=str(DEFAULT_DATA_JSON),
              help="Pfad zur gespeicherten JSON-Datei.")
@click.option("--output", "-o", default=str(DEFAULT_SOLUTION_JSON),
              help="Pfad für die Lösung (JSON).")
@click.option("--strategy", type=click.Choice(["backtracking", "greedy"]), default=None,
              help="Suchstrategie (Standard: aus der Konfiguration).")
@click.option("--workers", type=click.IntRange(1, 64), default=None,
              help="Parallele Suchzweige.")
@click.option("--node-limit", type=click.IntRange(min=0), default=None,
              help="Max. geprüfte Slot-Versuche (0=kein Limit).")
@click.option("--time-limit", type=click.FloatRange(min=0), default=None,
              help="Zeitlimit in Sekunden (0=kein Limit).")
@click.option("--fill-partial/--no-fill-partial", default=None,
              help="Teilplan nach Fehlschlag greedy auffüllen.")
@click.option("--show", "show_section", default=None, metavar="SECTION",
              help="Plan dieser Section nach dem Lösen anzeigen.")
def cmd_solve(
    json_path: str,
    output: str,
    strategy: Optional[str],
    workers: Optional[int],
    node_limit: Optional[int],
    time_limit: Optional[float],
    fill_partial: Optional[bool],
    show_section: Optional[str],
):
    """Berechnet den Vorlesungsplan (Backtracking)."""
    from config.schema import SearchStrategy
    from solver.scheduler import TimetableScheduler, SchedulingPreconditionError
    from export.tui_renderer import render_section_rows

    data = _load_data_or_abort(json_path)

    overrides: dict = {}
    if strategy is not None:
        overrides["strategy"] = SearchStrategy(strategy)
    if workers is not None:
        overrides["num_workers"] = workers
    if node_limit is not None:
        overrides["node_limit"] = node_limit
    if time_limit is not None:
        overrides["time_limit_seconds"] = time_limit
    if fill_partial is not None:
        overrides["fill_partial"] = fill_partial
    search = data.config.search.model_copy(update=overrides)

    scheduler = TimetableScheduler(data, search=search)
    try:
        with console.status("[bold]Suche läuft...[/bold]"):
            solution = scheduler.solve()
    except SchedulingPreconditionError as e:
        console.print(f"[red]Suche kann nicht starten:[/red] {e}")
        sys.exit(EXIT_PRECONDITION)

    out_path = Path(output)
    solution.save_json(out_path)

    color = "green" if solution.is_complete else "yellow"
    console.print(Panel(
        f"[bold {color}]{solution.status}[/bold {color}]\n"
        f"Sessions: {solution.placed_sessions}/{solution.total_sessions} | "
        f"Knoten: {solution.nodes_explored} | Zeit: {solution.solve_time_seconds:.2f}s"
        + ("\n[yellow]Suchbudget erschöpft[/yellow]" if solution.budget_exhausted else ""),
        title="Ergebnis",
        border_style=color,
    ))

    if solution.unplaced:
        table = Table(title="Ungeplante Sessions", box=box.ROUNDED)
        table.add_column("Session")
        table.add_column("Kurs")
        table.add_column("Gründe")
        for u in solution.unplaced:
            reasons = ", ".join(
                f"{k}={v}" for k, v in sorted(u.reasons.items(), key=lambda kv: -kv[1])
            )
            table.add_row(u.session_id, u.course_id, reasons)
        console.print(table)

    console.print(f"[green]✓[/green] Lösung gespeichert: {out_path}")

    if show_section:
        rows = render_section_rows(show_section, solution, solution.config_snapshot)
        _print_grid(f"Section {show_section}", rows,
                    solution.config_snapshot.time_grid.working_days)

    sys.exit(EXIT_COMPLETE if solution.is_complete else EXIT_PARTIAL)


# ─── SHOW ─────────────────────────────────────────────────────────────────────

@click.command("show")
@click.option("--solution", "solution_path", default=str(DEFAULT_SOLUTION_JSON),
              help="Pfad zur gespeicherten Lösung.")
@click.option("--section", "section_id", default=None, help="Section-ID.")
@click.option("--teacher", "teacher_id", default=None, help="Lehrkraft-ID.")
def cmd_show(solution_path: str, section_id: Optional[str], teacher_id: Optional[str]):
    """Zeigt den Plan einer Section oder Lehrkraft an."""
    from solver.scheduler import ScheduleSolution
    from export.tui_renderer import render_section_rows, render_teacher_rows

    if not section_id and not teacher_id:
        raise click.UsageError("Bitte --section oder --teacher angeben.")
    try:
        solution = ScheduleSolution.load_json(Path(solution_path))
    except FileNotFoundError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)

    config = solution.config_snapshot
    days = config.time_grid.working_days
    if section_id:
        _print_grid(f"Section {section_id}",
                    render_section_rows(section_id, solution, config), days)
    if teacher_id:
        _print_grid(f"Lehrkraft {teacher_id}",
                    render_teacher_rows(teacher_id, solution, config), days)


# ─── CHECK ────────────────────────────────────────────────────────────────────

@click.command("check")
@click.option("--json-path", default=str(DEFAULT_DATA_JSON),
              help="Pfad zur gespeicherten JSON-Datei.")
@click.option("--solution", "solution_path", default=str(DEFAULT_SOLUTION_JSON),
              help="Pfad zur gespeicherten Lösung.")
def cmd_check(json_path: str, solution_path: str):
    """Prüft eine gespeicherte Lösung unabhängig vom Scheduler."""
    from solver.scheduler import ScheduleSolution
    from analysis.solution_validator import SolutionValidator

    data = _load_data_or_abort(json_path)
    try:
        solution = ScheduleSolution.load_json(Path(solution_path))
    except FileNotFoundError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)

    report = SolutionValidator().validate(solution, data)
    report.print_rich()
    sys.exit(0 if report.is_valid else 1)


# ─── HAUPT-CLI ────────────────────────────────────────────────────────────────

@click.group()
@click.option("--verbose", "-v", is_flag=True, default=False,
              help="DEBUG-Logging (jede Regel-Ablehnung).")
def cli(verbose: bool):
    """Vorlesungsplan-Generator für Studiengänge.

    Starten Sie mit: python main.py init
    """
    _setup_logging(verbose)


def main():
    """Einstiegspunkt. Legt beim ersten Aufruf ohne Argumente die Konfiguration an."""
    from config.manager import ConfigManager
    mgr = ConfigManager()

    if len(sys.argv) == 1 and mgr.first_run_check():
        console.print(Panel(
            "[bold]Willkommen beim Vorlesungsplan-Generator![/bold]\n\n"
            "Keine Konfiguration gefunden.\n"
            "Die Standard-Konfiguration wird jetzt angelegt...",
            border_style="cyan",
        ))
        sys.argv.append("init")

    cli()


# Befehle registrieren
cli.add_command(cmd_init)
cli.add_command(cmd_config)
cli.add_command(cmd_demo)
cli.add_command(cmd_validate)
cli.add_command(cmd_solve)
cli.add_command(cmd_show)
cli.add_command(cmd_check)


if __name__ == "__main__":
    main()
