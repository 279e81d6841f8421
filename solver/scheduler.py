"""Backtracking-Stundenplaner für Studiengänge.

Architektur:
  - SessionExpander liefert die Sessions (längste und größte zuerst)
  - SlotCalendar liefert die Slots in Kalenderordnung (Tag, dann Zeit)
  - pro (Session, Slot): AvailabilityResolver wählt den Raum,
    ConstraintEngine prüft alle harten Regeln
  - ScheduleState wird nur über commit()/uncommit() verändert
  - Fehlschlag ist keine Ausnahme: der tiefste erreichte Teilplan wird
    mit der Liste der ungeplanten Sessions zurückgegeben
"""

import time
import logging
import threading
from collections import Counter
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel

from config.schema import ProgramConfig, SearchConfig, SearchStrategy
from models.program_data import ProgramData
from models.timeslot import Slot
from solver.availability import AvailabilityResolver
from solver.calendar import SlotCalendar
from solver.constraints import ConstraintEngine
from solver.sessions import Session, SessionExpander
from solver.state import Placement, ScheduleState

logger = logging.getLogger(__name__)


class SchedulingPreconditionError(ValueError):
    """Strukturfehler der Konfiguration: die Suche kann gar nicht starten."""


# ─── Ergebnis-Modelle ─────────────────────────────────────────────────────────

class ScheduleEntry(BaseModel):
    """Eine Zeile des fertigen Plans: ein belegter Slot einer Section."""

    placement_id: int          # Index der Placement (Gruppen teilen ihn)
    section_id: str
    section_label: str         # "BSCS-1A"
    teacher_id: str
    teacher_name: str
    course_id: str
    course_label: str          # "CS-101 - Programming Fundamentals"
    day: str                   # "Monday"
    day_index: int             # 0=Mo .. 4=Fr
    time: str                  # "8:00-8:55"
    time_index: int
    classroom_id: str
    room: str                  # Raumname
    is_group: bool = False
    group_id: Optional[str] = None


class UnplacedSession(BaseModel):
    """Eine Session, die nicht platziert werden konnte, mit Ablehnungsgründen."""

    session_id: str
    section_or_group_id: str
    teacher_id: str
    course_id: str
    duration_in_slots: int
    room_type: str
    required_capacity: int
    is_group: bool = False
    # Regelname → Anzahl Slots, an denen diese Regel zuerst scheiterte
    reasons: dict[str, int] = {}


class ScheduleSolution(BaseModel):
    """Ergebnis eines Laufs: vollständiger oder Teil-Plan."""

    entries: list[ScheduleEntry]
    unplaced: list[UnplacedSession] = []
    status: Literal["COMPLETE", "PARTIAL"]
    strategy: str
    total_sessions: int
    placed_sessions: int
    nodes_explored: int = 0
    budget_exhausted: bool = False
    solve_time_seconds: float
    config_snapshot: ProgramConfig

    @property
    def is_complete(self) -> bool:
        return self.status == "COMPLETE"

    def get_section_schedule(self, section_id: str) -> list[ScheduleEntry]:
        """Alle Einträge einer Section."""
        return [e for e in self.entries if e.section_id == section_id]

    def get_teacher_schedule(self, teacher_id: str) -> list[ScheduleEntry]:
        """Alle Einträge einer Lehrkraft (Gruppen-Zeilen mehrfach)."""
        return [e for e in self.entries if e.teacher_id == teacher_id]

    def get_room_schedule(self, classroom_id: str) -> list[ScheduleEntry]:
        return [e for e in self.entries if e.classroom_id == classroom_id]

    def save_json(self, path: Path) -> None:
        """Speichert die Lösung als JSON-Datei."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            f.write(self.model_dump_json(indent=2))

    @classmethod
    def load_json(cls, path: Path) -> "ScheduleSolution":
        """Lädt eine gespeicherte Lösung aus JSON."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Lösung nicht gefunden: {path}")
        with open(path, "r", encoding="utf-8") as f:
            return cls.model_validate_json(f.read())


# ─── Suchbudget ───────────────────────────────────────────────────────────────

class _Budget:
    """Knoten- und Zeitbudget eines Suchzweigs, plus kooperativer Abbruch.

    Ein Knoten ist ein geprüftes (Session, Slot)-Paar.
    """

    def __init__(
        self,
        node_limit: int = 0,
        deadline: Optional[float] = None,
        cancel: Optional[threading.Event] = None,
    ) -> None:
        self.node_limit = node_limit
        self.deadline = deadline
        self.cancel = cancel
        self.nodes = 0
        self.exhausted = False
        self.cancelled = False

    def tick(self) -> bool:
        """Zählt einen Knoten; False wenn die Suche anhalten muss."""
        if self.cancel is not None and self.cancel.is_set():
            self.cancelled = True
            return False
        if self.node_limit and self.nodes >= self.node_limit:
            self.exhausted = True
            return False
        if self.deadline is not None and time.monotonic() > self.deadline:
            self.exhausted = True
            return False
        self.nodes += 1
        return True


@dataclass
class _SearchResult:
    success: bool
    placements: tuple[Placement, ...]   # vollständig oder tiefster Teilplan
    nodes: int
    exhausted: bool = False
    cancelled: bool = False


# ─── Haupt-Scheduler ──────────────────────────────────────────────────────────

class TimetableScheduler:
    """Backtracking-Scheduler über Sessions × Kalender-Slots.

    Verwendung:
        scheduler = TimetableScheduler(program_data)
        solution = scheduler.solve()
    """

    def __init__(self, data: ProgramData, search: Optional[SearchConfig] = None) -> None:
        self.data = data
        self.config = data.config
        self.search = search or data.config.search

        self.calendar = SlotCalendar(self.config.time_grid, self.config.rules.allowed_slots)
        self.resolver = AvailabilityResolver(data.classrooms, self.calendar)
        self.engine = ConstraintEngine(data, self.calendar)
        self.sessions: list[Session] = SessionExpander(data).expand()

    # ─── Vorbedingungen ───────────────────────────────────────────────────────

    def check_preconditions(self) -> None:
        """Wirft SchedulingPreconditionError bei Strukturfehlern."""
        if not self.config.rules.allowed_slots or len(self.calendar) == 0:
            raise SchedulingPreconditionError(
                "Keine erlaubten Zeitfenster konfiguriert – keine Session ist planbar")

        demanded: dict[str, set[str]] = {}
        for session in self.sessions:
            demanded.setdefault(session.room_type, set()).add(session.course_id)
        missing = [
            f"'{room_type}' (Kurse: {', '.join(sorted(courses))})"
            for room_type, courses in sorted(demanded.items())
            if not self.resolver.rooms_of_type(room_type)
        ]
        if missing:
            raise SchedulingPreconditionError(
                f"Kein Raum für benötigte Raumtypen: {'; '.join(missing)}")

    # ─── Lösen ────────────────────────────────────────────────────────────────

    def solve(self) -> ScheduleSolution:
        """Sucht einen vollständigen Plan, sonst den besten Teilplan."""
        self.check_preconditions()

        t0 = time.monotonic()
        deadline = (
            t0 + self.search.time_limit_seconds if self.search.time_limit_seconds else None
        )
        logger.info(
            f"Starte Suche: {len(self.sessions)} Sessions, {len(self.calendar)} Slots, "
            f"Strategie={self.search.strategy.value}, Worker={self.search.num_workers}"
        )

        if self.search.strategy == SearchStrategy.GREEDY:
            result = self._greedy(self.sessions, ScheduleState(),
                                  _Budget(self.search.node_limit, deadline))
        elif self.search.num_workers > 1 and len(self.sessions) > 1:
            result = self._solve_parallel(deadline)
        else:
            result = self._backtrack(self.sessions, ScheduleState(),
                                     _Budget(self.search.node_limit, deadline))

        if result.exhausted:
            logger.warning(
                f"Suchbudget erschöpft nach {result.nodes} Knoten – "
                f"verwende tiefsten Teilplan ({len(result.placements)} Sessions)"
            )

        state = self._state_from(result.placements)
        if not result.success and self.search.fill_partial:
            placed = {p.session.session_id for p in result.placements}
            rest = [s for s in self.sessions if s.session_id not in placed]
            filled = self._greedy(rest, state, _Budget())
            logger.info(
                f"Teilplan aufgefüllt: +{len(filled.placements) - len(result.placements)} Sessions")
            result.nodes += filled.nodes

        elapsed = time.monotonic() - t0
        placed_ids = {p.session.session_id for p in state.placements}
        unplaced = [s for s in self.sessions if s.session_id not in placed_ids]
        status = "COMPLETE" if not unplaced else "PARTIAL"

        logger.info(
            f"Suche beendet: {status} | {len(state)}/{len(self.sessions)} Sessions | "
            f"Knoten: {result.nodes} | Zeit: {elapsed:.2f}s"
        )

        return ScheduleSolution(
            entries=self._flatten(state.placements),
            unplaced=[self._diagnose(s, state) for s in unplaced],
            status=status,
            strategy=self.search.strategy.value,
            total_sessions=len(self.sessions),
            placed_sessions=len(state),
            nodes_explored=result.nodes,
            budget_exhausted=result.exhausted,
            solve_time_seconds=round(elapsed, 3),
            config_snapshot=self.config,
        )

    # ─── Einzelplatzierung ────────────────────────────────────────────────────

    def _try_place(self, session: Session, slot: Slot, state: ScheduleState) -> Optional[Placement]:
        """Placement für (Session, Startslot) oder None wenn unzulässig."""
        found = self.resolver.candidate_room(session, slot, state)
        if found is None:
            if logger.isEnabledFor(logging.DEBUG):
                logger.debug(f"rule=no_room session={session.session_id} slot={slot}")
            return None
        room, occupied = found
        if not self.engine.admissible(session, slot, room, state, occupied):
            return None
        return Placement(session, slot, occupied, room.id)

    def _state_from(self, placements: tuple[Placement, ...]) -> ScheduleState:
        state = ScheduleState()
        for placement in placements:
            state.commit(placement)
        return state

    # ─── Backtracking ─────────────────────────────────────────────────────────

    def _backtrack(
        self,
        sessions: list[Session],
        state: ScheduleState,
        budget: _Budget,
        start_depth: int = 0,
    ) -> _SearchResult:
        """Tiefensuche mit explizitem Stack.

        state enthält bereits die Placements für sessions[:start_depth]. Ein
        Zweig endet erfolglos, sobald er unter start_depth zurückspringen müsste.
        positions[d] ist der nächste zu prüfende Slot-Index auf Tiefe d.
        """
        slots = self.calendar.slots
        n = len(sessions)
        positions = [0] * (n + 1)
        committed: list[Placement] = []
        best = state.placements
        depth = start_depth

        while depth < n:
            session = sessions[depth]
            placement = None
            while positions[depth] < len(slots):
                if not budget.tick():
                    return _SearchResult(False, best, budget.nodes,
                                         budget.exhausted, budget.cancelled)
                slot = slots[positions[depth]]
                positions[depth] += 1
                placement = self._try_place(session, slot, state)
                if placement is not None:
                    break

            if placement is not None:
                state.commit(placement)
                committed.append(placement)
                depth += 1
                positions[depth] = 0
                if len(state) > len(best):
                    best = state.placements
                continue

            # Tiefe erschöpft: zurück zur vorherigen Session
            if depth == start_depth:
                logger.debug(f"Zweig erschöpft auf Tiefe {depth} nach {budget.nodes} Knoten")
                return _SearchResult(False, best, budget.nodes)
            depth -= 1
            state.uncommit(committed.pop())

        return _SearchResult(True, state.placements, budget.nodes)

    # ─── Greedy (First-Fit) ───────────────────────────────────────────────────

    def _greedy(self, sessions: list[Session], state: ScheduleState, budget: _Budget) -> _SearchResult:
        """Erster zulässiger Slot pro Session, ohne Rücksprung."""
        complete = True
        for session in sessions:
            placement = None
            for slot in self.calendar.slots:
                if not budget.tick():
                    return _SearchResult(False, state.placements, budget.nodes, budget.exhausted)
                placement = self._try_place(session, slot, state)
                if placement is not None:
                    break
            if placement is None:
                logger.debug(f"Greedy: {session.session_id} nicht platzierbar")
                complete = False
                continue
            state.commit(placement)
        return _SearchResult(complete, state.placements, budget.nodes)

    # ─── Parallele Zweige ─────────────────────────────────────────────────────

    def _solve_parallel(self, deadline: Optional[float]) -> _SearchResult:
        """Verteilt die Startslots der ersten Session auf Threads.

        Jeder Zweig besitzt einen eigenen ScheduleState. Ein erfolgreicher
        Zweig k bricht nur die Zweige > k ab; gewinnt der kleinste erfolgreiche
        Index, entspricht das Ergebnis dem der sequentiellen Suche.
        """
        first = self.sessions[0]
        empty = ScheduleState()
        branches: list[Placement] = []
        for slot in self.calendar.slots:
            placement = self._try_place(first, slot, empty)
            if placement is not None:
                branches.append(placement)
        probe_nodes = len(self.calendar)

        if not branches:
            return _SearchResult(False, (), probe_nodes)

        events = [threading.Event() for _ in branches]
        results: list[Optional[_SearchResult]] = [None] * len(branches)

        def run_branch(k: int) -> _SearchResult:
            state = ScheduleState()
            state.commit(branches[k])
            budget = _Budget(self.search.node_limit, deadline, events[k])
            return self._backtrack(self.sessions, state, budget, start_depth=1)

        logger.info(f"Parallele Suche: {len(branches)} Zweige auf {self.search.num_workers} Threads")
        with ThreadPoolExecutor(max_workers=self.search.num_workers) as executor:
            futures = {executor.submit(run_branch, k): k for k in range(len(branches))}
            for future in as_completed(futures):
                k = futures[future]
                results[k] = future.result()
                if results[k].success:
                    for later in range(k + 1, len(branches)):
                        events[later].set()

        nodes = probe_nodes + sum(r.nodes for r in results if r is not None)
        exhausted = any(r.exhausted for r in results if r is not None)
        for r in results:
            if r is not None and r.success:
                return _SearchResult(True, r.placements, nodes)

        best: Optional[_SearchResult] = None
        for r in results:
            if r is not None and (best is None or len(r.placements) > len(best.placements)):
                best = r
        return _SearchResult(False, best.placements, nodes, exhausted)

    # ─── Diagnose ─────────────────────────────────────────────────────────────

    def _diagnose(self, session: Session, state: ScheduleState) -> UnplacedSession:
        """Zählt pro Slot die erste verletzte Regel gegen den Endzustand."""
        reasons: Counter = Counter()
        for slot in self.calendar.slots:
            found = self.resolver.candidate_room(session, slot, state)
            if found is None:
                reasons["no_room"] += 1
                continue
            room, occupied = found
            rule = self.engine.first_violation(session, slot, room, state, occupied)
            reasons[rule or "placeable"] += 1
        logger.debug(f"Ungeplant: {session.session_id} {dict(reasons)}")
        return UnplacedSession(
            session_id=session.session_id,
            section_or_group_id=session.section_or_group_id,
            teacher_id=session.teacher_id,
            course_id=session.course_id,
            duration_in_slots=session.duration_in_slots,
            room_type=session.room_type,
            required_capacity=session.required_capacity,
            is_group=session.is_group_session,
            reasons=dict(reasons),
        )

    # ─── Ausgabe ──────────────────────────────────────────────────────────────

    def _flatten(self, placements: tuple[Placement, ...]) -> list[ScheduleEntry]:
        """Eine Zeile pro (Placement × belegter Slot × Section)."""
        sections = self.data.section_map()
        teachers = self.data.teacher_map()
        courses = self.data.course_map()
        rooms = self.data.classroom_map()

        entries: list[ScheduleEntry] = []
        for placement_id, placement in enumerate(placements):
            session = placement.session
            teacher = teachers[session.teacher_id]
            course = courses[session.course_id]
            room = rooms[placement.classroom_id]
            for slot in placement.occupied_slots:
                for section_id in session.section_ids:
                    entries.append(ScheduleEntry(
                        placement_id=placement_id,
                        section_id=section_id,
                        section_label=sections[section_id].code,
                        teacher_id=teacher.id,
                        teacher_name=teacher.name,
                        course_id=course.id,
                        course_label=course.label,
                        day=slot.day,
                        day_index=slot.day_index,
                        time=slot.time,
                        time_index=slot.time_index,
                        classroom_id=room.id,
                        room=room.name,
                        is_group=session.is_group_session,
                        group_id=session.section_or_group_id if session.is_group_session else None,
                    ))
        return entries
