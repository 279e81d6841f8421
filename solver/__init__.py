"""Solver-Modul (Backtracking über Sessions × Kalender-Slots)."""

from .scheduler import (
    TimetableScheduler,
    ScheduleSolution,
    ScheduleEntry,
    UnplacedSession,
    SchedulingPreconditionError,
)
from .state import ScheduleState, Placement, ScheduleConflictError

__all__ = [
    "TimetableScheduler",
    "ScheduleSolution",
    "ScheduleEntry",
    "UnplacedSession",
    "SchedulingPreconditionError",
    "ScheduleState",
    "Placement",
    "ScheduleConflictError",
]
