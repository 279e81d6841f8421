"""AvailabilityResolver: wählt den kleinsten passenden freien Raum für eine Platzierung."""

from typing import Optional

from models.classroom import Classroom
from models.timeslot import Slot
from solver.calendar import SlotCalendar
from solver.sessions import Session
from solver.state import ScheduleState


class AvailabilityResolver:
    """Raumauswahl nach Typ, Kapazität und Belegung.

    Räume werden pro Typ einmal aufsteigend nach Kapazität sortiert (stabil,
    bei Gleichstand gilt die Eingabereihenfolge). Der erste freie Raum mit
    ausreichender Kapazität ist damit der knappste.
    """

    def __init__(self, classrooms: list[Classroom], calendar: SlotCalendar) -> None:
        self.calendar = calendar
        self._by_type: dict[str, list[Classroom]] = {}
        for room in sorted(classrooms, key=lambda r: r.capacity):
            self._by_type.setdefault(room.room_type, []).append(room)

    def rooms_of_type(self, room_type: str) -> list[Classroom]:
        return list(self._by_type.get(room_type, []))

    def candidate_room(
        self,
        session: Session,
        start_slot: Slot,
        state: ScheduleState,
    ) -> Optional[tuple[Classroom, tuple[Slot, ...]]]:
        """Kleinster freier Raum und die belegten Slots, oder None.

        None auch dann, wenn die Session über eine Tagesgrenze oder das Ende
        des Kalenders hinausragen würde.
        """
        occupied = self.calendar.span(start_slot, session.duration_in_slots)
        if occupied is None:
            return None
        for room in self._by_type.get(session.room_type, []):
            if room.capacity < session.required_capacity:
                continue
            if all(state.room_at(room.id, s.ordinal) is None for s in occupied):
                return room, occupied
        return None
