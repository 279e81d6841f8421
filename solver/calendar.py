"""SlotCalendar: geordnetes Universum aller planbaren (Tag, Zeitfenster)-Slots."""

from typing import Iterable, Optional

from config.schema import TimeGridConfig, WORKING_DAYS
from models.timeslot import Slot


def build_slots(time_grid: TimeGridConfig, allowed_times: Iterable[str]) -> list[Slot]:
    """Kartesisches Produkt Mo–Fr × Tagesraster, gefiltert auf allowed_times.

    Reine Funktion; die Reihenfolge (Tag zuerst, dann Zeit) ist die Ordnung
    der gesamten Suche.
    """
    allowed = set(allowed_times)
    per_day = time_grid.slots_per_day
    slots: list[Slot] = []
    for day_index, day in enumerate(time_grid.day_names[:WORKING_DAYS]):
        for time_index, time in enumerate(time_grid.time_slots):
            if time not in allowed:
                continue
            slots.append(Slot(
                day=day,
                day_index=day_index,
                time=time,
                time_index=time_index,
                ordinal=day_index * per_day + time_index,
            ))
    return slots


class SlotCalendar:
    """Hält die Slots eines Laufs und beantwortet Zusammenhangs-Fragen.

    Verwendung:
        calendar = SlotCalendar(config.time_grid, config.rules.allowed_slots)
        for slot in calendar.slots: ...
    """

    def __init__(self, time_grid: TimeGridConfig, allowed_times: Iterable[str]) -> None:
        self.time_grid = time_grid
        self.slots_per_day = time_grid.slots_per_day
        self._slots: tuple[Slot, ...] = tuple(build_slots(time_grid, allowed_times))
        self._by_ordinal: dict[int, Slot] = {s.ordinal: s for s in self._slots}

    @property
    def slots(self) -> tuple[Slot, ...]:
        return self._slots

    def __len__(self) -> int:
        return len(self._slots)

    def get(self, ordinal: int) -> Optional[Slot]:
        return self._by_ordinal.get(ordinal)

    def day_of(self, ordinal: int) -> int:
        return ordinal // self.slots_per_day

    def same_day(self, a: int, b: int) -> bool:
        return a // self.slots_per_day == b // self.slots_per_day

    def span(self, start: Slot, duration: int) -> Optional[tuple[Slot, ...]]:
        """Belegte Slots [start, start + duration) oder None.

        None wenn der Bereich eine Tagesgrenze überschreitet, über das Ende
        des Universums hinausragt oder ein nicht erlaubtes Zeitfenster enthält.
        """
        if duration < 1:
            raise ValueError(f"Dauer muss ≥ 1 sein, nicht {duration}")
        if self._by_ordinal.get(start.ordinal) != start:
            raise ValueError(f"{start!r} gehört nicht zu diesem Kalender")
        occupied = [start]
        for offset in range(1, duration):
            slot = self._by_ordinal.get(start.ordinal + offset)
            if slot is None or slot.day_index != start.day_index:
                return None
            occupied.append(slot)
        return tuple(occupied)
