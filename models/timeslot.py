"""Datenmodell für einen Slot im Wochenraster."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Slot:
    """Ein (Tag, Zeitfenster)-Paar des Wochenrasters.

    Immutable (frozen=True) damit es als Dict-Key / Set-Element nutzbar ist.
    ordinal = day_index * slots_per_day + time_index liefert die Gesamtordnung,
    auf der alle Nachbarschafts-Prüfungen beruhen.
    """

    day: str          # "Monday"
    day_index: int    # 0=Montag .. 4=Freitag
    time: str         # "8:00-8:55"
    time_index: int   # Position im Tagesraster (0-basiert)
    ordinal: int

    def __repr__(self) -> str:
        return f"Slot({self.day}, {self.time}, #{self.ordinal})"

    def __str__(self) -> str:
        return f"{self.day} {self.time}"
