from config.schema import (
    TimeGridConfig,
    RulesConfig,
    SearchConfig,
    ProgramConfig,
)


# Raster des Standorts: zehn Zeitfenster à 50/55 Minuten mit 10 Minuten Wechselzeit
TIME_SLOTS: list[str] = [
    "8:00-8:55",
    "9:05-9:55",
    "10:05-10:55",
    "11:05-11:55",
    "12:05-12:55",
    "13:05-13:55",
    "14:05-14:55",
    "15:05-15:55",
    "16:05-16:55",
    "17:05-17:55",
]

DAYS: list[str] = [
    "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday",
]

# Raumtyp für Vorlesungen; jeder andere Typ zählt als Labor
LECTURE_ROOM_TYPE = "lecture_hall"

ROOM_TYPES: list[str] = [
    "lecture_hall",
    "computer_lab",
    "physics_lab",
    "chemistry_lab",
    "biology_lab",
    "ubuntu_lab",
    "networking_lab",
    "electronics_lab",
    "mechanical_lab",
    "civil_lab",
]


def default_time_grid() -> TimeGridConfig:
    """Standard-Raster: Montag–Sonntag, verplant werden Montag–Freitag.

    Zeitfenster:
     8:00 -  8:55   ...   17:05 - 17:55  (10 Fenster)
    Mittagspause (Default-Regel): 12:05 - 13:55
    """
    return TimeGridConfig(day_names=list(DAYS), time_slots=list(TIME_SLOTS))


def default_rules() -> RulesConfig:
    """Regel-Defaults wie in der Regel-Verwaltung des Studiengangs."""
    return RulesConfig(
        lunch_start_slot="12:05-12:55",
        lunch_end_slot="13:05-13:55",
        travel_gap_minutes=10,
        max_lectures_per_day=6,
        max_labs_per_day=3,
        allowed_slots=list(TIME_SLOTS),
        section_break_rules={},
    )


def default_program_config() -> ProgramConfig:
    """Vollständige Default-Konfiguration."""
    return ProgramConfig(
        program_name="Informatik (B.Sc.)",
        time_grid=default_time_grid(),
        rules=default_rules(),
        search=SearchConfig(),
    )
