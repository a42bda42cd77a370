"""Office working-hours lookup.

Static table only: hours are floats on a 24h clock (8.5 == 08:30).
"""

from __future__ import annotations

from typing import Dict

from .schemas import Character


WorkingHours = Dict[str, float]

DEFAULT_HOURS: WorkingHours = {"start": 9.0, "end": 17.0}

OFFICE_SCHEDULE: Dict[str, WorkingHours] = {
    "Senior Coder": {"start": 10.0, "end": 18.0},
    "Manager": {"start": 8.5, "end": 17.5},
    "Intern": {"start": 8.0, "end": 16.0},
    "HR Specialist": {"start": 9.5, "end": 17.5},
    "Designer": {"start": 10.5, "end": 18.5},
}

OFFICE_TYPE_SCHEDULES: Dict[str, WorkingHours] = {
    "Startup": {"start": 10.0, "end": 19.0},
    "Corporate": {"start": 8.0, "end": 17.0},
    "Remote": {"start": 0.0, "end": 24.0},
}


def get_schedule_for_character(character: Character, office_type: str = "default") -> WorkingHours:
    """Role-specific hours first, then the office type's default, then 9-17."""

    if character.job_role in OFFICE_SCHEDULE:
        return dict(OFFICE_SCHEDULE[character.job_role])
    return dict(OFFICE_TYPE_SCHEDULES.get(office_type, DEFAULT_HOURS))


def is_within_working_hours(character: Character, hour: float, office_type: str = "default") -> bool:
    hours = get_schedule_for_character(character, office_type)
    return hours["start"] <= hour % 24 < hours["end"]
