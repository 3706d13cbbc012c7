"""
Calendar week helpers shared by week plans and shopping lists.

Both collections are keyed by the ISO (week number, year) pair of a date.
"""

from dataclasses import dataclass
from datetime import date, timedelta
from typing import List, Dict

WEEKDAYS = [
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
]


@dataclass(frozen=True)
class WeekKey:
    """ISO week number and ISO year of a calendar week."""

    week_number: int
    year: int

    @property
    def id(self) -> str:
        return f"week-{self.week_number}-{self.year}"


def format_date(day: date) -> str:
    """Format a date as DD.MM.YYYY."""
    return day.strftime("%d.%m.%Y")


def week_key_for(day: date) -> WeekKey:
    """Get the ISO week key for a date."""
    iso_year, iso_week, _ = day.isocalendar()
    return WeekKey(week_number=iso_week, year=iso_year)


def week_range(day: date) -> tuple:
    """Return (monday, sunday) of the week containing day."""
    monday = day - timedelta(days=day.weekday())
    return monday, monday + timedelta(days=6)


def target_date(today: date, weeks_ahead: int = 0) -> date:
    """Shift today by a number of whole weeks."""
    return today + timedelta(weeks=weeks_ahead)


def week_name(day: date) -> str:
    """Display name, e.g. 'Week 43 (19.10.2026 - 25.10.2026)'."""
    key = week_key_for(day)
    monday, sunday = week_range(day)
    return f"Week {key.week_number} ({format_date(monday)} - {format_date(sunday)})"


def available_weeks(today: date, count: int = 5) -> List[Dict]:
    """
    List the selectable weeks starting with the current one.

    Args:
        today: Reference date
        count: Number of weeks to list

    Returns:
        List of dicts with id, name, weekNumber, year and date
    """
    weeks = []
    for offset in range(count):
        day = target_date(today, offset)
        key = week_key_for(day)
        monday, sunday = week_range(day)
        span = f"({format_date(monday)} - {format_date(sunday)})"

        if offset == 0:
            name = f"This week {span}"
        elif offset == 1:
            name = f"Next week {span}"
        else:
            name = f"Week {key.week_number} {span}"

        weeks.append({
            "id": key.id,
            "name": name,
            "weekNumber": key.week_number,
            "year": key.year,
            "date": day.isoformat(),
        })
    return weeks
