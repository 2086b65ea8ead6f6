"""
Calendar helpers: date parsing and week navigation.
"""

from typing import List

import pendulum
from pendulum import Date


def parse_date(value: str, timezone: str) -> Date:
    """
    Parse a YYYY-MM-DD string, or ``today``, into a calendar date.

    Raises:
        ValueError: If the value is not a valid date
    """
    if value.strip().lower() == "today":
        return pendulum.today(timezone).date()

    try:
        return pendulum.from_format(value.strip(), "YYYY-MM-DD", tz=timezone).date()
    except ValueError as exc:
        raise ValueError(f"Invalid date '{value}', expected YYYY-MM-DD") from exc


def start_of_week(day: Date) -> Date:
    """Monday of the week containing ``day``."""
    return day.subtract(days=day.weekday())


def week_days(week_start: Date) -> List[Date]:
    """The seven consecutive days starting at ``week_start``."""
    return [week_start.add(days=offset) for offset in range(7)]


def shift_week(week_start: Date, weeks: int) -> Date:
    """Move a week start forward (positive) or backward (negative)."""
    return week_start.add(weeks=weeks)
