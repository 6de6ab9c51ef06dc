"""Wall-clock helpers shared by availability and booking.

Times are naive ``HH:MM`` values with no timezone; every comparison is made
between two times of day on the same nominal date.
"""

import re
from datetime import date, time

from backend.models.availability import DAYS_OF_WEEK

CLOCK_PATTERN = re.compile(r'^(\d{1,2}):(\d{2})$')


def parse_clock(value) -> time:
    """Parse ``'9:15'`` / ``'09:15'`` (or a ``time``) into a minute-precision ``time``."""
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0)

    if not isinstance(value, str):
        raise ValueError('Times must use HH:MM format.')

    match = CLOCK_PATTERN.match(value.strip())
    if not match:
        raise ValueError('Times must use HH:MM format.')

    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        raise ValueError('Times must use HH:MM format.')

    return time(hour, minute)


def format_clock(value: time | None) -> str | None:
    if value is None:
        return None
    return value.strftime('%H:%M')


def format_date(value: date) -> str:
    return f'{value.month}/{value.day}/{value.year}'


def day_of_week_for(value: date) -> str:
    return DAYS_OF_WEEK[value.weekday()]


def normalize_day_of_week(value: str) -> str:
    normalized = value.strip().capitalize()
    if normalized not in DAYS_OF_WEEK:
        raise ValueError('Day of week must be one of: ' + ', '.join(DAYS_OF_WEEK) + '.')
    return normalized

