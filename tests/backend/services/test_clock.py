from datetime import date, time

import pytest

from backend.services.clock import (
    day_of_week_for,
    format_clock,
    format_date,
    normalize_day_of_week,
    parse_clock,
)


@pytest.mark.parametrize(
    ('value', 'expected'),
    [
        ('09:15', time(9, 15)),
        ('9:05', time(9, 5)),
        (' 23:59 ', time(23, 59)),
        (time(14, 30, 12), time(14, 30)),
    ],
)
def test_parse_clock_accepts_hh_mm(value, expected: time) -> None:
    assert parse_clock(value) == expected


@pytest.mark.parametrize('value', ['24:00', '9:60', '0915', '9:15 AM', '', None, 915])
def test_parse_clock_rejects_malformed_values(value) -> None:
    with pytest.raises(ValueError):
        parse_clock(value)


def test_format_helpers() -> None:
    assert format_clock(time(9, 5)) == '09:05'
    assert format_clock(None) is None
    assert format_date(date(2026, 1, 5)) == '1/5/2026'


def test_day_of_week_helpers() -> None:
    assert day_of_week_for(date(2026, 1, 5)) == 'Monday'
    assert day_of_week_for(date(2026, 1, 4)) == 'Sunday'
    assert normalize_day_of_week(' tuesday ') == 'Tuesday'

    with pytest.raises(ValueError):
        normalize_day_of_week('Mon')

