# tests/test_date_utils.py

from datetime import date

import pytest

from daybook import timezone_utils
from daybook.date_utils import (
    create_date_from_time, format_date, format_datetime, format_time,
    get_current_timezone, get_time_slots, is_business_hour, parse_date_safely,
    relative_date_description, round_time_to_interval,
)

from .fakes import NOW, utc


def test_format_date_and_time():
    assert format_date(date(2025, 3, 5)) == "Mar 5, 2025"
    assert format_time(utc(2025, 3, 5, 14, 30)) == "2:30 PM"
    assert format_time(utc(2025, 3, 5, 14, 30), use_24h=True) == "14:30"
    assert format_time(utc(2025, 3, 5, 0, 5)) == "12:05 AM"
    assert format_time(utc(2025, 3, 5, 12, 0)) == "12:00 PM"
    assert format_datetime(utc(2025, 3, 5, 9, 0)) == "Mar 5, 2025 at 9:00 AM"


def test_formatting_uses_local_timezone():
    timezone_utils.set_timezone("Asia/Tokyo")
    assert format_datetime(utc(2025, 3, 5, 20), use_24h=True) == "Mar 6, 2025 at 05:00"


@pytest.mark.parametrize("value,expected", [
    (date(2025, 3, 12), "Today"),
    (date(2025, 3, 13), "Tomorrow"),
    (date(2025, 3, 11), "Yesterday"),
    (date(2025, 3, 15), "Saturday"),
    (date(2025, 3, 9), "Sunday"),
    (date(2025, 3, 25), "Mar 25"),
    (date(2025, 4, 2), "Apr 2, 2025"),
    (utc(2025, 3, 13, 8), "Tomorrow"),
])
def test_relative_date_description(value, expected):
    assert relative_date_description(value, NOW) == expected


def test_time_slots():
    assert get_time_slots()[:2] == ["00:00", "01:00"]
    assert len(get_time_slots()) == 24
    assert len(get_time_slots(9, 17, 30)) == 16


def test_create_date_from_time():
    value = create_date_from_time(date(2025, 3, 12), "14:45")
    assert value == utc(2025, 3, 12, 14, 45)


@pytest.mark.parametrize("minute,expected", [
    (7, utc(2025, 3, 12, 10, 0)),
    (8, utc(2025, 3, 12, 10, 15)),
    (53, utc(2025, 3, 12, 11, 0)),
])
def test_round_time_to_interval(minute, expected):
    assert round_time_to_interval(utc(2025, 3, 12, 10, minute)) == expected


def test_business_hours():
    assert is_business_hour(NOW)
    assert not is_business_hour(utc(2025, 3, 12, 17))
    assert not is_business_hour(utc(2025, 3, 15, 11))


def test_parse_date_safely():
    assert parse_date_safely("2025-03-12T10:30:00+00:00") == NOW
    assert parse_date_safely("yesterday") is None


def test_current_timezone_name():
    assert get_current_timezone() == "UTC"
