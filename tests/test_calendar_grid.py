# tests/test_calendar_grid.py

from calendar import monthrange
from datetime import date, timedelta

import pytest

from daybook import timezone_utils
from daybook.calendar_grid import (
    Direction, EventPortion, MONTH_GRID_DAYS, add_months, event_duration_hours,
    event_position, get_calendar_days, get_day_hours, get_month_grid,
    get_view_date_range, get_week_days, get_week_grid, is_multi_day_event,
    is_all_day_event, is_today, js_weekday, layout_day, navigate, split_all_day,
    start_of_week,
)
from daybook.models import Event, ViewType

from .fakes import NOW, make_event, utc


# ==================== Month grid ====================

@pytest.mark.parametrize("week_starts_on", [0, 1])
@pytest.mark.parametrize("year", [2024, 2025, 2026])
def test_month_grid_shape_for_every_month(year, week_starts_on):
    for month in range(1, 13):
        days = get_calendar_days(date(year, month, 15), week_starts_on)
        first = date(year, month, 1)
        last = date(year, month, monthrange(year, month)[1])

        assert len(days) == MONTH_GRID_DAYS
        assert js_weekday(days[0]) == week_starts_on
        assert days[0] <= first and last <= days[-1]
        assert all(b - a == timedelta(days=1) for a, b in zip(days, days[1:]))


def test_month_grid_march_2025():
    # March 1, 2025 is a Saturday
    assert get_calendar_days(date(2025, 3, 12), 0)[0] == date(2025, 2, 23)
    assert get_calendar_days(date(2025, 3, 12), 1)[0] == date(2025, 2, 24)


def test_month_grid_starting_on_first_of_month():
    # February 2015 starts on a Sunday and spans exactly four weeks
    days = get_calendar_days(date(2015, 2, 1), 0)
    assert days[0] == date(2015, 2, 1)
    assert days[-1] == date(2015, 3, 14)


def test_month_grid_flags():
    cells = get_month_grid(date(2025, 3, 1), 0, NOW)

    assert sum(c.in_current_month for c in cells) == 31
    assert [c.date for c in cells if c.is_today] == [date(2025, 3, 12)]
    assert cells[0].is_weekend  # Sunday Feb 23
    assert not cells[1].is_weekend


def test_month_grid_accepts_instants():
    assert get_calendar_days(NOW, 0) == get_calendar_days(date(2025, 3, 12), 0)


# ==================== Week and day ====================

def test_week_days():
    # 2025-03-12 is a Wednesday
    assert get_week_days(date(2025, 3, 12), 0) == [date(2025, 3, 9) + timedelta(days=i) for i in range(7)]
    assert get_week_days(date(2025, 3, 12), 1)[0] == date(2025, 3, 10)
    assert start_of_week(date(2025, 3, 9), 1) == date(2025, 3, 3)


def test_week_grid_marks_today_and_month():
    cells = get_week_grid(date(2025, 3, 2), 0, NOW)
    assert [c.date for c in cells][0] == date(2025, 3, 2)
    assert not any(c.is_today for c in cells)

    cells = get_week_grid(date(2025, 4, 1), 0, utc(2025, 3, 31, 12))
    assert [c.in_current_month for c in cells] == [False, False, True, True, True, True, True]
    assert cells[1].is_today


def test_day_hours_are_local():
    timezone_utils.set_timezone("Europe/Amsterdam")
    hours = get_day_hours(date(2025, 3, 12))

    assert len(hours) == 24
    assert hours[0].hour == 0 and hours[23].hour == 23
    assert hours[0].utcoffset() == timedelta(hours=1)


def test_is_today():
    assert is_today(date(2025, 3, 12), NOW)
    assert is_today(utc(2025, 3, 12, 23, 59), NOW)
    assert not is_today(date(2024, 3, 12), NOW)


# ==================== Navigation ====================

@pytest.mark.parametrize("current,direction,view,expected", [
    (date(2025, 1, 31), Direction.NEXT, ViewType.MONTH, date(2025, 2, 28)),
    (date(2024, 1, 31), Direction.NEXT, ViewType.MONTH, date(2024, 2, 29)),
    (date(2024, 12, 15), Direction.NEXT, ViewType.MONTH, date(2025, 1, 15)),
    (date(2025, 1, 15), Direction.PREV, ViewType.MONTH, date(2024, 12, 15)),
    (date(2025, 3, 12), Direction.NEXT, ViewType.WEEK, date(2025, 3, 19)),
    (date(2025, 3, 3), Direction.PREV, ViewType.WEEK, date(2025, 2, 24)),
    (date(2025, 12, 31), Direction.NEXT, ViewType.DAY, date(2026, 1, 1)),
    (date(2025, 3, 1), Direction.PREV, ViewType.DAY, date(2025, 2, 28)),
])
def test_navigate(current, direction, view, expected):
    assert navigate(current, direction, view) == expected


def test_add_months_across_years():
    assert add_months(date(2025, 3, 31), -13) == date(2024, 2, 29)
    assert add_months(date(2025, 3, 31), 12) == date(2026, 3, 31)


def test_view_date_ranges():
    start, end = get_view_date_range(date(2025, 3, 12), ViewType.MONTH)
    assert start == utc(2025, 3, 1)
    assert end == utc(2025, 3, 31, 23, 59, 59, 999999)

    start, end = get_view_date_range(date(2025, 3, 12), ViewType.WEEK, 1)
    assert start == utc(2025, 3, 10)
    assert end.date() == date(2025, 3, 16)

    start, end = get_view_date_range(date(2025, 3, 12), ViewType.DAY)
    assert (start.date(), end.date()) == (date(2025, 3, 12), date(2025, 3, 12))


# ==================== Day-view layout ====================

def test_event_position_scales_minutes():
    event = make_event(start=utc(2025, 3, 12, 9, 15), hours=0.75)
    portion = EventPortion.create_for_day(event, date(2025, 3, 12))

    assert event_position(portion).top == 555
    assert event_position(portion).height == 45
    doubled = event_position(portion, hour_height=120)
    assert (doubled.top, doubled.height) == (1110, 90)


def test_short_events_get_minimum_height():
    event = Event.create("Quick", utc(2025, 3, 12, 10), utc(2025, 3, 12, 10, 10), now=NOW)
    portion = EventPortion.create_for_day(event, date(2025, 3, 12))

    assert portion.duration_minutes == 10
    assert event_position(portion).height == 30


def test_multi_day_event_is_clipped_per_day():
    event = make_event("Overnight", start=utc(2025, 3, 15, 17), hours=11)

    saturday = EventPortion.create_for_day(event, date(2025, 3, 15))
    sunday = EventPortion.create_for_day(event, date(2025, 3, 16))

    assert (saturday.start_minute, saturday.end_minute) == (17 * 60, 24 * 60)
    assert (sunday.start_minute, sunday.end_minute) == (0, 4 * 60)
    assert EventPortion.create_for_day(event, date(2025, 3, 17)) is None
    assert is_multi_day_event(event)
    assert event_duration_hours(event) == 11


def test_layout_day_orders_by_start():
    late = make_event("Late", start=utc(2025, 3, 12, 15))
    early = make_event("Early", start=utc(2025, 3, 12, 8))
    elsewhere = make_event("Elsewhere", start=utc(2025, 3, 13, 8))

    placed = layout_day([late, early, elsewhere], date(2025, 3, 12))

    assert [portion.event.title for portion, _ in placed] == ["Early", "Late"]
    assert placed[0][1].top == 480


def test_event_ending_at_midnight_is_not_shown_next_day():
    event = make_event("Late show", start=utc(2025, 3, 12, 22), hours=2)

    assert EventPortion.create_for_day(event, date(2025, 3, 13)) is None
    assert layout_day([event], date(2025, 3, 13)) == []
    portion = EventPortion.create_for_day(event, date(2025, 3, 12))
    assert (portion.start_minute, portion.end_minute) == (22 * 60, 24 * 60)


def test_zero_length_event_at_midnight_stays_on_its_day():
    event = Event.create("Marker", utc(2025, 3, 13), utc(2025, 3, 13), now=NOW)
    assert EventPortion.create_for_day(event, date(2025, 3, 13)) is not None


def test_all_day_events_are_split_from_timed_ones():
    holiday = Event.create("Holiday", utc(2025, 3, 12), utc(2025, 3, 12, 23, 59), now=NOW)
    meeting = make_event("Meeting", start=utc(2025, 3, 12, 9))
    tomorrow = Event.create("Tomorrow", utc(2025, 3, 13), utc(2025, 3, 13, 23, 59), now=NOW)

    assert is_all_day_event(holiday)
    assert not is_all_day_event(meeting)
    assert split_all_day([holiday, meeting, tomorrow], date(2025, 3, 12)) == ([holiday], [meeting])

    placed = layout_day([holiday, meeting], date(2025, 3, 12))
    assert [portion.event for portion, _ in placed] == [meeting]


def test_all_day_uses_local_time():
    timezone_utils.set_timezone("America/New_York")
    # 00:00 to 23:59 in New York
    holiday = Event.create("Holiday", utc(2025, 3, 12, 4), utc(2025, 3, 13, 3, 59), now=NOW)

    assert is_all_day_event(holiday)
    assert split_all_day([holiday], date(2025, 3, 12)) == ([holiday], [])
