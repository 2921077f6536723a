"""
Calendar grid generation for Daybook.

Computes the date sequences the month/week/day views need, the
navigation arithmetic between periods, and the day-view layout of
timed events. Nothing here renders; presentation code consumes the
dates and offsets.

Weekdays use the Sunday = 0 convention of `AppSettings.week_starts_on`.
"""

from calendar import monthrange
from dataclasses import dataclass
from datetime import date, datetime, time as dt_time, timedelta
from enum import Enum
from typing import Optional

from .models import Event, ViewType
from .timezone_utils import (
    end_of_day, get_local_timezone, local_date, now_utc,
    start_of_day, to_local_datetime,
)


MONTH_GRID_DAYS = 42  # 6 full weeks
MINUTES_PER_DAY = 24 * 60
DEFAULT_HOUR_HEIGHT = 60  # pixel-equivalent units per hour
MIN_EVENT_MINUTES = 30


class Direction(Enum):
    PREV = "prev"
    NEXT = "next"


@dataclass(frozen=True)
class GridDay:
    """One cell of a month or week grid."""
    date: date
    in_current_month: bool
    is_today: bool

    @property
    def is_weekend(self) -> bool:
        return self.date.weekday() >= 5


@dataclass(frozen=True)
class EventPortion:
    """
    The visible part of an event on one specific day.

    For example, an event "Sat 17:00 - Sun 04:00" creates two portions:
    - Saturday: visible 17:00-24:00
    - Sunday: visible 00:00-04:00
    """
    event: Event
    display_date: date
    start_minute: int  # 0..1440, minutes since local midnight
    end_minute: int    # 0..1440

    @staticmethod
    def create_for_day(event: Event, day: date) -> Optional['EventPortion']:
        """Create a portion if the event is visible on `day`, else None."""
        local_start = to_local_datetime(event.start_date)
        local_end = to_local_datetime(event.end_date)

        if local_end.date() < day or local_start.date() > day:
            return None

        # Ends exactly at this day's midnight: nothing of it falls on `day`
        if local_start.date() < day and local_end.date() == day and local_end.time() == dt_time.min:
            return None

        if local_start.date() == day:
            start_minute = local_start.hour * 60 + local_start.minute
        else:
            start_minute = 0  # Event started before this day

        if local_end.date() == day:
            end_minute = local_end.hour * 60 + local_end.minute
        else:
            end_minute = MINUTES_PER_DAY  # Event continues after this day

        return EventPortion(event, day, start_minute, end_minute)

    @property
    def duration_minutes(self) -> int:
        return self.end_minute - self.start_minute


@dataclass(frozen=True)
class EventPosition:
    """Vertical placement of an event portion in a day column."""
    top: float
    height: float


# ==================== Helpers ====================

def _to_date(value) -> date:
    if isinstance(value, datetime):
        return local_date(value)
    return value


def js_weekday(day: date) -> int:
    """Weekday with Sunday = 0 .. Saturday = 6."""
    return (day.weekday() + 1) % 7


def start_of_week(value, week_starts_on: int = 0) -> date:
    """First day of the week containing `value`."""
    day = _to_date(value)
    offset = (js_weekday(day) - week_starts_on) % 7
    return day - timedelta(days=offset)


def end_of_week(value, week_starts_on: int = 0) -> date:
    return start_of_week(value, week_starts_on) + timedelta(days=6)


def add_months(value, months: int) -> date:
    """Calendar-aware month arithmetic; the day is clamped to the target month."""
    day = _to_date(value)
    month_index = day.year * 12 + (day.month - 1) + months
    year, month = divmod(month_index, 12)
    month += 1
    last_day = monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def is_same_day(a, b) -> bool:
    return _to_date(a) == _to_date(b)


def is_same_month(a, b) -> bool:
    a, b = _to_date(a), _to_date(b)
    return (a.year, a.month) == (b.year, b.month)


def is_today(value, now: Optional[datetime] = None) -> bool:
    return _to_date(value) == local_date(now or now_utc())


# ==================== Grids ====================

def get_calendar_days(value, week_starts_on: int = 0) -> list[date]:
    """
    The 42 days of the month grid for the month containing `value`.

    Starts on `week_starts_on` of the week containing the 1st, so the
    grid is always six full rows; leading and trailing days belong to
    the adjacent months.
    """
    first = _to_date(value).replace(day=1)
    grid_start = start_of_week(first, week_starts_on)
    return [grid_start + timedelta(days=i) for i in range(MONTH_GRID_DAYS)]


def get_month_grid(value, week_starts_on: int = 0, now: Optional[datetime] = None) -> list[GridDay]:
    """Month grid cells flagged for adjacent-month dimming and today highlighting."""
    month_day = _to_date(value)
    today = local_date(now or now_utc())
    return [
        GridDay(
            date=d,
            in_current_month=is_same_month(d, month_day),
            is_today=(d == today),
        )
        for d in get_calendar_days(month_day, week_starts_on)
    ]


def get_week_days(value, week_starts_on: int = 0) -> list[date]:
    """The 7 days of the week containing `value`."""
    week_start = start_of_week(value, week_starts_on)
    return [week_start + timedelta(days=i) for i in range(7)]


def get_week_grid(value, week_starts_on: int = 0, now: Optional[datetime] = None) -> list[GridDay]:
    reference = _to_date(value)
    today = local_date(now or now_utc())
    return [
        GridDay(date=d, in_current_month=is_same_month(d, reference), is_today=(d == today))
        for d in get_week_days(reference, week_starts_on)
    ]


def get_day_hours(value) -> list[datetime]:
    """The 24 hourly slots of a local day, as local timezone-aware datetimes."""
    day = _to_date(value)
    tz = get_local_timezone()
    return [tz.localize(datetime.combine(day, dt_time(hour=h))) for h in range(24)]


# ==================== Day-view layout ====================

def event_position(
    portion: EventPortion,
    hour_height: float = DEFAULT_HOUR_HEIGHT,
    min_minutes: int = MIN_EVENT_MINUTES
) -> EventPosition:
    """
    Place an event portion in a day column.

    top = minutes since midnight, height = duration in minutes with a
    floor of `min_minutes`; both scaled by hour_height / 60.
    """
    scale = hour_height / 60.0
    duration = max(portion.duration_minutes, min_minutes)
    return EventPosition(top=portion.start_minute * scale, height=duration * scale)


def is_all_day_event(event: Event) -> bool:
    """Starts at 00:00 and ends at 23:59 local time."""
    local_start = to_local_datetime(event.start_date)
    local_end = to_local_datetime(event.end_date)
    return (
        (local_start.hour, local_start.minute) == (0, 0)
        and (local_end.hour, local_end.minute) == (23, 59)
    )


def split_all_day(events: list[Event], day: date) -> tuple[list[Event], list[Event]]:
    """
    Events visible on `day`, split into (all-day, timed).

    All-day events are listed apart from the hour grid in the day view.
    """
    all_day, timed = [], []
    for event in events:
        if EventPortion.create_for_day(event, day) is None:
            continue
        (all_day if is_all_day_event(event) else timed).append(event)
    return all_day, timed


def layout_day(
    events: list[Event],
    day: date,
    hour_height: float = DEFAULT_HOUR_HEIGHT,
    min_minutes: int = MIN_EVENT_MINUTES
) -> list[tuple[EventPortion, EventPosition]]:
    """Portions and positions of the timed events visible on `day`, by start time."""
    placed = []
    _, timed = split_all_day(events, day)
    for event in timed:
        portion = EventPortion.create_for_day(event, day)
        if portion is not None:
            placed.append((portion, event_position(portion, hour_height, min_minutes)))
    placed.sort(key=lambda pair: (pair[0].start_minute, pair[0].end_minute))
    return placed


# ==================== Navigation ====================

def navigate(current, direction: Direction, view: ViewType) -> date:
    """Move one unit of `view` (month, week or day) backwards or forwards."""
    step = -1 if direction == Direction.PREV else 1
    day = _to_date(current)
    if view == ViewType.MONTH:
        return add_months(day, step)
    if view == ViewType.WEEK:
        return day + timedelta(weeks=step)
    if view == ViewType.DAY:
        return day + timedelta(days=step)
    return day


def get_view_date_range(value, view: ViewType, week_starts_on: int = 0) -> tuple[datetime, datetime]:
    """
    Instant range covered by a view:
    - month: first to last day of the month
    - week: week start to week end
    - day: the day itself
    """
    day = _to_date(value)
    if view == ViewType.WEEK:
        first, last = start_of_week(day, week_starts_on), end_of_week(day, week_starts_on)
    elif view == ViewType.DAY:
        first = last = day
    else:
        first = day.replace(day=1)
        last = day.replace(day=monthrange(day.year, day.month)[1])
    return start_of_day(first), end_of_day(last)


def is_multi_day_event(event: Event) -> bool:
    return not is_same_day(event.start_date, event.end_date)


def event_duration_hours(event: Event) -> float:
    return (event.end_date - event.start_date).total_seconds() / 3600.0
