"""
Display helpers for dates and times.

Formatting follows the planner's display conventions ("Mar 5, 2025",
"2:30 PM" / "14:30") independent of the process locale. All instants
are shown in the configured local timezone.
"""

from datetime import date, datetime, time as dt_time, timedelta
from typing import Optional

from .calendar_grid import end_of_week, is_same_day, is_same_month, start_of_week
from .timezone_utils import get_local_timezone, get_timezone_name, now_utc, to_local_datetime


MONTH_ABBR = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]
DAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


def _local(value):
    if isinstance(value, datetime):
        return to_local_datetime(value)
    return value


def format_date(value) -> str:
    """e.g. 'Mar 5, 2025'."""
    d = _local(value)
    return f"{MONTH_ABBR[d.month - 1]} {d.day}, {d.year}"


def format_month_day(value) -> str:
    d = _local(value)
    return f"{MONTH_ABBR[d.month - 1]} {d.day}"


def format_time(value: datetime, use_24h: bool = False) -> str:
    """'14:30' in 24h mode, '2:30 PM' otherwise."""
    t = _local(value)
    if use_24h:
        return f"{t.hour:02d}:{t.minute:02d}"
    hour12 = t.hour % 12 or 12
    suffix = "AM" if t.hour < 12 else "PM"
    return f"{hour12}:{t.minute:02d} {suffix}"


def format_datetime(value: datetime, use_24h: bool = False) -> str:
    return f"{format_date(value)} at {format_time(value, use_24h)}"


def relative_date_description(value, now: Optional[datetime] = None) -> str:
    """
    Human description relative to today:
    Today / Tomorrow / Yesterday, a weekday name within this week,
    'Mar 5' within this month, 'Mar 5, 2025' otherwise.
    """
    now = now or now_utc()
    today = to_local_datetime(now).date()
    d = _local(value)
    day = d.date() if isinstance(d, datetime) else d

    if is_same_day(day, today):
        return "Today"
    if is_same_day(day, today + timedelta(days=1)):
        return "Tomorrow"
    if is_same_day(day, today - timedelta(days=1)):
        return "Yesterday"

    if start_of_week(today) <= day <= end_of_week(today):
        return DAY_NAMES[day.weekday()]

    if is_same_month(day, today):
        return format_month_day(day)

    return format_date(day)


def get_time_slots(start: int = 0, end: int = 24, interval: int = 60) -> list[str]:
    """'HH:MM' labels from hour `start` up to (excluding) hour `end`."""
    slots = []
    for hour in range(start, end):
        for minute in range(0, 60, interval):
            slots.append(f"{hour:02d}:{minute:02d}")
    return slots


def create_date_from_time(day: date, time_str: str) -> datetime:
    """Local aware datetime for `day` at 'HH:MM'."""
    hours, minutes = (int(part) for part in time_str.split(":"))
    naive = datetime.combine(day, dt_time(hour=hours, minute=minutes))
    return get_local_timezone().localize(naive)


def round_time_to_interval(value: datetime, interval_minutes: int = 15) -> datetime:
    """Round to the nearest multiple of `interval_minutes` within the hour."""
    rounded_minutes = int(value.minute / interval_minutes + 0.5) * interval_minutes
    base = value.replace(minute=0, second=0, microsecond=0)
    return base + timedelta(minutes=rounded_minutes)


def is_business_hour(value: datetime) -> bool:
    """Monday to Friday, 9 AM to 5 PM local time."""
    local = to_local_datetime(value)
    return local.weekday() < 5 and 9 <= local.hour < 17


def parse_date_safely(text: str) -> Optional[datetime]:
    """Parse an ISO 8601 string; None when it is not a valid date."""
    try:
        return datetime.fromisoformat(text)
    except (TypeError, ValueError):
        return None


def get_current_timezone() -> str:
    """Name of the timezone used for local dates."""
    return get_timezone_name() or str(get_local_timezone())
