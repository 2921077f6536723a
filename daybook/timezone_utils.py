"""
Timezone utilities for Daybook.

All instants are stored in UTC and converted to the configured local
timezone whenever a calendar date (day boundaries, "today", grid cells)
is involved.
"""

from datetime import date, datetime, time as dt_time, timedelta
import os
import time as _time
from typing import Optional
import pytz


# None means "use the system timezone"; can be overridden by config
_local_timezone_name: Optional[str] = None


def set_timezone(timezone_name: Optional[str]):
    """Set the local timezone for the application."""
    global _local_timezone_name
    _local_timezone_name = timezone_name


def get_timezone_name() -> Optional[str]:
    """Get the configured timezone name (None for the system default)."""
    return _local_timezone_name


def _zone_name_from_path(path: str) -> Optional[str]:
    marker = '/zoneinfo/'
    if marker in path:
        return path.split(marker, 1)[1]
    return None


def get_system_timezone_name() -> Optional[str]:
    """
    IANA name of the system timezone.

    Looked up in $TZ, then the /etc/localtime symlink, then /etc/timezone.
    Returns None when none of them names a zone.
    """
    tz_env = os.environ.get('TZ', '').lstrip(':')
    if tz_env:
        return _zone_name_from_path(tz_env) or tz_env

    name = _zone_name_from_path(os.path.realpath('/etc/localtime'))
    if name:
        return name

    try:
        with open('/etc/timezone', encoding='utf-8') as f:
            return f.read().strip() or None
    except OSError:
        return None


def get_local_timezone():
    """
    Get the local timezone as a pytz timezone object.

    Returns:
        pytz timezone for the configured zone name, else for the system
        zone name. A fixed offset from the system clock is the last resort;
        it does not follow daylight saving time.
    """
    for name in (_local_timezone_name, get_system_timezone_name()):
        if not name:
            continue
        try:
            return pytz.timezone(name)
        except pytz.UnknownTimeZoneError:
            pass

    # Last resort: calculate offset and use fixed offset timezone
    is_dst = _time.localtime().tm_isdst
    if is_dst:
        offset_seconds = -_time.altzone
    else:
        offset_seconds = -_time.timezone
    return pytz.FixedOffset(offset_seconds // 60)


def now_utc() -> datetime:
    """Default clock: the current instant, timezone-aware in UTC."""
    return datetime.now(pytz.UTC)


def ensure_aware(dt: datetime) -> datetime:
    """Interpret a naive datetime as UTC; aware datetimes are converted to UTC."""
    if dt.tzinfo is None:
        return pytz.UTC.localize(dt)
    return dt.astimezone(pytz.UTC)


def to_local_datetime(dt: datetime) -> datetime:
    """
    Convert a UTC datetime to local timezone.

    Args:
        dt: A datetime object, typically in UTC with tzinfo set.

    Returns:
        A timezone-aware datetime in the local timezone.
        If input has no tzinfo, it is treated as UTC.
    """
    return ensure_aware(dt).astimezone(get_local_timezone())


def to_utc_datetime(dt: datetime) -> datetime:
    """
    Convert a local datetime to UTC.

    Args:
        dt: A datetime object in local timezone (naive values are localized).

    Returns:
        A timezone-aware datetime in UTC.
    """
    if dt.tzinfo is None:
        local_tz = get_local_timezone()
        local_dt = local_tz.localize(dt)
        return local_dt.astimezone(pytz.UTC)
    return dt.astimezone(pytz.UTC)


def local_date(dt: datetime) -> date:
    """Calendar date of an instant in the local timezone."""
    return to_local_datetime(dt).date()


def _as_date(value) -> date:
    if isinstance(value, datetime):
        return local_date(value)
    return value


def start_of_day(value) -> datetime:
    """Local midnight of the given date (or instant's local date), as a UTC instant."""
    return to_utc_datetime(datetime.combine(_as_date(value), dt_time.min))


def end_of_day(value) -> datetime:
    """Last representable moment of the given local date, as a UTC instant."""
    return to_utc_datetime(datetime.combine(_as_date(value), dt_time.max))


def start_of_next_day(value) -> datetime:
    """Local midnight of the following day, as a UTC instant."""
    return start_of_day(_as_date(value) + timedelta(days=1))


def minutes_since_midnight(dt: datetime) -> int:
    """Elapsed local wall-clock minutes since midnight."""
    local_dt = to_local_datetime(dt)
    return local_dt.hour * 60 + local_dt.minute
