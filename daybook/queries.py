"""
Query layer for Daybook.

Pure, side-effect-free derivations over in-memory collections: date
range membership, equality filters, text search, upcoming/overdue
windows, task statistics and task list sorting.

Functions that depend on "now" take it as an argument so callers (and
tests) decide the clock; nothing here is cached.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Iterable, Optional
import math

from .models import Event, Priority, Task
from .timezone_utils import end_of_day, ensure_aware, now_utc, start_of_day, start_of_next_day


UPCOMING_DAYS = 7


class TaskSort(Enum):
    DUE_DATE = "dueDate"
    PRIORITY = "priority"
    CREATED = "created"


class TaskTab(Enum):
    ALL = "all"
    PENDING = "pending"
    COMPLETED = "completed"
    TODAY = "today"
    OVERDUE = "overdue"


@dataclass(frozen=True)
class TaskStats:
    total: int
    completed: int
    pending: int
    overdue: int
    due_today: int
    completion_rate: int  # percent, 0 when there are no tasks


# ==================== Events ====================

def event_overlaps(event: Event, range_start: datetime, range_end: datetime) -> bool:
    """Inclusive overlap test: partially overlapping events are included."""
    return event.start_date <= ensure_aware(range_end) and event.end_date >= ensure_aware(range_start)


def events_in_range(events: Iterable[Event], start: datetime, end: datetime) -> list[Event]:
    return [e for e in events if event_overlaps(e, start, end)]


def events_on_date(events: Iterable[Event], day) -> list[Event]:
    """Events overlapping the local calendar day `day` (date or instant)."""
    return events_in_range(events, start_of_day(day), end_of_day(day))


def events_by_category(events: Iterable[Event], category_id: str) -> list[Event]:
    return [e for e in events if e.category == category_id]


def upcoming_events(events: Iterable[Event], now: Optional[datetime] = None,
                    days: int = UPCOMING_DAYS) -> list[Event]:
    """Events starting within [now, now + days], earliest first."""
    now = ensure_aware(now or now_utc())
    horizon = now + timedelta(days=days)
    selected = [e for e in events if now <= e.start_date <= horizon]
    return sorted(selected, key=lambda e: e.start_date)


def _matches(query: str, title: str, description: Optional[str]) -> bool:
    needle = query.lower()
    if needle in title.lower():
        return True
    return bool(description) and needle in description.lower()


def search_events(events: Iterable[Event], query: str) -> list[Event]:
    """Case-insensitive substring search over title and description."""
    return [e for e in events if _matches(query, e.title, e.description)]


# ==================== Tasks ====================

def tasks_by_status(tasks: Iterable[Task], completed: bool) -> list[Task]:
    return [t for t in tasks if t.completed == completed]


def tasks_by_priority(tasks: Iterable[Task], priority: Priority) -> list[Task]:
    return [t for t in tasks if t.priority == priority]


def tasks_by_category(tasks: Iterable[Task], category_id: str) -> list[Task]:
    return [t for t in tasks if t.category == category_id]


def tasks_due_today(tasks: Iterable[Task], now: Optional[datetime] = None) -> list[Task]:
    """Tasks due in [start of today, start of tomorrow) in local time."""
    now = now or now_utc()
    today_start = start_of_day(now)
    tomorrow_start = start_of_next_day(now)
    return [
        t for t in tasks
        if t.due_date is not None and today_start <= t.due_date < tomorrow_start
    ]


def overdue_tasks(tasks: Iterable[Task], now: Optional[datetime] = None) -> list[Task]:
    """Incomplete tasks whose due instant has passed."""
    now = ensure_aware(now or now_utc())
    return [
        t for t in tasks
        if t.due_date is not None and not t.completed and t.due_date < now
    ]


def upcoming_tasks(tasks: Iterable[Task], now: Optional[datetime] = None,
                   days: int = UPCOMING_DAYS) -> list[Task]:
    """Incomplete tasks due within [now, now + days], earliest first. Undated tasks never appear."""
    now = ensure_aware(now or now_utc())
    horizon = now + timedelta(days=days)
    selected = [
        t for t in tasks
        if t.due_date is not None and not t.completed and now <= t.due_date <= horizon
    ]
    return sorted(selected, key=lambda t: t.due_date)


def search_tasks(tasks: Iterable[Task], query: str) -> list[Task]:
    """Case-insensitive substring search over title and description."""
    return [t for t in tasks if _matches(query, t.title, t.description)]


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def task_stats(tasks: Iterable[Task], now: Optional[datetime] = None) -> TaskStats:
    tasks = list(tasks)
    now = now or now_utc()
    total = len(tasks)
    completed = sum(1 for t in tasks if t.completed)
    return TaskStats(
        total=total,
        completed=completed,
        pending=total - completed,
        overdue=len(overdue_tasks(tasks, now)),
        due_today=len(tasks_due_today(tasks, now)),
        completion_rate=_round_half_up(completed / total * 100) if total > 0 else 0,
    )


def sort_tasks(tasks: Iterable[Task], sort_by: TaskSort = TaskSort.DUE_DATE) -> list[Task]:
    """
    Sort a task list for display.

    - DUE_DATE: ascending, tasks without a due date after all dated tasks
    - PRIORITY: high, medium, low
    - CREATED: newest first
    All orderings are stable.
    """
    if sort_by == TaskSort.DUE_DATE:
        return sorted(tasks, key=lambda t: (t.due_date is None, t.due_date or datetime.min))
    if sort_by == TaskSort.PRIORITY:
        return sorted(tasks, key=lambda t: -t.priority.weight)
    if sort_by == TaskSort.CREATED:
        return sorted(tasks, key=lambda t: t.created_at, reverse=True)
    return list(tasks)


def tasks_for_tab(tasks: Iterable[Task], tab: TaskTab, now: Optional[datetime] = None,
                  sort_by: TaskSort = TaskSort.DUE_DATE) -> list[Task]:
    """The sorted task list shown under one of the task manager tabs."""
    tasks = list(tasks)
    if tab == TaskTab.PENDING:
        selected = tasks_by_status(tasks, False)
    elif tab == TaskTab.COMPLETED:
        selected = tasks_by_status(tasks, True)
    elif tab == TaskTab.TODAY:
        selected = tasks_due_today(tasks, now)
    elif tab == TaskTab.OVERDUE:
        selected = overdue_tasks(tasks, now)
    else:
        selected = tasks
    return sort_tasks(selected, sort_by)
