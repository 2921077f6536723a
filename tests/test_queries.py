# tests/test_queries.py

from datetime import date, timedelta

import pytest

from daybook import timezone_utils
from daybook.models import Priority
from daybook.queries import (
    TaskSort, TaskTab, event_overlaps, events_by_category, events_in_range,
    events_on_date, overdue_tasks, search_events, search_tasks, sort_tasks,
    task_stats, tasks_by_category, tasks_by_priority, tasks_by_status,
    tasks_due_today, tasks_for_tab, upcoming_events, upcoming_tasks,
)
from daybook.timezone_utils import start_of_day

from .fakes import NOW, make_event, make_task, utc


START_OF_TODAY = utc(2025, 3, 12)


# ==================== Events ====================

def test_range_includes_partial_overlaps():
    before = make_event("Before", start=utc(2025, 3, 11, 23), hours=2)
    after = make_event("After", start=utc(2025, 3, 12, 23), hours=2)
    outside = make_event("Outside", start=utc(2025, 3, 10, 9))
    events = [before, after, outside]

    found = events_in_range(events, utc(2025, 3, 12), utc(2025, 3, 12, 23, 59))

    assert found == [before, after]


def test_range_bounds_are_inclusive():
    event = make_event(start=utc(2025, 3, 12, 9), hours=1)

    assert event_overlaps(event, utc(2025, 3, 12, 10), utc(2025, 3, 12, 11))
    assert event_overlaps(event, utc(2025, 3, 12, 8), utc(2025, 3, 12, 9))
    assert not event_overlaps(event, utc(2025, 3, 12, 10, 0, 1), utc(2025, 3, 12, 11))


def test_events_on_date_includes_multi_day_events():
    trip = make_event("Trip", start=utc(2025, 3, 10, 8), hours=72)
    lunch = make_event("Lunch", start=utc(2025, 3, 12, 12))

    assert events_on_date([trip, lunch], date(2025, 3, 12)) == [trip, lunch]
    assert events_on_date([trip, lunch], date(2025, 3, 13)) == [trip]
    assert events_on_date([trip, lunch], date(2025, 3, 14)) == []


def test_events_on_date_uses_local_day():
    timezone_utils.set_timezone("America/New_York")
    # 02:00 UTC on the 13th is still the 12th in New York
    late = make_event("Late", start=utc(2025, 3, 13, 2))

    assert events_on_date([late], date(2025, 3, 12)) == [late]
    assert events_on_date([late], date(2025, 3, 13)) == []


def test_events_by_category():
    work = make_event(category="default_0")
    home = make_event(category="default_1")
    assert events_by_category([work, home], "default_1") == [home]


def test_upcoming_events_window_and_order():
    later = make_event("Later", start=NOW + timedelta(days=7))
    soon = make_event("Soon", start=NOW + timedelta(hours=1))
    started = make_event("Started", start=NOW - timedelta(seconds=1))
    far = make_event("Far", start=NOW + timedelta(days=7, seconds=1))

    assert upcoming_events([later, soon, started, far], NOW) == [soon, later]
    assert upcoming_events([far], NOW, days=8) == [far]


def test_search_events_is_case_insensitive_over_title_and_description():
    standup = make_event("Team Standup")
    review = make_event("Review", description="quarterly TEAM numbers")
    other = make_event("Dentist")

    assert search_events([standup, review, other], "team") == [standup, review]
    assert search_events([other], "") == [other]


# ==================== Tasks ====================

def test_due_today_boundary():
    at_midnight = make_task("Midnight", due=START_OF_TODAY)
    just_before = make_task("Yesterday", due=START_OF_TODAY - timedelta(milliseconds=1))
    tomorrow = make_task("Tomorrow", due=START_OF_TODAY + timedelta(days=1))
    undated = make_task("Undated")
    tasks = [at_midnight, just_before, tomorrow, undated]

    assert tasks_due_today(tasks, NOW) == [at_midnight]
    assert just_before in overdue_tasks(tasks, NOW)


def test_due_today_follows_local_timezone():
    timezone_utils.set_timezone("America/New_York")
    local_midnight = start_of_day(date(2025, 3, 12))
    assert local_midnight == utc(2025, 3, 12, 4)

    task = make_task(due=utc(2025, 3, 12, 3))
    assert tasks_due_today([task], NOW) == []
    assert tasks_due_today([task], utc(2025, 3, 12, 2)) == [task]


def test_overdue_excludes_completed_and_undated():
    late = make_task("Late", due=NOW - timedelta(hours=1))
    done = make_task("Done", due=NOW - timedelta(hours=1), completed=True)
    future = make_task("Future", due=NOW + timedelta(hours=1))

    assert overdue_tasks([late, done, future, make_task()], NOW) == [late]


def test_upcoming_tasks():
    b = make_task("B", due=NOW + timedelta(days=2))
    a = make_task("A", due=NOW + timedelta(hours=1))
    done = make_task("Done", due=NOW + timedelta(hours=2), completed=True)
    far = make_task("Far", due=NOW + timedelta(days=10))

    assert upcoming_tasks([b, a, done, far, make_task()], NOW) == [a, b]


def test_task_filters():
    high = make_task("High", priority=Priority.HIGH, category="default_2")
    low = make_task("Low", priority=Priority.LOW, completed=True)

    assert tasks_by_priority([high, low], Priority.HIGH) == [high]
    assert tasks_by_status([high, low], True) == [low]
    assert tasks_by_category([high, low], "default_2") == [high]
    assert search_tasks([high, low], "LOW") == [low]


def test_stats_of_empty_list():
    stats = task_stats([], NOW)
    assert stats.total == 0
    assert stats.completion_rate == 0


@pytest.mark.parametrize("completed,total,rate", [
    (1, 8, 13),
    (2, 3, 67),
    (1, 3, 33),
    (3, 3, 100),
])
def test_completion_rate_rounds_half_up(completed, total, rate):
    tasks = [make_task(completed=i < completed) for i in range(total)]
    assert task_stats(tasks, NOW).completion_rate == rate


def test_stats_counts():
    tasks = [
        make_task(due=NOW - timedelta(days=2)),
        make_task(due=NOW + timedelta(hours=2)),
        make_task(due=NOW - timedelta(hours=1), completed=True),
        make_task(),
    ]

    stats = task_stats(tasks, NOW)

    assert (stats.total, stats.completed, stats.pending) == (4, 1, 3)
    assert stats.overdue == 1
    assert stats.due_today == 2


# ==================== Sorting ====================

def test_sort_by_due_date_puts_undated_last():
    undated_1 = make_task("U1")
    late = make_task("Late", due=utc(2025, 3, 20))
    undated_2 = make_task("U2")
    early = make_task("Early", due=utc(2025, 3, 13))

    ordered = sort_tasks([undated_1, late, undated_2, early], TaskSort.DUE_DATE)

    assert [t.title for t in ordered] == ["Early", "Late", "U1", "U2"]


def test_sort_by_priority_is_stable():
    tasks = [
        make_task("L", priority=Priority.LOW),
        make_task("H1", priority=Priority.HIGH),
        make_task("M", priority=Priority.MEDIUM),
        make_task("H2", priority=Priority.HIGH),
    ]

    assert [t.title for t in sort_tasks(tasks, TaskSort.PRIORITY)] == ["H1", "H2", "M", "L"]


def test_sort_by_created_newest_first():
    old = make_task("Old", created=NOW - timedelta(days=1))
    new = make_task("New", created=NOW)

    assert sort_tasks([old, new], TaskSort.CREATED) == [new, old]


def test_tasks_for_tab():
    pending = make_task("Pending", due=NOW + timedelta(days=3))
    done = make_task("Done", completed=True)
    today = make_task("Today", due=NOW + timedelta(hours=1))
    late = make_task("Late", due=NOW - timedelta(days=1))
    tasks = [pending, done, today, late]

    assert tasks_for_tab(tasks, TaskTab.ALL, NOW) == [late, today, pending, done]
    assert tasks_for_tab(tasks, TaskTab.PENDING, NOW) == [late, today, pending]
    assert tasks_for_tab(tasks, TaskTab.COMPLETED, NOW) == [done]
    assert tasks_for_tab(tasks, TaskTab.TODAY, NOW) == [today]
    assert tasks_for_tab(tasks, TaskTab.OVERDUE, NOW) == [late]
