"""
Planner context for Daybook.

The single owner of the in-memory copies of every collection. Reads are
served from the copies; mutations go through the stores first and the
copies are only changed once the write has landed. Presentation code
gets one Planner and asks it everything.
"""

from datetime import datetime
from pathlib import Path
from typing import Callable, Optional
import sys

from .calendar_grid import get_view_date_range
from .config import get_next_color
from .models import AppSettings, Category, CategoryType, Event, Priority, Task, ViewType
from .queries import (
    TaskSort, TaskStats, TaskTab, UPCOMING_DAYS,
    events_by_category, events_in_range, events_on_date, overdue_tasks,
    search_events, search_tasks, task_stats, tasks_by_category,
    tasks_by_priority, tasks_by_status, tasks_due_today, tasks_for_tab,
    upcoming_events, upcoming_tasks,
)
from .storage import KeyValueStorage, create_storage_backend
from .store import DataStores
from .timezone_utils import now_utc
from . import transfer


def _debug_print(msg: str) -> None:
    timestamp = datetime.now().strftime("%H:%M:%S")
    print(f"[{timestamp}] PLANNER: {msg}", file=sys.stderr)


class Planner:
    """
    Repository of events, tasks, categories and settings.

    Call load() once before use; it is called by open().
    """

    def __init__(self, storage: KeyValueStorage, clock: Callable[[], datetime] = now_utc,
                 upcoming_days: int = UPCOMING_DAYS):
        self._clock = clock
        self._upcoming_days = upcoming_days
        self.stores = DataStores(storage, clock)

        self.events: list[Event] = []
        self.tasks: list[Task] = []
        self.categories: list[Category] = []
        self.settings: AppSettings = AppSettings()

    @classmethod
    def open(cls, storage_dir: Optional[Path] = None, **kwargs) -> 'Planner':
        """Create a Planner over the JSON file backend and load it."""
        planner = cls(create_storage_backend(storage_dir), **kwargs)
        planner.load()
        return planner

    def now(self) -> datetime:
        return self._clock()

    # ==================== Loading ====================

    def load(self) -> None:
        """(Re)load every in-memory copy from storage."""
        self.events = self.stores.events.get_all()
        self.tasks = self.stores.tasks.get_all()
        self.categories = self.stores.categories.get_all()
        self.settings = self.stores.settings.get()
        _debug_print(
            f"Loaded {len(self.events)} events, {len(self.tasks)} tasks, "
            f"{len(self.categories)} categories"
        )

    # ==================== Events ====================

    def add_event(self, title: str, start_date: datetime, end_date: datetime, **fields) -> Event:
        event = Event.create(title, start_date, end_date, now=self._clock(), **fields)
        event = self.stores.events.add(event)
        self.events = self.events + [event]
        return event

    def update_event(self, event_id: str, **updates) -> Optional[Event]:
        updated = self.stores.events.update(event_id, **updates)
        if updated is not None:
            self.events = [updated if e.id == event_id else e for e in self.events]
        return updated

    def remove_event(self, event_id: str) -> bool:
        removed = self.stores.events.remove(event_id)
        if removed:
            self.events = [e for e in self.events if e.id != event_id]
        return removed

    def get_event(self, event_id: str) -> Optional[Event]:
        return next((e for e in self.events if e.id == event_id), None)

    def events_in_range(self, start: datetime, end: datetime) -> list[Event]:
        return events_in_range(self.events, start, end)

    def events_on_date(self, day) -> list[Event]:
        return events_on_date(self.events, day)

    def events_for_view(self, day, view: Optional[ViewType] = None) -> list[Event]:
        """Events overlapping the range a month/week/day view shows around `day`."""
        view = view or self.settings.default_view
        start, end = get_view_date_range(day, view, self.settings.week_starts_on)
        return events_in_range(self.events, start, end)

    def events_by_category(self, category_id: str) -> list[Event]:
        return events_by_category(self.events, category_id)

    def search_events(self, query: str) -> list[Event]:
        return search_events(self.events, query)

    def upcoming_events(self) -> list[Event]:
        return upcoming_events(self.events, self._clock(), self._upcoming_days)

    # ==================== Tasks ====================

    def add_task(self, title: str, **fields) -> Task:
        task = Task.create(title, now=self._clock(), **fields)
        task = self.stores.tasks.add(task)
        self.tasks = self.tasks + [task]
        return task

    def update_task(self, task_id: str, **updates) -> Optional[Task]:
        updated = self.stores.tasks.update(task_id, **updates)
        if updated is not None:
            self.tasks = [updated if t.id == task_id else t for t in self.tasks]
        return updated

    def remove_task(self, task_id: str) -> bool:
        removed = self.stores.tasks.remove(task_id)
        if removed:
            self.tasks = [t for t in self.tasks if t.id != task_id]
        return removed

    def toggle_task_completion(self, task_id: str) -> Optional[Task]:
        task = self.get_task(task_id)
        if task is None:
            return None
        return self.update_task(task_id, completed=not task.completed)

    def get_task(self, task_id: str) -> Optional[Task]:
        return next((t for t in self.tasks if t.id == task_id), None)

    def tasks_by_status(self, completed: bool) -> list[Task]:
        return tasks_by_status(self.tasks, completed)

    def tasks_by_priority(self, priority: Priority) -> list[Task]:
        return tasks_by_priority(self.tasks, priority)

    def tasks_by_category(self, category_id: str) -> list[Task]:
        return tasks_by_category(self.tasks, category_id)

    def tasks_due_today(self) -> list[Task]:
        return tasks_due_today(self.tasks, self._clock())

    def overdue_tasks(self) -> list[Task]:
        return overdue_tasks(self.tasks, self._clock())

    def upcoming_tasks(self) -> list[Task]:
        return upcoming_tasks(self.tasks, self._clock(), self._upcoming_days)

    def search_tasks(self, query: str) -> list[Task]:
        return search_tasks(self.tasks, query)

    def task_stats(self) -> TaskStats:
        return task_stats(self.tasks, self._clock())

    def tasks_for_tab(self, tab: TaskTab = TaskTab.ALL, sort_by: TaskSort = TaskSort.DUE_DATE) -> list[Task]:
        return tasks_for_tab(self.tasks, tab, self._clock(), sort_by)

    # ==================== Categories ====================

    def add_category(self, name: str, color: Optional[str] = None,
                     type: CategoryType = CategoryType.BOTH) -> Category:
        if color is None:
            color = get_next_color([c.color for c in self.categories])
        category = Category.create(name.strip(), color, type, now=self._clock())
        category = self.stores.categories.add(category)
        self.categories = self.stores.categories.get_all()
        return category

    def update_category(self, category_id: str, **updates) -> Optional[Category]:
        updated = self.stores.categories.update(category_id, **updates)
        if updated is not None:
            self.categories = [updated if c.id == category_id else c for c in self.categories]
        return updated

    def remove_category(self, category_id: str, reassign_to: Optional[str] = None) -> bool:
        """
        Remove a category.

        Events and tasks keep the stale reference unless `reassign_to`
        is given, in which case they are moved to that category id.
        """
        removed = self.stores.categories.remove(category_id)
        if not removed:
            return False

        if reassign_to is not None:
            for event in self.events_by_category(category_id):
                self.update_event(event.id, category=reassign_to)
            for task in self.tasks_by_category(category_id):
                self.update_task(task.id, category=reassign_to)

        self.categories = self.stores.categories.get_all()
        return True

    def get_category(self, category_id: str) -> Optional[Category]:
        return next((c for c in self.categories if c.id == category_id), None)

    def event_categories(self) -> list[Category]:
        return [c for c in self.categories if c.applies_to_events()]

    def task_categories(self) -> list[Category]:
        return [c for c in self.categories if c.applies_to_tasks()]

    # ==================== Settings ====================

    def update_settings(self, **updates) -> AppSettings:
        self.settings = self.stores.settings.update(**updates)
        return self.settings

    # ==================== Import / Export ====================

    def export_data(self) -> str:
        return transfer.export_data(self.stores, self._clock())

    def export_to_file(self, path: Path) -> Path:
        return transfer.export_to_file(self.stores, path, self._clock())

    def export_ics(self) -> bytes:
        return transfer.export_ics(self.events, self.categories)

    def import_data(self, text: str) -> bool:
        imported = transfer.import_data(self.stores, text)
        if imported:
            self.load()
        return imported

    def import_from_file(self, path: Path) -> bool:
        imported = transfer.import_from_file(self.stores, path)
        if imported:
            self.load()
        return imported
