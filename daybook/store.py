"""
Persistence stores for Daybook.

One store per collection (events, tasks, categories) plus the settings
singleton, each bound to a fixed storage key. Every operation is a
whole-collection read-modify-write: fine for personal-scale data.

Read failures (missing key, unparsable text, corrupt record) degrade to
an empty collection or default settings. Write failures raise
PersistenceError so callers know a mutation did not land.
"""

import json
import sys
from dataclasses import replace
from datetime import datetime
from typing import Callable, Generic, Optional, TypeVar

from .errors import PersistenceError, StorageError
from .models import AppSettings, Category, Event, Task, default_categories, merge_fields
from .storage import KeyValueStorage, StorageKeys
from .timezone_utils import ensure_aware, local_date, now_utc
from . import queries


def _debug_print(msg: str) -> None:
    timestamp = datetime.now().strftime("%H:%M:%S")
    print(f"[{timestamp}] STORE: {msg}", file=sys.stderr)


T = TypeVar('T')

# Decoding errors that mean "stored data is corrupt"
_DECODE_ERRORS = (ValueError, KeyError, TypeError, AttributeError)


class CollectionStore(Generic[T]):
    """
    Repository for one entity collection stored under a single key.

    Subclasses set `key` and `entity_type`; the entity type provides
    to_dict()/from_dict().
    """

    key: str = ""
    entity_type: type = object
    stamps_updated_at: bool = True

    def __init__(self, storage: KeyValueStorage, clock: Callable[[], datetime] = now_utc):
        self._storage = storage
        self._clock = clock

    # ==================== Codec ====================

    def encode(self, items: list[T]) -> str:
        return json.dumps([item.to_dict() for item in items], indent=2, ensure_ascii=False)

    def decode(self, text: str) -> list[T]:
        """Schema-aware decode: every record goes through entity_type.from_dict."""
        data = json.loads(text)
        if not isinstance(data, list):
            raise ValueError(f"Expected a list under '{self.key}', got {type(data).__name__}")
        return [self.entity_type.from_dict(item) for item in data]

    def _default(self) -> list[T]:
        return []

    def _prepare(self, item: T) -> T:
        """Normalize a record before it is stored."""
        return item

    # ==================== Operations ====================

    def get_all(self) -> list[T]:
        """Load the whole collection; empty (or default) on missing/corrupt data."""
        text = self._storage.get(self.key)
        if text is None:
            return self._default()
        try:
            return self.decode(text)
        except _DECODE_ERRORS as e:
            _debug_print(f"Error parsing {self.key} from storage: {e}")
            return self._default()

    def save(self, items: list[T]) -> None:
        """Serialize and overwrite the whole collection."""
        text = self.encode([self._prepare(item) for item in items])
        try:
            self._storage.set(self.key, text)
        except StorageError as e:
            _debug_print(f"Error storing {self.key}: {e}")
            raise PersistenceError(self.key, str(e), e) from e

    def add(self, item: T) -> T:
        """Append a record and write the collection back."""
        item = self._prepare(item)
        items = self.get_all()
        items.append(item)
        self.save(items)
        return item

    def get(self, item_id: str) -> Optional[T]:
        for item in self.get_all():
            if item.id == item_id:
                return item
        return None

    def update(self, item_id: str, **updates) -> Optional[T]:
        """
        Merge `updates` over the record with `item_id`.

        Returns the updated record, or None if no record has that id.
        `id` and `created_at` are never changed.
        """
        items = self.get_all()
        for index, item in enumerate(items):
            if item.id == item_id:
                break
        else:
            return None

        updated = self._prepare(merge_fields(item, updates))
        if self.stamps_updated_at:
            updated = replace(updated, updated_at=max(self._clock(), item.updated_at))
        items[index] = updated
        self.save(items)
        return updated

    def remove(self, item_id: str) -> bool:
        """Remove the record with `item_id`; False if there was none."""
        items = self.get_all()
        remaining = [item for item in items if item.id != item_id]
        if len(remaining) == len(items):
            return False

        self.save(remaining)
        return True

    def __len__(self) -> int:
        return len(self.get_all())


class EventStore(CollectionStore[Event]):
    key = StorageKeys.EVENTS
    entity_type = Event

    def _prepare(self, item: Event) -> Event:
        return replace(
            item,
            start_date=ensure_aware(item.start_date),
            end_date=ensure_aware(item.end_date),
        )

    def get_by_date_range(self, start: datetime, end: datetime) -> list[Event]:
        return queries.events_in_range(self.get_all(), start, end)


class TaskStore(CollectionStore[Task]):
    key = StorageKeys.TASKS
    entity_type = Task

    def _prepare(self, item: Task) -> Task:
        if item.due_date is None:
            return item
        return replace(item, due_date=ensure_aware(item.due_date))

    def get_by_status(self, completed: bool) -> list[Task]:
        return queries.tasks_by_status(self.get_all(), completed)

    def get_by_due_date(self, day) -> list[Task]:
        """Tasks due on the same local calendar day as `day`."""
        if isinstance(day, datetime):
            day = local_date(day)
        return [
            task for task in self.get_all()
            if task.due_date is not None and local_date(task.due_date) == day
        ]


class CategoryStore(CollectionStore[Category]):
    """
    Category collection.

    An empty collection is seeded with the default categories on first
    access, and the seed is persisted immediately.
    """
    key = StorageKeys.CATEGORIES
    entity_type = Category
    stamps_updated_at = False

    def get_all(self) -> list[Category]:
        stored = super().get_all()
        if stored:
            return stored

        defaults = default_categories(self._clock())
        try:
            self.save(defaults)
            _debug_print(f"Seeded {len(defaults)} default categories")
        except PersistenceError as e:
            _debug_print(f"Could not persist default categories: {e}")
        return defaults


class SettingsStore:
    """Settings singleton stored under its own key."""

    key = StorageKeys.SETTINGS

    def __init__(self, storage: KeyValueStorage):
        self._storage = storage

    def get(self) -> AppSettings:
        text = self._storage.get(self.key)
        if text is None:
            return AppSettings()
        try:
            data = json.loads(text)
            if not isinstance(data, dict):
                raise ValueError(f"Expected an object under '{self.key}'")
            return AppSettings.from_dict(data)
        except _DECODE_ERRORS as e:
            _debug_print(f"Error parsing {self.key} from storage: {e}")
            return AppSettings()

    def save(self, settings: AppSettings) -> None:
        try:
            self._storage.set(self.key, json.dumps(settings.to_dict(), indent=2))
        except StorageError as e:
            _debug_print(f"Error storing {self.key}: {e}")
            raise PersistenceError(self.key, str(e), e) from e

    def update(self, **updates) -> AppSettings:
        settings = merge_fields(self.get(), updates, protected=())
        self.save(settings)
        return settings


class DataStores:
    """The four stores sharing one storage backend."""

    def __init__(self, storage: KeyValueStorage, clock: Callable[[], datetime] = now_utc):
        self.storage = storage
        self.events = EventStore(storage, clock)
        self.tasks = TaskStore(storage, clock)
        self.categories = CategoryStore(storage, clock)
        self.settings = SettingsStore(storage)
