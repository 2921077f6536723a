"""
Daybook Planner Core

This package provides the core functionality of the planner:
- Entity model (models.py) - Event, Task, Category, AppSettings
- Key-value storage backends (storage.py)
- Per-collection persistence stores (store.py)
- Query layer (queries.py) - filters, search, stats, sorting
- Calendar grids and navigation (calendar_grid.py)
- Import/export of backups and iCalendar files (transfer.py)
- Planner context (repository.py) - in-memory copies kept in sync with storage
"""

from .config import Config
from .errors import DaybookError, PersistenceError, StorageError, ValidationError
from .models import (
    AppSettings, Category, CategoryType, Event, Priority,
    RecurrenceType, RecurringPattern, Task, ViewType,
)
from .storage import JsonFileStorage, KeyValueStorage, MemoryStorage
from .store import CategoryStore, DataStores, EventStore, SettingsStore, TaskStore
from .repository import Planner

__all__ = [
    'Config',
    'DaybookError',
    'PersistenceError',
    'StorageError',
    'ValidationError',
    'AppSettings',
    'Category',
    'CategoryType',
    'Event',
    'Priority',
    'RecurrenceType',
    'RecurringPattern',
    'Task',
    'ViewType',
    'JsonFileStorage',
    'KeyValueStorage',
    'MemoryStorage',
    'CategoryStore',
    'DataStores',
    'EventStore',
    'SettingsStore',
    'TaskStore',
    'Planner',
]
