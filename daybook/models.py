"""
Entity model for Daybook.

Events, tasks, categories and the settings singleton, with their
wire (JSON) representation. Wire field names are camelCase so backup
documents stay interchangeable with the web planner's backups.

Date fields are always timezone-aware datetimes in memory and ISO 8601
strings on the wire; decoding never leaves a date as raw text.
"""

from dataclasses import dataclass, field, fields, replace
from datetime import datetime
from enum import Enum
from typing import Optional
import secrets
import time

from .errors import ValidationError
from .timezone_utils import ensure_aware, now_utc


class Priority(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def weight(self) -> int:
        return PRIORITY_WEIGHTS[self]


PRIORITY_WEIGHTS = {Priority.HIGH: 3, Priority.MEDIUM: 2, Priority.LOW: 1}


class CategoryType(Enum):
    EVENT = "event"
    TASK = "task"
    BOTH = "both"


class RecurrenceType(Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class Theme(Enum):
    LIGHT = "light"
    DARK = "dark"
    SYSTEM = "system"


class ViewType(Enum):
    MONTH = "month"
    WEEK = "week"
    DAY = "day"


class TimeFormat(Enum):
    H12 = "12h"
    H24 = "24h"


# Default colors for categories
DEFAULT_COLORS = [
    '#3b82f6',  # blue
    '#ef4444',  # red
    '#10b981',  # green
    '#f59e0b',  # yellow
    '#8b5cf6',  # purple
    '#06b6d4',  # cyan
    '#f97316',  # orange
    '#84cc16',  # lime
    '#ec4899',  # pink
    '#6b7280',  # gray
]

# (name, color, type) of the categories seeded into an empty collection
DEFAULT_CATEGORIES = [
    ("Work", '#3b82f6', CategoryType.BOTH),
    ("Personal", '#10b981', CategoryType.BOTH),
    ("Health", '#ef4444', CategoryType.BOTH),
    ("Education", '#8b5cf6', CategoryType.BOTH),
    ("Social", '#f59e0b', CategoryType.EVENT),
    ("Shopping", '#06b6d4', CategoryType.TASK),
]

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def generate_id() -> str:
    """
    Generate an opaque entity id.

    Millisecond timestamp in base 36 followed by a random base-36 suffix.
    Collisions are not checked.
    """
    timestamp = _to_base36(time.time_ns() // 1_000_000)
    suffix = _to_base36(secrets.randbits(52)).rjust(11, "0")
    return timestamp + suffix


# ==================== Wire helpers ====================

def parse_instant(value) -> datetime:
    """Decode a wire date (ISO string or datetime) into an aware UTC datetime."""
    if isinstance(value, datetime):
        return ensure_aware(value)
    if not isinstance(value, str):
        raise ValueError(f"Expected ISO date string, got {type(value).__name__}")
    return ensure_aware(datetime.fromisoformat(value))


def parse_optional_instant(value) -> Optional[datetime]:
    if value is None or value == "":
        return None
    return parse_instant(value)


def parse_text(value, field: str) -> str:
    if not isinstance(value, str):
        raise ValueError(f"'{field}' must be a string, got {type(value).__name__}")
    return value


def parse_optional_text(value, field: str) -> Optional[str]:
    if value is None:
        return None
    return parse_text(value, field)


def format_instant(value: Optional[datetime]) -> Optional[str]:
    """Encode an instant for the wire (ISO 8601, UTC)."""
    if value is None:
        return None
    return ensure_aware(value).isoformat()


# ==================== Entities ====================

@dataclass
class RecurringPattern:
    """
    Recurrence metadata of an event.

    Stored verbatim; occurrences are never generated from it.
    """
    type: RecurrenceType
    interval: int = 1
    end_date: Optional[datetime] = None
    days_of_week: Optional[list[int]] = None  # 0 = Sunday .. 6 = Saturday
    day_of_month: Optional[int] = None

    def to_dict(self) -> dict:
        data = {
            "type": self.type.value,
            "interval": self.interval,
        }
        if self.end_date is not None:
            data["endDate"] = format_instant(self.end_date)
        if self.days_of_week is not None:
            data["daysOfWeek"] = list(self.days_of_week)
        if self.day_of_month is not None:
            data["dayOfMonth"] = self.day_of_month
        return data

    @classmethod
    def from_dict(cls, data: dict) -> 'RecurringPattern':
        days = data.get("daysOfWeek")
        return cls(
            type=RecurrenceType(data["type"]),
            interval=int(data.get("interval", 1)),
            end_date=parse_optional_instant(data.get("endDate")),
            days_of_week=[int(d) for d in days] if days is not None else None,
            day_of_month=data.get("dayOfMonth"),
        )


@dataclass
class Event:
    """A calendar event."""
    id: str
    title: str
    start_date: datetime
    end_date: datetime
    created_at: datetime
    updated_at: datetime
    description: Optional[str] = None
    category: str = ""
    color: str = DEFAULT_COLORS[0]
    is_recurring: bool = False
    recurring_pattern: Optional[RecurringPattern] = None

    @classmethod
    def create(
        cls,
        title: str,
        start_date: datetime,
        end_date: datetime,
        now: Optional[datetime] = None,
        **kwargs
    ) -> 'Event':
        """Create a new event with a fresh id and creation stamps."""
        now = now or now_utc()
        return cls(
            id=generate_id(),
            title=title,
            start_date=ensure_aware(start_date),
            end_date=ensure_aware(end_date),
            created_at=now,
            updated_at=now,
            **kwargs
        )

    @property
    def duration_minutes(self) -> int:
        return int((self.end_date - self.start_date).total_seconds() // 60)

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "title": self.title,
            "startDate": format_instant(self.start_date),
            "endDate": format_instant(self.end_date),
            "category": self.category,
            "color": self.color,
            "isRecurring": self.is_recurring,
            "createdAt": format_instant(self.created_at),
            "updatedAt": format_instant(self.updated_at),
        }
        if self.description is not None:
            data["description"] = self.description
        if self.recurring_pattern is not None:
            data["recurringPattern"] = self.recurring_pattern.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: dict) -> 'Event':
        pattern = data.get("recurringPattern")
        return cls(
            id=str(data["id"]),
            title=parse_text(data["title"], "title"),
            description=parse_optional_text(data.get("description"), "description"),
            start_date=parse_instant(data["startDate"]),
            end_date=parse_instant(data["endDate"]),
            category=parse_text(data.get("category", ""), "category"),
            color=parse_text(data.get("color", DEFAULT_COLORS[0]), "color"),
            is_recurring=bool(data.get("isRecurring", False)),
            recurring_pattern=RecurringPattern.from_dict(pattern) if pattern else None,
            created_at=parse_instant(data["createdAt"]),
            updated_at=parse_instant(data["updatedAt"]),
        )


@dataclass
class Task:
    """A to-do item."""
    id: str
    title: str
    created_at: datetime
    updated_at: datetime
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    priority: Priority = Priority.MEDIUM
    completed: bool = False
    category: str = ""
    color: str = DEFAULT_COLORS[0]

    @classmethod
    def create(cls, title: str, now: Optional[datetime] = None, **kwargs) -> 'Task':
        """Create a new task with a fresh id and creation stamps."""
        now = now or now_utc()
        if kwargs.get("due_date") is not None:
            kwargs["due_date"] = ensure_aware(kwargs["due_date"])
        return cls(id=generate_id(), title=title, created_at=now, updated_at=now, **kwargs)

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "title": self.title,
            "priority": self.priority.value,
            "completed": self.completed,
            "category": self.category,
            "color": self.color,
            "createdAt": format_instant(self.created_at),
            "updatedAt": format_instant(self.updated_at),
        }
        if self.description is not None:
            data["description"] = self.description
        if self.due_date is not None:
            data["dueDate"] = format_instant(self.due_date)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> 'Task':
        return cls(
            id=str(data["id"]),
            title=parse_text(data["title"], "title"),
            description=parse_optional_text(data.get("description"), "description"),
            due_date=parse_optional_instant(data.get("dueDate")),
            priority=Priority(data.get("priority", Priority.MEDIUM.value)),
            completed=bool(data.get("completed", False)),
            category=parse_text(data.get("category", ""), "category"),
            color=parse_text(data.get("color", DEFAULT_COLORS[0]), "color"),
            created_at=parse_instant(data["createdAt"]),
            updated_at=parse_instant(data["updatedAt"]),
        )


@dataclass
class Category:
    """A user-defined category referenced by events and tasks."""
    id: str
    name: str
    color: str
    type: CategoryType
    created_at: datetime

    @classmethod
    def create(
        cls,
        name: str,
        color: str = DEFAULT_COLORS[0],
        type: CategoryType = CategoryType.BOTH,
        now: Optional[datetime] = None
    ) -> 'Category':
        return cls(
            id=generate_id(),
            name=name,
            color=color,
            type=type,
            created_at=now or now_utc(),
        )

    def applies_to_events(self) -> bool:
        return self.type in (CategoryType.EVENT, CategoryType.BOTH)

    def applies_to_tasks(self) -> bool:
        return self.type in (CategoryType.TASK, CategoryType.BOTH)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "color": self.color,
            "type": self.type.value,
            "createdAt": format_instant(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Category':
        return cls(
            id=str(data["id"]),
            name=parse_text(data["name"], "name"),
            color=parse_text(data.get("color", DEFAULT_COLORS[0]), "color"),
            type=CategoryType(data.get("type", CategoryType.BOTH.value)),
            created_at=parse_instant(data["createdAt"]),
        )


def default_categories(now: Optional[datetime] = None) -> list[Category]:
    """The six categories seeded into an empty collection."""
    now = now or now_utc()
    return [
        Category(id=f"default_{index}", name=name, color=color, type=cat_type, created_at=now)
        for index, (name, color, cat_type) in enumerate(DEFAULT_CATEGORIES)
    ]


@dataclass
class AppSettings:
    """Application settings singleton (no id)."""
    theme: Theme = Theme.SYSTEM
    default_view: ViewType = ViewType.MONTH
    week_starts_on: int = 0  # 0 = Sunday, 1 = Monday
    time_format: TimeFormat = TimeFormat.H12
    default_event_duration: int = 60  # minutes
    show_weekends: bool = True

    def __post_init__(self):
        if self.week_starts_on not in (0, 1):
            raise ValueError(f"week_starts_on must be 0 or 1, got {self.week_starts_on!r}")
        if self.default_event_duration <= 0:
            raise ValueError("default_event_duration must be positive")

    @property
    def uses_24h(self) -> bool:
        return self.time_format == TimeFormat.H24

    def to_dict(self) -> dict:
        return {
            "theme": self.theme.value,
            "defaultView": self.default_view.value,
            "weekStartsOn": self.week_starts_on,
            "timeFormat": self.time_format.value,
            "defaultEventDuration": self.default_event_duration,
            "showWeekends": self.show_weekends,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'AppSettings':
        defaults = cls()
        return cls(
            theme=Theme(data.get("theme", defaults.theme.value)),
            default_view=ViewType(data.get("defaultView", defaults.default_view.value)),
            week_starts_on=int(data.get("weekStartsOn", defaults.week_starts_on)),
            time_format=TimeFormat(data.get("timeFormat", defaults.time_format.value)),
            default_event_duration=int(data.get("defaultEventDuration", defaults.default_event_duration)),
            show_weekends=bool(data.get("showWeekends", defaults.show_weekends)),
        )


def merge_fields(record, updates: dict, protected: tuple[str, ...] = ("id", "created_at")):
    """
    Return a copy of a dataclass record with `updates` applied.

    Protected fields are never overwritten. Unknown field names raise
    TypeError, as dataclasses.replace does.
    """
    allowed = {f.name for f in fields(record)}
    unknown = set(updates) - allowed
    if unknown:
        raise TypeError(f"Unknown fields for {type(record).__name__}: {sorted(unknown)}")
    changes = {k: v for k, v in updates.items() if k not in protected}
    return replace(record, **changes)


# ==================== Form-level validation ====================
# The stores never call these; they mirror what the entry forms check.

def validate_event_fields(title: str, start_date: Optional[datetime], end_date: Optional[datetime],
                          recurring_pattern: Optional[RecurringPattern] = None) -> None:
    if not title or not title.strip():
        raise ValidationError("title", "Please enter an event title")
    if start_date is None:
        raise ValidationError("start_date", "Please select start date and time")
    if end_date is None:
        raise ValidationError("end_date", "Please select end date and time")
    if ensure_aware(end_date) <= ensure_aware(start_date):
        raise ValidationError("end_date", "End time must be after start time")
    if recurring_pattern is not None and recurring_pattern.interval < 1:
        raise ValidationError("recurring_pattern", "Recurrence interval must be at least 1")


def validate_task_fields(title: str) -> None:
    if not title or not title.strip():
        raise ValidationError("title", "Please enter a task title")


def validate_category_fields(name: str) -> None:
    if not name or not name.strip():
        raise ValidationError("name", "Category name is required")
