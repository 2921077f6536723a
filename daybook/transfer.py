"""
Import/export of the whole planner data set.

The backup document is a single JSON object:

    {version, events, tasks, categories, settings, exportedAt}

Import overwrites each collection present in the document wholesale and
leaves absent ones untouched. The document is decoded completely before
anything is written, so a malformed document never changes storage.

Events can also be exported as an iCalendar file; recurrence patterns
become RRULEs but are never expanded.
"""

import json
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

from icalendar import Calendar as ICalCalendar, Event as ICalEvent

from .errors import ImportDocumentError, PersistenceError, StorageError
from .models import (
    AppSettings, Category, Event, RecurrenceType, Task, format_instant,
)
from .storage import KeyValueStorage
from .store import DataStores
from .timezone_utils import ensure_aware, now_utc


def _debug_print(msg: str) -> None:
    timestamp = datetime.now().strftime("%H:%M:%S")
    print(f"[{timestamp}] TRANSFER: {msg}", file=sys.stderr)


EXPORT_VERSION = 1

_ICAL_FREQ = {
    RecurrenceType.DAILY: "DAILY",
    RecurrenceType.WEEKLY: "WEEKLY",
    RecurrenceType.MONTHLY: "MONTHLY",
    RecurrenceType.YEARLY: "YEARLY",
}
_ICAL_WEEKDAYS = ["SU", "MO", "TU", "WE", "TH", "FR", "SA"]  # Sunday = 0


# ==================== JSON backup ====================

def build_export_document(stores: DataStores, now: Optional[datetime] = None) -> dict:
    """Assemble the backup document from the current stored state."""
    now = now or now_utc()
    return {
        "version": EXPORT_VERSION,
        "events": [e.to_dict() for e in stores.events.get_all()],
        "tasks": [t.to_dict() for t in stores.tasks.get_all()],
        "categories": [c.to_dict() for c in stores.categories.get_all()],
        "settings": stores.settings.get().to_dict(),
        "exportedAt": format_instant(now),
    }


def export_data(stores: DataStores, now: Optional[datetime] = None) -> str:
    """The backup document as JSON text."""
    return json.dumps(build_export_document(stores, now), indent=2, ensure_ascii=False)


def backup_filename(now: Optional[datetime] = None) -> str:
    now = now or now_utc()
    return f"calendar-backup-{ensure_aware(now).date().isoformat()}.json"


def export_to_file(stores: DataStores, path: Path, now: Optional[datetime] = None) -> Path:
    """Write the backup document; a directory path gets the default file name."""
    path = Path(path)
    if path.is_dir():
        path = path / backup_filename(now)
    path.write_text(export_data(stores, now), encoding='utf-8')
    _debug_print(f"Exported data to {path}")
    return path


def _decode_list(data: dict, key: str, entity_type) -> Optional[list]:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, list):
        raise ImportDocumentError(f"'{key}' must be a list, got {type(value).__name__}")
    try:
        return [entity_type.from_dict(item) for item in value]
    except (ValueError, KeyError, TypeError, AttributeError) as e:
        raise ImportDocumentError(f"Invalid entry in '{key}': {e}") from e


def parse_import_document(text: str) -> dict:
    """
    Decode a backup document into typed records.

    Returns a dict holding only the keys present in the document.
    Raises ImportDocumentError on anything that is not the expected shape.
    """
    try:
        data = json.loads(text)
    except (TypeError, ValueError) as e:
        raise ImportDocumentError(f"Not a JSON document: {e}") from e

    if not isinstance(data, dict):
        raise ImportDocumentError("Backup document must be a JSON object")

    version = data.get("version", EXPORT_VERSION)
    if not isinstance(version, int) or version > EXPORT_VERSION:
        raise ImportDocumentError(f"Unsupported backup version: {version!r}")

    decoded = {}
    for key, entity_type in (("events", Event), ("tasks", Task), ("categories", Category)):
        items = _decode_list(data, key, entity_type)
        if items is not None:
            decoded[key] = items

    settings = data.get("settings")
    if settings is not None:
        if not isinstance(settings, dict):
            raise ImportDocumentError("'settings' must be an object")
        try:
            decoded["settings"] = AppSettings.from_dict(settings)
        except (ValueError, TypeError) as e:
            raise ImportDocumentError(f"Invalid settings: {e}") from e

    return decoded


def _restore(storage: KeyValueStorage, written: list[tuple[str, Optional[str]]]) -> None:
    """Put back the previous text of keys written by a failed import."""
    for key, previous in reversed(written):
        try:
            if previous is None:
                storage.delete(key)
            else:
                storage.set(key, previous)
        except StorageError as e:
            _debug_print(f"Could not restore {key} after failed import: {e}")


def import_data(stores: DataStores, text: str) -> bool:
    """
    Restore a backup document.

    Returns False (and writes nothing) when the document is malformed.
    If a write fails part way, keys already written are restored to their
    previous contents and the PersistenceError is propagated.
    """
    try:
        decoded = parse_import_document(text)
    except ImportDocumentError as e:
        _debug_print(f"Error importing data: {e}")
        return False

    targets = (
        ("events", stores.events),
        ("tasks", stores.tasks),
        ("categories", stores.categories),
        ("settings", stores.settings),
    )
    written = []
    try:
        for name, store in targets:
            if name in decoded:
                previous = stores.storage.get(store.key)
                store.save(decoded[name])
                written.append((store.key, previous))
    except PersistenceError:
        _restore(stores.storage, written)
        raise

    _debug_print(f"Imported {', '.join(decoded) or 'nothing'}")
    return True


def import_from_file(stores: DataStores, path: Path) -> bool:
    """Read a backup document from disk and import it."""
    try:
        text = Path(path).read_text(encoding='utf-8')
    except (OSError, UnicodeDecodeError) as e:
        _debug_print(f"Error reading {path}: {e}")
        return False
    return import_data(stores, text)


# ==================== iCalendar ====================

def _recurrence_rule(event: Event) -> Optional[dict]:
    pattern = event.recurring_pattern
    if not event.is_recurring or pattern is None:
        return None

    rule = {"FREQ": _ICAL_FREQ[pattern.type], "INTERVAL": pattern.interval}
    if pattern.end_date is not None:
        rule["UNTIL"] = ensure_aware(pattern.end_date)
    if pattern.days_of_week:
        rule["BYDAY"] = [_ICAL_WEEKDAYS[d % 7] for d in pattern.days_of_week]
    if pattern.day_of_month is not None:
        rule["BYMONTHDAY"] = pattern.day_of_month
    return rule


def event_to_ical(event: Event, category_names: Optional[dict[str, str]] = None) -> ICalEvent:
    """Convert one event to an icalendar VEVENT."""
    vevent = ICalEvent()
    vevent.add('uid', event.id)
    vevent.add('summary', event.title)
    vevent.add('dtstart', ensure_aware(event.start_date))
    vevent.add('dtend', ensure_aware(event.end_date))
    vevent.add('dtstamp', ensure_aware(event.updated_at))
    vevent.add('created', ensure_aware(event.created_at))
    vevent.add('last-modified', ensure_aware(event.updated_at))
    if event.description:
        vevent.add('description', event.description)
    if event.color:
        vevent.add('color', event.color)

    category_name = (category_names or {}).get(event.category)
    if category_name:
        vevent.add('categories', [category_name])

    rule = _recurrence_rule(event)
    if rule:
        vevent.add('rrule', rule)
    return vevent


def export_ics(events: list[Event], categories: Optional[list[Category]] = None) -> bytes:
    """Serialize events as a VCALENDAR document."""
    vcal = ICalCalendar()
    vcal.add('prodid', '-//Daybook Planner//daybook//')
    vcal.add('version', '2.0')

    category_names = {c.id: c.name for c in categories or []}
    for event in events:
        vcal.add_component(event_to_ical(event, category_names))
    return vcal.to_ical()


def export_ics_to_file(stores: DataStores, path: Path) -> Path:
    path = Path(path)
    path.write_bytes(export_ics(stores.events.get_all(), stores.categories.get_all()))
    _debug_print(f"Exported events to {path}")
    return path
