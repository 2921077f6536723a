"""
Key-value storage substrate for Daybook.

Abstract base class and implementations for storing serialized
collections under fixed keys. Values are opaque text; encoding and
decoding of entities is the stores' job (store.py).
"""

import os
import sys
import tempfile
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Optional

from .errors import StorageError


def _debug_print(msg: str) -> None:
    timestamp = datetime.now().strftime("%H:%M:%S")
    print(f"[{timestamp}] STORAGE: {msg}", file=sys.stderr)


# Fixed, distinct keys of the four persisted records
class StorageKeys:
    EVENTS = "calendar_events"
    TASKS = "calendar_tasks"
    CATEGORIES = "calendar_categories"
    SETTINGS = "calendar_settings"

    ALL = (EVENTS, TASKS, CATEGORIES, SETTINGS)


class KeyValueStorage(ABC):
    """
    Abstract base class for key-value storage backends.

    Implementations return None for a missing key and raise StorageError
    when a write does not land.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Get the stored text for a key, or None if absent."""
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Overwrite the stored text for a key."""
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove a key (no-op if absent)."""
        pass

    @abstractmethod
    def keys(self) -> list[str]:
        """List all keys with stored data."""
        pass


class JsonFileStorage(KeyValueStorage):
    """
    File-based storage, one file per key.

    Structure:
    - {storage_dir}/{key}.json
    """

    def __init__(self, storage_dir: Path):
        self.storage_dir = Path(storage_dir)
        self.storage_dir.mkdir(parents=True, exist_ok=True)
        _debug_print(f"Initialized JSON storage at {self.storage_dir}")

    def _key_to_filename(self, key: str) -> str:
        """Convert key to safe filename."""
        return key.replace(":", "_").replace("/", "_") + ".json"

    def _file(self, key: str) -> Path:
        return self.storage_dir / self._key_to_filename(key)

    def get(self, key: str) -> Optional[str]:
        file_path = self._file(key)
        if not file_path.exists():
            return None
        try:
            return file_path.read_text(encoding='utf-8')
        except OSError as e:
            _debug_print(f"Error reading {key}: {e}")
            return None

    def set(self, key: str, value: str) -> None:
        """Write atomically: temp file in the same directory, then rename."""
        file_path = self._file(key)
        tmp_name = None
        try:
            fd, tmp_name = tempfile.mkstemp(dir=self.storage_dir, prefix=".tmp-", suffix=".json")
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                f.write(value)
            os.replace(tmp_name, file_path)
        except OSError as e:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise StorageError(f"Error writing {file_path}: {e}") from e

    def delete(self, key: str) -> None:
        file_path = self._file(key)
        try:
            file_path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Error deleting {file_path}: {e}") from e

    def keys(self) -> list[str]:
        return sorted(f.stem for f in self.storage_dir.glob("*.json") if not f.name.startswith(".tmp-"))


class MemoryStorage(KeyValueStorage):
    """
    In-memory storage.

    Used by tests and dry runs. Setting `fail_writes` makes every write
    raise StorageError, simulating a full or unavailable disk.
    """

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})
        self.fail_writes = False

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        if self.fail_writes:
            raise StorageError(f"Storage quota exceeded writing {key}")
        self._data[key] = value

    def delete(self, key: str) -> None:
        if self.fail_writes:
            raise StorageError(f"Storage unavailable deleting {key}")
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._data)


def get_default_storage_dir() -> Path:
    """Get the default storage directory respecting XDG."""
    xdg_data = os.environ.get('XDG_DATA_HOME', os.path.expanduser('~/.local/share'))
    return Path(xdg_data) / 'daybook' / 'storage'


def create_storage_backend(storage_dir: Optional[Path] = None) -> KeyValueStorage:
    """Factory function to create a storage backend."""
    if storage_dir is None:
        storage_dir = get_default_storage_dir()

    return JsonFileStorage(storage_dir)
