"""
Exception types for Daybook.

Not-found conditions are never exceptions: stores return None / False.
"""

from typing import Optional


class DaybookError(Exception):
    """Base class for all Daybook errors."""


class StorageError(DaybookError):
    """The key-value substrate could not write a value."""


class PersistenceError(DaybookError):
    """A store mutation did not durably land."""

    def __init__(self, key: str, reason: str, cause: Optional[BaseException] = None):
        super().__init__(f"Failed to persist '{key}': {reason}")
        self.key = key
        self.reason = reason
        self.cause = cause


class ValidationError(DaybookError):
    """Form-level validation failed (empty title, inverted range, ...)."""

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field
        self.message = message


class ImportDocumentError(DaybookError):
    """An import document could not be parsed into the expected shape."""
