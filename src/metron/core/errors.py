"""Error types raised by the Metron core."""

from typing import Optional


class MetronError(Exception):
    """Base class for all Metron errors."""

    default_message = "Metron error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.default_message)


class CategoryNotFound(MetronError):
    default_message = "Category not found"


class TagNotFound(MetronError):
    default_message = "Tag not found"


class SessionNotFound(MetronError):
    default_message = "Session not found"


class AmbiguousSessionId(MetronError):
    default_message = "Session id prefix matches more than one session"


class QuotaExceeded(MetronError):
    default_message = "Weekly quota would be exceeded"


class InvalidDuration(MetronError):
    default_message = "Duration must be a positive multiple of 15 minutes"


class TagLimitExceeded(MetronError):
    default_message = "Maximum of 7 tags allowed"


class DuplicateName(MetronError):
    default_message = "Name already exists"


class StorageError(MetronError):
    """Wraps read, write and parse failures of the data file."""

    default_message = "Storage error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(f"Storage error: {message}" if message else None)


class InvalidQuota(MetronError):
    default_message = "Weekly quota must be a non-negative number of hours"
