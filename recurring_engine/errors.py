"""
Exceptions raised by the recurring expense engine.

Storage failures keep the SQLAlchemy exception as ``cause`` so callers can
inspect the driver error, and carry a ``user_message`` the UI layer can show
as-is.
"""

from typing import Optional

from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError, SQLAlchemyError


class RecurringEngineError(Exception):
    """Base class for engine errors."""


class RecurrenceValidationError(RecurringEngineError, ValueError):
    """A recurring expense definition is malformed."""


class RecurringExpenseNotFoundError(RecurringEngineError, LookupError):
    """No recurring expense exists with the given id."""

    def __init__(self, recurring_expense_id: str):
        super().__init__(f"Recurring expense {recurring_expense_id} not found")
        self.recurring_expense_id = recurring_expense_id


class GenerationInProgressError(RecurringEngineError):
    """Another generation run is already in flight."""


class StorageError(RecurringEngineError):
    """A store read or write failed."""

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        code: Optional[int] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message)
        self.operation = operation
        self.code = code
        self.cause = cause

    @property
    def user_message(self) -> str:
        return str(self)


class DatabaseLockError(StorageError):
    """The database is busy or locked by another connection."""


class DatabaseConstraintError(StorageError):
    """A write violated a database constraint."""


# SQLite result codes, primary and extended
SQLITE_NOMEM = 7
SQLITE_CORRUPT = 11
SQLITE_FULL = 13
SQLITE_CONSTRAINT = 19
SQLITE_CONSTRAINT_UNIQUE = 2067
SQLITE_BUSY = 5
SQLITE_LOCKED = 6
SQLITE_BUSY_RECOVERY = 261

_MESSAGES = {
    SQLITE_BUSY: "Database is busy. Please wait a moment and try again.",
    SQLITE_LOCKED: "Database is busy. Please wait a moment and try again.",
    SQLITE_BUSY_RECOVERY: "Database is busy. Please wait a moment and try again.",
    SQLITE_CONSTRAINT: "This operation would create duplicate data. Please check your input.",
    SQLITE_CONSTRAINT_UNIQUE: "An entry with this information already exists.",
    SQLITE_FULL: "Device storage is full. Please free up space and try again.",
    SQLITE_CORRUPT: "Database error detected. Please contact support.",
    SQLITE_NOMEM: "Not enough memory available. Please close other apps and try again.",
}

_GENERIC_MESSAGE = "An unexpected error occurred. Please try again."


def _sqlite_code(exc: SQLAlchemyError) -> Optional[int]:
    """Best-effort extraction of the SQLite result code from a DBAPI error."""
    if not isinstance(exc, DBAPIError) or exc.orig is None:
        return None
    code = getattr(exc.orig, "sqlite_errorcode", None)
    if code is not None:
        return code

    # Older sqlite3 modules only expose the message
    text = str(exc.orig).lower()
    if "locked" in text or "busy" in text:
        return SQLITE_BUSY
    if "unique constraint" in text:
        return SQLITE_CONSTRAINT_UNIQUE
    if "constraint" in text:
        return SQLITE_CONSTRAINT
    if "disk is full" in text or "database or disk is full" in text:
        return SQLITE_FULL
    if "malformed" in text:
        return SQLITE_CORRUPT
    return None


def map_storage_error(exc: SQLAlchemyError, operation: str) -> StorageError:
    """
    Wrap a SQLAlchemy exception in the matching StorageError subclass.
    """
    code = _sqlite_code(exc)
    if code is None and isinstance(exc, IntegrityError):
        code = SQLITE_CONSTRAINT
    message = _MESSAGES.get(code, _GENERIC_MESSAGE)

    if isinstance(exc, IntegrityError) or code in (SQLITE_CONSTRAINT, SQLITE_CONSTRAINT_UNIQUE):
        return DatabaseConstraintError(message, operation=operation, code=code, cause=exc)
    if isinstance(exc, OperationalError) and code in (SQLITE_BUSY, SQLITE_LOCKED, SQLITE_BUSY_RECOVERY):
        return DatabaseLockError(message, operation=operation, code=code, cause=exc)
    return StorageError(message, operation=operation, code=code, cause=exc)
