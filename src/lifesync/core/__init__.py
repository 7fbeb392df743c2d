"""Functional core - state model, scheduling rules and shape repair."""

from .models import (
    AppState,
    Note,
    OnceCompletion,
    Priority,
    Recurrence,
    RecurrenceType,
    RecurringCompletion,
    Task,
    Transaction,
    TransactionType,
)
from .recurrence import is_scheduled_on, is_completed_on, sort_by_priority, weekday_index
from .schema import RepairReport, repair_state
from .codec import export_snapshot, import_snapshot
from .store import EntityStore
from .errors import (
    LifeSyncError,
    ParseError,
    InvalidFormat,
    ShapeError,
    StorageWriteError,
    NotFound,
)

__all__ = [
    # Model
    "AppState",
    "Note",
    "OnceCompletion",
    "Priority",
    "Recurrence",
    "RecurrenceType",
    "RecurringCompletion",
    "Task",
    "Transaction",
    "TransactionType",
    # Recurrence
    "is_scheduled_on",
    "is_completed_on",
    "sort_by_priority",
    "weekday_index",
    # Shape repair and codec
    "RepairReport",
    "repair_state",
    "export_snapshot",
    "import_snapshot",
    # Store
    "EntityStore",
    # Errors
    "LifeSyncError",
    "ParseError",
    "InvalidFormat",
    "ShapeError",
    "StorageWriteError",
    "NotFound",
]
