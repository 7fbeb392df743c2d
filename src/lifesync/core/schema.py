"""
Shape validation and coercion for untrusted state documents.

Documents come from the durable slot or from a backup file and may be
partial, from an older version, or hand-edited. Everything here is a pure
transformation from parsed JSON into model objects: collections of the
wrong type become empty lists, records that are not objects are dropped,
missing or malformed fields get defaults, and every repair is recorded in
a RepairReport instead of being raised.
"""

import math
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date, datetime

from .errors import ShapeError
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

DEFAULT_CATEGORY = "General"

COLLECTIONS = ("tasks", "transactions", "notes")

TASK_FIELDS = frozenset(
    {
        "id",
        "title",
        "description",
        "date",
        "recurrence",
        "priority",
        "completed",
        "lastCompletedDate",
        "createdAt",
    }
)
TRANSACTION_FIELDS = frozenset({"id", "type", "value", "category", "date", "note", "createdAt"})
NOTE_FIELDS = frozenset({"id", "title", "content", "isPinned", "updatedAt"})


@dataclass
class RepairReport:
    """Everything that had to be fixed while reading a document."""

    problems: list[ShapeError] = field(default_factory=list)

    def note(self, message: str) -> None:
        self.problems.append(ShapeError(message))

    @property
    def repaired(self) -> bool:
        return bool(self.problems)

    def messages(self) -> list[str]:
        return [str(p) for p in self.problems]


def parse_date(value) -> date | None:
    """Parse YYYY-MM-DD (a trailing time part is ignored). None if unusable."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value:
        return None
    try:
        return date.fromisoformat(value.split("T")[0][:10])
    except ValueError:
        return None


def _number(value) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return None
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def _timestamp(value) -> int:
    number = _number(value)
    return int(number) if number is not None else 0


class _Repairer:
    """Per-document coercion context: id source, fallbacks and the report."""

    def __init__(
        self,
        new_id: Callable[[], str],
        fallback_day: date,
        default_category: str,
    ):
        self.new_id = new_id
        self.fallback_day = fallback_day
        self.default_category = default_category
        self.report = RepairReport()

    # ---- field helpers ----

    def text(self, record: dict, key: str, where: str, default: str = "") -> str:
        value = record.get(key)
        if value is None:
            return default
        if isinstance(value, str):
            return value
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        self.report.note(f"{where}: field {key!r} has type {type(value).__name__}; reset")
        return default

    def flag(self, record: dict, key: str, where: str) -> bool:
        value = record.get(key)
        if value is None:
            return False
        if isinstance(value, bool):
            return value
        self.report.note(f"{where}: field {key!r} is not a boolean; reset to false")
        return False

    def day(self, record: dict, key: str, where: str, created_key: str) -> date:
        parsed = parse_date(record.get(key))
        if parsed is not None:
            return parsed
        self.report.note(f"{where}: field {key!r} is missing or not a date")
        created = _timestamp(record.get(created_key))
        if created > 0:
            try:
                return datetime.fromtimestamp(created / 1000).date()
            except (OverflowError, OSError, ValueError):
                pass
        return self.fallback_day

    def identity(self, record: dict, where: str, seen: set[str]) -> str:
        value = record.get("id")
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            value = str(value)
        if not isinstance(value, str) or not value:
            value = self.new_id()
            self.report.note(f"{where}: missing id; assigned {value}")
        elif value in seen:
            old, value = value, self.new_id()
            self.report.note(f"{where}: duplicate id {old}; assigned {value}")
        seen.add(value)
        return value

    # ---- records ----

    def recurrence(self, raw, where: str) -> Recurrence:
        if raw is None:
            return Recurrence.once()
        if not isinstance(raw, dict):
            self.report.note(f"{where}: recurrence is not an object; treated as once")
            return Recurrence.once()
        kind = raw.get("type", RecurrenceType.ONCE.value)
        if kind == RecurrenceType.WEEKLY.value:
            days = raw.get("days")
            if not isinstance(days, list):
                if days is not None:
                    self.report.note(f"{where}: recurrence days is not a list")
                days = []
            valid = [
                d for d in days if isinstance(d, int) and not isinstance(d, bool) and 0 <= d <= 6
            ]
            if len(valid) != len(days):
                self.report.note(f"{where}: dropped invalid weekday indices")
            return Recurrence.weekly(valid)
        if kind != RecurrenceType.ONCE.value:
            self.report.note(f"{where}: unknown recurrence type {kind!r}; treated as once")
        return Recurrence.once()

    def task(self, record: dict, index: int, seen: set[str]) -> Task:
        where = f"tasks[{index}]"
        task_id = self.identity(record, where, seen)
        recurrence = self.recurrence(record.get("recurrence"), where)

        raw_priority = record.get("priority")
        try:
            priority = Priority(raw_priority)
        except ValueError:
            if raw_priority is not None:
                self.report.note(f"{where}: unknown priority {raw_priority!r}; using medium")
            priority = Priority.MEDIUM

        done = self.flag(record, "completed", where)
        last = parse_date(record.get("lastCompletedDate"))
        if recurrence.is_weekly:
            if done:
                self.report.note(f"task {task_id}: weekly task stored as completed; cleared")
            completion = RecurringCompletion(last)
        else:
            completion = OnceCompletion(done, last)

        return Task(
            id=task_id,
            title=self.text(record, "title", where),
            date=self.day(record, "date", where, "createdAt"),
            priority=priority,
            recurrence=recurrence,
            description=self.text(record, "description", where),
            completion=completion,
            created_at=_timestamp(record.get("createdAt")),
            extra={k: v for k, v in record.items() if k not in TASK_FIELDS},
        )

    def transaction(self, record: dict, index: int, seen: set[str]) -> Transaction:
        where = f"transactions[{index}]"
        raw_type = record.get("type")
        try:
            kind = TransactionType(raw_type)
        except ValueError:
            self.report.note(f"{where}: unknown type {raw_type!r}; using expense")
            kind = TransactionType.EXPENSE

        value = _number(record.get("value"))
        if value is None:
            self.report.note(f"{where}: value is missing or not a number; using 0")
            value = 0.0
        elif value < 0:
            self.report.note(f"{where}: negative value; stored as its magnitude")
            value = -value

        category = self.text(record, "category", where).strip() or self.default_category

        return Transaction(
            id=self.identity(record, where, seen),
            type=kind,
            value=value,
            category=category,
            date=self.day(record, "date", where, "createdAt"),
            note=self.text(record, "note", where),
            created_at=_timestamp(record.get("createdAt")),
            extra={k: v for k, v in record.items() if k not in TRANSACTION_FIELDS},
        )

    def note(self, record: dict, index: int, seen: set[str]) -> Note:
        where = f"notes[{index}]"
        return Note(
            id=self.identity(record, where, seen),
            title=self.text(record, "title", where),
            content=self.text(record, "content", where),
            is_pinned=self.flag(record, "isPinned", where),
            updated_at=_timestamp(record.get("updatedAt")),
            extra={k: v for k, v in record.items() if k not in NOTE_FIELDS},
        )

    # ---- collections ----

    def records(self, document: dict, name: str) -> list[dict]:
        raw = document.get(name)
        if raw is None:
            self.report.note(f"{name}: missing; using empty list")
            return []
        if not isinstance(raw, list):
            self.report.note(f"{name}: expected a list, got {type(raw).__name__}; using empty list")
            return []
        records = []
        for index, item in enumerate(raw):
            if isinstance(item, dict):
                records.append(item)
            else:
                self.report.note(f"{name}[{index}]: not an object; dropped")
        return records

    def state(self, document) -> AppState:
        if not isinstance(document, dict):
            self.report.note(
                f"document: expected an object, got {type(document).__name__}; using empty state"
            )
            return AppState()

        builders = {"tasks": self.task, "transactions": self.transaction, "notes": self.note}
        collections = {}
        for name in COLLECTIONS:
            seen: set[str] = set()
            build = builders[name]
            collections[name] = [
                build(record, index, seen) for index, record in enumerate(self.records(document, name))
            ]
        extra = {k: v for k, v in document.items() if k not in COLLECTIONS}
        return AppState(**collections, extra=extra)


def repair_state(
    document,
    *,
    new_id: Callable[[], str],
    fallback_day: date | None = None,
    default_category: str = DEFAULT_CATEGORY,
) -> tuple[AppState, RepairReport]:
    """
    Coerce a parsed JSON document into an AppState.

    Never raises for shape problems. Returns the repaired state and a
    report of everything that was changed. Pure function - no I/O; new ids
    for records that lack one come from `new_id`.
    """
    repairer = _Repairer(new_id, fallback_day or date.today(), default_category)
    state = repairer.state(document)
    return state, repairer.report
