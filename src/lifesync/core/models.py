"""Entity types for tasks, transactions and notes."""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum


class Priority(Enum):
    """Task priority."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class RecurrenceType(Enum):
    """How a task repeats."""

    ONCE = "once"
    WEEKLY = "weekly"


class TransactionType(Enum):
    """Direction of a ledger entry."""

    INCOME = "income"
    EXPENSE = "expense"


@dataclass(frozen=True)
class Recurrence:
    """
    Task schedule.

    Weekday indices are Sunday-based: 0 = Sunday, 1 = Monday, ... 6 = Saturday.
    """

    type: RecurrenceType = RecurrenceType.ONCE
    days: tuple[int, ...] = ()

    @classmethod
    def once(cls) -> "Recurrence":
        return cls()

    @classmethod
    def weekly(cls, days) -> "Recurrence":
        return cls(RecurrenceType.WEEKLY, tuple(sorted(set(days))))

    @property
    def is_weekly(self) -> bool:
        return self.type == RecurrenceType.WEEKLY

    def to_dict(self) -> dict:
        if self.is_weekly:
            return {"type": self.type.value, "days": list(self.days)}
        return {"type": self.type.value}


@dataclass(frozen=True)
class OnceCompletion:
    """Completion of a one-off task: a done flag plus the day it was last done."""

    done: bool = False
    last_completed: date | None = None


@dataclass(frozen=True)
class RecurringCompletion:
    """Completion of a weekly task: only the last day it was done."""

    last_completed: date | None = None


CompletionState = OnceCompletion | RecurringCompletion


def align_completion(recurrence: Recurrence, completion: CompletionState) -> CompletionState:
    """Return a completion variant that matches the recurrence kind."""
    if recurrence.is_weekly:
        if isinstance(completion, RecurringCompletion):
            return completion
        return RecurringCompletion(completion.last_completed)
    if isinstance(completion, OnceCompletion):
        return completion
    return OnceCompletion(False, completion.last_completed)


@dataclass(frozen=True)
class Task:
    """A to-do item, either one-off or repeating weekly."""

    id: str
    title: str
    date: date
    priority: Priority = Priority.MEDIUM
    recurrence: Recurrence = field(default_factory=Recurrence)
    description: str = ""
    completion: CompletionState = field(default_factory=OnceCompletion)
    created_at: int = 0
    extra: dict = field(default_factory=dict)

    def __post_init__(self):
        aligned = align_completion(self.recurrence, self.completion)
        if aligned is not self.completion:
            object.__setattr__(self, "completion", aligned)

    @property
    def is_recurring(self) -> bool:
        return self.recurrence.is_weekly

    @property
    def completed(self) -> bool:
        """Stored done flag. Always False for weekly tasks."""
        return isinstance(self.completion, OnceCompletion) and self.completion.done

    @property
    def last_completed_date(self) -> date | None:
        return self.completion.last_completed

    def to_dict(self) -> dict:
        last = self.last_completed_date
        return {
            **self.extra,
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "date": self.date.isoformat(),
            "recurrence": self.recurrence.to_dict(),
            "priority": self.priority.value,
            "completed": self.completed,
            "lastCompletedDate": last.isoformat() if last else "",
            "createdAt": self.created_at,
        }


@dataclass(frozen=True)
class Transaction:
    """A single income or expense entry."""

    id: str
    type: TransactionType
    value: float
    category: str
    date: date
    note: str = ""
    created_at: int = 0
    extra: dict = field(default_factory=dict)

    @property
    def signed_value(self) -> float:
        """Positive for income, negative for expenses."""
        return self.value if self.type == TransactionType.INCOME else -self.value

    def to_dict(self) -> dict:
        return {
            **self.extra,
            "id": self.id,
            "type": self.type.value,
            "value": self.value,
            "category": self.category,
            "date": self.date.isoformat(),
            "note": self.note,
            "createdAt": self.created_at,
        }


@dataclass(frozen=True)
class Note:
    """A free-form note."""

    id: str
    title: str
    content: str
    is_pinned: bool = False
    updated_at: int = 0
    extra: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            **self.extra,
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "isPinned": self.is_pinned,
            "updatedAt": self.updated_at,
        }


@dataclass
class AppState:
    """The whole application state: three ordered collections."""

    tasks: list[Task] = field(default_factory=list)
    transactions: list[Transaction] = field(default_factory=list)
    notes: list[Note] = field(default_factory=list)
    extra: dict = field(default_factory=dict)

    def copy(self) -> "AppState":
        """Shallow copy. Entities are immutable, so sharing them is safe."""
        return AppState(
            list(self.tasks), list(self.transactions), list(self.notes), dict(self.extra)
        )

    def to_dict(self) -> dict:
        return {
            **self.extra,
            "tasks": [t.to_dict() for t in self.tasks],
            "transactions": [t.to_dict() for t in self.transactions],
            "notes": [n.to_dict() for n in self.notes],
        }
