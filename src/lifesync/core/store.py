"""The entity store - single owner of the application state."""

import logging
import time
from collections.abc import Callable
from dataclasses import replace
from datetime import date

from .codec import export_snapshot, import_snapshot
from .errors import InvalidFormat
from .models import (
    AppState,
    Note,
    OnceCompletion,
    Priority,
    Recurrence,
    RecurringCompletion,
    Task,
    Transaction,
    TransactionType,
)
from .schema import DEFAULT_CATEGORY, parse_date

logger = logging.getLogger(__name__)

TASK_UPDATABLE = frozenset({"title", "description", "date", "priority", "recurrence"})
NOTE_UPDATABLE = frozenset({"title", "content", "is_pinned"})
COMPLETION_FIELDS = frozenset({"completed", "completion", "last_completed_date", "lastCompletedDate"})


def now_ms() -> int:
    """Current time in epoch milliseconds."""
    return int(time.time() * 1000)


def _check_fields(fields: dict, allowed: frozenset, kind: str) -> None:
    blocked = COMPLETION_FIELDS.intersection(fields)
    if blocked:
        raise ValueError(
            f"Completion state can only change via toggle_task_completion ({', '.join(sorted(blocked))})"
        )
    unknown = set(fields) - allowed
    if unknown:
        raise TypeError(f"Unknown {kind} field(s): {', '.join(sorted(unknown))}")


def _coerce_task_fields(fields: dict) -> dict:
    """Validate task updates before they touch the state. Raises TypeError/ValueError."""
    coerced = dict(fields)
    for key in ("title", "description"):
        if key in coerced and not isinstance(coerced[key], str):
            raise TypeError(f"{key} must be a string")
    if "priority" in coerced:
        coerced["priority"] = Priority(coerced["priority"])
    if "date" in coerced:
        day = parse_date(coerced["date"])
        if day is None:
            raise ValueError(f"Invalid date: {coerced['date']!r}")
        coerced["date"] = day
    if "recurrence" in coerced and not isinstance(coerced["recurrence"], Recurrence):
        raise TypeError("recurrence must be a Recurrence")
    return coerced


def _check_note_fields(fields: dict) -> None:
    for key in ("title", "content"):
        if key in fields and not isinstance(fields[key], str):
            raise TypeError(f"{key} must be a string")
    if "is_pinned" in fields and not isinstance(fields["is_pinned"], bool):
        raise TypeError("is_pinned must be a boolean")


class EntityStore:
    """
    In-memory owner of tasks, transactions and notes.

    Every mutation that changes the state hands a snapshot to `on_change`
    before returning, so a caller never sees a state that has not been
    offered for persistence. Unknown ids are reported by returning None or
    False rather than raising.
    """

    def __init__(
        self,
        state: AppState | None = None,
        *,
        new_id: Callable[[], str],
        clock: Callable[[], int] = now_ms,
        on_change: Callable[[AppState], object] | None = None,
        default_category: str = DEFAULT_CATEGORY,
    ):
        self._state = state if state is not None else AppState()
        self._new_id = new_id
        self._clock = clock
        self._on_change = on_change
        self.default_category = default_category

    # ---- read-only accessors ----

    @property
    def tasks(self) -> tuple[Task, ...]:
        return tuple(self._state.tasks)

    @property
    def transactions(self) -> tuple[Transaction, ...]:
        return tuple(self._state.transactions)

    @property
    def notes(self) -> tuple[Note, ...]:
        return tuple(self._state.notes)

    def snapshot(self) -> AppState:
        """A copy of the current state. Mutating it does not affect the store."""
        return self._state.copy()

    def get_task(self, task_id: str) -> Task | None:
        return next((t for t in self._state.tasks if t.id == task_id), None)

    def get_transaction(self, transaction_id: str) -> Transaction | None:
        return next((t for t in self._state.transactions if t.id == transaction_id), None)

    def get_note(self, note_id: str) -> Note | None:
        return next((n for n in self._state.notes if n.id == note_id), None)

    # ---- internals ----

    def _commit(self) -> None:
        if self._on_change is not None:
            self._on_change(self._state.copy())

    @staticmethod
    def _index(items: list, entity_id: str) -> int | None:
        for i, item in enumerate(items):
            if item.id == entity_id:
                return i
        return None

    def _delete(self, items: list, entity_id: str) -> bool:
        i = self._index(items, entity_id)
        if i is None:
            return False
        del items[i]
        self._commit()
        return True

    # ---- tasks ----

    def add_task(
        self,
        title: str,
        date: date,
        *,
        description: str = "",
        priority: Priority = Priority.MEDIUM,
        recurrence: Recurrence | None = None,
    ) -> Task:
        """Create a task that is not yet completed and append it."""
        if not isinstance(title, str):
            raise TypeError("title must be a string")
        task = Task(
            id=self._new_id(),
            title=title,
            date=date,
            priority=priority,
            recurrence=recurrence or Recurrence.once(),
            description=description,
            completion=OnceCompletion(),
            created_at=self._clock(),
        )
        self._state.tasks.append(task)
        self._commit()
        logger.debug("Task added id=%s recurring=%s", task.id, task.is_recurring)
        return task

    def update_task(self, task_id: str, **fields) -> Task | None:
        """
        Merge fields into a task. Returns None if the id is unknown.

        Switching between once and weekly keeps the last completion date;
        a task that becomes one-off starts out not done.
        """
        _check_fields(fields, TASK_UPDATABLE, "task")
        fields = _coerce_task_fields(fields)
        i = self._index(self._state.tasks, task_id)
        if i is None:
            return None
        task = replace(self._state.tasks[i], **fields)
        self._state.tasks[i] = task
        self._commit()
        return task

    def delete_task(self, task_id: str) -> bool:
        return self._delete(self._state.tasks, task_id)

    def toggle_task_completion(self, task_id: str, today: date) -> Task | None:
        """
        Flip a task's completion for `today`.

        Weekly: mark done today, or undo if already done today.
        Once: flip the flag; marking done stamps today as the last completion,
        undoing keeps the previous stamp.
        """
        i = self._index(self._state.tasks, task_id)
        if i is None:
            return None
        task = self._state.tasks[i]
        completion = task.completion
        if isinstance(completion, RecurringCompletion):
            last = None if completion.last_completed == today else today
            completion = RecurringCompletion(last)
        elif completion.done:
            completion = OnceCompletion(False, completion.last_completed)
        else:
            completion = OnceCompletion(True, today)
        task = replace(task, completion=completion)
        self._state.tasks[i] = task
        self._commit()
        return task

    # ---- transactions ----

    def add_transaction(
        self,
        type: TransactionType,
        value: float,
        date: date,
        *,
        category: str | None = None,
        note: str = "",
    ) -> Transaction:
        """Record a transaction and append it. Blank categories use the default bucket."""
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise TypeError("value must be a number")
        if value < 0:
            raise ValueError("value must not be negative")
        tx = Transaction(
            id=self._new_id(),
            type=type,
            value=float(value),
            category=(category or "").strip() or self.default_category,
            date=date,
            note=note,
            created_at=self._clock(),
        )
        self._state.transactions.append(tx)
        self._commit()
        return tx

    def delete_transaction(self, transaction_id: str) -> bool:
        return self._delete(self._state.transactions, transaction_id)

    # ---- notes ----

    def add_note(self, title: str, content: str = "", *, is_pinned: bool = False) -> Note:
        """Create a note and put it first."""
        note = Note(
            id=self._new_id(),
            title=title,
            content=content,
            is_pinned=is_pinned,
            updated_at=self._clock(),
        )
        self._state.notes.insert(0, note)
        self._commit()
        return note

    def update_note(self, note_id: str, **fields) -> Note | None:
        """Merge fields into a note. `updated_at` is refreshed even for an empty update."""
        _check_fields(fields, NOTE_UPDATABLE, "note")
        _check_note_fields(fields)
        i = self._index(self._state.notes, note_id)
        if i is None:
            return None
        note = replace(self._state.notes[i], **fields, updated_at=self._clock())
        self._state.notes[i] = note
        self._commit()
        return note

    def delete_note(self, note_id: str) -> bool:
        return self._delete(self._state.notes, note_id)

    # ---- whole state ----

    def reset_all(self) -> None:
        """Remove every entity. Irreversible; confirming is up to the caller."""
        self._state = AppState(extra=dict(self._state.extra))
        self._commit()
        logger.info("All data cleared")

    def replace_state(self, state: AppState) -> None:
        self._state = state.copy()
        self._commit()

    def export_snapshot(self) -> str:
        return export_snapshot(self._state)

    def import_snapshot(self, text: str) -> bool:
        """
        Replace the whole state with a backup document.

        Returns False and leaves the state untouched if the text is not a
        JSON object.
        """
        try:
            state, report = import_snapshot(
                text,
                new_id=self._new_id,
                default_category=self.default_category,
            )
        except InvalidFormat as e:
            logger.warning("Import rejected: %s", e)
            return False
        for message in report.messages():
            logger.warning("Import repaired %s", message)
        self._state = state
        self._commit()
        logger.info(
            "Imported %d tasks, %d transactions, %d notes",
            len(state.tasks),
            len(state.transactions),
            len(state.notes),
        )
        return True
