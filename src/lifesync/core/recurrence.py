"""Pure scheduling logic - decides when a task applies and when it is done."""

from datetime import date, datetime

from .models import Priority, Task

PRIORITY_ORDER = {Priority.HIGH: 0, Priority.MEDIUM: 1, Priority.LOW: 2}


def as_day(value: date | datetime) -> date:
    """Normalize a date or datetime to its calendar day."""
    if isinstance(value, datetime):
        return value.date()
    return value


def weekday_index(day: date | datetime) -> int:
    """Sunday-based weekday index (0 = Sunday ... 6 = Saturday)."""
    return as_day(day).isoweekday() % 7


def is_scheduled_on(task: Task, reference_date: date | datetime) -> bool:
    """
    Whether the task applies to the given day.

    One-off tasks apply on their date only. Weekly tasks apply on every
    matching weekday from their anchor date onward, anchor day included.
    """
    day = as_day(reference_date)
    if not task.recurrence.is_weekly:
        return day == task.date
    if day < task.date:
        return False
    return weekday_index(day) in task.recurrence.days


def is_completed_on(task: Task, reference_date: date | datetime) -> bool:
    """
    Whether the task counts as done on the given day.

    One-off tasks use their stored flag regardless of the day. Weekly tasks
    are done only on the day they were last marked done.
    """
    if not task.recurrence.is_weekly:
        return task.completed
    return task.last_completed_date == as_day(reference_date)


def priority_rank(priority: Priority) -> int:
    """Sort rank of a priority: high sorts first."""
    return PRIORITY_ORDER[priority]


def sort_by_priority(tasks: list[Task]) -> list[Task]:
    """
    Sort tasks high -> medium -> low, keeping insertion order within a level.

    Pure function - no I/O.
    """
    return sorted(tasks, key=lambda t: priority_rank(t.priority))
