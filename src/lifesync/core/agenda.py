"""Pure task agenda logic - which tasks show up on a day or in a week."""

from datetime import date, timedelta

from .models import Task
from .recurrence import is_completed_on, is_scheduled_on, priority_rank


def order_for_display(tasks: list[Task], reference_date: date) -> list[Task]:
    """
    Open tasks first, then done ones; high priority first within each group.

    Pure function - no I/O.
    """
    return sorted(
        tasks,
        key=lambda t: (is_completed_on(t, reference_date), priority_rank(t.priority)),
    )


def tasks_for_day(tasks: list[Task], day: date) -> list[Task]:
    """Tasks scheduled on `day`, ordered for display."""
    return order_for_display([t for t in tasks if is_scheduled_on(t, day)], day)


def tasks_for_week(tasks: list[Task], start: date, days: int = 7) -> list[Task]:
    """Tasks scheduled on any of the `days` days starting at `start`."""
    window = [start + timedelta(days=i) for i in range(days)]
    matching = [t for t in tasks if any(is_scheduled_on(t, d) for d in window)]
    return order_for_display(matching, start)


def pending_today(tasks: list[Task], today: date) -> list[Task]:
    """Tasks still to do today, highest priority first."""
    return [t for t in tasks_for_day(tasks, today) if not is_completed_on(t, today)]


def completed_today_count(tasks: list[Task], today: date) -> int:
    return sum(1 for t in tasks if is_scheduled_on(t, today) and is_completed_on(t, today))


def day_progress(tasks: list[Task], today: date) -> int:
    """Percentage (0-100) of today's scheduled tasks that are done."""
    scheduled = [t for t in tasks if is_scheduled_on(t, today)]
    if not scheduled:
        return 0
    done = sum(1 for t in scheduled if is_completed_on(t, today))
    return round(done * 100 / len(scheduled))
