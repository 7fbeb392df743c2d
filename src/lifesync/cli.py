"""LifeSync CLI - tasks, money and notes from the terminal."""

import json
import logging
import sys
from datetime import date
from pathlib import Path

import click

from .config import load_config
from .core import agenda, ledger, notebook
from .core.errors import NotFound
from .core.models import Priority, Recurrence, TransactionType
from .core.recurrence import is_completed_on
from .workflows import Session, backup_filename, export_to_file, import_from_file, open_session

DAY_NAMES = ["sun", "mon", "tue", "wed", "thu", "fri", "sat"]
PRIORITY_MARKERS = {Priority.HIGH: "!!!", Priority.MEDIUM: "!! ", Priority.LOW: "!  "}


def _session() -> Session:
    return open_session(load_config())


def _fail(message: str) -> None:
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


def _warn_if_unsaved(session: Session) -> None:
    if session.save_failed:
        click.echo(f"Warning: {session.gateway.last_error} (change kept for this run only)", err=True)


def _parse_date(ctx, param, value: str | None) -> date | None:
    if value is None:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise click.BadParameter("expected YYYY-MM-DD")


def parse_weekdays(value: str) -> list[int]:
    """Parse "mon,wed" or "1,3" into Sunday-based weekday indices."""
    days = []
    for part in value.split(","):
        part = part.strip().lower()
        if not part:
            continue
        if part.isdigit() and 0 <= int(part) <= 6:
            days.append(int(part))
        elif part[:3] in DAY_NAMES:
            days.append(DAY_NAMES.index(part[:3]))
        else:
            raise click.BadParameter(f"unknown weekday {part!r}")
    return sorted(set(days))


def _weekdays_option(ctx, param, value: str | None) -> list[int] | None:
    return parse_weekdays(value) if value is not None else None


def _resolve(items, prefix: str, kind: str):
    """Find one entity by full id or unique id prefix."""
    exact = [item for item in items if item.id == prefix]
    if exact:
        return exact[0]
    matches = [item for item in items if item.id.startswith(prefix)]
    if len(matches) == 1:
        return matches[0]
    if not matches:
        raise NotFound(f"No {kind} with id {prefix!r}")
    raise NotFound(f"Id {prefix!r} matches {len(matches)} {kind}s; use more characters")


def _short(entity_id: str) -> str:
    return entity_id[:8]


def _format_task(task, as_of: date) -> str:
    done = "x" if is_completed_on(task, as_of) else " "
    marker = PRIORITY_MARKERS[task.priority]
    if task.is_recurring:
        days = ",".join(DAY_NAMES[d] for d in task.recurrence.days) or "never"
        when = f"weekly {days} from {task.date}"
    else:
        when = task.date.isoformat()
    return f"[{done}] {_short(task.id)} [{marker}] {task.title} ({when})"


@click.group()
@click.version_option()
@click.option("--debug", is_flag=True, help="Enable debug logging")
def main(debug: bool):
    """LifeSync - tasks, finances and notes, stored locally."""
    if debug:
        logging.basicConfig(
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            level=logging.DEBUG,
        )


@main.command()
@click.option("--date", "-d", "target_date", default=None, callback=_parse_date,
              help="Day to show (YYYY-MM-DD), defaults to today")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def today(target_date: date | None, as_json: bool):
    """Overview: today's tasks, progress and balance."""
    target = target_date or date.today()
    store = _session().store
    pending = agenda.pending_today(list(store.tasks), target)
    done = agenda.completed_today_count(list(store.tasks), target)
    progress = agenda.day_progress(list(store.tasks), target)
    summary = ledger.summarize(list(store.transactions))

    if as_json:
        click.echo(
            json.dumps(
                {
                    "date": target.isoformat(),
                    "pending": [t.to_dict() for t in pending],
                    "completed": done,
                    "progress": progress,
                    "income": summary.income,
                    "expense": summary.expense,
                    "balance": summary.balance,
                },
                indent=2,
            )
        )
        return

    click.echo(f"Overview for {target.strftime('%A, %b %d')}\n")
    if pending:
        click.echo("Pending:")
        for task in pending[:5]:
            click.echo(f"  {_format_task(task, target)}")
    else:
        click.echo("Nothing pending today.")
    click.echo(f"\nDone today: {done} ({progress}%)")
    click.echo(f"Balance: {summary.balance:.2f} (in {summary.income:.2f} / out {summary.expense:.2f})")


# ============== Tasks ==============


@main.group()
def task():
    """Manage tasks."""
    pass


@task.command("add")
@click.argument("title")
@click.option("--date", "-d", "task_date", default=None, callback=_parse_date,
              help="Date or start date (YYYY-MM-DD), defaults to today")
@click.option("--desc", "description", default="", help="Description")
@click.option("--priority", "-p", type=click.Choice([p.value for p in Priority]), default="medium")
@click.option("--weekly", "weekly_days", default=None, callback=_weekdays_option,
              help="Repeat weekly on these days, e.g. mon,wed,fri")
def task_add(title: str, task_date: date | None, description: str, priority: str,
             weekly_days: list[int] | None):
    """Add a task."""
    if not title.strip():
        _fail("title must not be empty")
    session = _session()
    recurrence = Recurrence.weekly(weekly_days) if weekly_days is not None else Recurrence.once()
    new = session.store.add_task(
        title.strip(),
        task_date or date.today(),
        description=description,
        priority=Priority(priority),
        recurrence=recurrence,
    )
    _warn_if_unsaved(session)
    click.echo(f"✓ Added task {_short(new.id)}")


@task.command("list")
@click.option("--date", "-d", "target_date", default=None, callback=_parse_date,
              help="Reference day (YYYY-MM-DD), defaults to today")
@click.option("--week", "window", flag_value="week", help="Tasks in the next 7 days")
@click.option("--all", "window", flag_value="all", help="All tasks")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def task_list(target_date: date | None, window: str | None, as_json: bool):
    """List tasks for a day (default), the coming week or all."""
    target = target_date or date.today()
    tasks = list(_session().store.tasks)

    if window == "all":
        shown = agenda.order_for_display(tasks, target)
    elif window == "week":
        shown = agenda.tasks_for_week(tasks, target)
    else:
        shown = agenda.tasks_for_day(tasks, target)

    if as_json:
        click.echo(json.dumps([t.to_dict() for t in shown], indent=2, ensure_ascii=False))
        return

    if not shown:
        click.echo("No tasks.")
        return
    for t in shown:
        click.echo(_format_task(t, target))


@task.command("edit")
@click.argument("task_id")
@click.option("--title", default=None)
@click.option("--desc", "description", default=None)
@click.option("--date", "-d", "task_date", default=None, callback=_parse_date)
@click.option("--priority", "-p", type=click.Choice([p.value for p in Priority]), default=None)
@click.option("--weekly", "weekly_days", default=None, callback=_weekdays_option,
              help="Make the task repeat on these days")
@click.option("--once", is_flag=True, help="Make the task a one-off")
def task_edit(task_id: str, title: str | None, description: str | None, task_date: date | None,
              priority: str | None, weekly_days: list[int] | None, once: bool):
    """Change a task's details."""
    if once and weekly_days is not None:
        _fail("--once and --weekly are mutually exclusive")
    fields = {}
    if title is not None:
        fields["title"] = title
    if description is not None:
        fields["description"] = description
    if task_date is not None:
        fields["date"] = task_date
    if priority is not None:
        fields["priority"] = Priority(priority)
    if weekly_days is not None:
        fields["recurrence"] = Recurrence.weekly(weekly_days)
    elif once:
        fields["recurrence"] = Recurrence.once()

    session = _session()
    try:
        target = _resolve(session.store.tasks, task_id, "task")
    except NotFound as e:
        _fail(str(e))
    session.store.update_task(target.id, **fields)
    _warn_if_unsaved(session)
    click.echo(f"✓ Updated task {_short(target.id)}")


@task.command("done")
@click.argument("task_id")
@click.option("--date", "-d", "target_date", default=None, callback=_parse_date,
              help="Day to mark (YYYY-MM-DD), defaults to today")
def task_done(task_id: str, target_date: date | None):
    """Toggle a task's completion for a day."""
    target = target_date or date.today()
    session = _session()
    try:
        found = _resolve(session.store.tasks, task_id, "task")
    except NotFound as e:
        _fail(str(e))
    toggled = session.store.toggle_task_completion(found.id, target)
    _warn_if_unsaved(session)
    state = "done" if is_completed_on(toggled, target) else "not done"
    click.echo(f"✓ {toggled.title}: {state}")


@task.command("rm")
@click.argument("task_id")
def task_rm(task_id: str):
    """Delete a task."""
    session = _session()
    try:
        found = _resolve(session.store.tasks, task_id, "task")
    except NotFound as e:
        _fail(str(e))
    session.store.delete_task(found.id)
    _warn_if_unsaved(session)
    click.echo(f"✓ Deleted task {_short(found.id)}")


# ============== Money ==============


@main.group()
def money():
    """Manage the finance ledger."""
    pass


@money.command("add")
@click.argument("kind", type=click.Choice([t.value for t in TransactionType]))
@click.argument("value", type=click.FloatRange(min=0))
@click.option("--category", "-c", default=None, help="Category (default from config)")
@click.option("--date", "-d", "tx_date", default=None, callback=_parse_date)
@click.option("--note", "-n", default="")
def money_add(kind: str, value: float, category: str | None, tx_date: date | None, note: str):
    """Record income or an expense."""
    session = _session()
    tx = session.store.add_transaction(
        TransactionType(kind),
        value,
        tx_date or date.today(),
        category=category,
        note=note,
    )
    _warn_if_unsaved(session)
    click.echo(f"✓ Recorded {tx.type.value} {tx.value:.2f} ({tx.category}) {_short(tx.id)}")


@money.command("list")
@click.option("--limit", "-l", type=int, default=None, help="Show only the newest N entries")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def money_list(limit: int | None, as_json: bool):
    """List transactions, newest first."""
    entries = ledger.recent(list(_session().store.transactions), limit)

    if as_json:
        click.echo(json.dumps([t.to_dict() for t in entries], indent=2, ensure_ascii=False))
        return

    if not entries:
        click.echo("No transactions.")
        return
    for t in entries:
        note = f" - {t.note}" if t.note else ""
        click.echo(f"{_short(t.id)} {t.date} {t.signed_value:+10.2f} {t.category}{note}")


@money.command("rm")
@click.argument("transaction_id")
def money_rm(transaction_id: str):
    """Delete a transaction."""
    session = _session()
    try:
        found = _resolve(session.store.transactions, transaction_id, "transaction")
    except NotFound as e:
        _fail(str(e))
    session.store.delete_transaction(found.id)
    _warn_if_unsaved(session)
    click.echo(f"✓ Deleted transaction {_short(found.id)}")


@money.command("summary")
@click.option("--by-category", is_flag=True, help="Break down by category")
@click.option("--daily", is_flag=True, help="Break down by day")
def money_summary(by_category: bool, daily: bool):
    """Show income, expenses and balance."""
    transactions = list(_session().store.transactions)
    summary = ledger.summarize(transactions)
    click.echo(f"Income:  {summary.income:10.2f}")
    click.echo(f"Expense: {summary.expense:10.2f}")
    click.echo(f"Balance: {summary.balance:10.2f}")

    if by_category:
        click.echo("\nBy category:")
        for category, amount in sorted(ledger.by_category(transactions).items()):
            click.echo(f"  {category:20} {amount:+10.2f}")

    if daily:
        click.echo("\nBy day:")
        for entry in ledger.daily_totals(transactions):
            click.echo(f"  {entry.date}  +{entry.income:.2f} / -{entry.expense:.2f}")


# ============== Notes ==============


@main.group()
def note():
    """Manage notes."""
    pass


@note.command("add")
@click.argument("title")
@click.option("--content", "-c", default="", help="Note body")
@click.option("--pin", is_flag=True, help="Pin the note")
def note_add(title: str, content: str, pin: bool):
    """Add a note."""
    session = _session()
    new = session.store.add_note(title, content, is_pinned=pin)
    _warn_if_unsaved(session)
    click.echo(f"✓ Added note {_short(new.id)}")


@note.command("list")
@click.option("--search", "-s", "term", default=None, help="Filter by title or content")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def note_list(term: str | None, as_json: bool):
    """List notes, pinned first then most recently edited."""
    notes = list(_session().store.notes)
    shown = notebook.search(notes, term) if term else notebook.ordered(notes)

    if as_json:
        click.echo(json.dumps([n.to_dict() for n in shown], indent=2, ensure_ascii=False))
        return

    if not shown:
        click.echo("No notes.")
        return
    for n in shown:
        pin = "*" if n.is_pinned else " "
        click.echo(f"{pin} {_short(n.id)} {n.title}")


@note.command("edit")
@click.argument("note_id")
@click.option("--title", default=None)
@click.option("--content", "-c", default=None)
def note_edit(note_id: str, title: str | None, content: str | None):
    """Change a note's title or content."""
    fields = {}
    if title is not None:
        fields["title"] = title
    if content is not None:
        fields["content"] = content
    session = _session()
    try:
        found = _resolve(session.store.notes, note_id, "note")
    except NotFound as e:
        _fail(str(e))
    session.store.update_note(found.id, **fields)
    _warn_if_unsaved(session)
    click.echo(f"✓ Updated note {_short(found.id)}")


@note.command("pin")
@click.argument("note_id")
def note_pin(note_id: str):
    """Pin or unpin a note."""
    session = _session()
    try:
        found = _resolve(session.store.notes, note_id, "note")
    except NotFound as e:
        _fail(str(e))
    updated = session.store.update_note(found.id, is_pinned=not found.is_pinned)
    _warn_if_unsaved(session)
    click.echo(f"✓ {'Pinned' if updated.is_pinned else 'Unpinned'} {updated.title}")


@note.command("rm")
@click.argument("note_id")
def note_rm(note_id: str):
    """Delete a note."""
    session = _session()
    try:
        found = _resolve(session.store.notes, note_id, "note")
    except NotFound as e:
        _fail(str(e))
    session.store.delete_note(found.id)
    _warn_if_unsaved(session)
    click.echo(f"✓ Deleted note {_short(found.id)}")


# ============== Backup ==============


@main.command("export")
@click.argument("path", required=False, type=click.Path(dir_okay=False, path_type=Path))
def export_cmd(path: Path | None):
    """Write a JSON backup of everything."""
    store = _session().store
    target = path or Path.cwd() / backup_filename()
    try:
        written = export_to_file(store, target)
    except OSError as e:
        _fail(f"could not write {target}: {e}")
    click.echo(f"✓ Backup saved to {written}")


@main.command("import")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
def import_cmd(path: Path, yes: bool):
    """Replace all data with a JSON backup."""
    if not yes and not click.confirm("This replaces all current data. Continue?"):
        return
    session = _session()
    try:
        ok = import_from_file(session.store, path)
    except (OSError, UnicodeDecodeError) as e:
        _fail(f"could not read {path}: {e}")
    if not ok:
        _fail("import failed: invalid format")
    _warn_if_unsaved(session)
    click.echo("✓ Data imported")


@main.command()
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
def reset(yes: bool):
    """Permanently delete all data."""
    if not yes and not click.confirm("Are you sure? This deletes all data permanently."):
        return
    session = _session()
    session.store.reset_all()
    _warn_if_unsaved(session)
    click.echo("✓ All data cleared")


if __name__ == "__main__":
    main()
