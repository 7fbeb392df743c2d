"""Read-time ordering and search for notes."""

from .models import Note


def ordered(notes: list[Note]) -> list[Note]:
    """Pinned notes first, then most recently edited."""
    return sorted(notes, key=lambda n: (not n.is_pinned, -n.updated_at))


def search(notes: list[Note], term: str) -> list[Note]:
    """Case-insensitive match on title or content, in display order."""
    needle = term.lower()
    return ordered(
        [n for n in notes if needle in n.title.lower() or needle in n.content.lower()]
    )
