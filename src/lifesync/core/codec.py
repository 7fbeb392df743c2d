"""Portable JSON backup document for the whole application state."""

import json
from collections.abc import Callable
from datetime import date

from .errors import InvalidFormat, ParseError
from .models import AppState
from .schema import DEFAULT_CATEGORY, RepairReport, repair_state


def encode_state(state: AppState, indent: int | None = None) -> str:
    """Serialize the full state to a JSON string."""
    return json.dumps(state.to_dict(), indent=indent, ensure_ascii=False)


def decode_document(text: str):
    """
    Parse JSON text. Raises ParseError on malformed input, including input
    nested too deeply or holding integers too long to convert.
    """
    try:
        return json.loads(text)
    except (ValueError, TypeError, RecursionError) as e:
        raise ParseError(f"Malformed JSON: {e}") from e


def export_snapshot(state: AppState) -> str:
    """
    Produce the backup document: pretty-printed JSON with top-level
    `tasks`, `transactions` and `notes`. Sufficient on its own to rebuild
    the state through import_snapshot().
    """
    return encode_state(state, indent=2)


def import_snapshot(
    text: str,
    *,
    new_id: Callable[[], str],
    fallback_day: date | None = None,
    default_category: str = DEFAULT_CATEGORY,
) -> tuple[AppState, RepairReport]:
    """
    Rebuild a state from a backup document.

    Raises InvalidFormat if the text is not a JSON object. Everything else is
    repaired with the same rules as a startup load.
    """
    try:
        document = decode_document(text)
    except ParseError as e:
        raise InvalidFormat(str(e)) from e
    if not isinstance(document, dict):
        raise InvalidFormat(f"Expected a JSON object, got {type(document).__name__}")
    return repair_state(
        document,
        new_id=new_id,
        fallback_day=fallback_day,
        default_category=default_category,
    )
