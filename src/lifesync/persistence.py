"""Persistence gateway - loads and saves the state through a durable slot."""

import logging
from collections.abc import Callable
from datetime import date

from .core.codec import decode_document, encode_state
from .core.errors import ParseError, StorageWriteError
from .core.models import AppState
from .core.schema import DEFAULT_CATEGORY, repair_state
from .ports.state_slot import StateSlot

logger = logging.getLogger(__name__)

STORAGE_KEY = "lifesync_data_v1"


class PersistenceGateway:
    """
    Reads the state at startup and writes it back after every change.

    Load never fails: a missing slot, malformed JSON or a badly shaped
    document all end in a usable state. Save failures are logged and
    reported as False; the in-memory session carries on.
    """

    def __init__(
        self,
        slot: StateSlot,
        key: str = STORAGE_KEY,
        *,
        new_id: Callable[[], str],
        default_category: str = DEFAULT_CATEGORY,
    ):
        self.slot = slot
        self.key = key
        self._new_id = new_id
        self.default_category = default_category
        self.last_error: StorageWriteError | None = None

    def load(self, today: date | None = None) -> AppState:
        """Read, parse and repair the stored state. Runs the full repair every time."""
        try:
            raw = self.slot.read(self.key)
        except OSError as e:
            logger.warning("Failed to read %s: %s; starting empty", self.key, e)
            return AppState()
        except UnicodeDecodeError as e:
            logger.warning("Failed to load data from %s: not valid UTF-8 (%s); starting empty", self.key, e)
            return AppState()

        if raw is None:
            logger.debug("No stored state under %s; starting empty", self.key)
            return AppState()

        try:
            document = decode_document(raw)
        except ParseError as e:
            logger.warning("Failed to load data from %s: %s; starting empty", self.key, e)
            return AppState()

        state, report = repair_state(
            document,
            new_id=self._new_id,
            fallback_day=today,
            default_category=self.default_category,
        )
        for problem in report.problems:
            logger.warning("Repaired stored state: %s", problem)
        logger.debug(
            "Loaded %d tasks, %d transactions, %d notes from %s",
            len(state.tasks),
            len(state.transactions),
            len(state.notes),
            self.key,
        )
        return state

    def save(self, state: AppState) -> bool:
        """Serialize and write the full state. Returns False if the write failed."""
        try:
            self.slot.write(self.key, encode_state(state))
        except OSError as e:
            self.last_error = StorageWriteError(f"Failed to save {self.key}: {e}")
            logger.warning("%s", self.last_error)
            return False
        self.last_error = None
        return True

    def clear(self) -> None:
        """Remove the stored document entirely."""
        self.slot.remove(self.key)
