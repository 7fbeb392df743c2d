"""Shared workflow layer between the CLI and the engine.

Wires configuration to a storage slot, a persistence gateway and the entity
store, and wraps backup file handling.
"""

import logging
from dataclasses import dataclass
from datetime import date
from pathlib import Path

from .adapters.file_slot import FileStateSlot
from .adapters.ids import default_id_generator
from .config import Config
from .core.store import EntityStore
from .persistence import PersistenceGateway
from .ports.id_generator import IdGenerator

logger = logging.getLogger(__name__)


@dataclass
class Session:
    """One open store together with the gateway that persists it."""

    config: Config
    gateway: PersistenceGateway
    store: EntityStore

    @property
    def save_failed(self) -> bool:
        """Whether the most recent write to the slot failed."""
        return self.gateway.last_error is not None


def get_gateway(config: Config, ids: IdGenerator) -> PersistenceGateway:
    """Resolve the storage slot from config."""
    slot = FileStateSlot(config.resolved_data_dir())
    return PersistenceGateway(
        slot,
        config.storage_key,
        new_id=ids.new_id,
        default_category=config.default_category,
    )


def open_session(
    config: Config,
    ids: IdGenerator | None = None,
    today: date | None = None,
) -> Session:
    """Load the stored state and build a store that saves after every change."""
    ids = ids or default_id_generator()
    gateway = get_gateway(config, ids)
    state = gateway.load(today)
    store = EntityStore(
        state,
        new_id=ids.new_id,
        on_change=gateway.save,
        default_category=config.default_category,
    )
    return Session(config=config, gateway=gateway, store=store)


def backup_filename(today: date | None = None) -> str:
    """Default export filename, e.g. lifesync_backup_2024-01-08.json."""
    today = today or date.today()
    return f"lifesync_backup_{today.isoformat()}.json"


def export_to_file(store: EntityStore, path: Path) -> Path:
    """Write the backup document to `path`."""
    path = Path(path).expanduser()
    path.write_text(store.export_snapshot(), encoding="utf-8")
    logger.info("Exported backup to %s", path)
    return path


def import_from_file(store: EntityStore, path: Path) -> bool:
    """Replace the store's state with the backup at `path`. False if rejected."""
    text = Path(path).expanduser().read_text(encoding="utf-8")
    return store.import_snapshot(text)
