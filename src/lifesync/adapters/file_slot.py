"""File-based state slot adapter."""

import os
import re
import tempfile
from pathlib import Path

_SAFE_KEY = re.compile(r"^[A-Za-z0-9_.-]+$")


class FileStateSlot:
    """
    File-based key-value storage.

    Implements StateSlot protocol. Each key gets a JSON file in the data
    directory. Writes go to a temporary file first and replace the target,
    so a failed write never leaves a truncated document behind.
    """

    def __init__(self, data_dir: Path | str):
        self.data_dir = Path(data_dir).expanduser()

    def _path_for_key(self, key: str) -> Path:
        """Get the file path for a given key."""
        if not _SAFE_KEY.match(key) or key.startswith("."):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self.data_dir / f"{key}.json"

    def read(self, key: str) -> str | None:
        """Read the raw value for a key. Returns None if not found."""
        path = self._path_for_key(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def write(self, key: str, value: str) -> None:
        """Write/overwrite the value for a key."""
        path = self._path_for_key(key)
        self.data_dir.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.data_dir, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(value)
            os.replace(tmp, path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise

    def remove(self, key: str) -> None:
        """Delete the value for a key if present."""
        self._path_for_key(key).unlink(missing_ok=True)

    def exists(self, key: str) -> bool:
        return self._path_for_key(key).exists()
