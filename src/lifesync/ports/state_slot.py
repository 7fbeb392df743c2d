"""Durable key-value slot interface."""

from typing import Protocol


class StateSlot(Protocol):
    """Interface for a string-keyed store of serialized state."""

    def read(self, key: str) -> str | None:
        """Read the raw value for a key. Returns None if not found."""
        ...

    def write(self, key: str, value: str) -> None:
        """Write/overwrite the value for a key. Raises OSError on failure."""
        ...

    def remove(self, key: str) -> None:
        """Delete the value for a key if present."""
        ...
