"""Id generation interface."""

from typing import Protocol


class IdGenerator(Protocol):
    """Interface for producing fresh entity ids."""

    def new_id(self) -> str:
        """Return an id not handed out before in this session."""
        ...
