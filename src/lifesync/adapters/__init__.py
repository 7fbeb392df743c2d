"""Adapters - I/O implementations of ports."""

from .file_slot import FileStateSlot
from .ids import TimeRandomGenerator, UUIDGenerator, default_id_generator

__all__ = [
    "FileStateSlot",
    "TimeRandomGenerator",
    "UUIDGenerator",
    "default_id_generator",
]
