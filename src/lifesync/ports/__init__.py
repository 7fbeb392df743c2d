"""Ports - interfaces/protocols for external dependencies."""

from .state_slot import StateSlot
from .id_generator import IdGenerator

__all__ = [
    "StateSlot",
    "IdGenerator",
]
