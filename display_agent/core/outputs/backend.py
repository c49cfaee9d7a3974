"""
Window-manager backend interface.

A backend knows how to list the outputs the window manager currently has
and how to turn one inventory record into an ``Output`` entity. The registry
only talks to this interface, so a second window manager only needs a new
backend.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Sequence, Tuple

from .types import Mode, Output


@dataclass(frozen=True)
class OutputRecord:
    """One output descriptor from an inventory snapshot."""
    name: str
    active: bool = False
    current_mode: Mode = Mode(0, 0)
    make: str = ""
    model: str = ""
    serial: str = ""
    modes: Tuple[Mode, ...] = ()
    power: bool = False
    scale: float = 1.0
    transform: str = "normal"


class OutputBackend(ABC):
    """Source of inventory snapshots and factory for output entities."""

    @abstractmethod
    async def list_outputs(self) -> Sequence[OutputRecord]:
        """Return the current inventory.

        Raises InventoryError when the window manager cannot be queried or
        its answer cannot be parsed.
        """

    @abstractmethod
    def create_output(self, record: OutputRecord) -> Output:
        """Build the entity for an output seen for the first time."""

    @abstractmethod
    def update_output(self, output: Output, record: OutputRecord) -> None:
        """Overwrite ``output`` with a fresh record, keeping its scenario."""


__all__ = ["OutputBackend", "OutputRecord"]
