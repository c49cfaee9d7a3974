"""
Output Events - what the registry tells its observers.

Every event carries an immutable ``OutputSnapshot`` taken at the moment the
event was raised, so an observer never sees an output half way through a
reconciliation pass.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Awaitable, Callable, Union

from .types import Info, OutputSnapshot, State


@dataclass(frozen=True)
class _OutputEvent:
    output: OutputSnapshot

    @property
    def name(self) -> str:
        return self.output.name

    @property
    def info(self) -> Info:
        return self.output.info

    @property
    def state(self) -> State:
        return self.output.state


@dataclass(frozen=True)
class OutputAdded(_OutputEvent):
    """An output name appeared in the inventory for the first time."""


@dataclass(frozen=True)
class OutputUpdated(_OutputEvent):
    """A known output was reconciled again, or a set-state changed it."""


@dataclass(frozen=True)
class OutputRemoved(_OutputEvent):
    """An output left the inventory, or the registry is shutting down."""


OutputEvent = Union[OutputAdded, OutputUpdated, OutputRemoved]

OutputEventHandler = Callable[[OutputEvent], Awaitable[None]]
OutputCallback = Callable[[OutputSnapshot], Awaitable[None]]


__all__ = [
    "OutputAdded",
    "OutputCallback",
    "OutputEvent",
    "OutputEventHandler",
    "OutputRemoved",
    "OutputUpdated",
]
