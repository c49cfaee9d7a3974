"""Output model, events and the reconciling registry."""

from .backend import OutputBackend, OutputRecord
from .events import OutputAdded, OutputEvent, OutputEventHandler, OutputRemoved, OutputUpdated
from .registry import OutputRegistry, ReconcileResult
from .types import (
    STATE_FIELD_ORDER,
    TRANSFORMS,
    Info,
    Mode,
    Output,
    OutputSnapshot,
    Scenario,
    ScenarioName,
    State,
)

__all__ = [
    "Info",
    "Mode",
    "Output",
    "OutputAdded",
    "OutputBackend",
    "OutputEvent",
    "OutputEventHandler",
    "OutputRecord",
    "OutputRegistry",
    "OutputRemoved",
    "OutputSnapshot",
    "OutputUpdated",
    "ReconcileResult",
    "STATE_FIELD_ORDER",
    "Scenario",
    "ScenarioName",
    "State",
    "TRANSFORMS",
]
