"""Sway implementation of the ``Output`` entity and its backend."""

from __future__ import annotations

from typing import List, Sequence

from ...errors import ConfigurationError, ScenarioError, SwayCommandError
from ...logging_utils import get_module_logger
from ..backend import OutputBackend, OutputRecord
from ..types import Info, Mode, Output, Scenario, State, format_number
from .inventory import parse_sway_outputs
from .scenario import LaunchCommands, ScenarioController
from .swaymsg import SwayMsg

logger = get_module_logger("SwayOutput")


def sway_mode_argument(mode: Mode) -> str:
    if mode.refresh:
        return f"{mode.width}x{mode.height}@{format_number(mode.refresh)}Hz"
    return f"{mode.width}x{mode.height}"


class SwayOutput(Output):
    """One sway output.

    Info and state fields mirror the last inventory record; the scenario is
    owned by the agent and survives every refresh.
    """

    def __init__(
        self,
        record: OutputRecord,
        swaymsg: SwayMsg,
        commands: LaunchCommands = LaunchCommands(),
    ):
        self._swaymsg = swaymsg
        self._name = record.name
        self.scenario = Scenario.blank()
        self.apply_record(record)
        self._scenarios = ScenarioController(record.name, swaymsg, commands)
        self.logger = logger.bind(outputName=record.name)

    @property
    def name(self) -> str:
        return self._name

    def apply_record(self, record: OutputRecord) -> None:
        """Overwrite everything except the scenario with ``record``."""
        self.active = record.active
        self.current_mode = record.current_mode
        self.make = record.make
        self.model = record.model
        self.serial = record.serial
        self.modes = tuple(record.modes)
        self.power = record.power
        self.scale = record.scale
        self.transform = record.transform

    def get_info(self) -> Info:
        return Info(
            name=self._name,
            make=self.make,
            model=self.model,
            serial=self.serial,
            modes=self.modes,
        )

    def get_state(self) -> State:
        return State(
            enabled=self.active,
            mode=self.current_mode,
            power=self.power,
            scale=self.scale,
            transform=self.transform,
            scenario=self.scenario,
        )

    async def set_state(self, desired: State) -> State:
        if desired.enabled is not None:
            await self._configure("enabled", "enable" if desired.enabled else "disable")
        if desired.mode is not None:
            await self._configure("mode", "mode", sway_mode_argument(desired.mode))
        if desired.power is not None:
            await self._configure("power", "power", "on" if desired.power else "off")
        if desired.scale is not None:
            await self._configure("scale", "scale", format_number(desired.scale))
        if desired.transform is not None:
            await self._configure("transform", "transform", desired.transform)
        if desired.scenario is not None:
            await self._set_scenario(desired.scenario)

        return self.get_state()

    async def _configure(self, field: str, *args: str) -> None:
        try:
            await self._swaymsg.configure_output(self._name, *args)
        except SwayCommandError as exc:
            self.logger.warning("Failed to set %s: %s", field, exc)
            raise ConfigurationError(field, self.get_state(), f"failed to set {field}: {exc}") from exc

    async def _set_scenario(self, scenario: Scenario) -> None:
        try:
            await self._scenarios.apply(scenario)
        except (ScenarioError, SwayCommandError) as exc:
            self.logger.warning("Failed to set scenario: %s", exc)
            raise ConfigurationError("scenario", self.get_state(), f"failed to set scenario: {exc}") from exc
        self.scenario = scenario


class SwayBackend(OutputBackend):
    """Inventory and entity factory backed by the sway IPC client."""

    def __init__(self, swaymsg: SwayMsg | None = None, commands: LaunchCommands = LaunchCommands()):
        self._swaymsg = swaymsg or SwayMsg()
        self._commands = commands

    async def list_outputs(self) -> Sequence[OutputRecord]:
        raw_outputs = await self._swaymsg.get_outputs()
        records: List[OutputRecord] = parse_sway_outputs(raw_outputs)
        return records

    def create_output(self, record: OutputRecord) -> SwayOutput:
        return SwayOutput(record, self._swaymsg, self._commands)

    def update_output(self, output: Output, record: OutputRecord) -> None:
        if not isinstance(output, SwayOutput):
            raise TypeError(f"SwayBackend cannot update {type(output).__name__}")
        output.apply_record(record)


__all__ = ["SwayBackend", "SwayOutput", "sway_mode_argument"]
