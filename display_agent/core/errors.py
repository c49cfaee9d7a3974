"""Exception types raised by the display agent."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Sequence

if TYPE_CHECKING:
    from .outputs.types import State


class DisplayAgentError(Exception):
    """Base class for all agent errors."""


class AgentConfigError(DisplayAgentError):
    """Required configuration is missing or invalid."""


class InventoryError(DisplayAgentError):
    """The output inventory could not be fetched or parsed."""


class PayloadError(DisplayAgentError, ValueError):
    """An inbound document is not valid JSON or does not match the schema."""


class SwayCommandError(DisplayAgentError):
    """Sway rejected a command, or the IPC connection failed while sending it."""

    def __init__(self, args: Sequence[str], output: str = "") -> None:
        self.command_args = list(args)
        self.output = output
        super().__init__(f"sway command '{' '.join(self.command_args)}' failed: {output.strip()}")


class ScenarioError(DisplayAgentError):
    """A scenario could not be applied."""


class InvalidArgument(ScenarioError):
    """Scenario arguments have the wrong cardinality or are not valid URLs."""


class UnsupportedScenario(ScenarioError):
    """The requested scenario name is not one the agent knows."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"unsupported scenario: {name!r}")


class ConfigurationError(DisplayAgentError):
    """A field of a desired state could not be applied.

    ``state`` holds the output state after the failure; fields applied
    before ``field`` stay applied.
    """

    def __init__(self, field: str, state: "State", message: Optional[str] = None) -> None:
        self.field = field
        self.state = state
        super().__init__(message or f"failed to set {field}")


class UnknownOutputError(DisplayAgentError, KeyError):
    """A request named an output the registry does not hold."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(name)

    def __str__(self) -> str:
        return f"unknown output: {self.name!r}"


class RegistryClosedError(DisplayAgentError):
    """The registry has shut down and accepts no more requests."""


class MqttError(DisplayAgentError):
    """A pub/sub transport operation failed or timed out."""


__all__ = [
    "AgentConfigError",
    "ConfigurationError",
    "DisplayAgentError",
    "InvalidArgument",
    "InventoryError",
    "MqttError",
    "PayloadError",
    "RegistryClosedError",
    "ScenarioError",
    "SwayCommandError",
    "UnknownOutputError",
    "UnsupportedScenario",
]
