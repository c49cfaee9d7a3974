"""Sway window-manager backend."""

from .inventory import parse_sway_mode, parse_sway_output, parse_sway_outputs
from .output import SwayBackend, SwayOutput, sway_mode_argument
from .scenario import LaunchCommands, ScenarioController, validate_url
from .swaymsg import SwayMsg

__all__ = [
    "LaunchCommands",
    "ScenarioController",
    "SwayBackend",
    "SwayMsg",
    "SwayOutput",
    "parse_sway_mode",
    "parse_sway_output",
    "parse_sway_outputs",
    "sway_mode_argument",
    "validate_url",
]
