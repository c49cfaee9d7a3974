"""Tests for parsing sway get_outputs replies."""

import pytest

from display_agent.core.errors import InventoryError
from display_agent.core.outputs.sway.inventory import (
    parse_sway_mode,
    parse_sway_output,
    parse_sway_outputs,
)
from display_agent.core.outputs.types import Mode
from tests.infrastructure.fakes import sway_output_json


def test_refresh_is_converted_from_millihertz():
    mode = parse_sway_mode({"width": 1280, "height": 720, "refresh": 59940})
    assert mode == Mode(1280, 720, 59.94)


def test_missing_mode_is_zero_mode():
    assert parse_sway_mode(None) == Mode(0, 0)


def test_parse_output_record():
    record = parse_sway_output(sway_output_json("HDMI-A-1", scale=2.0, transform="90"))

    assert record.name == "HDMI-A-1"
    assert record.active is True
    assert record.current_mode == Mode(1920, 1080, 60.0)
    assert record.modes == (Mode(1920, 1080, 60.0), Mode(1280, 720, 59.94))
    assert record.scale == 2.0
    assert record.transform == "90"


def test_disabled_output_without_mode():
    raw = sway_output_json("DP-2", active=False, current_mode=None, power=False)
    record = parse_sway_output(raw)
    assert record.active is False
    assert record.current_mode == Mode(0, 0)


def test_power_falls_back_to_dpms():
    raw = sway_output_json("DP-1")
    del raw["power"]
    raw["dpms"] = True
    assert parse_sway_output(raw).power is True


@pytest.mark.parametrize("raw", [
    {"make": "Acme"},
    {"name": ""},
    "eDP-1",
    {"name": "eDP-1", "current_mode": {"width": "wide", "height": 1}},
])
def test_malformed_entries_raise(raw):
    with pytest.raises(InventoryError):
        parse_sway_output(raw)


def test_parse_outputs_keeps_order():
    records = parse_sway_outputs([sway_output_json("B"), sway_output_json("A")])
    assert [record.name for record in records] == ["B", "A"]
