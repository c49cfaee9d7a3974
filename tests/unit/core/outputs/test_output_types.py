"""Tests for the output data model."""

import json

import pytest

from display_agent.core.errors import PayloadError
from display_agent.core.outputs.types import Info, Mode, Scenario, State


class TestMode:

    def test_str_without_refresh(self):
        assert str(Mode(1920, 1080)) == "1920x1080"

    def test_str_with_refresh(self):
        assert str(Mode(1920, 1080, 59.94)) == "1920x1080@59.94"

    def test_str_keeps_fractional_refresh(self):
        assert str(Mode(2560, 1440, 164.99999)) == "2560x1440@164.99999"

    @pytest.mark.parametrize("text,expected", [
        ("1920x1080", Mode(1920, 1080)),
        ("1280x720@60", Mode(1280, 720, 60.0)),
        ("1280x720@59.94Hz", Mode(1280, 720, 59.94)),
    ])
    def test_parse(self, text, expected):
        assert Mode.parse(text) == expected

    @pytest.mark.parametrize("text", ["1920", "axb", "0x1080", "1920x1080@fast"])
    def test_parse_rejects_garbage(self, text):
        with pytest.raises(PayloadError):
            Mode.parse(text)

    def test_from_value_accepts_object(self):
        mode = Mode.from_value({"width": 800, "height": 600, "refresh": 75})
        assert mode == Mode(800, 600, 75.0)

    def test_from_value_requires_dimensions(self):
        with pytest.raises(PayloadError):
            Mode.from_value({"width": 800})


class TestState:

    def test_empty_document_is_empty(self):
        state = State.from_json(b"{}")
        assert state.is_empty()
        assert state.present_fields() == ()

    def test_absent_and_null_fields_stay_unset(self):
        state = State.from_json(json.dumps({"power": False, "scale": None}))
        assert state.power is False
        assert state.scale is None
        assert state.present_fields() == ("power",)

    def test_present_fields_follow_apply_order(self):
        state = State(scenario=Scenario.blank(), scale=2.0, enabled=True)
        assert state.present_fields() == ("enabled", "scale", "scenario")

    def test_full_document(self):
        state = State.from_dict({
            "enabled": True,
            "mode": {"width": 1920, "height": 1080, "refresh": 60},
            "power": True,
            "scale": 1.5,
            "transform": "90",
            "scenario": {"name": "url", "args": ["https://example.com"]},
        })
        assert state.mode == Mode(1920, 1080, 60.0)
        assert state.transform == "90"
        assert state.scenario == Scenario("url", ("https://example.com",))

    @pytest.mark.parametrize("payload", [
        b"not json",
        b"[]",
        b'{"enabled": "yes"}',
        b'{"scale": 0}',
        b'{"scale": true}',
        b'{"transform": "sideways"}',
        b'{"scenario": {"name": "url", "args": "https://example.com"}}',
        b'{"scenario": {"args": []}}',
    ])
    def test_invalid_payloads_raise(self, payload):
        with pytest.raises(PayloadError):
            State.from_json(payload)

    def test_without_clears_fields(self):
        state = State(enabled=True, power=False).without("enabled")
        assert state == State(power=False)

    def test_to_dict_reports_every_key(self):
        data = State(power=True).to_dict()
        assert set(data) == {"enabled", "mode", "power", "scale", "transform", "scenario"}
        assert data["power"] is True
        assert data["enabled"] is None

    def test_scenario_args_default_to_empty(self):
        state = State.from_dict({"scenario": {"name": "blank"}})
        assert state.scenario == Scenario.blank()
        assert state.scenario.to_dict() == {"name": "blank", "args": []}


def test_info_to_dict():
    info = Info(name="HDMI-A-1", make="Acme", model="M1", serial="42", modes=(Mode(640, 480, 60.0),))
    data = info.to_dict()
    assert data["name"] == "HDMI-A-1"
    assert data["modes"] == [
        {"width": 640, "height": 480, "refresh": 60.0, "picture_aspect_ratio": ""}
    ]
