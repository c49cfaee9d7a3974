"""Unit test fixtures.

Unit tests never talk to sway or a broker; the fixtures below hand out the
recording fakes from ``tests.infrastructure.fakes``.
"""

from __future__ import annotations

import os

import pytest

from display_agent.core.outputs.sway import LaunchCommands, SwayBackend
from tests.infrastructure.fakes import FakeMqttClient, FakeSwayMsg, sway_output_json


@pytest.fixture
def fake_swaymsg() -> FakeSwayMsg:
    return FakeSwayMsg([sway_output_json("eDP-1")])


@pytest.fixture
def launch_commands() -> LaunchCommands:
    return LaunchCommands(browser="browser --kiosk {url}", video="player --loop {url}")


@pytest.fixture
def sway_backend(fake_swaymsg: FakeSwayMsg, launch_commands: LaunchCommands) -> SwayBackend:
    return SwayBackend(fake_swaymsg, launch_commands)


@pytest.fixture
def fake_mqtt() -> FakeMqttClient:
    return FakeMqttClient()


@pytest.fixture
def isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove agent-related variables from the environment."""
    for key in ("MQTT_SERVER_URL", "MQTT_TOPIC_PREFIX", "NOTIFY_SOCKET"):
        monkeypatch.delenv(key, raising=False)
    for key in list(os.environ):
        if key.startswith("DISPLAY_AGENT_"):
            monkeypatch.delenv(key, raising=False)
