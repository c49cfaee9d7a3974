"""Tests for machine id lookup and service manager notifications."""

import socket
import subprocess
from unittest.mock import MagicMock, patch

import pytest

from display_agent.core.errors import AgentConfigError
from display_agent.core.system import ServiceNotifier, get_machine_id


def test_override_wins():
    with patch("display_agent.core.system.subprocess.run") as run:
        assert get_machine_id(" cafe\n") == "cafe"
    run.assert_not_called()


def test_uses_systemd_id128():
    result = MagicMock(stdout="0123456789abcdef0123456789abcdef\n")
    with patch("display_agent.core.system.subprocess.run", return_value=result) as run:
        assert get_machine_id() == "0123456789abcdef0123456789abcdef"
    assert run.call_args[0][0] == ["systemd-id128", "machine-id", "-u"]


def test_falls_back_to_machine_id_file(tmp_path):
    machine_id_path = tmp_path / "machine-id"
    machine_id_path.write_text("feedface\n", encoding="utf-8")

    with patch("display_agent.core.system.subprocess.run", side_effect=FileNotFoundError("systemd-id128")):
        assert get_machine_id(machine_id_path=machine_id_path) == "feedface"


def test_no_machine_id_available(tmp_path):
    failure = subprocess.CalledProcessError(1, ["systemd-id128"])
    with patch("display_agent.core.system.subprocess.run", side_effect=failure):
        with pytest.raises(AgentConfigError):
            get_machine_id(machine_id_path=tmp_path / "missing")


class TestServiceNotifier:

    def test_disabled_without_socket(self, isolated_env):
        notifier = ServiceNotifier()

        assert notifier.enabled is False
        assert notifier.notify("READY=1") is False

    def test_sends_datagrams(self, tmp_path):
        address = str(tmp_path / "notify.sock")
        with socket.socket(socket.AF_UNIX, socket.SOCK_DGRAM) as server:
            server.bind(address)
            notifier = ServiceNotifier(address)

            notifier.ready()
            notifier.watchdog()
            notifier.stopping()

            messages = [server.recv(64) for _ in range(3)]

        assert messages == [b"READY=1", b"WATCHDOG=1", b"STOPPING=1"]

    def test_abstract_socket_address(self):
        assert ServiceNotifier("@systemd/notify")._address == "\0systemd/notify"

    def test_send_failure_is_reported(self, tmp_path):
        notifier = ServiceNotifier(str(tmp_path / "nobody-listening.sock"))
        assert notifier.notify("WATCHDOG=1") is False
