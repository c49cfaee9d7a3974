"""
Host integration - machine identity and service manager notifications.
"""

from __future__ import annotations

import os
import socket
import subprocess
from pathlib import Path
from typing import Optional

from .errors import AgentConfigError
from .logging_utils import get_module_logger

logger = get_module_logger("System")

MACHINE_ID_PATH = Path("/etc/machine-id")


def get_machine_id(override: Optional[str] = None, machine_id_path: Path = MACHINE_ID_PATH) -> str:
    """Return this host's machine id.

    Asks ``systemd-id128 machine-id -u`` first and falls back to reading
    ``/etc/machine-id``.
    """
    if override:
        return override.strip()

    try:
        result = subprocess.run(
            ["systemd-id128", "machine-id", "-u"],
            capture_output=True,
            text=True,
            check=True,
            timeout=5,
        )
        machine_id = result.stdout.strip()
        if machine_id:
            return machine_id
    except (OSError, subprocess.SubprocessError) as exc:
        logger.debug("systemd-id128 unavailable: %s", exc)

    try:
        machine_id = machine_id_path.read_text(encoding="utf-8").strip()
    except OSError as exc:
        raise AgentConfigError(f"failed to retrieve machine-id: {exc}") from exc
    if not machine_id:
        raise AgentConfigError(f"{machine_id_path} is empty")
    return machine_id


class ServiceNotifier:
    """Sends sd_notify datagrams to the service manager.

    Does nothing when ``NOTIFY_SOCKET`` is unset, e.g. when run by hand.
    """

    def __init__(self, address: Optional[str] = None):
        if address is None:
            address = os.environ.get("NOTIFY_SOCKET")
        if address and address.startswith("@"):
            # abstract namespace socket
            address = "\0" + address[1:]
        self._address = address or None

    @property
    def enabled(self) -> bool:
        return self._address is not None

    def notify(self, message: str) -> bool:
        if self._address is None:
            return False
        try:
            with socket.socket(socket.AF_UNIX, socket.SOCK_DGRAM) as sock:
                sock.sendto(message.encode("utf-8"), self._address)
        except OSError as exc:
            logger.warning("Failed to notify service manager (%s): %s", message, exc)
            return False
        return True

    def ready(self) -> None:
        if self.notify("READY=1"):
            logger.info("Signalled readiness to service manager")

    def watchdog(self) -> None:
        self.notify("WATCHDOG=1")

    def stopping(self) -> None:
        self.notify("STOPPING=1")


__all__ = ["MACHINE_ID_PATH", "ServiceNotifier", "get_machine_id"]
