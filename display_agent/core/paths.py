"""Default locations for the agent's configuration and logs."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

SYSTEM_CONFIG_PATH = Path("/etc/display-agent/config.txt")

_XDG_CONFIG_HOME = os.environ.get("XDG_CONFIG_HOME")
USER_CONFIG_DIR = (Path(_XDG_CONFIG_HOME) if _XDG_CONFIG_HOME else Path.home() / ".config") / "display-agent"
USER_CONFIG_PATH = USER_CONFIG_DIR / "config.txt"


def default_config_path() -> Optional[Path]:
    """First existing config file, user config before system config."""
    for candidate in (USER_CONFIG_PATH, SYSTEM_CONFIG_PATH):
        if candidate.exists():
            return candidate
    return None


__all__ = [
    "SYSTEM_CONFIG_PATH",
    "USER_CONFIG_DIR",
    "USER_CONFIG_PATH",
    "default_config_path",
]
