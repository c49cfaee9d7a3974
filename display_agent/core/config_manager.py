"""
Agent configuration.

Values are layered, later sources winning:

1. built-in defaults
2. ``key = value`` lines from the config file (``#`` starts a comment,
   values may be quoted)
3. environment: ``MQTT_SERVER_URL``, ``MQTT_TOPIC_PREFIX`` and
   ``DISPLAY_AGENT_<KEY>`` for every other key
4. explicit overrides (command line flags)
"""

from __future__ import annotations

import asyncio
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional

import aiofiles

from .errors import AgentConfigError
from .logging_utils import get_module_logger
from .mqtt.client import DEFAULT_TIMEOUT
from .outputs.registry import OutputRegistry
from .outputs.sway.scenario import DEFAULT_BROWSER_COMMAND, DEFAULT_VIDEO_COMMAND

logger = get_module_logger("ConfigManager")

ENV_PREFIX = "DISPLAY_AGENT_"

# Unprefixed names accepted for the two required settings.
LEGACY_ENV_KEYS = {
    "mqtt_server_url": "MQTT_SERVER_URL",
    "mqtt_topic_prefix": "MQTT_TOPIC_PREFIX",
}

REQUIRED_KEYS = ("mqtt_server_url", "mqtt_topic_prefix")


@dataclass(frozen=True)
class AgentConfig:
    mqtt_server_url: str
    mqtt_topic_prefix: str
    mqtt_timeout: float = DEFAULT_TIMEOUT
    mqtt_client_id: Optional[str] = None
    refresh_interval: float = OutputRegistry.DEFAULT_REFRESH_INTERVAL
    machine_id: Optional[str] = None
    sway_socket: Optional[str] = None
    browser_command: str = DEFAULT_BROWSER_COMMAND
    video_command: str = DEFAULT_VIDEO_COMMAND
    log_level: str = "info"
    log_file: Optional[Path] = None
    console_output: bool = True


class ConfigManager:

    def __init__(self, environ: Optional[Mapping[str, str]] = None):
        self._environ = os.environ if environ is None else environ

    # ------------------------------------------------------------------
    # Raw key/value parsing

    @staticmethod
    def parse_config_lines(lines: Iterable[str]) -> Dict[str, str]:
        config: Dict[str, str] = {}

        for raw_line in lines:
            line = raw_line.strip()
            if not line or line.startswith('#'):
                continue
            if '=' not in line:
                continue

            key, value = line.split('=', 1)
            key = key.strip().lower()
            value = value.strip()

            if (value.startswith('"') and value.endswith('"')) or (value.startswith("'") and value.endswith("'")):
                value = value[1:-1]
            elif '#' in value:
                value = value.split('#')[0].strip()

            config[key] = value

        return config

    def read_config(self, config_path: Path) -> Dict[str, str]:
        if not config_path.exists():
            return {}
        try:
            with open(config_path, 'r', encoding='utf-8') as fh:
                return self.parse_config_lines(fh)
        except OSError as exc:
            raise AgentConfigError(f"failed to read config {config_path}: {exc}") from exc

    async def read_config_async(self, config_path: Path) -> Dict[str, str]:
        if not await asyncio.to_thread(config_path.exists):
            return {}
        try:
            async with aiofiles.open(config_path, 'r', encoding='utf-8') as fh:
                lines = await fh.readlines()
        except OSError as exc:
            raise AgentConfigError(f"failed to read config {config_path}: {exc}") from exc
        return self.parse_config_lines(lines)

    def read_environment(self) -> Dict[str, str]:
        values: Dict[str, str] = {}
        for key in _config_keys():
            legacy = LEGACY_ENV_KEYS.get(key)
            if legacy and self._environ.get(legacy):
                values[key] = self._environ[legacy]
            env_key = ENV_PREFIX + key.upper()
            if self._environ.get(env_key):
                values[key] = self._environ[env_key]
        return values

    # ------------------------------------------------------------------
    # Typed getters

    def get_bool(self, config: Mapping[str, str], key: str, default: bool = False) -> bool:
        if key not in config:
            return default
        return config[key].strip().lower() in ('true', '1', 'yes', 'on')

    def get_float(self, config: Mapping[str, str], key: str, default: float = 0.0) -> float:
        if key not in config:
            return default
        try:
            value = float(config[key])
        except ValueError as exc:
            raise AgentConfigError(f"invalid number for {key}: {config[key]!r}") from exc
        if value <= 0:
            raise AgentConfigError(f"{key} must be positive, got {value}")
        return value

    def get_str(self, config: Mapping[str, str], key: str, default: Optional[str] = "") -> Optional[str]:
        value = config.get(key)
        return value if value else default

    # ------------------------------------------------------------------
    # AgentConfig assembly

    def build(self, *layers: Mapping[str, Any]) -> AgentConfig:
        """Merge raw layers (lowest precedence first) into an AgentConfig."""
        merged: Dict[str, str] = {}
        for layer in layers:
            for key, value in layer.items():
                if value is None:
                    continue
                merged[key] = str(value)

        missing = [key for key in REQUIRED_KEYS if not merged.get(key)]
        if missing:
            env_names = ", ".join(LEGACY_ENV_KEYS.get(key, key) for key in missing)
            raise AgentConfigError(f"{env_names} must be set")

        log_file = self.get_str(merged, "log_file", None)
        return AgentConfig(
            mqtt_server_url=merged["mqtt_server_url"],
            mqtt_topic_prefix=merged["mqtt_topic_prefix"].rstrip("/"),
            mqtt_timeout=self.get_float(merged, "mqtt_timeout", DEFAULT_TIMEOUT),
            mqtt_client_id=self.get_str(merged, "mqtt_client_id", None),
            refresh_interval=self.get_float(
                merged, "refresh_interval", OutputRegistry.DEFAULT_REFRESH_INTERVAL
            ),
            machine_id=self.get_str(merged, "machine_id", None),
            sway_socket=self.get_str(merged, "sway_socket", None),
            browser_command=self.get_str(merged, "browser_command", DEFAULT_BROWSER_COMMAND),
            video_command=self.get_str(merged, "video_command", DEFAULT_VIDEO_COMMAND),
            log_level=self.get_str(merged, "log_level", "info"),
            log_file=Path(log_file).expanduser() if log_file else None,
            console_output=self.get_bool(merged, "console_output", True),
        )

    async def load(
        self,
        config_path: Optional[Path] = None,
        overrides: Optional[Mapping[str, Any]] = None,
    ) -> AgentConfig:
        file_values: Dict[str, str] = {}
        if config_path is not None:
            file_values = await self.read_config_async(config_path)
            if file_values:
                logger.debug("Loaded %d settings from %s", len(file_values), config_path)
        return self.build(file_values, self.read_environment(), overrides or {})


def _config_keys() -> Iterable[str]:
    return [f.name for f in fields(AgentConfig)]


_config_manager = ConfigManager()


def get_config_manager() -> ConfigManager:
    return _config_manager


__all__ = ["AgentConfig", "ConfigManager", "ENV_PREFIX", "get_config_manager"]
