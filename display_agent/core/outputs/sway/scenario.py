"""
Scenario Controller - puts content on one output.

Every transition follows the same protocol:

1. select the workspace named after the output (sway creates it on demand)
   and pin it to that output
2. kill whatever is still running on the workspace; nothing to kill is fine
3. launch the new content:
   - ``blank``: nothing
   - ``url``:   a kiosk browser pointed at the single URL argument
   - ``video``: a looping media player playing the single URL argument

Content is launched through the sway ``exec`` command. Sway spawns the process
detached and the controller does not wait for a window to appear.
"""

from __future__ import annotations

import shlex
from dataclasses import dataclass
from urllib.parse import urlsplit

from ...errors import InvalidArgument, SwayCommandError, UnsupportedScenario
from ...logging_utils import get_module_logger
from ..types import Scenario, ScenarioName
from .swaymsg import SwayMsg

logger = get_module_logger("ScenarioController")

DEFAULT_BROWSER_COMMAND = "chromium --ozone-platform-hint=auto --kiosk --app={url}"
DEFAULT_VIDEO_COMMAND = "mpv --fullscreen --loop=inf --no-terminal {url}"


@dataclass(frozen=True)
class LaunchCommands:
    """Command line templates; ``{url}`` is replaced by the shell-quoted argument."""
    browser: str = DEFAULT_BROWSER_COMMAND
    video: str = DEFAULT_VIDEO_COMMAND

    def render(self, template: str, url: str) -> str:
        return template.replace("{url}", shlex.quote(url))


def validate_url(value: str) -> str:
    """Return ``value`` if it is a well-formed absolute URL, else raise InvalidArgument."""
    if not value or any(ch.isspace() for ch in value):
        raise InvalidArgument(f"not a valid URL: {value!r}")
    try:
        parts = urlsplit(value)
        # port parsing is lazy; touch it so "http://host:abc" is rejected here
        parts.port
    except ValueError as exc:
        raise InvalidArgument(f"not a valid URL: {value!r}") from exc

    if not parts.scheme:
        raise InvalidArgument(f"URL has no scheme: {value!r}")
    if not parts.netloc and not parts.path:
        raise InvalidArgument(f"URL has no location: {value!r}")
    return value


class ScenarioController:
    """Owns the content lifecycle of one output's workspace."""

    def __init__(self, output_name: str, swaymsg: SwayMsg, commands: LaunchCommands = LaunchCommands()):
        self._output_name = output_name
        self._swaymsg = swaymsg
        self._commands = commands
        self.logger = logger.bind(outputName=output_name)

    @property
    def workspace(self) -> str:
        return self._output_name

    async def apply(self, scenario: Scenario) -> None:
        """Switch the workspace to ``scenario``.

        Raises InvalidArgument or UnsupportedScenario after the workspace
        was cleared but before anything is launched; SwayCommandError if
        the workspace could not be focused or the launch was refused.
        """
        self.logger.info("Switching scenario to %s %s", scenario.name, list(scenario.args))

        await self._focus_workspace()
        await self._clear_workspace()

        if scenario.name == ScenarioName.BLANK.value:
            if scenario.args:
                raise InvalidArgument("blank takes no arguments")
            return

        if scenario.name == ScenarioName.URL.value:
            url = self._single_url(scenario)
            await self._launch(self._commands.render(self._commands.browser, url))
            return

        if scenario.name == ScenarioName.VIDEO.value:
            url = self._single_url(scenario)
            await self._launch(self._commands.render(self._commands.video, url))
            return

        raise UnsupportedScenario(scenario.name)

    async def _focus_workspace(self) -> None:
        await self._swaymsg.select_workspace(self.workspace)
        await self._swaymsg.pin_workspace(self.workspace, self._output_name)

    async def _clear_workspace(self) -> None:
        try:
            await self._swaymsg.clear_workspace(self.workspace)
        except SwayCommandError as exc:
            # sway exits non-zero when the criteria matched no window
            self.logger.debug("Nothing cleared from workspace: %s", exc)

    async def _launch(self, command_line: str) -> None:
        self.logger.debug("Launching %s", command_line)
        await self._swaymsg.exec(command_line)

    @staticmethod
    def _single_url(scenario: Scenario) -> str:
        if len(scenario.args) != 1:
            raise InvalidArgument(
                f"{scenario.name} takes exactly one argument, got {len(scenario.args)}"
            )
        return validate_url(scenario.args[0])


__all__ = [
    "DEFAULT_BROWSER_COMMAND",
    "DEFAULT_VIDEO_COMMAND",
    "LaunchCommands",
    "ScenarioController",
    "validate_url",
]
