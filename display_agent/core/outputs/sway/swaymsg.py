"""
Async sway IPC client built on ``i3ipc.aio``.

One connection is opened lazily and reused for every inventory poll and
command. A connection that breaks or stalls is dropped and the next call
opens a fresh one. Failed commands raise ``SwayCommandError`` carrying the
error sway reported, inventory failures raise ``InventoryError``.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, List, Optional, TypeVar

from i3ipc.aio import Connection

from ...errors import InventoryError, SwayCommandError
from ...logging_utils import get_module_logger

logger = get_module_logger("SwayMsg")

T = TypeVar("T")

# errors that leave the IPC socket unusable
_CONNECTION_ERRORS = (OSError, EOFError, asyncio.TimeoutError)


class SwayMsg:
    """Sends IPC messages to the current sway session."""

    DEFAULT_TIMEOUT = 10.0

    def __init__(
        self,
        socket_path: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        connection: Optional[Connection] = None,
    ):
        self._socket_path = socket_path
        self._timeout = timeout
        self._connection = connection
        # an injected connection is never replaced
        self._reconnect = connection is None
        self._connect_lock: Optional[asyncio.Lock] = None

    @property
    def socket_path(self) -> Optional[str]:
        return self._socket_path

    async def _get_connection(self) -> Connection:
        if self._connection is not None:
            return self._connection
        if self._connect_lock is None:
            self._connect_lock = asyncio.Lock()
        async with self._connect_lock:
            if self._connection is None:
                try:
                    self._connection = await asyncio.wait_for(
                        Connection(socket_path=self._socket_path).connect(),
                        timeout=self._timeout,
                    )
                except asyncio.TimeoutError as exc:
                    raise ConnectionError(f"timed out connecting to sway after {self._timeout}s") from exc
                except Exception as exc:
                    # i3ipc raises a plain Exception when no socket path can be found
                    raise ConnectionError(f"unable to connect to sway: {exc}") from exc
                logger.bind(socket=self._socket_path or "auto").debug("connected to sway ipc")
        return self._connection

    async def _request(self, send: Callable[[Connection], Awaitable[T]]) -> T:
        connection = await self._get_connection()
        try:
            return await asyncio.wait_for(send(connection), timeout=self._timeout)
        except _CONNECTION_ERRORS:
            if self._reconnect and self._connection is connection:
                self._connection = None
            raise

    async def command(self, *args: str) -> None:
        """Run one sway command and check every reply it produced.

        Arguments are joined with spaces into the command string, the same
        way ``swaymsg`` joins its argv.
        """
        command = " ".join(args)
        log = logger.bind(command=command)
        try:
            replies = await self._request(lambda connection: connection.command(command))
        except _CONNECTION_ERRORS as exc:
            raise SwayCommandError(args, str(exc) or type(exc).__name__) from exc

        for reply in replies:
            if not reply.success:
                log.debug("sway rejected command: %s", reply.error)
                raise SwayCommandError(args, reply.error or "command failed")
        log.debug("ran sway command")

    async def get_outputs(self) -> List[dict[str, Any]]:
        """Return the raw ``get_outputs`` reply, one dict per output."""
        try:
            replies = await self._request(lambda connection: connection.get_outputs())
        except _CONNECTION_ERRORS as exc:
            raise InventoryError(f"failed to query sway outputs: {str(exc) or type(exc).__name__}") from exc
        return [reply.ipc_data for reply in replies]

    # ------------------------------------------------------------------
    # Convenience commands

    async def configure_output(self, output: str, *args: str) -> None:
        await self.command("output", output, *args)

    async def select_workspace(self, workspace: str) -> None:
        await self.command("workspace", workspace)

    async def pin_workspace(self, workspace: str, output: str) -> None:
        await self.command("workspace", workspace, "output", output)

    async def clear_workspace(self, workspace: str) -> None:
        await self.command(f'[workspace="{workspace}"]', "kill")

    async def exec(self, command_line: str) -> None:
        """Have sway spawn ``command_line``; returns once sway accepted it."""
        await self.command("exec", command_line)


__all__ = ["SwayMsg"]
