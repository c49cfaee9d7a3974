"""
Output Registry - keeps the set of known outputs in sync with the window manager.

The registry polls the backend's inventory on a fixed interval, diffs each
snapshot against the outputs it already knows and tells observers about
every addition and removal. Every output still present gets an update on
every pass, whether or not anything changed, so subscribers can republish
and keep liveness pings flowing.

All access to the output map goes through a single actor task that works
off a FIFO of requests (refresh, set-state, read, shutdown). Nothing else
touches the map, so a reconciliation pass, including every observer call
it makes, always runs to completion before the next command is applied and
no reader ever sees a half-reconciled registry.

Observers run inside the actor. They must not await registry requests;
doing so raises ``RuntimeError`` instead of deadlocking.

Usage:
    registry = OutputRegistry(SwayBackend())
    registry.subscribe(bridge.handle_event)
    await registry.start()
    ...
    await registry.stop()   # drains, then emits OutputRemoved for every output
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Callable, Dict, FrozenSet, List, Optional, Sequence, Union

from ..asyncio_utils import cancel_and_wait, create_logged_task
from ..errors import InventoryError, RegistryClosedError, UnknownOutputError
from ..logging_utils import get_module_logger
from .backend import OutputBackend, OutputRecord
from .events import (
    OutputAdded,
    OutputCallback,
    OutputEvent,
    OutputEventHandler,
    OutputRemoved,
    OutputUpdated,
)
from .types import Output, OutputSnapshot, State

logger = get_module_logger("OutputRegistry")

# (desired, current) -> desired actually worth applying
StatePreparer = Callable[[State, State], State]


@dataclass
class _RefreshRequest:
    future: Optional[asyncio.Future] = None
    tick: bool = False


@dataclass
class _SetStateRequest:
    name: str
    desired: State
    prepare: Optional[StatePreparer]
    future: asyncio.Future


@dataclass
class _ReadRequest:
    name: str
    future: asyncio.Future


@dataclass
class _ShutdownRequest:
    future: asyncio.Future


_Request = Union[_RefreshRequest, _SetStateRequest, _ReadRequest, _ShutdownRequest]


@dataclass
class ReconcileResult:
    """Names touched by one reconciliation pass."""
    added: List[str] = field(default_factory=list)
    updated: List[str] = field(default_factory=list)
    removed: List[str] = field(default_factory=list)


class OutputRegistry:
    """Authoritative map of output name to ``Output``."""

    DEFAULT_REFRESH_INTERVAL = 1.0

    def __init__(
        self,
        backend: OutputBackend,
        refresh_interval: float = DEFAULT_REFRESH_INTERVAL,
    ):
        self._backend = backend
        self._refresh_interval = refresh_interval

        self._outputs: Dict[str, Output] = {}
        self._last_snapshots: Dict[str, OutputSnapshot] = {}
        self._handlers: List[OutputEventHandler] = []

        self._requests: Optional[asyncio.Queue] = None
        self._actor_task: Optional[asyncio.Task] = None
        self._ticker_task: Optional[asyncio.Task] = None
        self._tick_pending = False
        self._closed = False
        self.dropped_ticks = 0

    # ------------------------------------------------------------------
    # Observer registration

    def subscribe(self, handler: OutputEventHandler) -> None:
        """Receive every OutputAdded/OutputUpdated/OutputRemoved event."""
        if handler not in self._handlers:
            self._handlers.append(handler)

    def unsubscribe(self, handler: OutputEventHandler) -> None:
        if handler in self._handlers:
            self._handlers.remove(handler)

    def register_on_add(self, callback: OutputCallback) -> None:
        self.subscribe(_filtered(OutputAdded, callback))

    def register_on_update(self, callback: OutputCallback) -> None:
        self.subscribe(_filtered(OutputUpdated, callback))

    def register_on_remove(self, callback: OutputCallback) -> None:
        self.subscribe(_filtered(OutputRemoved, callback))

    # ------------------------------------------------------------------
    # Lifecycle

    @property
    def is_running(self) -> bool:
        return self._actor_task is not None and not self._actor_task.done()

    @property
    def names(self) -> FrozenSet[str]:
        """Names currently held (a copy; safe to read from the loop thread)."""
        return frozenset(self._outputs)

    async def start(self) -> None:
        """Start the actor and the refresh timer; the first tick fires immediately."""
        if self._actor_task is not None:
            return
        if self._closed:
            raise RegistryClosedError("registry has been stopped")

        self._requests = asyncio.Queue()
        self._actor_task = create_logged_task(
            self._run_actor(), logger=logger, context="output-registry-actor"
        )
        self._ticker_task = create_logged_task(
            self._run_ticker(), logger=logger, context="output-registry-ticker"
        )
        logger.info("Output registry started (refresh interval %.2fs)", self._refresh_interval)

    async def stop(self) -> None:
        """Stop the timer, drain queued requests, then emit removals for all outputs.

        Outputs stay in the map; the removal events are a teardown
        notification so subscribers can clean up after themselves.
        """
        if self._closed:
            return
        self._closed = True

        await cancel_and_wait(self._ticker_task)
        self._ticker_task = None

        if self._actor_task is None or self._requests is None:
            return

        done = asyncio.get_running_loop().create_future()
        self._requests.put_nowait(_ShutdownRequest(future=done))
        await done
        await self._actor_task
        logger.info("Output registry stopped")

    # ------------------------------------------------------------------
    # Requests

    async def refresh(self) -> ReconcileResult:
        """Run one reconciliation pass now; raises InventoryError on failure."""
        future = asyncio.get_running_loop().create_future()
        return await self._submit(_RefreshRequest(future=future))

    async def set_state(
        self,
        name: str,
        desired: State,
        prepare: Optional[StatePreparer] = None,
    ) -> State:
        """Apply ``desired`` to the named output.

        ``prepare`` sees the desired and current state and returns the state
        to apply; an empty result is a no-op that issues no command and
        raises no event.
        """
        future = asyncio.get_running_loop().create_future()
        return await self._submit(_SetStateRequest(name, desired, prepare, future))

    async def get_snapshot(self, name: str) -> OutputSnapshot:
        future = asyncio.get_running_loop().create_future()
        return await self._submit(_ReadRequest(name, future))

    async def _submit(self, request: _Request):
        if self._closed:
            raise RegistryClosedError("registry has been stopped")
        if self._requests is None:
            raise RegistryClosedError("registry has not been started")
        if self._actor_task is not None and asyncio.current_task() is self._actor_task:
            raise RuntimeError(
                "registry request issued from inside a registry observer; "
                "schedule it as a separate task instead"
            )
        self._requests.put_nowait(request)
        return await request.future

    # ------------------------------------------------------------------
    # Timer

    async def _run_ticker(self) -> None:
        assert self._requests is not None
        while True:
            if self._tick_pending:
                self.dropped_ticks += 1
                logger.debug("Refresh still in progress, dropping tick")
            else:
                self._tick_pending = True
                self._requests.put_nowait(_RefreshRequest(tick=True))
            await asyncio.sleep(self._refresh_interval)

    # ------------------------------------------------------------------
    # Actor

    async def _run_actor(self) -> None:
        assert self._requests is not None
        while True:
            request = await self._requests.get()

            if isinstance(request, _ShutdownRequest):
                await self._teardown()
                _resolve(request.future, None)
                return

            try:
                result = await self._handle(request)
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                if isinstance(request, _RefreshRequest):
                    logger.error("Failed to refresh outputs: %s", exc)
                if request.future is not None:
                    _fail(request.future, exc)
                elif not isinstance(exc, InventoryError):
                    logger.exception("Unexpected error while handling %s", type(request).__name__)
            else:
                if request.future is not None:
                    _resolve(request.future, result)
            finally:
                if isinstance(request, _RefreshRequest) and request.tick:
                    self._tick_pending = False

    async def _handle(self, request: _Request):
        if isinstance(request, _RefreshRequest):
            return await self._refresh()
        if isinstance(request, _SetStateRequest):
            return await self._set_state(request.name, request.desired, request.prepare)
        if isinstance(request, _ReadRequest):
            return self._lookup(request.name).snapshot()
        raise TypeError(f"unknown registry request {request!r}")

    def _lookup(self, name: str) -> Output:
        try:
            return self._outputs[name]
        except KeyError:
            raise UnknownOutputError(name) from None

    async def _refresh(self) -> ReconcileResult:
        logger.debug("Refreshing outputs")
        records = await self._backend.list_outputs()
        return await self._reconcile(records)

    async def _reconcile(self, records: Sequence[OutputRecord]) -> ReconcileResult:
        result = ReconcileResult()
        seen: set[str] = set()

        for record in records:
            name = record.name
            seen.add(name)
            output = self._outputs.get(name)

            if output is None:
                output = self._backend.create_output(record)
                self._outputs[name] = output
                snapshot = output.snapshot()
                self._last_snapshots[name] = snapshot
                result.added.append(name)
                logger.info("Output added: %s", name)
                await self._dispatch(OutputAdded(snapshot))
                continue

            # present outputs get an update on every pass, changed or not
            self._backend.update_output(output, record)
            snapshot = output.snapshot()
            self._last_snapshots[name] = snapshot
            result.updated.append(name)
            await self._dispatch(OutputUpdated(snapshot))

        for name in [known for known in self._outputs if known not in seen]:
            output = self._outputs.pop(name)
            self._last_snapshots.pop(name, None)
            result.removed.append(name)
            logger.info("Output removed: %s", name)
            await self._dispatch(OutputRemoved(output.snapshot()))

        return result

    async def _set_state(self, name: str, desired: State, prepare: Optional[StatePreparer]) -> State:
        output = self._lookup(name)
        if prepare is not None:
            desired = prepare(desired, output.get_state())
        if desired.is_empty():
            logger.debug("Nothing to apply for %s", name)
            return output.get_state()

        logger.debug("Applying %s to %s", ", ".join(desired.present_fields()), name)
        try:
            return await output.set_state(desired)
        finally:
            # a partial failure may still have changed something (e.g. scenario)
            await self._notify_if_changed(output)

    async def _notify_if_changed(self, output: Output) -> None:
        snapshot = output.snapshot()
        if self._last_snapshots.get(output.name) == snapshot:
            return
        self._last_snapshots[output.name] = snapshot
        await self._dispatch(OutputUpdated(snapshot))

    async def _teardown(self) -> None:
        logger.debug("Sending teardown notifications for %d outputs", len(self._outputs))
        for output in list(self._outputs.values()):
            await self._dispatch(OutputRemoved(output.snapshot()))

    async def _dispatch(self, event: OutputEvent) -> None:
        for handler in list(self._handlers):
            try:
                await handler(event)
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Observer failed handling %s for %s", type(event).__name__, event.name)


def _filtered(event_type: type, callback: OutputCallback) -> OutputEventHandler:
    async def handler(event: OutputEvent) -> None:
        if isinstance(event, event_type):
            await callback(event.output)

    return handler


def _resolve(future: asyncio.Future, result) -> None:
    if not future.done():
        future.set_result(result)


def _fail(future: asyncio.Future, exc: BaseException) -> None:
    if not future.done():
        future.set_exception(exc)


__all__ = ["OutputRegistry", "ReconcileResult", "StatePreparer"]
