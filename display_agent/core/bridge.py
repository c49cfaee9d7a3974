"""
Bridge between the output registry and the MQTT broker.

Topic layout per output, with ``<base> = {prefix}/{output}@{machine_id}``:

- ``<base>/info``  full Info, published when the output appears
- ``<base>/state`` full State, published when the output appears or changes
- ``<base>/set``   sparse desired State accepted from remote clients

When an output goes away the bridge unsubscribes from its ``/set`` topic and
publishes ``{}`` to ``/state`` and ``/info`` as a tombstone.

Inbound documents are parsed, stripped of fields that already match the
output's current state and then handed to the registry.
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from typing import Any, Optional, Set

from .asyncio_utils import spawn_threadsafe
from .errors import (
    ConfigurationError,
    MqttError,
    PayloadError,
    RegistryClosedError,
    UnknownOutputError,
)
from .logging_utils import get_module_logger
from .mqtt.client import MessageHandler, MqttClient
from .outputs.events import OutputAdded, OutputEvent, OutputRemoved, OutputUpdated
from .outputs.registry import OutputRegistry
from .outputs.types import OutputSnapshot, State
from .system import ServiceNotifier

logger = get_module_logger("Bridge")

TOMBSTONE = "{}"

_SCALAR_FIELDS = ("enabled", "mode", "power", "scale", "transform")


@dataclass(frozen=True)
class TopicScheme:
    """Derives per-output topics from the prefix and this machine's id."""
    prefix: str
    machine_id: str

    def base(self, output_name: str) -> str:
        return f"{self.prefix}/{output_name}@{self.machine_id}"

    def state(self, output_name: str) -> str:
        return f"{self.base(output_name)}/state"

    def info(self, output_name: str) -> str:
        return f"{self.base(output_name)}/info"

    def set(self, output_name: str) -> str:
        return f"{self.base(output_name)}/set"


def dedup_state(desired: State, current: State) -> State:
    """Drop every field of ``desired`` that already equals ``current``.

    Fields missing on either side are passed through. Scenarios compare by
    name and ordered argument list.
    """
    redundant = []
    for name in _SCALAR_FIELDS:
        wanted = getattr(desired, name)
        actual = getattr(current, name)
        if wanted is not None and actual is not None and wanted == actual:
            redundant.append(name)

    if desired.scenario is not None and current.scenario is not None:
        if (desired.scenario.name, tuple(desired.scenario.args)) == (
            current.scenario.name,
            tuple(current.scenario.args),
        ):
            redundant.append("scenario")

    return desired.without(*redundant) if redundant else desired


def _to_json(data: Any) -> str:
    return json.dumps(data, separators=(",", ":"))


class OutputBridge:
    """Mirrors registry events onto MQTT topics and routes ``/set`` commands back."""

    def __init__(
        self,
        client: MqttClient,
        topics: TopicScheme,
        registry: OutputRegistry,
        notifier: Optional[ServiceNotifier] = None,
        qos: int = 0,
        retain: bool = False,
    ):
        self._client = client
        self._topics = topics
        self._registry = registry
        self._notifier = notifier or ServiceNotifier()
        self._qos = qos
        self._retain = retain
        self._ready_signalled = False
        self._pending: Set[asyncio.Task] = set()

    @property
    def topics(self) -> TopicScheme:
        return self._topics

    def attach(self) -> None:
        self._registry.subscribe(self.handle_event)

    async def close(self) -> None:
        """Wait for inbound commands that are still being applied."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    # ------------------------------------------------------------------
    # Registry events

    async def handle_event(self, event: OutputEvent) -> None:
        if isinstance(event, OutputAdded):
            await self._on_added(event.output)
        elif isinstance(event, OutputUpdated):
            await self._on_updated(event.output)
        elif isinstance(event, OutputRemoved):
            await self._on_removed(event.output)

    async def _on_added(self, output: OutputSnapshot) -> None:
        log = logger.bind(outputName=output.name)

        if await self._publish_output(output, include_info=True):
            self._notifier.watchdog()

        set_topic = self._topics.set(output.name)
        handler = self._make_set_handler(output.name, set_topic, asyncio.get_running_loop())
        try:
            await self._client.subscribe(set_topic, handler, qos=self._qos)
        except MqttError as exc:
            log.error("unable to subscribe to set topic %s: %s", set_topic, exc)

        if not self._ready_signalled:
            self._ready_signalled = True
            self._notifier.ready()

    async def _on_updated(self, output: OutputSnapshot) -> None:
        if await self._publish_output(output, include_info=False):
            self._notifier.watchdog()

    async def _on_removed(self, output: OutputSnapshot) -> None:
        log = logger.bind(outputName=output.name)

        try:
            await self._client.unsubscribe([self._topics.set(output.name)])
        except MqttError as exc:
            log.warning("unable to unsubscribe: %s", exc)

        for topic in (self._topics.state(output.name), self._topics.info(output.name)):
            try:
                await self._client.publish(topic, TOMBSTONE, qos=self._qos, retain=self._retain)
            except MqttError as exc:
                log.warning("unable to publish tombstone to %s: %s", topic, exc)

    async def _publish_output(self, output: OutputSnapshot, include_info: bool) -> bool:
        log = logger.bind(outputName=output.name)
        messages = [(self._topics.state(output.name), _to_json(output.state.to_dict()))]
        if include_info:
            messages.append((self._topics.info(output.name), _to_json(output.info.to_dict())))

        for topic, payload in messages:
            try:
                await self._client.publish(topic, payload, qos=self._qos, retain=self._retain)
            except MqttError as exc:
                log.warning("unable to publish output data to %s: %s", topic, exc)
                return False
        return True

    # ------------------------------------------------------------------
    # Inbound commands

    def _make_set_handler(
        self,
        output_name: str,
        topic: str,
        loop: asyncio.AbstractEventLoop,
    ) -> MessageHandler:
        log = logger.bind(outputName=output_name, topic=topic)

        def on_message(message_topic: str, payload: bytes) -> None:
            if message_topic != topic:
                log.warning("discarded unrelated message on %s", message_topic)
                return
            try:
                spawn_threadsafe(
                    loop,
                    lambda: self.handle_set_command(output_name, payload),
                    logger=log,
                    context=f"set-{output_name}",
                    pending=self._pending,
                )
            except RuntimeError:
                log.warning("event loop closed, dropping set command")

        return on_message

    async def handle_set_command(self, output_name: str, payload: bytes) -> Optional[State]:
        """Parse, dedup and apply one ``/set`` payload; errors are logged."""
        log = logger.bind(outputName=output_name)
        log.debug("received message: %r", payload)

        try:
            desired = State.from_json(payload)
        except PayloadError as exc:
            log.error("failed to parse set payload: %s", exc)
            return None

        try:
            return await self._registry.set_state(output_name, desired, prepare=dedup_state)
        except ConfigurationError as exc:
            log.error("unable to handle set command (field %s): %s", exc.field, exc)
        except (UnknownOutputError, RegistryClosedError) as exc:
            log.warning("dropping set command: %s", exc)
        return None


__all__ = ["OutputBridge", "TOMBSTONE", "TopicScheme", "dedup_state"]
