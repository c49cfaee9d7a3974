import argparse
import asyncio
import signal
from pathlib import Path
from typing import Any, Dict, Optional

from display_agent.core.bridge import OutputBridge, TopicScheme
from display_agent.core.config_manager import AgentConfig, get_config_manager
from display_agent.core.errors import AgentConfigError, MqttError
from display_agent.core.logging_config import configure_logging
from display_agent.core.logging_utils import get_module_logger
from display_agent.core.mqtt.client import MqttClient
from display_agent.core.outputs.registry import OutputRegistry
from display_agent.core.outputs.sway import LaunchCommands, SwayBackend, SwayMsg
from display_agent.core.paths import default_config_path
from display_agent.core.system import ServiceNotifier, get_machine_id


logger = get_module_logger("Agent")


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Display agent - exposes sway outputs over MQTT"
    )

    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="key = value config file (default: ~/.config/display-agent/config.txt, then /etc/display-agent/config.txt)"
    )

    parser.add_argument(
        "--mqtt-server-url",
        dest="mqtt_server_url",
        default=None,
        help="Broker URL, e.g. tcp://broker:1883 (env: MQTT_SERVER_URL)"
    )

    parser.add_argument(
        "--topic-prefix",
        dest="mqtt_topic_prefix",
        default=None,
        help="Topic prefix for all outputs (env: MQTT_TOPIC_PREFIX)"
    )

    parser.add_argument(
        "--refresh-interval",
        dest="refresh_interval",
        type=float,
        default=None,
        help="Seconds between output inventory polls (default: 1)"
    )

    parser.add_argument(
        "--machine-id",
        dest="machine_id",
        default=None,
        help="Override the machine id used in topic names"
    )

    parser.add_argument(
        "--log-level",
        choices=['debug', 'info', 'warning', 'error', 'critical'],
        default=None,
        help="Logging level (default: info)"
    )

    parser.add_argument(
        "--log-file",
        dest="log_file",
        type=Path,
        default=None,
        help="Optional rotating log file"
    )

    console_group = parser.add_mutually_exclusive_group()
    console_group.add_argument(
        "--console",
        dest="console_output",
        action="store_true",
        default=None,
        help="Log to stdout (default)"
    )
    console_group.add_argument(
        "--no-console",
        dest="console_output",
        action="store_false",
        help="Do not log to stdout"
    )

    return parser.parse_args(argv)


def _overrides_from_args(args: argparse.Namespace) -> Dict[str, Any]:
    keys = (
        "mqtt_server_url",
        "mqtt_topic_prefix",
        "refresh_interval",
        "machine_id",
        "log_level",
        "log_file",
        "console_output",
    )
    return {key: getattr(args, key) for key in keys if getattr(args, key) is not None}


class DisplayAgent:
    """
    Wires the output registry, the MQTT bridge and the host integration.

    Startup:
    1. resolve the machine id
    2. connect to the broker (failure is fatal)
    3. start the registry; the bridge publishes each output as it appears

    Shutdown:
    1. stop the registry: queued work finishes, then every output is
       announced as removed so the bridge publishes its tombstones
    2. wait for in-flight inbound commands
    3. tell the service manager we are stopping and disconnect
    """

    def __init__(self, config: AgentConfig, notifier: Optional[ServiceNotifier] = None):
        self.config = config
        self.notifier = notifier or ServiceNotifier()
        self.client: Optional[MqttClient] = None
        self.registry: Optional[OutputRegistry] = None
        self.bridge: Optional[OutputBridge] = None

    async def start(self) -> None:
        config = self.config
        machine_id = await asyncio.to_thread(get_machine_id, config.machine_id)

        self.client = await MqttClient.connect(
            config.mqtt_server_url,
            client_id=config.mqtt_client_id,
            timeout=config.mqtt_timeout,
        )

        logger.bind(machineID=machine_id, topicPrefix=config.mqtt_topic_prefix).info("Server started")

        backend = SwayBackend(
            SwayMsg(config.sway_socket),
            LaunchCommands(browser=config.browser_command, video=config.video_command),
        )
        self.registry = OutputRegistry(backend, refresh_interval=config.refresh_interval)
        self.bridge = OutputBridge(
            self.client,
            TopicScheme(config.mqtt_topic_prefix, machine_id),
            self.registry,
            notifier=self.notifier,
        )
        self.bridge.attach()
        await self.registry.start()

    async def stop(self) -> None:
        if self.registry is not None:
            await self.registry.stop()
        if self.bridge is not None:
            await self.bridge.close()
        self.notifier.stopping()
        if self.client is not None:
            try:
                await self.client.disconnect()
            except MqttError as exc:
                logger.warning("Error while disconnecting: %s", exc)


async def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)
    config_manager = get_config_manager()

    try:
        config = await config_manager.load(
            args.config or default_config_path(),
            _overrides_from_args(args),
        )
    except AgentConfigError as exc:
        configure_logging("info", force=True)
        logger.error("Invalid configuration: %s", exc)
        return 1

    configure_logging(
        config.log_level,
        force=True,
        console=config.console_output,
        log_file=config.log_file,
    )

    agent = DisplayAgent(config)
    shutdown_event = asyncio.Event()
    loop = asyncio.get_running_loop()

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, shutdown_event.set)
        except (NotImplementedError, RuntimeError):
            signal.signal(sig, lambda *_: loop.call_soon_threadsafe(shutdown_event.set))

    try:
        await agent.start()
    except (AgentConfigError, MqttError) as exc:
        logger.error("Server failed: %s", exc)
        await agent.stop()
        return 1

    logger.info("Display agent running, waiting for shutdown signal")
    await shutdown_event.wait()

    logger.info("Shutdown requested")
    await agent.stop()
    logger.info("Display agent stopped")
    return 0
