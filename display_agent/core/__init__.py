from .bridge import OutputBridge, TopicScheme, dedup_state
from .config_manager import AgentConfig, ConfigManager, get_config_manager
from .errors import (
    AgentConfigError,
    ConfigurationError,
    DisplayAgentError,
    InvalidArgument,
    InventoryError,
    MqttError,
    PayloadError,
    RegistryClosedError,
    ScenarioError,
    SwayCommandError,
    UnknownOutputError,
    UnsupportedScenario,
)
from .outputs import OutputRegistry
from .system import ServiceNotifier, get_machine_id

__all__ = [
    'AgentConfig',
    'AgentConfigError',
    'ConfigManager',
    'ConfigurationError',
    'DisplayAgentError',
    'InvalidArgument',
    'InventoryError',
    'MqttError',
    'OutputBridge',
    'OutputRegistry',
    'PayloadError',
    'RegistryClosedError',
    'ScenarioError',
    'ServiceNotifier',
    'SwayCommandError',
    'TopicScheme',
    'UnknownOutputError',
    'UnsupportedScenario',
    'dedup_state',
    'get_config_manager',
    'get_machine_id',
]
