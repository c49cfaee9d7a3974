"""MQTT transport adapter."""

from .client import DEFAULT_TIMEOUT, BrokerAddress, MessageHandler, MqttClient

__all__ = ["BrokerAddress", "DEFAULT_TIMEOUT", "MessageHandler", "MqttClient"]
