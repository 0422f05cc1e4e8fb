"""Light bridge module for MQTT integration."""

from magicbridge.bridge.broker import BrokerClient
from magicbridge.bridge.config import BridgeConfig, BrokerConfig, load_config
from magicbridge.bridge.dispatcher import MessageDispatcher
from magicbridge.bridge.light_bridge import LightBridge
from magicbridge.bridge.router import TopicRouter
from magicbridge.bridge.session_registry import SessionRegistry

__all__ = [
    "BridgeConfig",
    "BrokerClient",
    "BrokerConfig",
    "LightBridge",
    "MessageDispatcher",
    "SessionRegistry",
    "TopicRouter",
    "load_config",
]
