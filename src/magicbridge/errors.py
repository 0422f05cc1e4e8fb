"""Exceptions raised by the bridge."""


class BridgeError(Exception):
    """Base class for all bridge errors."""


class ConfigError(BridgeError):
    """Configuration is missing, unreadable or malformed."""


class BrokerConnectError(BridgeError):
    """Initial connection to the MQTT broker failed."""


class DeviceConnectError(BridgeError):
    """A connection to a light controller could not be opened."""


class ConnectionLost(BridgeError):
    """A command failed because the controller connection is dead."""


class DecodeError(BridgeError, ValueError):
    """A payload could not be decoded for its command kind."""
