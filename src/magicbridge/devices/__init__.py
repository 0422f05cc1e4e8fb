"""Light controller modules."""

from .base import Connector, DeviceIdentity, LightController
from .magic_home import MagicHomeController, MockMagicHomeController
from .session import DeviceSession

__all__ = [
    "Connector",
    "DeviceIdentity",
    "DeviceSession",
    "LightController",
    "MagicHomeController",
    "MockMagicHomeController",
]
