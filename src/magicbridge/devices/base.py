"""Base controller interface for light controllers."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Awaitable, Callable


@dataclass(frozen=True)
class DeviceIdentity:
    """Identifies one physical controller on the network."""

    name: str
    address: str
    port: int


class LightController(ABC):
    """Abstract base class for a live connection to one light controller.

    A controller is the handle a DeviceSession owns exclusively. Implementations
    raise ConnectionLost when a command cannot be delivered over the link.
    """

    @property
    @abstractmethod
    def device_type(self) -> str:
        """Return controller type identifier (e.g., 'magic_home')."""
        pass

    @abstractmethod
    async def set_power(self, on: bool) -> None:
        """Switch the controller on or off."""
        pass

    @abstractmethod
    async def set_color(self, red: int, green: int, blue: int, white: int) -> None:
        """Set the four 8-bit colour channels."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Release the underlying connection."""
        pass


# Connection provider: opens a new controller for a device or raises
# DeviceConnectError.
Connector = Callable[[DeviceIdentity], Awaitable[LightController]]
