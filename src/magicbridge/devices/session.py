"""Device session owning the live connection to one controller."""

import asyncio
import logging
from typing import Optional

from magicbridge.devices.base import Connector, DeviceIdentity, LightController
from magicbridge.errors import ConnectionLost, DeviceConnectError

logger = logging.getLogger(__name__)


class DeviceSession:
    """Exclusive owner of the connection to a single light controller.

    The controller handle is only ever touched through this object: the
    setters send over it and reconnect() replaces it. Callers that need
    "apply, reconnect, retry" to run as one unit hold ``lock`` for its
    duration, so no two commands reach the same connection concurrently.
    """

    def __init__(
        self,
        identity: DeviceIdentity,
        controller: LightController,
        connector: Connector,
    ):
        """Initialize the session.

        Args:
            identity: Controller this session talks to
            controller: Already-open connection handle, now owned by the session
            connector: Connection provider used to reopen the handle
        """
        self._identity = identity
        self._controller = controller
        self._connector = connector
        self._lock = asyncio.Lock()
        self._closed = False
        self.last_error: Optional[Exception] = None

    @classmethod
    async def open(cls, identity: DeviceIdentity, connector: Connector) -> "DeviceSession":
        """Open a session with a fresh connection.

        Raises:
            DeviceConnectError: If the controller cannot be reached
        """
        controller = await cls._connect(identity, connector)
        return cls(identity, controller, connector)

    @staticmethod
    async def _connect(identity: DeviceIdentity, connector: Connector) -> LightController:
        try:
            return await connector(identity)
        except DeviceConnectError:
            raise
        except Exception as e:
            raise DeviceConnectError(
                f"Cannot connect to {identity.name} at {identity.address}:{identity.port}: {e}"
            ) from e

    @property
    def identity(self) -> DeviceIdentity:
        return self._identity

    @property
    def lock(self) -> asyncio.Lock:
        """Lock serialising command application on this session."""
        return self._lock

    @property
    def is_closed(self) -> bool:
        return self._closed

    async def set_power(self, on: bool) -> None:
        """Switch the controller on or off.

        Raises:
            ConnectionLost: If the connection is dead
        """
        await self._apply(self._controller.set_power(on))

    async def set_color(self, red: int, green: int, blue: int, white: int) -> None:
        """Set the controller's colour channels.

        Raises:
            ConnectionLost: If the connection is dead
        """
        await self._apply(self._controller.set_color(red, green, blue, white))

    async def _apply(self, operation) -> None:
        if self._closed:
            operation.close()
            raise ConnectionLost(f"Session for {self._identity.name} is closed")
        try:
            await operation
        except ConnectionLost as e:
            self.last_error = e
            raise
        self.last_error = None

    async def reconnect(self) -> None:
        """Replace the connection with a brand-new one to the same controller.

        The old handle is closed only once the new one is open; if opening
        fails the old handle stays in place. If the session is closed while
        the new handle is opening, the new handle is closed as well.

        Raises:
            DeviceConnectError: If the new connection cannot be opened, or the
                session was closed meanwhile
        """
        if self._closed:
            raise DeviceConnectError(f"Session for {self._identity.name} is closed")

        logger.warning(f"Connection to {self._identity.name} lost. Reconnecting ...")
        try:
            controller = await self._connect(self._identity, self._connector)
        except DeviceConnectError as e:
            self.last_error = e
            raise

        # close() may have run while the connector was waiting
        if self._closed:
            await self._close_quietly(controller)
            raise DeviceConnectError(f"Session for {self._identity.name} closed during reconnect")

        old, self._controller = self._controller, controller
        await self._close_quietly(old)

        logger.info(f"Reconnected to {self._identity.name} ({controller.device_type})")

    async def _close_quietly(self, controller: LightController) -> None:
        try:
            await controller.close()
        except Exception as e:
            logger.warning(f"Error closing stale connection to {self._identity.name}: {e}")

    async def close(self) -> None:
        """Release the connection handle."""
        self._closed = True
        await self._controller.close()
        logger.debug(f"Closed {self._controller.device_type} session for {self._identity.name}")
