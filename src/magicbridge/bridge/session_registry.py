"""Session registry for the configured light controllers."""

import logging
from typing import Iterable, Optional

from magicbridge.devices.base import Connector, DeviceIdentity
from magicbridge.devices.session import DeviceSession

logger = logging.getLogger(__name__)


class SessionRegistry:
    """Registry of device sessions keyed by device name.

    Filled once at startup and read-only afterwards, so lookups need no locking.
    """

    def __init__(self):
        self._sessions: dict[str, DeviceSession] = {}

    @classmethod
    async def open_all(
        cls, identities: Iterable[DeviceIdentity], connector: Connector
    ) -> "SessionRegistry":
        """Open one session per configured device, in order.

        Sessions opened before a failure are closed before the error propagates.

        Args:
            identities: Configured controllers
            connector: Connection provider used to open each controller

        Returns:
            Registry holding an open session for every device

        Raises:
            DeviceConnectError: If any controller cannot be reached
            ValueError: If two devices share a name
        """
        registry = cls()
        try:
            for identity in identities:
                if identity.name in registry:
                    raise ValueError(f"Device already registered: {identity.name}")
                logger.info(
                    f"Opening magic home controller: {identity.name} {identity.address}:{identity.port}"
                )
                session = await DeviceSession.open(identity, connector)
                registry.register(identity.name, session)
        except Exception:
            await registry.close_all()
            raise
        return registry

    def register(self, device_name: str, session: DeviceSession) -> None:
        """Register a session under the given device name.

        Raises:
            ValueError: If a session with the same name is already registered
        """
        if device_name in self._sessions:
            raise ValueError(f"Device already registered: {device_name}")
        self._sessions[device_name] = session

    def get(self, device_name: str) -> Optional[DeviceSession]:
        """Get a session by device name, or None if not found."""
        return self._sessions.get(device_name)

    def get_all(self) -> dict[str, DeviceSession]:
        """Get all registered sessions.

        Returns:
            Dictionary mapping device names to sessions
        """
        return dict(self._sessions)

    def list_device_names(self) -> list[str]:
        """List all registered device names."""
        return list(self._sessions.keys())

    async def close_all(self) -> None:
        """Close every session. Failures are logged, not raised."""
        for device_name, session in self._sessions.items():
            if session.is_closed:
                continue
            try:
                await session.close()
            except Exception as e:
                logger.warning(f"Error closing session {device_name}: {e}")

    def __len__(self) -> int:
        """Return the number of registered sessions."""
        return len(self._sessions)

    def __contains__(self, device_name: str) -> bool:
        """Check if a device name is registered."""
        return device_name in self._sessions
