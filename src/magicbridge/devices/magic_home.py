"""Magic Home (LEDENET) controller implementations (real + mock fallback)."""

import asyncio
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict

from flux_led.aiodevice import AIOWifiLedBulb

from magicbridge.devices.base import Connector, DeviceIdentity, LightController
from magicbridge.errors import ConnectionLost, DeviceConnectError

logger = logging.getLogger(__name__)

DEFAULT_PORT = 5577
DEFAULT_TIMEOUT = 5.0

# Failures that mean the LAN link to the controller is gone
LINK_ERRORS = (OSError, asyncio.TimeoutError, RuntimeError)


class MagicHomeController(LightController):
    """Real Magic Home control via the flux_led library."""

    def __init__(self, bulb: AIOWifiLedBulb, identity: DeviceIdentity):
        self._bulb = bulb
        self._identity = identity

    @classmethod
    async def connect(
        cls, identity: DeviceIdentity, timeout: float = DEFAULT_TIMEOUT
    ) -> "MagicHomeController":
        """Open a connection to the controller at identity.address:identity.port.

        Raises:
            DeviceConnectError: If the controller cannot be reached
        """
        bulb = AIOWifiLedBulb(identity.address, port=identity.port, timeout=timeout)
        try:
            await bulb.async_setup(lambda: None)
        except LINK_ERRORS as e:
            raise DeviceConnectError(
                f"Cannot connect to {identity.name} at {identity.address}:{identity.port}: {e}"
            ) from e
        logger.info(f"Connected to magic home controller {identity.name} ({identity.address}:{identity.port})")
        return cls(bulb, identity)

    @property
    def device_type(self) -> str:
        return "magic_home"

    async def set_power(self, on: bool) -> None:
        logger.debug(f"Setting {self._identity.name} power {'ON' if on else 'OFF'}")
        try:
            if on:
                confirmed = await self._bulb.async_turn_on()
            else:
                confirmed = await self._bulb.async_turn_off()
        except LINK_ERRORS as e:
            raise ConnectionLost(f"{self._identity.name}: {e}") from e
        if confirmed is False:
            raise ConnectionLost(f"{self._identity.name}: power change not confirmed")

    async def set_color(self, red: int, green: int, blue: int, white: int) -> None:
        logger.debug(f"Setting {self._identity.name} color to ({red}, {green}, {blue}, {white})")
        try:
            await self._bulb.async_set_levels(red, green, blue, white)
        except LINK_ERRORS as e:
            raise ConnectionLost(f"{self._identity.name}: {e}") from e

    async def close(self) -> None:
        await self._bulb.async_stop()


class MockMagicHomeController(LightController):
    """Mock implementation of a Magic Home controller.

    Simulates a real controller for development without hardware.
    State is persisted to a JSON file so it survives bridge restarts.
    """

    def __init__(self, state_file: Path):
        self.state_file = state_file
        self.state = self._load_state()
        self.closed = False
        logger.info(f"MockMagicHomeController initialized. Current state: {self.state}")

    def _load_state(self) -> Dict[str, Any]:
        if self.state_file.exists():
            try:
                with open(self.state_file, "r") as f:
                    state = json.load(f)
                    logger.info(f"Loaded state from {self.state_file}")
                    return state
            except (json.JSONDecodeError, IOError) as e:
                logger.warning(f"Could not load state file: {e}. Using default state.")

        return {
            "is_on": False,
            "red": 0,
            "green": 0,
            "blue": 0,
            "white": 0,
            "last_updated": datetime.now().isoformat(),
        }

    def _save_state(self) -> None:
        try:
            self.state_file.parent.mkdir(parents=True, exist_ok=True)
            self.state["last_updated"] = datetime.now().isoformat()
            with open(self.state_file, "w") as f:
                json.dump(self.state, f, indent=2)
            logger.debug(f"State saved to {self.state_file}")
        except IOError as e:
            logger.error(f"Failed to save state: {e}")

    def _ensure_open(self) -> None:
        if self.closed:
            raise ConnectionLost(f"Mock controller {self.state_file.stem} is closed")

    @property
    def device_type(self) -> str:
        return "magic_home"

    async def set_power(self, on: bool) -> None:
        self._ensure_open()
        logger.info(f"Turning light {'ON' if on else 'OFF'} (mock)")
        self.state["is_on"] = on
        self._save_state()

    async def set_color(self, red: int, green: int, blue: int, white: int) -> None:
        self._ensure_open()
        logger.info(f"Setting color to ({red}, {green}, {blue}, {white}) (mock)")
        self.state.update(red=red, green=green, blue=blue, white=white)
        self._save_state()

    async def close(self) -> None:
        self.closed = True


def magic_home_connector(timeout: float = DEFAULT_TIMEOUT) -> Connector:
    """Return a connector that opens real Magic Home controllers."""

    async def connect(identity: DeviceIdentity) -> LightController:
        return await MagicHomeController.connect(identity, timeout=timeout)

    return connect


def mock_connector(state_dir: Path) -> Connector:
    """Return a connector that opens mock controllers with state under state_dir."""

    async def connect(identity: DeviceIdentity) -> LightController:
        return MockMagicHomeController(state_dir / f"{identity.name}_state.json")

    return connect
