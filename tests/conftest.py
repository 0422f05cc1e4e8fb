"""Shared fixtures for light bridge tests."""

import pytest

from magicbridge.devices import DeviceIdentity, MockMagicHomeController
from magicbridge.devices.base import LightController
from magicbridge.errors import ConnectionLost, DeviceConnectError


class FakeController(LightController):
    """Controller that records every call and fails on demand.

    Attributes:
        calls: ("set_power", on) / ("set_color", r, g, b, w) tuples, in order
        fail_commands: Number of upcoming commands that raise ConnectionLost
    """

    def __init__(self, identity: DeviceIdentity, fail_commands: int = 0):
        self.identity = identity
        self.calls: list[tuple] = []
        self.fail_commands = fail_commands
        self.closed = False

    @property
    def device_type(self) -> str:
        return "fake"

    def _maybe_fail(self) -> None:
        if self.fail_commands > 0:
            self.fail_commands -= 1
            raise ConnectionLost(f"{self.identity.name}: broken pipe")

    async def set_power(self, on: bool) -> None:
        self._maybe_fail()
        self.calls.append(("set_power", on))

    async def set_color(self, red: int, green: int, blue: int, white: int) -> None:
        self._maybe_fail()
        self.calls.append(("set_color", red, green, blue, white))

    async def close(self) -> None:
        self.closed = True


class FakeConnector:
    """Connection provider handing out FakeControllers.

    Attributes:
        opened: Every controller opened, in order
        fail_names: Device names whose next connect attempts fail
        fail_commands: ConnectionLost count given to each new controller
    """

    def __init__(self):
        self.opened: list[FakeController] = []
        self.fail_names: set[str] = set()
        self.fail_commands: dict[str, int] = {}

    async def __call__(self, identity: DeviceIdentity) -> FakeController:
        if identity.name in self.fail_names:
            raise DeviceConnectError(f"{identity.name}: connection refused")
        controller = FakeController(identity, self.fail_commands.get(identity.name, 0))
        self.opened.append(controller)
        return controller

    def opened_for(self, name: str) -> list[FakeController]:
        return [c for c in self.opened if c.identity.name == name]


@pytest.fixture
def kitchen():
    """The kitchen controller identity."""
    return DeviceIdentity(name="kitchen", address="10.0.0.5", port=5577)


@pytest.fixture
def bedroom():
    """A second controller identity."""
    return DeviceIdentity(name="bedroom", address="10.0.0.6", port=5577)


@pytest.fixture
def connector():
    """Return a fresh FakeConnector."""
    return FakeConnector()


@pytest.fixture
def tmp_state_file(tmp_path):
    """Provide a temporary state file path that doesn't touch ~/.magicbridge/."""
    return tmp_path / "kitchen_state.json"


@pytest.fixture
def mock_controller(tmp_state_file):
    """Return a MockMagicHomeController backed by a temporary state file."""
    return MockMagicHomeController(state_file=tmp_state_file)
