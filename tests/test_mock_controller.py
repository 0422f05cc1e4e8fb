"""Tests for MockMagicHomeController state persistence."""

import json

import pytest

from magicbridge.devices import DeviceIdentity, MockMagicHomeController
from magicbridge.devices.magic_home import mock_connector
from magicbridge.errors import ConnectionLost


def test_default_state_when_no_file(mock_controller):
    assert mock_controller.state["is_on"] is False
    assert mock_controller.state["red"] == 0
    assert "last_updated" in mock_controller.state


@pytest.mark.asyncio
async def test_set_power_persists(mock_controller, tmp_state_file):
    await mock_controller.set_power(True)

    with open(tmp_state_file) as f:
        saved = json.load(f)
    assert saved["is_on"] is True


@pytest.mark.asyncio
async def test_set_color_persists_across_instances(mock_controller, tmp_state_file):
    await mock_controller.set_color(10, 20, 30, 0)

    reloaded = MockMagicHomeController(state_file=tmp_state_file)
    assert (reloaded.state["red"], reloaded.state["green"], reloaded.state["blue"]) == (10, 20, 30)
    assert reloaded.state["white"] == 0


def test_corrupt_state_file_falls_back(tmp_state_file):
    tmp_state_file.write_text("not json")

    controller = MockMagicHomeController(state_file=tmp_state_file)

    assert controller.state["is_on"] is False


@pytest.mark.asyncio
async def test_closed_controller_loses_connection(mock_controller):
    await mock_controller.close()

    with pytest.raises(ConnectionLost):
        await mock_controller.set_power(True)


@pytest.mark.asyncio
async def test_mock_connector_uses_per_device_state(tmp_path):
    connect = mock_connector(tmp_path)

    controller = await connect(DeviceIdentity(name="kitchen", address="10.0.0.5", port=5577))

    assert controller.state_file == tmp_path / "kitchen_state.json"
