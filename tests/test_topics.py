"""Tests for the light topic grammar."""

import pytest

from magicbridge.topics import (
    command_suffix,
    device_filter,
    device_name_for,
    is_valid_device_name,
)


class TestDeviceNamespace:
    """Tests for extracting the device name."""

    def test_device_filter(self):
        """Test the subscription filter for a device."""
        assert device_filter("kitchen") == "light/kitchen/#"

    def test_device_name_for(self):
        """Test extracting the name from a command topic."""
        assert device_name_for("light/kitchen/on") == "kitchen"
        assert device_name_for("light/kitchen/a/b") == "kitchen"

    @pytest.mark.parametrize("topic", ["light/kitchen", "light//on", "lamp/kitchen/on", "kitchen"])
    def test_outside_namespace(self, topic):
        """Test topics outside light/<name>/ have no device name."""
        assert device_name_for(topic) is None

    def test_command_suffix(self):
        """Test the command suffix is the last segment."""
        assert command_suffix("light/kitchen/value") == "value"
        assert command_suffix("other/kitchen/value") is None


class TestDeviceNames:
    """Tests for device name validation."""

    @pytest.mark.parametrize("name", ["kitchen", "living-room", "strip_1"])
    def test_valid(self, name):
        assert is_valid_device_name(name)

    @pytest.mark.parametrize("name", ["", "a/b", "#", "kitchen+"])
    def test_invalid(self, name):
        assert not is_valid_device_name(name)
