"""Tests for the BrokerClient wrapper."""

import sys
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from magicbridge.bridge.broker import BrokerClient
from magicbridge.bridge.config import BrokerConfig
from magicbridge.errors import BrokerConnectError

# Import mocks directly to avoid module path issues
sys.path.insert(0, str(Path(__file__).parent))
from mocks.mock_mqtt_client import MockMqttConnection


@pytest.fixture
def broker_config():
    return BrokerConfig(host="broker.local", port=1883, username="user", password="secret")


@pytest.fixture
def mock_connection():
    """Create a mock MQTT connection."""
    return MockMqttConnection()


@pytest.fixture
def broker(broker_config, mock_connection):
    return BrokerClient(broker_config, connection=mock_connection)


class TestBrokerConnect:
    """Tests for connection management."""

    def test_connect(self, broker, mock_connection):
        """Test a successful connect."""
        broker.connect()

        assert broker.is_connected is True
        assert mock_connection.connected is True

    def test_connect_failure_raises(self, broker, mock_connection):
        """Test that a failed connect raises BrokerConnectError."""
        mock_connection.simulate_connect_failure = True

        with pytest.raises(BrokerConnectError) as exc_info:
            broker.connect()

        assert "broker.local:1883" in str(exc_info.value)
        assert broker.is_connected is False

    def test_disconnect(self, broker, mock_connection):
        """Test disconnect releases the connection."""
        broker.connect()

        broker.disconnect(grace_period=0.25)

        assert mock_connection.connected is False
        assert mock_connection.disconnect_calls == 1
        assert broker.is_connected is False

    def test_disconnect_when_not_connected(self, broker_config):
        """Test that disconnect without a connection does nothing."""
        BrokerClient(broker_config).disconnect()

    def test_disconnect_error_is_logged(self, broker_config, caplog):
        """Test that a failing disconnect is logged, not raised."""
        connection = MagicMock()
        connection.disconnect.return_value.result.side_effect = TimeoutError()
        broker = BrokerClient(broker_config, connection=connection)

        broker.disconnect()

        assert "Error during disconnect" in caplog.text

    def test_plain_connection_uses_credentials(self, broker_config):
        """Test that without certificates a plain awscrt connection is built."""
        with patch("magicbridge.bridge.broker.mqtt") as mqtt_module, patch(
            "magicbridge.bridge.broker.io"
        ):
            BrokerClient(broker_config).connect()

        kwargs = mqtt_module.Connection.call_args.kwargs
        assert kwargs["host_name"] == "broker.local"
        assert kwargs["port"] == 1883
        assert kwargs["username"] == "user"
        assert kwargs["password"] == "secret"

    def test_certificates_use_mtls_builder(self, tmp_path):
        """Test that configured certificates select the mutual TLS builder."""
        config = BrokerConfig(host="broker.local", port=8883, cert_path=tmp_path / "c", key_path=tmp_path / "k")

        with patch("magicbridge.bridge.broker.mqtt_connection_builder") as builder:
            BrokerClient(config).connect()

        kwargs = builder.mtls_from_path.call_args.kwargs
        assert kwargs["endpoint"] == "broker.local"
        assert kwargs["port"] == 8883
        assert kwargs["cert_filepath"] == str(tmp_path / "c")


class TestBrokerMessages:
    """Tests for subscriptions and delivery."""

    def test_subscribe(self, broker, mock_connection):
        """Test subscribing records the filter and QoS."""
        broker.connect()

        broker.subscribe("light/kitchen/#", 1)

        assert mock_connection.subscriptions["light/kitchen/#"].qos == 1

    def test_subscribe_before_connect_raises(self, broker_config):
        """Test that subscribing without a connection is an error."""
        with pytest.raises(RuntimeError):
            BrokerClient(broker_config).subscribe("light/kitchen/#", 1)

    def test_handler_receives_matching_messages(self, broker, mock_connection):
        """Test that the registered handler gets topic and payload."""
        handler = MagicMock()
        broker.on_message(handler)
        broker.connect()
        broker.subscribe("light/kitchen/#", 1)

        assert mock_connection.simulate_message("light/kitchen/on", b"True") is True
        assert mock_connection.simulate_message("light/bedroom/on", b"True") is False

        handler.assert_called_once()
        assert handler.call_args.kwargs["topic"] == "light/kitchen/on"
        assert handler.call_args.kwargs["payload"] == b"True"

    def test_connection_callbacks_log(self, broker, caplog):
        """Test that interruptions are logged."""
        broker._on_connection_interrupted(None, "socket closed")
        broker._on_connection_resumed(None, 0, False)

        assert "Connect lost: socket closed" in caplog.text
