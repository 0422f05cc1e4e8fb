"""MQTT broker client built on the AWS CRT MQTT 3.1.1 connection."""

import logging
from typing import Callable, Optional

from awscrt import io, mqtt
from awsiot import mqtt_connection_builder

from magicbridge.bridge.config import BrokerConfig
from magicbridge.errors import BrokerConnectError

logger = logging.getLogger(__name__)

CONNECT_TIMEOUT_SEC = 10.0
SUBSCRIBE_TIMEOUT_SEC = 5.0
# Matches the 250 ms quiesce the bridge has always given the broker
DISCONNECT_GRACE_SEC = 0.25
KEEP_ALIVE_SEC = 30

MessageHandler = Callable[..., None]


class BrokerClient:
    """Thin wrapper over an awscrt MQTT connection.

    Reconnection of the broker link itself is left to the CRT client; this
    class only logs interruptions.
    """

    def __init__(self, config: BrokerConfig, connection: Optional[mqtt.Connection] = None):
        """Initialize the broker client.

        Args:
            config: Broker connection settings
            connection: Pre-built connection, mainly for tests. Built from
                config when omitted.
        """
        self._config = config
        self._connection = connection
        self._handler: Optional[MessageHandler] = None
        self._connected = False

    @property
    def endpoint(self) -> str:
        return f"{self._config.host}:{self._config.port}"

    @property
    def is_connected(self) -> bool:
        return self._connected

    def _create_connection(self) -> mqtt.Connection:
        """Create the MQTT connection, with mutual TLS when certificates are configured."""
        if self._config.uses_mtls:
            return mqtt_connection_builder.mtls_from_path(
                endpoint=self._config.host,
                port=self._config.port,
                cert_filepath=str(self._config.cert_path),
                pri_key_filepath=str(self._config.key_path),
                ca_filepath=str(self._config.root_ca_path) if self._config.root_ca_path else None,
                client_id=self._config.client_id,
                username=self._config.username,
                password=self._config.password,
                clean_session=True,
                keep_alive_secs=KEEP_ALIVE_SEC,
                on_connection_interrupted=self._on_connection_interrupted,
                on_connection_resumed=self._on_connection_resumed,
            )

        client = mqtt.Client(io.ClientBootstrap.get_or_create_static_default(), None)
        return mqtt.Connection(
            client=client,
            host_name=self._config.host,
            port=self._config.port,
            client_id=self._config.client_id,
            clean_session=True,
            keep_alive_secs=KEEP_ALIVE_SEC,
            username=self._config.username,
            password=self._config.password,
            on_connection_interrupted=self._on_connection_interrupted,
            on_connection_resumed=self._on_connection_resumed,
        )

    def _on_connection_interrupted(self, connection, error, **kwargs):  # noqa: ARG002
        """Handle connection interruption."""
        logger.warning(f"Connect lost: {error}")

    def _on_connection_resumed(self, connection, return_code, session_present, **kwargs):  # noqa: ARG002
        """Handle connection resume after interruption."""
        logger.info(f"Connection resumed (session_present={session_present})")

    def on_message(self, handler: MessageHandler) -> None:
        """Register the handler called with (topic, payload, **kwargs) for every message."""
        self._handler = handler
        if self._connection is not None:
            self._connection.on_message(handler)

    def connect(self, timeout: float = CONNECT_TIMEOUT_SEC) -> None:
        """Connect to the broker, blocking until connected.

        Raises:
            BrokerConnectError: If the connection cannot be established
        """
        try:
            if self._connection is None:
                self._connection = self._create_connection()
            if self._handler is not None:
                self._connection.on_message(self._handler)
            connect_future = self._connection.connect()
            connect_future.result(timeout=timeout)
        except Exception as e:
            raise BrokerConnectError(f"Failed to connect to broker {self.endpoint}: {e}") from e

        self._connected = True
        logger.info("Connected")

    def subscribe(self, topic_filter: str, qos: int = 1, timeout: float = SUBSCRIBE_TIMEOUT_SEC) -> None:
        """Subscribe to a topic filter, blocking until acknowledged."""
        if self._connection is None:
            raise RuntimeError("Broker client is not connected")
        subscribe_future, _ = self._connection.subscribe(topic=topic_filter, qos=mqtt.QoS(qos))
        subscribe_future.result(timeout=timeout)

    def disconnect(self, grace_period: float = DISCONNECT_GRACE_SEC) -> None:
        """Disconnect from the broker, waiting at most grace_period seconds."""
        if self._connection is None:
            return

        try:
            disconnect_future = self._connection.disconnect()
            disconnect_future.result(timeout=grace_period)
            logger.info("Disconnected from broker")
        except Exception as e:
            logger.warning(f"Error during disconnect: {e}")
        finally:
            self._connected = False
            self._connection = None
