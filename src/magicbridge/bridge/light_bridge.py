"""Bridge between an MQTT broker and local Magic Home controllers."""

import asyncio
import logging
from typing import Optional

from magicbridge.bridge.broker import DISCONNECT_GRACE_SEC, BrokerClient
from magicbridge.bridge.config import BridgeConfig
from magicbridge.bridge.dispatcher import MessageDispatcher
from magicbridge.bridge.router import TopicRouter
from magicbridge.bridge.session_registry import SessionRegistry
from magicbridge.devices.base import Connector

logger = logging.getLogger(__name__)


class LightBridge:
    """Owns the dispatch engine for the lifetime of the process.

    Handles:
    - Connecting to the broker before anything else
    - Opening one session per configured controller
    - Subscribing each controller to light/{name}/# and dispatching messages
    - Orderly teardown: sessions closed, broker disconnected

    Topic structure:
    - light/{name}/on     payload "True" switches on, anything else off
    - light/{name}/value  integer payload sets R=G=B=value, W=0
    """

    def __init__(self, config: BridgeConfig, connector: Connector, broker: Optional[BrokerClient] = None):
        """Initialize the bridge.

        Args:
            config: Broker and controller configuration
            connector: Connection provider used to open controllers
            broker: Broker client; built from config.broker when omitted
        """
        self._config = config
        self._connector = connector
        self._broker = broker or BrokerClient(config.broker)
        self._registry: Optional[SessionRegistry] = None
        self._dispatcher: Optional[MessageDispatcher] = None
        self._running = False

    async def start(self) -> None:
        """Connect to the broker, open every session and subscribe.

        Raises:
            BrokerConnectError: If the broker is unreachable
            DeviceConnectError: If any controller is unreachable
        """
        logger.info(f"broker: {self._broker.endpoint}")
        self._broker.connect()

        try:
            self._registry = await SessionRegistry.open_all(self._config.devices, self._connector)
        except Exception:
            self._broker.disconnect()
            raise

        routers = {name: TopicRouter(self._broker) for name in self._registry.list_device_names()}

        # Handler must be in place before the first subscription delivers anything
        self._dispatcher = MessageDispatcher(routers, loop=asyncio.get_running_loop())
        self._broker.on_message(self._dispatcher.on_message)

        try:
            for device_name, router in routers.items():
                router.bind(device_name, self._registry.get(device_name))
        except Exception:
            await self._teardown(DISCONNECT_GRACE_SEC, drain=False)
            raise

        self._running = True
        logger.info(f"Registered controllers: {self._registry.list_device_names()}")

    async def stop(self, grace_period: float = DISCONNECT_GRACE_SEC) -> None:
        """Close every session and disconnect from the broker.

        Messages already handed to the event loop get up to grace_period
        seconds to finish before the sessions are closed.
        """
        self._running = False
        await self._teardown(grace_period, drain=True)

    async def _teardown(self, grace_period: float, drain: bool) -> None:
        if drain and self._dispatcher is not None:
            await self._dispatcher.drain(grace_period)

        if self._registry is not None:
            await self._registry.close_all()
            logger.info("Closed all controller sessions")

        self._broker.disconnect(grace_period=grace_period)

    @property
    def registry(self) -> Optional[SessionRegistry]:
        return self._registry

    @property
    def dispatcher(self) -> Optional[MessageDispatcher]:
        return self._dispatcher

    @property
    def is_running(self) -> bool:
        """Check if bridge is currently running."""
        return self._running
