"""Topic router binding one device namespace to its session."""

import logging
from typing import Optional, Protocol

from magicbridge.commands import BrightnessCommand, DeviceCommand, PowerCommand, translate
from magicbridge.devices.session import DeviceSession
from magicbridge.errors import ConnectionLost, DecodeError, DeviceConnectError
from magicbridge.topics import InboundMessage, device_filter

logger = logging.getLogger(__name__)

SUBSCRIBE_QOS = 1


class Subscriber(Protocol):
    def subscribe(self, topic_filter: str, qos: int) -> None: ...


class TopicRouter:
    """Routes messages from ``light/<name>/#`` to that device's session.

    On ConnectionLost the session is reconnected once and the same command
    retried once. Any further failure drops the message. A persistently
    unreachable controller is therefore retried once per incoming message.
    """

    def __init__(self, broker: Subscriber):
        self._broker = broker
        self._device_name: Optional[str] = None
        self._session: Optional[DeviceSession] = None

    @property
    def device_name(self) -> Optional[str]:
        return self._device_name

    @property
    def session(self) -> Optional[DeviceSession]:
        return self._session

    def bind(self, device_name: str, session: DeviceSession) -> None:
        """Subscribe to the device's namespace and record its session."""
        topic_filter = device_filter(device_name)
        self._broker.subscribe(topic_filter, SUBSCRIBE_QOS)
        self._device_name = device_name
        self._session = session
        logger.info(f"Subscribed to {topic_filter}")

    async def route(self, message: InboundMessage) -> None:
        """Translate a message and apply it to the bound session.

        Never raises; failures are logged and the message is dropped.
        """
        if self._session is None:
            logger.warning(f"Router not bound, dropping message on {message.topic}")
            return

        try:
            command = translate(message.topic, message.payload)
        except DecodeError as e:
            logger.warning(f"Dropping message on {message.topic}: {e}")
            return

        if not isinstance(command, (PowerCommand, BrightnessCommand)):
            logger.debug(f"No command for topic {message.topic}")
            return

        session = self._session
        async with session.lock:
            try:
                await self._apply(session, command)
            except ConnectionLost as e:
                logger.warning(f"Command {command} on {self._device_name} failed: {e}")
                await self._reconnect_and_retry(session, command)
            except Exception:
                logger.exception(f"Unexpected error applying {command} to {self._device_name}")

    async def _reconnect_and_retry(self, session: DeviceSession, command: DeviceCommand) -> None:
        try:
            await session.reconnect()
            await self._apply(session, command)
        except (DeviceConnectError, ConnectionLost) as e:
            logger.error(f"Dropping {command} for {self._device_name} after reconnect: {e}")
        except Exception:
            logger.exception(f"Unexpected error retrying {command} on {self._device_name}")

    @staticmethod
    async def _apply(session: DeviceSession, command: DeviceCommand) -> None:
        if isinstance(command, PowerCommand):
            await session.set_power(command.on)
        elif isinstance(command, BrightnessCommand):
            await session.set_color(*command.rgbw)
