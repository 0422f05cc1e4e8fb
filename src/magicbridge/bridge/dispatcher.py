"""Message dispatcher: entry point for every message the broker delivers."""

import asyncio
import concurrent.futures
import logging
from typing import Mapping, Optional

from magicbridge.bridge.router import TopicRouter
from magicbridge.topics import InboundMessage, device_name_for

logger = logging.getLogger(__name__)


class MessageDispatcher:
    """Looks up the router for a message's device namespace and routes to it.

    Messages for names without a router are ignored; they may belong to
    devices this bridge does not manage. A failure while routing one message
    is logged and never stops the dispatcher.
    """

    def __init__(
        self,
        routers: Mapping[str, TopicRouter],
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ):
        """Initialize the dispatcher.

        Args:
            routers: Bound routers keyed by device name
            loop: Event loop that broker callbacks are handed to
        """
        self._routers = dict(routers)
        self._loop = loop
        self._pending: set[concurrent.futures.Future] = set()

    def router_for(self, topic: str) -> Optional[TopicRouter]:
        """Return the router bound to the topic's device name, if any."""
        device_name = device_name_for(topic)
        if device_name is None:
            return None
        return self._routers.get(device_name)

    async def dispatch(self, message: InboundMessage) -> None:
        """Route one message. Never raises."""
        router = self.router_for(message.topic)
        if router is None:
            logger.debug(f"Ignoring message on unmanaged topic {message.topic}")
            return

        try:
            await router.route(message)
        except Exception:
            logger.exception(f"Error dispatching message on {message.topic}")

    def on_message(self, topic: str, payload: bytes, **kwargs) -> None:  # noqa: ARG002
        """Broker callback. Runs on the MQTT client's thread.

        The message is handed to the event loop; this method does not wait
        for it to be applied.
        """
        logger.info(f"Received message: {payload!r} from topic: {topic}")

        if self._loop is None or self._loop.is_closed():
            logger.warning(f"Cannot dispatch message on {topic}: no event loop")
            return

        future = asyncio.run_coroutine_threadsafe(
            self.dispatch(InboundMessage(topic=topic, payload=bytes(payload))), self._loop
        )
        self._pending.add(future)
        future.add_done_callback(self._pending.discard)

    async def drain(self, timeout: float) -> None:
        """Wait up to timeout seconds for messages already handed to the loop."""
        pending = [asyncio.wrap_future(f) for f in list(self._pending)]
        if not pending:
            return
        done, not_done = await asyncio.wait(pending, timeout=timeout)
        if not_done:
            logger.warning(f"{len(not_done)} message(s) still in flight at shutdown")
