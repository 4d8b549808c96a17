import inspect
from collections import defaultdict
from typing import Any, Callable

from shared.utils.logging_config import get_logger
from vendorsync_api.application.interfaces.service_interfaces import EventHandler, MessagingServiceInterface

logger = get_logger(__name__)


class InMemoryEventBus(MessagingServiceInterface):
    """
    In-process publish/subscribe bus for dashboard recomputation signals.

    Handlers run in subscription order. A failing handler is logged and does
    not stop delivery to the others.
    """

    def __init__(self):
        self._handlers: dict[str, list[EventHandler]] = defaultdict(list)

    async def publish_message(self, topic: str, message_data: dict[str, Any]) -> None:
        """Send a message to every handler subscribed to the topic."""
        handlers = list(self._handlers.get(topic, []))
        logger.debug(f"Publishing {topic} to {len(handlers)} handler(s)", extra={"payload": message_data})
        for handler in handlers:
            try:
                result = handler(topic, message_data)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error(f"Event handler failed for {topic}: {e}")

    def subscribe(self, topic: str, handler: EventHandler) -> Callable[[], None]:
        """Register a handler for a topic and return a function that unsubscribes it."""
        self._handlers[topic].append(handler)

        def _unsubscribe() -> None:
            if handler in self._handlers.get(topic, []):
                self._handlers[topic].remove(handler)

        return _unsubscribe

    async def close(self) -> None:
        self._handlers.clear()
        logger.info("Event bus closed.")
