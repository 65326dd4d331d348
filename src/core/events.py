"""In-process publish/subscribe channel for domain events."""

import logging
from collections import defaultdict
from collections.abc import Callable
from typing import Any


logger = logging.getLogger(__name__)

STATISTICS_CHANGED = "statistics_changed"

Subscriber = Callable[[Any], None]


class EventBus:
    """Synchronous topic-based event bus.

    Subscribers are called in registration order. A subscriber that raises is
    logged and skipped so the remaining subscribers still receive the event.
    """

    def __init__(self) -> None:
        self._subscribers: dict[str, list[Subscriber]] = defaultdict(list)

    def subscribe(self, topic: str, callback: Subscriber) -> Callable[[], None]:
        """Register a callback for a topic and return a function that unregisters it."""
        self._subscribers[topic].append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers[topic]:
                self._subscribers[topic].remove(callback)

        return unsubscribe

    def publish(self, topic: str, payload: Any) -> int:
        """Deliver a payload to every subscriber of a topic.

        Returns:
            Number of subscribers that handled the event without raising
        """
        delivered = 0
        for callback in list(self._subscribers.get(topic, [])):
            try:
                callback(payload)
                delivered += 1
            except Exception:
                logger.exception("event_subscriber_failed", extra={"topic": topic})
        return delivered

    def clear(self) -> None:
        """Remove all subscribers."""
        self._subscribers.clear()


# Global event bus instance
event_bus = EventBus()
