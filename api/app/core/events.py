"""
In-process publish/subscribe for cross-cutting notifications.

One EventBus is created together with the FastAPI app and stored on
``app.state.event_bus``; request handlers receive it through the
``get_event_bus`` dependency. It lives for the whole process and needs no
teardown.
"""
import logging
from collections import defaultdict
from typing import Any, Callable, Dict, List

from fastapi import Request

logger = logging.getLogger(__name__)

STATS_UPDATED = "stats_updated"
PROGRESS = "progress"

EventCallback = Callable[[Dict[str, Any]], None]


class EventBus:
    """Synchronous publish/subscribe channel keyed by event name."""

    def __init__(self):
        self._subscribers: Dict[str, List[EventCallback]] = defaultdict(list)

    def subscribe(self, event: str, callback: EventCallback) -> Callable[[], None]:
        """Register a callback and return a function that removes it again."""
        self._subscribers[event].append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers[event]:
                self._subscribers[event].remove(callback)

        return unsubscribe

    def publish(self, event: str, payload: Dict[str, Any]) -> int:
        """
        Deliver payload to every subscriber of event.

        Subscriber failures are logged and do not stop delivery to the
        remaining subscribers: publishing happens after the publisher's work is
        committed.

        Returns:
            Number of subscribers that received the payload without error
        """
        delivered = 0
        for callback in list(self._subscribers.get(event, [])):
            try:
                callback(payload)
                delivered += 1
            except Exception:
                logger.exception(f"Subscriber {callback!r} failed while handling '{event}'")
        return delivered

    def subscriber_count(self, event: str) -> int:
        return len(self._subscribers.get(event, []))


def get_event_bus(request: Request) -> EventBus:
    """Dependency returning the application's event bus."""
    return request.app.state.event_bus
