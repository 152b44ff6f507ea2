"""
In-process event bus.

Workflows publish domain events after their transaction commits; delivery
components (the websocket manager, tests) subscribe. A failing subscriber is
logged and skipped, it never affects the publisher or the other subscribers.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional
import logging
import threading

logger = logging.getLogger("events")


@dataclass(frozen=True)
class EntityChanged:
    entity_type: str   # "inventory", "request", "released_order_request", "released_order_report", "category", "report"
    entity_id: Any
    operation: str     # "create", "update", "delete"
    payload: Optional[Dict[str, Any]] = field(default=None, compare=False)


@dataclass(frozen=True)
class NotificationCreated:
    user_id: int
    notification: Dict[str, Any] = field(compare=False)


Handler = Callable[[Any], None]


class EventBus:
    def __init__(self):
        self._handlers: List[Handler] = []
        self._lock = threading.Lock()

    def subscribe(self, handler: Handler) -> Callable[[], None]:
        """Register a handler; returns a callable that unsubscribes it."""
        with self._lock:
            self._handlers.append(handler)

        def unsubscribe():
            with self._lock:
                if handler in self._handlers:
                    self._handlers.remove(handler)

        return unsubscribe

    def publish(self, event) -> None:
        with self._lock:
            handlers = list(self._handlers)
        for handler in handlers:
            try:
                handler(event)
            except Exception:
                logger.warning(f"Event handler {handler!r} failed for {event!r}", exc_info=True)

    def publish_all(self, events) -> None:
        for event in events:
            self.publish(event)


event_bus = EventBus()
