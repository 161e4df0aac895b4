"""Event Bus - Notify observers when tracked state changes.

Handlers are plain callables keyed by event name. A failing handler is logged
and skipped; it never stops delivery to the others or fails the write that
triggered it.
"""

import logging
from collections import defaultdict
from threading import Lock
from typing import Any, Callable


logger = logging.getLogger(__name__)

GOALS_UPDATED = "goals_updated"
PROGRESS_UPDATED = "progress_updated"
ACHIEVEMENTS_UNLOCKED = "achievements_unlocked"
RECORD_DELETED = "record_deleted"

Handler = Callable[[str, dict[str, Any]], None]


class EventBus:
    """Synchronous publish/subscribe dispatcher."""

    def __init__(self) -> None:
        self._handlers: dict[str, list[Handler]] = defaultdict(list)
        self._lock = Lock()

    def subscribe(self, event: str, handler: Handler) -> Callable[[], None]:
        """Register a handler for an event.

        Returns:
            A callable that removes the subscription
        """
        with self._lock:
            self._handlers[event].append(handler)

        def unsubscribe() -> None:
            with self._lock:
                if handler in self._handlers[event]:
                    self._handlers[event].remove(handler)

        return unsubscribe

    def publish(self, event: str, user_id: str, **payload: Any) -> None:
        """Deliver an event to every handler subscribed to it, in order."""
        with self._lock:
            handlers = list(self._handlers.get(event, ()))

        logger.debug("Publishing %s for %s to %d handlers", event, user_id[:8], len(handlers))
        data = {"user_id": user_id, **payload}
        for handler in handlers:
            try:
                handler(event, data)
            except Exception:
                logger.exception("Handler for %s failed", event)
