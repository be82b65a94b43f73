"""
In-process publisher for booking domain events.

Events are published after the mutation is committed. A failing subscriber
is logged and skipped; it never undoes or fails the mutation.
"""

import inspect
from collections import defaultdict
from typing import Awaitable, Callable, Dict, List, Optional, Union

from models.events import BookingEvent, BookingEventType
from utils.logging_config import get_logger

logger = get_logger(__name__)

EventHandler = Callable[[BookingEvent], Union[None, Awaitable[None]]]


class EventBus:
    def __init__(self):
        self._handlers: Dict[Optional[BookingEventType], List[EventHandler]] = defaultdict(list)

    def subscribe(
        self, handler: EventHandler, event_type: Optional[BookingEventType] = None
    ) -> None:
        """Register ``handler`` for one event type, or for all when ``event_type`` is None."""
        self._handlers[event_type].append(handler)

    def unsubscribe(
        self, handler: EventHandler, event_type: Optional[BookingEventType] = None
    ) -> None:
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    async def publish(self, event: BookingEvent) -> None:
        handlers = list(self._handlers.get(event.type, [])) + list(self._handlers.get(None, []))
        for handler in handlers:
            try:
                result = handler(event)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error(
                    f"Event handler {getattr(handler, '__name__', handler)!r} failed for "
                    f"{event.type.value} on booking {event.booking.id}: {e}",
                    exc_info=True,
                )
