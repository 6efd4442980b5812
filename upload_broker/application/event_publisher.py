"""
Event Publisher

Application service for publishing domain events to registered handlers.
Enables decoupling of side effects from exchange handling.
"""

import logging
from threading import Lock
from typing import Callable, Dict, List, Type

from upload_broker.domain.events import DomainEvent

logger = logging.getLogger(__name__)

EventHandler = Callable[[DomainEvent], None]


class EventPublisher:
    """
    Event publisher that dispatches domain events to registered handlers.

    Handlers subscribe to an event type and receive every event that is an
    instance of it, so subscribing to DomainEvent receives everything.
    Handler exceptions are caught and logged to prevent side effects from
    breaking exchange handling.

    Thread-safe: broker processes publish from their own threads.
    """

    def __init__(self):
        """Initialize EventPublisher with empty handler registry."""
        self._handlers: Dict[Type[DomainEvent], List[EventHandler]] = {}
        self._lock = Lock()

    def subscribe(self, event_type: Type[DomainEvent], handler: EventHandler) -> None:
        """
        Register a handler for a specific event type.

        Args:
            event_type: The type of domain event to handle
            handler: Callable that accepts the event as parameter

        Example:
            publisher = EventPublisher()
            publisher.subscribe(SlotGrantedEvent, handle_slot_granted)
        """
        with self._lock:
            self._handlers.setdefault(event_type, []).append(handler)
        logger.debug(
            f"Registered handler {getattr(handler, '__name__', handler)} "
            f"for {event_type.__name__}"
        )

    def unsubscribe(self, event_type: Type[DomainEvent], handler: EventHandler) -> None:
        with self._lock:
            handlers = self._handlers.get(event_type, [])
            if handler in handlers:
                handlers.remove(handler)

    def _handlers_for(self, event: DomainEvent) -> List[EventHandler]:
        with self._lock:
            matched = []
            for event_type, handlers in self._handlers.items():
                if isinstance(event, event_type):
                    matched.extend(handlers)
            return matched

    def publish(self, event: DomainEvent) -> None:
        """
        Publish an event to all matching handlers.

        Args:
            event: The domain event to publish
        """
        handlers = self._handlers_for(event)
        event_name = type(event).__name__

        if not handlers:
            logger.debug(f"No handlers registered for {event_name}")
            return

        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                # side effects must never break exchange handling
                logger.error(
                    f"Error in handler {getattr(handler, '__name__', handler)} "
                    f"for {event_name}: {e}",
                    exc_info=True,
                )


def create_default_publisher() -> EventPublisher:
    """Publisher with the logging handler subscribed to every event."""
    from upload_broker.infrastructure.event_handlers import LoggingEventHandler

    publisher = EventPublisher()
    handler = LoggingEventHandler(logging.getLogger("upload_broker.events"))
    publisher.subscribe(DomainEvent, handler.handle)
    return publisher
