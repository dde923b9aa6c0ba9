"""
In-memory event bus.

One bus is created per KeyService and injected into its handlers and
sweeper; there is no module-level bus.
"""

import asyncio
import logging
from typing import Dict, List, Type

from core.domain.events import DomainEvent, EventBus, EventHandler

logger = logging.getLogger(__name__)


class InMemoryEventBus(EventBus):
    """
    Event bus that dispatches within the current event loop.

    A handler subscribed to a base event class also receives its
    subclasses. Handlers for one event run concurrently; a handler
    failure is logged and does not fail the publishing operation.
    """

    def __init__(self):
        self._handlers: Dict[Type[DomainEvent], List[EventHandler]] = {}

    def subscribe(self, event_type: Type[DomainEvent], handler: EventHandler) -> None:
        handlers = self._handlers.setdefault(event_type, [])
        if handler not in handlers:
            handlers.append(handler)

    def handlers_for(self, event: DomainEvent) -> List[EventHandler]:
        """
        Collect the handlers an event is dispatched to.

        Args:
            event: Published event

        Returns:
            Handlers in subscription order, most specific type first,
            each at most once
        """
        found: List[EventHandler] = []
        for klass in type(event).__mro__:
            for handler in self._handlers.get(klass, ()):
                if handler not in found:
                    found.append(handler)
        return found

    async def publish(self, event: DomainEvent) -> None:
        handlers = self.handlers_for(event)
        if not handlers:
            logger.debug("No handlers registered for %s", event.event_type)
            return

        results = await asyncio.gather(
            *(handler.handle(event) for handler in handlers), return_exceptions=True
        )
        for handler, result in zip(handlers, results):
            if isinstance(result, Exception):
                logger.error(
                    "Error handling %s with %s: %s",
                    event.event_type,
                    handler.__class__.__name__,
                    result,
                    exc_info=result,
                )
