"""
Domain events.

An event records that a key changed state. Handlers and services publish
them on an injected bus so side effects like audit logging stay out of
the lifecycle code.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from uuid import UUID, uuid4


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class DomainEvent(ABC):
    """
    Base class for all domain events.

    ``aggregate_id`` names the key record (or the store, for store-wide
    events). ``event_type`` is the concrete class name.
    """

    aggregate_id: str
    occurred_at: Optional[datetime] = None
    event_id: UUID = field(default_factory=uuid4)

    def __post_init__(self):
        if self.occurred_at is None:
            object.__setattr__(self, "occurred_at", utcnow())

    @property
    def event_type(self) -> str:
        return type(self).__name__

    def payload(self) -> Dict[str, Any]:
        """Event-specific fields, overridden by subclasses."""
        return {}

    def to_dict(self) -> Dict[str, Any]:
        """Flatten the event for structured logging."""
        return {
            "event_id": str(self.event_id),
            "event_type": self.event_type,
            "aggregate_id": self.aggregate_id,
            "occurred_at": self.occurred_at.isoformat(),
            **self.payload(),
        }


class EventHandler(ABC):
    """Receives events a bus dispatches to it."""

    @abstractmethod
    async def handle(self, event: DomainEvent) -> None:
        """
        Handle a domain event.

        Args:
            event: The published event
        """


class EventBus(ABC):
    """Dispatches published events to the handlers subscribed to their type."""

    @abstractmethod
    async def publish(self, event: DomainEvent) -> None:
        """
        Publish a domain event.

        Args:
            event: The event to dispatch
        """

    @abstractmethod
    def subscribe(self, event_type: type, handler: EventHandler) -> None:
        """
        Subscribe a handler to one event type.

        Args:
            event_type: Concrete DomainEvent subclass
            handler: Handler to call for each published event of that type
        """
