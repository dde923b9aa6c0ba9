"""
Event handlers for domain events.

These handlers process domain events for side effects such as
audit logging. Activity-log persistence is handled outside this
service; here events are emitted as structured log records.
"""

import logging

from activations.domain.events import DeviceBound, KeyVerified
from core.domain.events import DomainEvent, EventBus, EventHandler
from keys.domain.events import (
    ExpiredKeysSwept,
    KeyAllowedDevicesUpdated,
    KeyCreated,
    KeyDeleted,
    KeyDevicesReset,
    KeyExpiryExtended,
    KeyExpirySet,
)

logger = logging.getLogger(__name__)

AUDITED_EVENTS = (
    KeyCreated,
    KeyExpiryExtended,
    KeyExpirySet,
    KeyAllowedDevicesUpdated,
    KeyDevicesReset,
    KeyDeleted,
    ExpiredKeysSwept,
    DeviceBound,
    KeyVerified,
)


class AuditLogEventHandler(EventHandler):
    """
    Event handler for audit logging.

    Logs all key domain events as structured records.
    """

    async def handle(self, event: DomainEvent) -> None:
        """
        Handle domain event for audit logging.

        Args:
            event: Domain event to log
        """
        logger.info(
            "Audit log: %s - %s",
            event.event_type,
            event.aggregate_id,
            extra={"audit": event.to_dict()},
        )


def register_event_handlers(bus: EventBus) -> EventBus:
    """
    Register the standard handlers on an event bus.

    Args:
        bus: Event bus owned by a KeyService

    Returns:
        The same bus, for chaining
    """
    audit_handler = AuditLogEventHandler()
    for event_type in AUDITED_EVENTS:
        bus.subscribe(event_type, audit_handler)
    logger.debug("Registered audit handler for %d event type(s)", len(AUDITED_EVENTS))
    return bus
