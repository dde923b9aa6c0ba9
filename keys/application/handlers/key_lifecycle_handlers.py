"""
Key lifecycle handlers.

Handlers for extend, set-expiry, device-quota update, device reset and
delete commands. Each one runs inside a single store session so it
cannot interleave with verification or the expiry sweep.
"""
import logging

from core.domain.events import EventBus
from core.domain.exceptions import InvalidInputError
from core.infrastructure.clock import Clock
from core.metrics import keys_deleted_total
from keys.application.commands.delete_key import DeleteKeyCommand
from keys.application.commands.extend_key_expiry import ExtendKeyExpiryCommand
from keys.application.commands.reset_devices import ResetDevicesCommand
from keys.application.commands.set_key_expiry import SetKeyExpiryCommand
from keys.application.commands.update_allowed_devices import UpdateAllowedDevicesCommand
from keys.application.dto.key_dto import ExpiryUpdateDTO, KeyDTO, to_key_dto
from keys.application.services.key_store_session import KeyStoreSession
from keys.application.validation import (
    parse_allowed_devices,
    parse_code,
    parse_duration,
    parse_expiry,
    parse_timestamp,
)
from keys.domain.events import (
    KeyAllowedDevicesUpdated,
    KeyDeleted,
    KeyDevicesReset,
    KeyExpiryExtended,
    KeyExpirySet,
)

logger = logging.getLogger(__name__)


class _LifecycleHandler:
    def __init__(self, session: KeyStoreSession, clock: Clock, event_bus: EventBus):
        """Initialize handler with collaborators."""
        self.session = session
        self.clock = clock
        self.event_bus = event_bus


class ExtendKeyExpiryHandler(_LifecycleHandler):
    """Handler for ExtendKeyExpiryCommand."""

    async def handle(self, command: ExtendKeyExpiryCommand) -> ExpiryUpdateDTO:
        """
        Handle extend expiry command.

        The extension is added to the key's current expiry, so an
        already-expired key may still be expired afterwards.

        Args:
            command: ExtendKeyExpiryCommand

        Returns:
            ExpiryUpdateDTO with old and new expiry

        Raises:
            InvalidInputError: If code or duration are invalid
            KeyNotFoundError: If key not found
        """
        code = parse_code(command.code)
        additional = parse_duration(command.duration_value, command.duration_unit)

        async with self.session.mutate() as index:
            now = self.clock.now()
            record = index.require(code.value)
            parse_expiry(record.expires_at, additional.as_timedelta())
            extended = record.extend(additional.as_timedelta())
            index.put(extended)

        logger.info(
            "Extended key %s by %s: %s -> %s",
            code,
            additional,
            record.expires_at.isoformat(),
            extended.expires_at.isoformat(),
        )
        await self.event_bus.publish(
            KeyExpiryExtended(
                key_id=extended.id,
                code=extended.code,
                previous_expires_at=record.expires_at,
                new_expires_at=extended.expires_at,
                occurred_at=now,
            )
        )

        return ExpiryUpdateDTO(
            code=extended.code,
            previous_expires_at=record.expires_at,
            expires_at=extended.expires_at,
            is_expired=extended.is_expired(now),
        )


class SetKeyExpiryHandler(_LifecycleHandler):
    """Handler for SetKeyExpiryCommand."""

    async def handle(self, command: SetKeyExpiryCommand) -> ExpiryUpdateDTO:
        """
        Handle set expiry command.

        No check against the present: setting a past expiry is how an
        admin deliberately expires a key.

        Raises:
            InvalidInputError: If code or timestamp are invalid
            KeyNotFoundError: If key not found
        """
        code = parse_code(command.code)
        expires_at = parse_timestamp(command.expires_at)

        async with self.session.mutate() as index:
            now = self.clock.now()
            record = index.require(code.value)
            updated = record.with_expiry(expires_at)
            index.put(updated)

        logger.info("Set expiry of key %s to %s", code, expires_at.isoformat())
        await self.event_bus.publish(
            KeyExpirySet(
                key_id=updated.id,
                code=updated.code,
                new_expires_at=updated.expires_at,
                occurred_at=now,
            )
        )

        return ExpiryUpdateDTO(
            code=updated.code,
            previous_expires_at=record.expires_at,
            expires_at=updated.expires_at,
            is_expired=updated.is_expired(now),
        )


class UpdateAllowedDevicesHandler(_LifecycleHandler):
    """Handler for UpdateAllowedDevicesCommand."""

    async def handle(self, command: UpdateAllowedDevicesCommand) -> KeyDTO:
        """
        Handle device quota update.

        Lowering the quota below the number of bound devices is
        rejected; reset the devices first.

        Raises:
            InvalidInputError: If the quota is invalid or below bound devices
            KeyNotFoundError: If key not found
        """
        code = parse_code(command.code)
        allowed_devices = parse_allowed_devices(command.allowed_devices)

        async with self.session.mutate() as index:
            now = self.clock.now()
            record = index.require(code.value)
            try:
                updated = record.with_allowed_devices(allowed_devices)
            except ValueError as e:
                raise InvalidInputError(str(e), code="DEVICE_LIMIT_BELOW_BOUND") from e
            index.put(updated)

        logger.info(
            "Changed allowed devices of key %s from %d to %d",
            code,
            record.allowed_devices,
            updated.allowed_devices,
        )
        await self.event_bus.publish(
            KeyAllowedDevicesUpdated(
                key_id=updated.id,
                code=updated.code,
                allowed_devices=updated.allowed_devices,
                occurred_at=now,
            )
        )

        return to_key_dto(updated)


class ResetDevicesHandler(_LifecycleHandler):
    """Handler for ResetDevicesCommand."""

    async def handle(self, command: ResetDevicesCommand) -> KeyDTO:
        """
        Handle reset devices command.

        Clears bound devices; the verification counter is kept.

        Raises:
            KeyNotFoundError: If key not found
        """
        code = parse_code(command.code)

        async with self.session.mutate() as index:
            now = self.clock.now()
            record = index.require(code.value)
            reset = record.reset_devices()
            index.put(reset)

        logger.info("Reset %d device(s) on key %s", record.devices_used, code)
        await self.event_bus.publish(
            KeyDevicesReset(
                key_id=reset.id,
                code=reset.code,
                released_devices=record.devices_used,
                occurred_at=now,
            )
        )

        return to_key_dto(reset)


class DeleteKeyHandler(_LifecycleHandler):
    """Handler for DeleteKeyCommand."""

    async def handle(self, command: DeleteKeyCommand) -> KeyDTO:
        """
        Handle delete key command.

        Deleting an unknown code is an error, not a no-op.

        Returns:
            KeyDTO of the removed key

        Raises:
            KeyNotFoundError: If key not found
        """
        code = parse_code(command.code)

        async with self.session.mutate() as index:
            now = self.clock.now()
            removed = index.remove(code.value)

        logger.info("Deleted key %s", code)
        keys_deleted_total.inc()
        await self.event_bus.publish(
            KeyDeleted(key_id=removed.id, code=removed.code, occurred_at=now)
        )

        return to_key_dto(removed)
