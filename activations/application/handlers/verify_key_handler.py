"""
VerifyKeyHandler.

Handler for verifying a key on a device. Lookup, integrity check,
expiry check, rate guard, device binding and counter update all happen
inside one store session, so the decision and its mutation are atomic
with respect to every other operation on the store.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional, Tuple

from activations.application.commands.verify_key import VerifyKeyCommand
from activations.application.dto.verification_dto import VerificationResultDTO
from activations.domain.events import DeviceBound, KeyVerified
from activations.domain.services import BindResult, DeviceBindingPolicy
from core.domain.events import EventBus
from core.domain.exceptions import (
    DeviceLimitReachedError,
    IntegrityViolationError,
    InvalidInputError,
    KeyExpiredError,
    KeyNotFoundError,
    MissingParamsError,
    RateLimitedError,
)
from core.domain.value_objects import DeviceId, KeyCode
from core.infrastructure.clock import Clock
from core.metrics import devices_bound_total
from keys.application.services.key_store_session import KeyStoreSession
from keys.domain.key_record import KeyRecord
from keys.domain.signer import IntegritySigner

logger = logging.getLogger(__name__)


def _is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class VerifyKeyHandler:
    """Handler for VerifyKeyCommand."""

    def __init__(
        self,
        session: KeyStoreSession,
        signer: IntegritySigner,
        clock: Clock,
        event_bus: EventBus,
        min_verify_interval: Optional[timedelta] = None,
    ):
        """
        Initialize handler.

        Args:
            session: Store session shared with lifecycle handlers
            signer: Integrity signer
            clock: Time source
            event_bus: Bus for DeviceBound/KeyVerified events
            min_verify_interval: Minimum gap between successful
                verifications of one key (None disables the guard)
        """
        self.session = session
        self.signer = signer
        self.clock = clock
        self.event_bus = event_bus
        self.min_verify_interval = min_verify_interval

    def _parse(self, command: VerifyKeyCommand) -> Tuple[KeyCode, DeviceId]:
        if _is_blank(command.code) or _is_blank(command.device_id):
            raise MissingParamsError()
        try:
            return KeyCode.normalize(command.code), DeviceId(command.device_id)
        except ValueError as e:
            raise InvalidInputError(str(e)) from e

    def _check_rate(self, record: KeyRecord, now: datetime) -> None:
        if not self.min_verify_interval or record.last_verified_at is None:
            return
        elapsed = now - record.last_verified_at
        if elapsed < self.min_verify_interval:
            raise RateLimitedError(
                retry_after=(self.min_verify_interval - elapsed).total_seconds()
            )

    async def handle(self, command: VerifyKeyCommand) -> VerificationResultDTO:
        """
        Handle verify key command.

        Args:
            command: VerifyKeyCommand

        Returns:
            VerificationResultDTO with expiry, device counts and usage

        Raises:
            MissingParamsError: If key or device is missing
            KeyNotFoundError: If the key does not exist
            IntegrityViolationError: If the stored signature does not match
            KeyExpiredError: If the key is past its expiry
            RateLimitedError: If verified again too soon (guard enabled)
            DeviceLimitReachedError: If a new device has no free slot
        """
        code, device_id = self._parse(command)

        async with self.session.mutate() as index:
            now = self.clock.now()
            record = index.get(code.value)
            if record is None:
                raise KeyNotFoundError(f"Key {code} not found")

            if not self.signer.verify(record.code, record.signature):
                logger.error(
                    "Integrity check failed for key %s (id=%s)",
                    record.code,
                    record.id,
                    extra={"key_id": str(record.id)},
                )
                raise IntegrityViolationError()

            if record.is_expired(now):
                raise KeyExpiredError(record.expires_at)

            self._check_rate(record, now)

            bind_result, record = DeviceBindingPolicy.try_bind(record, device_id)
            if bind_result is BindResult.LIMIT_REACHED:
                raise DeviceLimitReachedError(record.devices_used, record.allowed_devices)

            record = record.record_verification(now)
            index.put(record)

        if bind_result is BindResult.BOUND:
            devices_bound_total.inc()
            logger.info(
                "Bound device %s to key %s (%d/%d)",
                device_id,
                record.code,
                record.devices_used,
                record.allowed_devices,
            )
            await self.event_bus.publish(
                DeviceBound(
                    key_id=record.id,
                    code=record.code,
                    device_id=device_id.value,
                    devices_used=record.devices_used,
                    occurred_at=now,
                )
            )
        await self.event_bus.publish(
            KeyVerified(
                key_id=record.id,
                code=record.code,
                device_id=device_id.value,
                verification_count=record.verification_count,
                occurred_at=now,
            )
        )

        return VerificationResultDTO(
            code=record.code,
            device_id=device_id.value,
            bind_result=bind_result.value,
            expires_at=record.expires_at,
            devices_used=record.devices_used,
            devices_allowed=record.allowed_devices,
            devices_remaining=record.devices_remaining,
            verification_count=record.verification_count,
            verified_at=now,
        )
