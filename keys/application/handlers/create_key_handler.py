"""
CreateKeyHandler and BulkCreateKeysHandler.

Handlers for creating activation keys.
"""

import logging
from datetime import timedelta
from typing import List

from core.domain.events import EventBus
from core.domain.exceptions import DomainException, DuplicateCodeError, InvalidInputError
from core.infrastructure.clock import Clock
from core.metrics import keys_created_total
from keys.application.commands.bulk_create_keys import BulkCreateKeysCommand
from keys.application.commands.create_key import CreateKeyCommand
from keys.application.config import KeyServiceConfig
from keys.application.dto.key_dto import (
    BulkCreateErrorDTO,
    BulkCreateResponseDTO,
    KeyDTO,
    to_key_dto,
)
from keys.application.services.key_store_session import KeyStoreSession
from keys.application.validation import (
    parse_allowed_devices,
    parse_code,
    parse_duration,
    parse_expiry,
    parse_prefix,
)
from keys.domain.events import KeyCreated
from keys.domain.key_record import KeyRecord
from keys.domain.services import KeyCodeGenerator
from keys.domain.signer import IntegritySigner

logger = logging.getLogger(__name__)


def _lifetime(
    duration_value, duration_unit, is_admin: bool, config: KeyServiceConfig
) -> timedelta:
    """Validate a requested key lifetime against the non-admin cap."""
    lifetime = parse_duration(duration_value, duration_unit).as_timedelta()
    if not is_admin and config.max_duration is not None and lifetime > config.max_duration:
        raise InvalidInputError(
            f"Duration exceeds the maximum of {config.max_duration.days} day(s)",
            code="DURATION_LIMIT_EXCEEDED",
        )
    return lifetime


class CreateKeyHandler:
    """Handler for CreateKeyCommand."""

    def __init__(
        self,
        session: KeyStoreSession,
        signer: IntegritySigner,
        generator: KeyCodeGenerator,
        clock: Clock,
        event_bus: EventBus,
        config: KeyServiceConfig,
    ):
        """Initialize handler with collaborators."""
        self.session = session
        self.signer = signer
        self.generator = generator
        self.clock = clock
        self.event_bus = event_bus
        self.config = config

    async def handle(self, command: CreateKeyCommand) -> KeyDTO:
        """
        Handle create key command.

        Args:
            command: CreateKeyCommand

        Returns:
            KeyDTO of the new key

        Raises:
            InvalidInputError: If duration, unit, devices or code are invalid
            DuplicateCodeError: If the custom code already exists
        """
        lifetime = _lifetime(
            command.duration_value, command.duration_unit, command.is_admin, self.config
        )
        allowed_devices = parse_allowed_devices(command.allowed_devices)
        custom_code = parse_code(command.custom_code) if command.custom_code is not None else None
        prefix = parse_prefix(command.prefix or self.config.code_prefix)

        async with self.session.mutate() as index:
            now = self.clock.now()
            parse_expiry(now, lifetime)
            if custom_code is not None:
                if custom_code.value in index:
                    raise DuplicateCodeError(f"Key code {custom_code} already exists")
                code = custom_code
            else:
                code = self.generator.generate_unique(index.codes(), prefix)

            record = KeyRecord.create(
                code=code,
                signature=self.signer.sign(code.value),
                now=now,
                lifetime=lifetime,
                allowed_devices=allowed_devices,
            )
            index.add(record)

        logger.info(
            "Created key %s expiring %s for %d device(s)",
            record.code,
            record.expires_at.isoformat(),
            record.allowed_devices,
        )
        keys_created_total.labels(source="custom" if custom_code else "generated").inc()
        await self.event_bus.publish(
            KeyCreated(
                key_id=record.id,
                code=record.code,
                expires_at=record.expires_at,
                allowed_devices=record.allowed_devices,
                occurred_at=now,
            )
        )

        return to_key_dto(record)


class BulkCreateKeysHandler:
    """Handler for BulkCreateKeysCommand."""

    def __init__(
        self,
        session: KeyStoreSession,
        signer: IntegritySigner,
        generator: KeyCodeGenerator,
        clock: Clock,
        event_bus: EventBus,
        config: KeyServiceConfig,
    ):
        """Initialize handler with collaborators."""
        self.session = session
        self.signer = signer
        self.generator = generator
        self.clock = clock
        self.event_bus = event_bus
        self.config = config

    async def handle(self, command: BulkCreateKeysCommand) -> BulkCreateResponseDTO:
        """
        Handle bulk create command.

        Terms are validated once for the whole batch. Items that fail
        individually (e.g. code generation exhausted) are reported in
        ``errors`` while the rest are still created and saved together.

        Args:
            command: BulkCreateKeysCommand

        Returns:
            BulkCreateResponseDTO with created keys and per-item errors

        Raises:
            InvalidInputError: If the count or shared terms are invalid
        """
        count = command.count
        limit = self.config.bulk_create_limit
        if isinstance(count, bool) or not isinstance(count, int) or not 1 <= count <= limit:
            raise InvalidInputError(
                f"Count must be a whole number between 1 and {limit}", code="INVALID_COUNT"
            )
        lifetime = _lifetime(
            command.duration_value, command.duration_unit, command.is_admin, self.config
        )
        allowed_devices = parse_allowed_devices(command.allowed_devices)
        prefix = parse_prefix(command.prefix or self.config.code_prefix)

        created: List[KeyRecord] = []
        errors: List[BulkCreateErrorDTO] = []

        async with self.session.mutate() as index:
            now = self.clock.now()
            parse_expiry(now, lifetime)
            for position in range(count):
                try:
                    code = self.generator.generate_unique(index.codes(), prefix)
                    record = KeyRecord.create(
                        code=code,
                        signature=self.signer.sign(code.value),
                        now=now,
                        lifetime=lifetime,
                        allowed_devices=allowed_devices,
                    )
                    index.add(record)
                    created.append(record)
                except DomainException as e:
                    logger.warning("Bulk create item %d failed: %s", position, e.message)
                    errors.append(
                        BulkCreateErrorDTO(
                            index=position, kind=e.kind.value, code=e.code, message=e.message
                        )
                    )

        logger.info("Bulk created %d of %d key(s)", len(created), count)
        if created:
            keys_created_total.labels(source="bulk").inc(len(created))
        for record in created:
            await self.event_bus.publish(
                KeyCreated(
                    key_id=record.id,
                    code=record.code,
                    expires_at=record.expires_at,
                    allowed_devices=record.allowed_devices,
                    occurred_at=now,
                )
            )

        return BulkCreateResponseDTO(
            requested=count,
            created=[to_key_dto(record) for record in created],
            errors=errors,
        )
