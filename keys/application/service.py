"""
KeyService - the entry point of the key lifecycle and verification engine.

Wires handlers around one store session and turns every call into a
tagged Outcome. Expected failures come back as ``Outcome(ok=False)``;
anything unexpected is logged with its traceback and reported as
StoreUnavailable.
"""

import logging
from typing import Any, Awaitable, Callable, Optional

from activations.application.commands.verify_key import VerifyKeyCommand
from activations.application.handlers.verify_key_handler import VerifyKeyHandler
from core.domain.events import EventBus
from core.domain.exceptions import DomainException, StoreUnavailableError
from core.domain.value_objects import ErrorKind
from core.infrastructure.clock import Clock, SystemClock
from core.infrastructure.event_handlers import register_event_handlers
from core.infrastructure.events import InMemoryEventBus
from core.metrics import errors_total, key_verifications_total
from keys.application.commands.bulk_create_keys import BulkCreateKeysCommand
from keys.application.commands.create_key import CreateKeyCommand
from keys.application.commands.delete_key import DeleteKeyCommand
from keys.application.commands.extend_key_expiry import ExtendKeyExpiryCommand
from keys.application.commands.reset_devices import ResetDevicesCommand
from keys.application.commands.set_key_expiry import SetKeyExpiryCommand
from keys.application.commands.update_allowed_devices import UpdateAllowedDevicesCommand
from keys.application.config import KeyServiceConfig
from keys.application.handlers.create_key_handler import BulkCreateKeysHandler, CreateKeyHandler
from keys.application.handlers.key_lifecycle_handlers import (
    DeleteKeyHandler,
    ExtendKeyExpiryHandler,
    ResetDevicesHandler,
    SetKeyExpiryHandler,
    UpdateAllowedDevicesHandler,
)
from keys.application.handlers.key_query_handlers import GetKeyInfoHandler, ListKeysHandler
from keys.application.queries.get_key_info import GetKeyInfoQuery
from keys.application.queries.list_keys import ListKeysQuery
from keys.application.results import Outcome
from keys.application.services.expiry_sweeper import ExpirySweeper
from keys.application.services.key_store_session import KeyStoreSession
from keys.domain.services import KeyCodeGenerator
from keys.domain.signer import IntegritySigner
from keys.ports.key_store import KeyStore

logger = logging.getLogger(__name__)


class KeyService:
    """Facade over every key operation."""

    def __init__(
        self,
        store: KeyStore,
        config: KeyServiceConfig,
        clock: Optional[Clock] = None,
        event_bus: Optional[EventBus] = None,
    ):
        """
        Initialize the service.

        Args:
            store: Key store adapter owned by this service
            config: Engine limits and signing secret
            clock: Time source (defaults to SystemClock)
            event_bus: Event bus (defaults to an InMemoryEventBus with
                the audit handler registered)
        """
        self.config = config
        self.clock = clock or SystemClock()
        self.event_bus = event_bus or register_event_handlers(InMemoryEventBus())
        self.session = KeyStoreSession(store)
        self.signer = IntegritySigner(config.signing_secret)
        generator = KeyCodeGenerator(length=config.code_length)

        creation_deps = dict(
            session=self.session,
            signer=self.signer,
            generator=generator,
            clock=self.clock,
            event_bus=self.event_bus,
            config=config,
        )
        self._create = CreateKeyHandler(**creation_deps)
        self._bulk_create = BulkCreateKeysHandler(**creation_deps)
        self._extend = ExtendKeyExpiryHandler(self.session, self.clock, self.event_bus)
        self._set_expiry = SetKeyExpiryHandler(self.session, self.clock, self.event_bus)
        self._update_devices = UpdateAllowedDevicesHandler(self.session, self.clock, self.event_bus)
        self._reset_devices = ResetDevicesHandler(self.session, self.clock, self.event_bus)
        self._delete = DeleteKeyHandler(self.session, self.clock, self.event_bus)
        self._list = ListKeysHandler(self.session)
        self._info = GetKeyInfoHandler(self.session)
        self._verify = VerifyKeyHandler(
            self.session,
            self.signer,
            self.clock,
            self.event_bus,
            min_verify_interval=config.min_verify_interval,
        )
        self.sweeper = ExpirySweeper(
            self.session, self.clock, self.event_bus, interval=config.sweep_interval
        )

    async def _run(
        self, operation: str, handler: Callable[[Any], Awaitable[Any]], request: Any
    ) -> Outcome:
        try:
            payload = await handler(request)
        except DomainException as e:
            errors_total.labels(error_kind=e.kind.value, operation=operation).inc()
            log = logger.warning if e.kind is ErrorKind.STORE_UNAVAILABLE else logger.info
            log("%s rejected: %s - %s", operation, e.code, e.message)
            return Outcome.failure(e)
        except Exception as e:  # pylint: disable=broad-exception-caught
            errors_total.labels(
                error_kind=ErrorKind.STORE_UNAVAILABLE.value, operation=operation
            ).inc()
            logger.error(
                "Unexpected error during %s: %s",
                operation,
                e,
                exc_info=True,
                extra={"operation": operation, "request": repr(request)},
            )
            return Outcome.failure(StoreUnavailableError())
        return Outcome.success(payload)

    async def create_key(self, command: CreateKeyCommand) -> Outcome:
        return await self._run("create_key", self._create.handle, command)

    async def bulk_create_keys(self, command: BulkCreateKeysCommand) -> Outcome:
        return await self._run("bulk_create_keys", self._bulk_create.handle, command)

    async def extend_expiry(self, command: ExtendKeyExpiryCommand) -> Outcome:
        return await self._run("extend_expiry", self._extend.handle, command)

    async def set_expiry(self, command: SetKeyExpiryCommand) -> Outcome:
        return await self._run("set_expiry", self._set_expiry.handle, command)

    async def update_allowed_devices(self, command: UpdateAllowedDevicesCommand) -> Outcome:
        return await self._run("update_allowed_devices", self._update_devices.handle, command)

    async def reset_devices(self, command: ResetDevicesCommand) -> Outcome:
        return await self._run("reset_devices", self._reset_devices.handle, command)

    async def delete_key(self, command: DeleteKeyCommand) -> Outcome:
        return await self._run("delete_key", self._delete.handle, command)

    async def list_keys(self, query: Optional[ListKeysQuery] = None) -> Outcome:
        return await self._run("list_keys", self._list.handle, query or ListKeysQuery())

    async def get_key_info(self, query: GetKeyInfoQuery) -> Outcome:
        return await self._run("get_key_info", self._info.handle, query)

    async def verify(self, command: VerifyKeyCommand) -> Outcome:
        """Verify a key on a device; see VerifyKeyHandler for the steps."""
        outcome = await self._run("verify", self._verify.handle, command)
        key_verifications_total.labels(
            outcome="success" if outcome.ok else outcome.kind.value
        ).inc()
        return outcome

    async def sweep_expired(self, dry_run: bool = False) -> Outcome:
        """Run one expiry sweep pass now."""
        return await self._run("sweep_expired", self.sweeper.run_once, dry_run)
