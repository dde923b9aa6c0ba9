"""
Unit tests for the KeyService facade.
"""
from datetime import timedelta

import pytest
from prometheus_client import REGISTRY

from activations.application.commands.verify_key import VerifyKeyCommand
from core.domain.exceptions import StoreUnavailableError
from core.domain.value_objects import ErrorKind
from keys.application.commands.bulk_create_keys import BulkCreateKeysCommand
from keys.application.commands.create_key import CreateKeyCommand
from keys.application.commands.delete_key import DeleteKeyCommand
from keys.application.commands.extend_key_expiry import ExtendKeyExpiryCommand
from keys.application.commands.reset_devices import ResetDevicesCommand
from keys.application.commands.update_allowed_devices import UpdateAllowedDevicesCommand
from keys.application.queries.get_key_info import GetKeyInfoQuery
from keys.application.service import KeyService
from keys.infrastructure.memory_key_store import InMemoryKeyStore


class BrokenKeyStore(InMemoryKeyStore):
    """Store whose reads fail unexpectedly."""

    async def load_all(self):
        raise RuntimeError("disk on fire")


class UnavailableKeyStore(InMemoryKeyStore):
    """Store whose writes fail after retries."""

    async def save_all(self, records):
        raise StoreUnavailableError("Key store could not be written")


def _sample(name, **labels):
    return REGISTRY.get_sample_value(name, labels) or 0.0


@pytest.mark.asyncio
class TestKeyService:
    """Tests for KeyService."""

    async def test_every_operation_returns_outcome(self, key_service):
        """Test a full lifecycle through the facade."""
        created = await key_service.create_key(CreateKeyCommand(duration_value=1, allowed_devices=2))
        assert created.ok
        code = created.payload.code

        assert (await key_service.verify(VerifyKeyCommand(code=code, device_id="devA"))).ok
        assert (await key_service.extend_expiry(ExtendKeyExpiryCommand(code=code, duration_value=1))).ok
        assert (
            await key_service.update_allowed_devices(
                UpdateAllowedDevicesCommand(code=code, allowed_devices=4)
            )
        ).ok
        assert (await key_service.reset_devices(ResetDevicesCommand(code=code))).ok

        info = await key_service.get_key_info(GetKeyInfoQuery(code=code))
        assert info.payload.allowed_devices == 4
        assert info.payload.verification_count == 1

        listed = await key_service.list_keys()
        assert [key.code for key in listed.payload] == [code]

        assert (await key_service.delete_key(DeleteKeyCommand(code=code))).ok
        missing = await key_service.get_key_info(GetKeyInfoQuery(code=code))
        assert missing.kind is ErrorKind.KEY_NOT_FOUND

    async def test_expected_failure_is_typed(self, key_service):
        """Test domain errors become failure outcomes."""
        outcome = await key_service.create_key(CreateKeyCommand(duration_value=0))

        assert outcome.ok is False
        assert outcome.kind is ErrorKind.INVALID_INPUT
        assert outcome.to_dict()["code"] == "INVALID_DURATION"

    async def test_bulk_create_outcome(self, key_service):
        """Test bulk create through the facade."""
        outcome = await key_service.bulk_create_keys(BulkCreateKeysCommand(count=3, duration_value=1))

        assert outcome.ok
        assert len(outcome.payload.created) == 3

    async def test_unexpected_error_becomes_store_unavailable(self, config, clock, event_bus, caplog):
        """Test unexpected failures are logged and never raised."""
        service = KeyService(store=BrokenKeyStore(), config=config, clock=clock, event_bus=event_bus)

        outcome = await service.list_keys()

        assert outcome.ok is False
        assert outcome.kind is ErrorKind.STORE_UNAVAILABLE
        assert any(r.levelname == "ERROR" and r.exc_info for r in caplog.records)

    async def test_write_failure_propagates_as_store_unavailable(self, config, clock, event_bus):
        """Test store failures surface as typed outcomes."""
        service = KeyService(
            store=UnavailableKeyStore(), config=config, clock=clock, event_bus=event_bus
        )

        outcome = await service.create_key(CreateKeyCommand(duration_value=1))

        assert outcome.kind is ErrorKind.STORE_UNAVAILABLE
        assert outcome.message == "Key store could not be written"

    async def test_verification_metrics_by_outcome(self, key_service):
        """Test verification outcomes are counted by kind."""
        before_ok = _sample("key_verifications_total", outcome="success")
        before_missing = _sample("key_verifications_total", outcome="KeyNotFound")
        created = await key_service.create_key(CreateKeyCommand(duration_value=1))

        await key_service.verify(VerifyKeyCommand(code=created.payload.code, device_id="d1"))
        await key_service.verify(VerifyKeyCommand(code="UNKNOWN00000", device_id="d1"))

        assert _sample("key_verifications_total", outcome="success") == before_ok + 1
        assert _sample("key_verifications_total", outcome="KeyNotFound") == before_missing + 1

    async def test_sweep_expired(self, key_service, clock):
        """Test the on-demand sweep."""
        await key_service.create_key(CreateKeyCommand(duration_value=1, duration_unit="hour"))
        clock.advance(hours=1, seconds=1)

        outcome = await key_service.sweep_expired()

        assert outcome.ok
        assert outcome.payload.removed == 1
        assert (await key_service.list_keys()).payload == []

    async def test_default_collaborators(self, config):
        """Test clock and event bus default to real implementations."""
        service = KeyService(store=InMemoryKeyStore(), config=config)

        outcome = await service.create_key(CreateKeyCommand(duration_value=1))

        assert outcome.ok
        assert outcome.payload.expires_at - outcome.payload.created_at == timedelta(days=1)
