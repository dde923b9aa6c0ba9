"""
Unit tests for key lifecycle and query handlers.
"""
from datetime import datetime, timedelta, timezone

import pytest

from core.domain.exceptions import InvalidInputError, KeyNotFoundError
from keys.application.commands.delete_key import DeleteKeyCommand
from keys.application.commands.extend_key_expiry import ExtendKeyExpiryCommand
from keys.application.commands.reset_devices import ResetDevicesCommand
from keys.application.commands.set_key_expiry import SetKeyExpiryCommand
from keys.application.commands.update_allowed_devices import UpdateAllowedDevicesCommand
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
from keys.application.services.key_store_session import KeyStoreSession
from keys.infrastructure.memory_key_store import InMemoryKeyStore


@pytest.fixture
def seeded_store(make_record, clock):
    """Fixture for a store with one active key bound to two devices."""
    record = make_record(
        code="ACTIVEKEY001", lifetime=timedelta(days=1), allowed_devices=3, devices=["a", "b"]
    )
    return InMemoryKeyStore([record.record_verification(clock.now())])


@pytest.fixture
def seeded_session(seeded_store):
    """Fixture for a session over the seeded store."""
    return KeyStoreSession(seeded_store)


@pytest.mark.asyncio
class TestExtendKeyExpiryHandler:
    """Tests for ExtendKeyExpiryHandler."""

    async def test_extend_adds_to_current_expiry(self, seeded_session, clock, event_bus):
        """Test extension starts from the stored expiry."""
        handler = ExtendKeyExpiryHandler(seeded_session, clock, event_bus)

        result = await handler.handle(
            ExtendKeyExpiryCommand(code="activekey001", duration_value=2, duration_unit="week")
        )

        assert result.previous_expires_at == clock.now() + timedelta(days=1)
        assert result.expires_at == clock.now() + timedelta(days=15)
        assert result.is_expired is False
        assert event_bus.types() == ["KeyExpiryExtended"]

    async def test_extend_expired_key_may_stay_expired(self, seeded_session, clock, event_bus):
        """Test extension is additive, not reset to the future."""
        handler = ExtendKeyExpiryHandler(seeded_session, clock, event_bus)
        clock.advance(days=10)

        result = await handler.handle(
            ExtendKeyExpiryCommand(code="ACTIVEKEY001", duration_value=2, duration_unit="day")
        )

        assert result.expires_at == result.previous_expires_at + timedelta(days=2)
        assert result.is_expired is True

    async def test_extend_unknown_key(self, seeded_session, clock, event_bus):
        """Test missing key."""
        handler = ExtendKeyExpiryHandler(seeded_session, clock, event_bus)
        with pytest.raises(KeyNotFoundError):
            await handler.handle(ExtendKeyExpiryCommand(code="NOPE00000000", duration_value=1))

    async def test_extend_past_date_range_is_invalid_input(
        self, seeded_session, seeded_store, clock, event_bus
    ):
        """Test an extension overflowing the calendar is an input error."""
        handler = ExtendKeyExpiryHandler(seeded_session, clock, event_bus)
        before = (await seeded_store.load_all())[0].expires_at

        with pytest.raises(InvalidInputError) as exc_info:
            await handler.handle(
                ExtendKeyExpiryCommand(
                    code="ACTIVEKEY001", duration_value=200_000, duration_unit="month"
                )
            )

        assert exc_info.value.code == "INVALID_DURATION"
        assert (await seeded_store.load_all())[0].expires_at == before
        assert event_bus.types() == []

    async def test_extend_requires_positive_duration(self, seeded_session, clock, event_bus):
        """Test invalid extension."""
        handler = ExtendKeyExpiryHandler(seeded_session, clock, event_bus)
        with pytest.raises(InvalidInputError):
            await handler.handle(ExtendKeyExpiryCommand(code="ACTIVEKEY001", duration_value=0))


@pytest.mark.asyncio
class TestSetKeyExpiryHandler:
    """Tests for SetKeyExpiryHandler."""

    async def test_set_expiry_in_past_expires_key(self, seeded_session, seeded_store, clock, event_bus):
        """Test admin may deliberately expire a key."""
        handler = SetKeyExpiryHandler(seeded_session, clock, event_bus)
        past = clock.now() - timedelta(hours=1)

        result = await handler.handle(SetKeyExpiryCommand(code="ACTIVEKEY001", expires_at=past))

        assert result.is_expired is True
        stored = await seeded_store.load_all()
        assert stored[0].expires_at == past

    async def test_naive_timestamp_taken_as_utc(self, seeded_session, clock, event_bus):
        """Test naive datetimes are interpreted as UTC."""
        handler = SetKeyExpiryHandler(seeded_session, clock, event_bus)

        result = await handler.handle(
            SetKeyExpiryCommand(code="ACTIVEKEY001", expires_at=datetime(2027, 1, 1))
        )

        assert result.expires_at == datetime(2027, 1, 1, tzinfo=timezone.utc)

    async def test_non_datetime_rejected(self, seeded_session, clock, event_bus):
        """Test invalid timestamp."""
        handler = SetKeyExpiryHandler(seeded_session, clock, event_bus)
        with pytest.raises(InvalidInputError) as exc_info:
            await handler.handle(SetKeyExpiryCommand(code="ACTIVEKEY001", expires_at="tomorrow"))
        assert exc_info.value.code == "INVALID_TIMESTAMP"


@pytest.mark.asyncio
class TestUpdateAllowedDevicesHandler:
    """Tests for UpdateAllowedDevicesHandler."""

    async def test_raise_quota(self, seeded_session, clock, event_bus):
        """Test increasing the device quota."""
        handler = UpdateAllowedDevicesHandler(seeded_session, clock, event_bus)

        result = await handler.handle(
            UpdateAllowedDevicesCommand(code="ACTIVEKEY001", allowed_devices=5)
        )

        assert result.allowed_devices == 5
        assert result.devices_remaining == 3
        assert event_bus.types() == ["KeyAllowedDevicesUpdated"]

    async def test_shrink_below_bound_rejected(self, seeded_session, seeded_store, clock, event_bus):
        """Test the device-limit invariant is never violated."""
        handler = UpdateAllowedDevicesHandler(seeded_session, clock, event_bus)

        with pytest.raises(InvalidInputError) as exc_info:
            await handler.handle(UpdateAllowedDevicesCommand(code="ACTIVEKEY001", allowed_devices=1))

        assert exc_info.value.code == "DEVICE_LIMIT_BELOW_BOUND"
        assert (await seeded_store.load_all())[0].allowed_devices == 3


@pytest.mark.asyncio
class TestResetDevicesHandler:
    """Tests for ResetDevicesHandler."""

    async def test_reset_clears_devices_keeps_count(self, seeded_session, clock, event_bus):
        """Test reset releases every device."""
        handler = ResetDevicesHandler(seeded_session, clock, event_bus)

        result = await handler.handle(ResetDevicesCommand(code="ACTIVEKEY001"))

        assert result.devices == []
        assert result.devices_remaining == 3
        assert result.verification_count == 1
        assert event_bus.published[0].released_devices == 2


@pytest.mark.asyncio
class TestDeleteKeyHandler:
    """Tests for DeleteKeyHandler."""

    async def test_delete_removes_key(self, seeded_session, seeded_store, clock, event_bus):
        """Test hard delete."""
        handler = DeleteKeyHandler(seeded_session, clock, event_bus)

        result = await handler.handle(DeleteKeyCommand(code="ACTIVEKEY001"))

        assert result.code == "ACTIVEKEY001"
        assert await seeded_store.load_all() == []
        assert event_bus.types() == ["KeyDeleted"]

    async def test_delete_twice_fails(self, seeded_session, clock, event_bus):
        """Test deleting a missing key is an error."""
        handler = DeleteKeyHandler(seeded_session, clock, event_bus)
        await handler.handle(DeleteKeyCommand(code="ACTIVEKEY001"))

        with pytest.raises(KeyNotFoundError):
            await handler.handle(DeleteKeyCommand(code="ACTIVEKEY001"))

    async def test_blank_code_rejected(self, seeded_session, clock, event_bus):
        """Test missing code."""
        handler = DeleteKeyHandler(seeded_session, clock, event_bus)
        with pytest.raises(InvalidInputError, match="required"):
            await handler.handle(DeleteKeyCommand(code="  "))


@pytest.mark.asyncio
class TestQueryHandlers:
    """Tests for ListKeysHandler and GetKeyInfoHandler."""

    async def test_list_keys(self, seeded_session, seeded_store):
        """Test list returns the full snapshot without writing."""
        result = await ListKeysHandler(seeded_session).handle(ListKeysQuery())

        assert [key.code for key in result] == ["ACTIVEKEY001"]
        assert result[0].devices == ["a", "b"]
        assert seeded_store.save_count == 0

    async def test_get_key_info(self, seeded_session, clock):
        """Test single lookup is case-normalized."""
        result = await GetKeyInfoHandler(seeded_session).handle(GetKeyInfoQuery(code="activekey001"))

        assert result.code == "ACTIVEKEY001"
        assert result.verification_count == 1
        assert result.last_verified_at == clock.now()

    async def test_get_key_info_missing(self, seeded_session):
        """Test unknown key."""
        with pytest.raises(KeyNotFoundError):
            await GetKeyInfoHandler(seeded_session).handle(GetKeyInfoQuery(code="UNKNOWN00000"))
