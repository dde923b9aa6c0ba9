"""
Pytest configuration and shared fixtures.
"""

from datetime import datetime, timedelta, timezone

import pytest

from core.domain.value_objects import DeviceId, KeyCode
from core.infrastructure.clock import Clock
from core.infrastructure.events import InMemoryEventBus
from keys.application.config import KeyServiceConfig
from keys.application.service import KeyService
from keys.application.services.key_store_session import KeyStoreSession
from keys.domain.key_record import KeyRecord
from keys.domain.signer import IntegritySigner
from keys.infrastructure.json_file_key_store import JsonFileKeyStore
from keys.infrastructure.memory_key_store import InMemoryKeyStore

SIGNING_SECRET = "test-signing-secret"


class FixedClock(Clock):
    """Clock that only moves when told to."""

    def __init__(self, now: datetime = None):
        self._now = now or datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self._now

    def advance(self, **kwargs) -> datetime:
        self._now += timedelta(**kwargs)
        return self._now


class RecordingEventBus(InMemoryEventBus):
    """Event bus that remembers everything published on it."""

    def __init__(self):
        super().__init__()
        self.published = []

    async def publish(self, event):
        self.published.append(event)
        await super().publish(event)

    def types(self):
        return [event.event_type for event in self.published]


@pytest.fixture
def clock():
    """Fixture for a deterministic clock."""
    return FixedClock()


@pytest.fixture
def signer():
    """Fixture for IntegritySigner."""
    return IntegritySigner(SIGNING_SECRET)


@pytest.fixture
def config():
    """Fixture for default engine configuration."""
    return KeyServiceConfig(signing_secret=SIGNING_SECRET)


@pytest.fixture
def event_bus():
    """Fixture for an event bus that records published events."""
    return RecordingEventBus()


@pytest.fixture
def key_store():
    """Fixture for an empty in-memory KeyStore."""
    return InMemoryKeyStore()


@pytest.fixture
def session(key_store):
    """Fixture for a store session over the in-memory store."""
    return KeyStoreSession(key_store)


@pytest.fixture
def key_service(key_store, config, clock, event_bus):
    """Fixture for KeyService over the in-memory store."""
    return KeyService(store=key_store, config=config, clock=clock, event_bus=event_bus)


@pytest.fixture
def make_record(signer, clock):
    """Factory fixture for signed KeyRecord entities."""

    def _make(
        code: str = "TESTKEY00001",
        lifetime: timedelta = timedelta(days=1),
        allowed_devices: int = 1,
        devices=(),
    ) -> KeyRecord:
        record = KeyRecord.create(
            code=KeyCode(code),
            signature=signer.sign(code),
            now=clock.now(),
            lifetime=lifetime,
            allowed_devices=allowed_devices,
        )
        for device in devices:
            record = record.bind_device(DeviceId(device))
        return record

    return _make


@pytest.fixture
def json_store_path(tmp_path):
    """Fixture for a key file location in a fresh directory."""
    return tmp_path / "keys.json"


@pytest.fixture
def json_store(json_store_path):
    """Fixture for a JsonFileKeyStore with short timeouts."""
    return JsonFileKeyStore(json_store_path, lock_timeout=0.5, write_retries=3, retry_delay=0)
