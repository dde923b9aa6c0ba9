"""
Wiring of a KeyService from Django settings.
"""
from core.infrastructure.clock import SystemClock
from core.infrastructure.event_handlers import register_event_handlers
from core.infrastructure.events import InMemoryEventBus
from keys.application.config import KeyServiceConfig
from keys.application.service import KeyService
from keys.infrastructure.json_file_key_store import JsonFileKeyStore


def build_key_service(settings=None) -> KeyService:
    """
    Build a KeyService backed by the JSON key file.

    Args:
        settings: Settings object (defaults to django.conf.settings)

    Returns:
        KeyService with its own store, event bus and sweeper
    """
    if settings is None:
        from django.conf import settings

    store = JsonFileKeyStore(
        path=str(settings.KEY_STORE_PATH),
        lock_timeout=float(getattr(settings, "KEY_STORE_LOCK_TIMEOUT_SECONDS", 5)),
        write_retries=int(getattr(settings, "KEY_STORE_WRITE_RETRIES", 3)),
    )
    return KeyService(
        store=store,
        config=KeyServiceConfig.from_settings(settings),
        clock=SystemClock(),
        event_bus=register_event_handlers(InMemoryEventBus()),
    )

