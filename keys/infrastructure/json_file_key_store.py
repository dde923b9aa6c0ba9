"""
JSON file implementation of the KeyStore port.

The whole record set lives in one JSON array. Writes go to a temporary
file in the same directory which is fsynced and then renamed over the
store, so a crash mid-write never leaves a truncated store behind.
An advisory lock file serializes read/mutate/write cycles across
processes (web workers, Celery beat sweep, management commands).
"""

import asyncio
import fcntl
import json
import logging
import os
import tempfile
import time
from contextlib import asynccontextmanager, suppress
from pathlib import Path
from typing import IO, AsyncIterator, List

from asgiref.sync import sync_to_async

from core.domain.exceptions import StoreUnavailableError
from core.metrics import store_operation_duration_seconds
from keys.domain.key_record import KeyRecord
from keys.infrastructure.record_mapper import to_document, to_domain
from keys.ports.key_store import KeyStore

logger = logging.getLogger(__name__)

LOCK_POLL_INTERVAL = 0.05  # seconds


class JsonFileKeyStore(KeyStore):
    """
    File-backed KeyStore.

    This adapter:
    1. Parses the JSON document into domain entities
    2. Serializes domain entities back with an atomic replace
    3. Retries transient write failures with exponential backoff
    """

    def __init__(
        self,
        path,
        lock_timeout: float = 5.0,
        write_retries: int = 3,
        retry_delay: float = 0.05,
    ):
        """
        Initialize the store.

        Args:
            path: Location of the JSON file
            lock_timeout: Seconds to wait for the cross-process lock
            write_retries: Attempts per save before giving up
            retry_delay: Base delay between write attempts
        """
        self.path = Path(path)
        self.lock_path = self.path.with_name(self.path.name + ".lock")
        self.lock_timeout = lock_timeout
        self.write_retries = max(1, write_retries)
        self.retry_delay = retry_delay

    def _read(self) -> List[KeyRecord]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        except OSError as e:
            logger.error("Failed to read key store %s: %s", self.path, e, exc_info=True)
            raise StoreUnavailableError("Key store could not be read") from e

        if not raw.strip():
            return []

        try:
            documents = json.loads(raw)
            if not isinstance(documents, list):
                raise ValueError("Key store root must be a JSON array")
            return [to_domain(document) for document in documents]
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            logger.error(
                "Key store %s is corrupted: %s",
                self.path,
                e,
                exc_info=True,
                extra={"store_path": str(self.path)},
            )
            raise StoreUnavailableError("Key store data is corrupted") from e

    def _write_once(self, payload: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_path, self.path)
        except BaseException:
            with suppress(OSError):
                os.unlink(tmp_path)
            raise

    async def load_all(self) -> List[KeyRecord]:
        """
        Load every key record from disk.

        Returns:
            List of KeyRecord entities
        """
        start = time.perf_counter()
        try:
            return await sync_to_async(self._read, thread_sensitive=False)()
        finally:
            store_operation_duration_seconds.labels(operation="load").observe(
                time.perf_counter() - start
            )

    async def save_all(self, records: List[KeyRecord]) -> None:
        """
        Atomically replace the JSON file with ``records``.

        Args:
            records: Complete list of key records
        """
        payload = json.dumps([to_document(record) for record in records], indent=2)
        start = time.perf_counter()
        try:
            for attempt in range(self.write_retries):
                try:
                    await sync_to_async(self._write_once, thread_sensitive=False)(payload)
                    return
                except OSError as e:
                    if attempt == self.write_retries - 1:
                        logger.error(
                            "Giving up writing key store %s after %d attempt(s): %s",
                            self.path,
                            self.write_retries,
                            e,
                            exc_info=True,
                        )
                        raise StoreUnavailableError("Key store could not be written") from e
                    delay = self.retry_delay * 2**attempt
                    logger.warning(
                        "Write to key store %s failed (attempt %d/%d), retrying in %.2fs: %s",
                        self.path,
                        attempt + 1,
                        self.write_retries,
                        delay,
                        e,
                    )
                    await asyncio.sleep(delay)
        finally:
            store_operation_duration_seconds.labels(operation="save").observe(
                time.perf_counter() - start
            )

    def _open_lock_file(self) -> IO[str]:
        self.lock_path.parent.mkdir(parents=True, exist_ok=True)
        return open(self.lock_path, "a+", encoding="utf-8")

    @asynccontextmanager
    async def exclusive(self) -> AsyncIterator[None]:
        """Hold the advisory file lock, waiting at most ``lock_timeout``."""
        try:
            handle = await sync_to_async(self._open_lock_file, thread_sensitive=False)()
        except OSError as e:
            logger.error("Cannot open key store lock %s: %s", self.lock_path, e, exc_info=True)
            raise StoreUnavailableError("Key store lock could not be opened") from e
        try:
            deadline = time.monotonic() + self.lock_timeout
            while True:
                try:
                    fcntl.flock(handle.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
                    break
                except BlockingIOError:
                    if time.monotonic() >= deadline:
                        logger.error("Timed out waiting for key store lock %s", self.lock_path)
                        raise StoreUnavailableError("Key store is locked by another process")
                    await asyncio.sleep(LOCK_POLL_INTERVAL)
            try:
                yield
            finally:
                fcntl.flock(handle.fileno(), fcntl.LOCK_UN)
        finally:
            await sync_to_async(handle.close, thread_sensitive=False)()
