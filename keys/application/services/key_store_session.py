"""
Store session: the unit of work around the key store.

All mutations run as "load full set -> change records -> save full set"
while holding one exclusion: an asyncio lock for this process plus the
store's own ``exclusive()`` for other processes sharing the store.
Reads load a snapshot without taking the lock; stores hand out whole,
consistent record sets.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Dict, Iterable, KeysView, List, Optional

from core.domain.exceptions import DuplicateCodeError, IntegrityViolationError, KeyNotFoundError
from keys.domain.key_record import KeyRecord
from keys.ports.key_store import KeyStore

logger = logging.getLogger(__name__)


def lookup_key(code: str) -> str:
    """Index key for a stored code; hand-edited codes may not be normalized."""
    return code.strip().upper()


class KeyIndex:
    """
    Working copy of the record set, indexed by normalized code.

    Records sharing a code are all kept so that saving never drops one;
    looking such a code up is an integrity failure.
    """

    def __init__(self, records: Iterable[KeyRecord]):
        self._load(records)
        self.dirty = False
        if self._shadowed:
            logger.warning(
                "Key store holds %d duplicated code(s): %s",
                len(self._shadowed),
                ", ".join(sorted(self._shadowed)),
            )

    def _load(self, records: Iterable[KeyRecord]) -> None:
        self._records: Dict[str, KeyRecord] = {}
        self._shadowed: Dict[str, List[KeyRecord]] = {}
        for record in records:
            key = lookup_key(record.code)
            if key in self._records:
                self._shadowed.setdefault(key, []).append(record)
            else:
                self._records[key] = record

    def __len__(self) -> int:
        return len(self._records) + sum(len(extra) for extra in self._shadowed.values())

    def __contains__(self, code: str) -> bool:
        return lookup_key(code) in self._records

    def codes(self) -> KeysView:
        """Live view of every code in the index."""
        return self._records.keys()

    def records(self) -> List[KeyRecord]:
        """Every record, duplicates included, in load order per code."""
        result: List[KeyRecord] = []
        for key, record in self._records.items():
            result.append(record)
            result.extend(self._shadowed.get(key, ()))
        return result

    def get(self, code: str) -> Optional[KeyRecord]:
        """
        Get a record by normalized code.

        Raises:
            IntegrityViolationError: If several stored records share the code
        """
        key = lookup_key(code)
        if key in self._shadowed:
            raise IntegrityViolationError(
                f"Key {code} is stored {len(self._shadowed[key]) + 1} times"
            )
        return self._records.get(key)

    def require(self, code: str) -> KeyRecord:
        """
        Get a record or fail.

        Raises:
            KeyNotFoundError: If the code is unknown
            IntegrityViolationError: If several stored records share the code
        """
        record = self.get(code)
        if record is None:
            raise KeyNotFoundError(f"Key {code} not found")
        return record

    def add(self, record: KeyRecord) -> None:
        """
        Insert a new record.

        Raises:
            DuplicateCodeError: If the code is already present
        """
        if lookup_key(record.code) in self._records:
            raise DuplicateCodeError(f"Key code {record.code} already exists")
        self.put(record)

    def put(self, record: KeyRecord) -> None:
        """Insert or replace a record."""
        self._records[lookup_key(record.code)] = record
        self.dirty = True

    def remove(self, code: str) -> KeyRecord:
        """
        Delete a record.

        Raises:
            KeyNotFoundError: If the code is unknown
            IntegrityViolationError: If several stored records share the code
        """
        record = self.require(code)
        del self._records[lookup_key(code)]
        self.dirty = True
        return record

    def remove_where(self, predicate: Callable[[KeyRecord], bool]) -> List[KeyRecord]:
        """
        Delete every record matching ``predicate``, duplicates included.

        Returns:
            The removed records
        """
        kept: List[KeyRecord] = []
        removed: List[KeyRecord] = []
        for record in self.records():
            (removed if predicate(record) else kept).append(record)
        if removed:
            self._load(kept)
            self.dirty = True
        return removed


class KeyStoreSession:
    """Serializes every mutation of a KeyStore."""

    def __init__(self, store: KeyStore):
        self.store = store
        self._lock = asyncio.Lock()

    @asynccontextmanager
    async def mutate(self) -> AsyncIterator[KeyIndex]:
        """
        Open an exclusive read-modify-write cycle.

        The index is saved on normal exit if anything changed. If the
        block raises, nothing is written.
        """
        async with self._lock:
            async with self.store.exclusive():
                index = KeyIndex(await self.store.load_all())
                yield index
                if index.dirty:
                    await self.store.save_all(index.records())
                    logger.debug("Saved %d key record(s)", len(index))

    async def snapshot(self) -> KeyIndex:
        """Load a read-only view of the current record set."""
        return KeyIndex(await self.store.load_all())
