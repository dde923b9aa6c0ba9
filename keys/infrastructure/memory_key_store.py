"""
In-memory implementation of the KeyStore port.

Records are held as serialized documents so every load hands out
fresh entities and a caller can never observe a half-applied change.
Suitable for tests and single-process ephemeral use.
"""

from typing import Any, Dict, List

from keys.domain.key_record import KeyRecord
from keys.infrastructure.record_mapper import to_document, to_domain
from keys.ports.key_store import KeyStore


class InMemoryKeyStore(KeyStore):
    """Process-local KeyStore."""

    def __init__(self, records: List[KeyRecord] = None):
        self._documents: List[Dict[str, Any]] = [to_document(r) for r in records or []]
        self.save_count = 0

    async def load_all(self) -> List[KeyRecord]:
        return [to_domain(dict(document)) for document in self._documents]

    async def save_all(self, records: List[KeyRecord]) -> None:
        self._documents = [to_document(record) for record in records]
        self.save_count += 1
