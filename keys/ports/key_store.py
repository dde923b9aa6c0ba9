"""
Key store port (interface).

This defines the contract for key record persistence.
Implementations are in the infrastructure layer.
"""
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import AsyncIterator, List

from keys.domain.key_record import KeyRecord


class KeyStore(ABC):
    """
    Abstract store for the full set of KeyRecord entities.

    This is a port in hexagonal architecture - it defines
    what operations are available, not how they're implemented.
    The store always loads and saves the complete record set.
    """

    @abstractmethod
    async def load_all(self) -> List[KeyRecord]:
        """
        Load every key record.

        Returns:
            List of KeyRecord entities (empty if the store is new)

        Raises:
            StoreUnavailableError: If the store cannot be read or parsed
        """
        pass

    @abstractmethod
    async def save_all(self, records: List[KeyRecord]) -> None:
        """
        Replace the stored record set atomically.

        Args:
            records: Complete list of key records

        Raises:
            StoreUnavailableError: If the store cannot be written
        """
        pass

    @asynccontextmanager
    async def exclusive(self) -> AsyncIterator[None]:
        """
        Hold store-level exclusion across a load/mutate/save cycle.

        Adapters shared between processes override this; the default
        relies on the caller's in-process lock only.
        """
        yield
