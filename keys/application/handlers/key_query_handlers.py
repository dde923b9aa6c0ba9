"""
Key query handlers.

Read-only handlers working on a store snapshot; they never take the
mutation lock.
"""
from typing import List

from keys.application.dto.key_dto import KeyDTO, to_key_dto
from keys.application.queries.get_key_info import GetKeyInfoQuery
from keys.application.queries.list_keys import ListKeysQuery
from keys.application.services.key_store_session import KeyStoreSession
from keys.application.validation import parse_code


class ListKeysHandler:
    """Handler for ListKeysQuery."""

    def __init__(self, session: KeyStoreSession):
        self.session = session

    async def handle(self, query: ListKeysQuery) -> List[KeyDTO]:
        """Return every key; filtering is left to the presentation layer."""
        snapshot = await self.session.snapshot()
        return [to_key_dto(record) for record in snapshot.records()]


class GetKeyInfoHandler:
    """Handler for GetKeyInfoQuery."""

    def __init__(self, session: KeyStoreSession):
        self.session = session

    async def handle(self, query: GetKeyInfoQuery) -> KeyDTO:
        """
        Look up one key.

        Raises:
            InvalidInputError: If the code is malformed
            KeyNotFoundError: If key not found
        """
        code = parse_code(query.code)
        snapshot = await self.session.snapshot()
        return to_key_dto(snapshot.require(code.value))
