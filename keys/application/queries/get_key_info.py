"""
GetKeyInfoQuery.

Query to look up one key by code.
"""
from dataclasses import dataclass


@dataclass
class GetKeyInfoQuery:
    """Query to get a key's current state."""

    code: str
