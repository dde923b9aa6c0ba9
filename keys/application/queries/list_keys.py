"""
ListKeysQuery.

Query for a snapshot of every key.
"""
from dataclasses import dataclass


@dataclass
class ListKeysQuery:
    """Query to list all keys."""

    pass
