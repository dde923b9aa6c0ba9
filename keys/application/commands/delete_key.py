"""
DeleteKeyCommand.

Command to hard-delete a key.
"""
from dataclasses import dataclass


@dataclass
class DeleteKeyCommand:
    """Command to remove a key from the store."""

    code: str
