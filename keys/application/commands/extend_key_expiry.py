"""
ExtendKeyExpiryCommand.

Command to push a key's expiry out from its current value.
"""
from dataclasses import dataclass


@dataclass
class ExtendKeyExpiryCommand:
    """Command to add a duration to a key's current expiry."""

    code: str
    duration_value: int
    duration_unit: str = "day"
