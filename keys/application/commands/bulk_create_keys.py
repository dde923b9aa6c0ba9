"""
BulkCreateKeysCommand.

Command to create many activation keys with the same terms.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class BulkCreateKeysCommand:
    """Command to create ``count`` generated keys in one store write."""

    count: int
    duration_value: int
    duration_unit: str = "day"
    allowed_devices: int = 1
    prefix: Optional[str] = None
    is_admin: bool = False
