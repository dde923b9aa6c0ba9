"""
CreateKeyCommand.

Command to create a single activation key.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class CreateKeyCommand:
    """
    Command to create an activation key.

    When ``custom_code`` is given it is used (case-normalized) instead
    of a generated code and must not already exist.
    """

    duration_value: int
    duration_unit: str = "day"
    allowed_devices: int = 1
    custom_code: Optional[str] = None
    prefix: Optional[str] = None
    is_admin: bool = False
