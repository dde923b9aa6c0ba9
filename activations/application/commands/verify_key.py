"""
VerifyKeyCommand.

Command to verify a key on a device, binding the device if needed.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class VerifyKeyCommand:
    """Command to verify a key for a device."""

    code: Optional[str]
    device_id: Optional[str]
