"""
ResetDevicesCommand.

Command to release every device bound to a key.
"""
from dataclasses import dataclass


@dataclass
class ResetDevicesCommand:
    """Command to clear a key's bound devices."""

    code: str
