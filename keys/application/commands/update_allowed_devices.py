"""
UpdateAllowedDevicesCommand.

Admin change of a key's device quota.
"""
from dataclasses import dataclass


@dataclass
class UpdateAllowedDevicesCommand:
    """Command to change how many devices a key may bind."""

    code: str
    allowed_devices: int
