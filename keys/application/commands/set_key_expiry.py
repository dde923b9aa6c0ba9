"""
SetKeyExpiryCommand.

Admin override of a key's expiry.
"""
from dataclasses import dataclass
from datetime import datetime


@dataclass
class SetKeyExpiryCommand:
    """Command to set an absolute expiry, which may lie in the past."""

    code: str
    expires_at: datetime
