"""
Verification DTOs for responses.
"""
from dataclasses import dataclass
from datetime import datetime


@dataclass
class VerificationResultDTO:
    """DTO for a successful key verification."""

    code: str
    device_id: str
    bind_result: str
    expires_at: datetime
    devices_used: int
    devices_allowed: int
    devices_remaining: int
    verification_count: int
    verified_at: datetime
