"""
Key DTOs for responses.
"""
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from keys.domain.key_record import KeyRecord


@dataclass
class KeyDTO:
    """DTO for key information."""

    id: uuid.UUID
    code: str
    created_at: datetime
    expires_at: datetime
    allowed_devices: int
    devices_used: int
    devices_remaining: int
    devices: List[str]
    verification_count: int
    last_verified_at: Optional[datetime]


@dataclass
class BulkCreateErrorDTO:
    """DTO for one failed item of a bulk create."""

    index: int
    kind: str
    code: str
    message: str


@dataclass
class BulkCreateResponseDTO:
    """DTO for bulk create response; partial success is allowed."""

    requested: int
    created: List[KeyDTO] = field(default_factory=list)
    errors: List[BulkCreateErrorDTO] = field(default_factory=list)


@dataclass
class ExpiryUpdateDTO:
    """DTO for extend/set expiry responses."""

    code: str
    previous_expires_at: datetime
    expires_at: datetime
    is_expired: bool


@dataclass
class SweepResultDTO:
    """DTO for an expiry sweep pass."""

    swept_at: datetime
    removed: int
    codes: List[str]
    dry_run: bool = False
    skipped: bool = False


def to_key_dto(record: KeyRecord) -> KeyDTO:
    """
    Build a KeyDTO from a key record.

    The integrity signature is internal and never leaves the engine.
    """
    return KeyDTO(
        id=record.id,
        code=record.code,
        created_at=record.created_at,
        expires_at=record.expires_at,
        allowed_devices=record.allowed_devices,
        devices_used=record.devices_used,
        devices_remaining=record.devices_remaining,
        devices=list(record.bound_devices),
        verification_count=record.verification_count,
        last_verified_at=record.last_verified_at,
    )
