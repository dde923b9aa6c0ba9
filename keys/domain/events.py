"""
Key domain events.

Domain events represent something that happened to a key record.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from core.domain.events import DomainEvent


class KeyCreated(DomainEvent):
    """Event raised when a key is created."""

    def __init__(
        self,
        key_id: uuid.UUID,
        code: str,
        expires_at: datetime,
        allowed_devices: int,
        occurred_at: Optional[datetime] = None,
    ):
        """
        Initialize KeyCreated event.

        Args:
            key_id: Key record UUID
            code: Key code
            expires_at: Expiry of the new key
            allowed_devices: Device quota
            occurred_at: When the event occurred
        """
        super().__init__(aggregate_id=str(key_id), occurred_at=occurred_at)
        self.code = code
        self.expires_at = expires_at
        self.allowed_devices = allowed_devices

    def payload(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "expires_at": self.expires_at.isoformat(),
            "allowed_devices": self.allowed_devices,
        }


class KeyExpiryExtended(DomainEvent):
    """Event raised when a key's expiry is pushed forward."""

    def __init__(
        self,
        key_id: uuid.UUID,
        code: str,
        previous_expires_at: datetime,
        new_expires_at: datetime,
        occurred_at: Optional[datetime] = None,
    ):
        super().__init__(aggregate_id=str(key_id), occurred_at=occurred_at)
        self.code = code
        self.previous_expires_at = previous_expires_at
        self.new_expires_at = new_expires_at

    def payload(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "previous_expires_at": self.previous_expires_at.isoformat(),
            "new_expires_at": self.new_expires_at.isoformat(),
        }


class KeyExpirySet(DomainEvent):
    """Event raised when an admin overrides a key's expiry."""

    def __init__(
        self,
        key_id: uuid.UUID,
        code: str,
        new_expires_at: datetime,
        occurred_at: Optional[datetime] = None,
    ):
        super().__init__(aggregate_id=str(key_id), occurred_at=occurred_at)
        self.code = code
        self.new_expires_at = new_expires_at

    def payload(self) -> Dict[str, Any]:
        return {"code": self.code, "new_expires_at": self.new_expires_at.isoformat()}


class KeyAllowedDevicesUpdated(DomainEvent):
    """Event raised when a key's device quota changes."""

    def __init__(
        self,
        key_id: uuid.UUID,
        code: str,
        allowed_devices: int,
        occurred_at: Optional[datetime] = None,
    ):
        super().__init__(aggregate_id=str(key_id), occurred_at=occurred_at)
        self.code = code
        self.allowed_devices = allowed_devices

    def payload(self) -> Dict[str, Any]:
        return {"code": self.code, "allowed_devices": self.allowed_devices}


class KeyDevicesReset(DomainEvent):
    """Event raised when a key's bound devices are cleared."""

    def __init__(
        self,
        key_id: uuid.UUID,
        code: str,
        released_devices: int,
        occurred_at: Optional[datetime] = None,
    ):
        super().__init__(aggregate_id=str(key_id), occurred_at=occurred_at)
        self.code = code
        self.released_devices = released_devices

    def payload(self) -> Dict[str, Any]:
        return {"code": self.code, "released_devices": self.released_devices}


class KeyDeleted(DomainEvent):
    """Event raised when a key is hard-deleted."""

    def __init__(
        self,
        key_id: uuid.UUID,
        code: str,
        occurred_at: Optional[datetime] = None,
    ):
        super().__init__(aggregate_id=str(key_id), occurred_at=occurred_at)
        self.code = code

    def payload(self) -> Dict[str, Any]:
        return {"code": self.code}


class ExpiredKeysSwept(DomainEvent):
    """Event raised when the expiry sweep removes one or more keys."""

    def __init__(
        self,
        codes: List[str],
        occurred_at: Optional[datetime] = None,
    ):
        super().__init__(aggregate_id="key-store", occurred_at=occurred_at)
        self.codes = list(codes)

    def payload(self) -> Dict[str, Any]:
        return {"codes": self.codes, "removed": len(self.codes)}
