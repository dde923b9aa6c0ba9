"""
Activation domain events.

Domain events represent something that happened while verifying a key
on a device.
"""
import uuid
from datetime import datetime
from typing import Any, Dict, Optional

from core.domain.events import DomainEvent


class DeviceBound(DomainEvent):
    """Event raised when a new device takes a slot on a key."""

    def __init__(
        self,
        key_id: uuid.UUID,
        code: str,
        device_id: str,
        devices_used: int,
        occurred_at: Optional[datetime] = None,
    ):
        """
        Initialize DeviceBound event.

        Args:
            key_id: Key record UUID
            code: Key code
            device_id: Newly bound device identifier
            devices_used: Bound devices after binding
            occurred_at: When the event occurred
        """
        super().__init__(aggregate_id=str(key_id), occurred_at=occurred_at)
        self.code = code
        self.device_id = device_id
        self.devices_used = devices_used

    def payload(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "device_id": self.device_id,
            "devices_used": self.devices_used,
        }


class KeyVerified(DomainEvent):
    """Event raised after a successful verification."""

    def __init__(
        self,
        key_id: uuid.UUID,
        code: str,
        device_id: str,
        verification_count: int,
        occurred_at: Optional[datetime] = None,
    ):
        """
        Initialize KeyVerified event.

        Args:
            key_id: Key record UUID
            code: Key code
            device_id: Verifying device
            verification_count: Total successful verifications
            occurred_at: When the event occurred
        """
        super().__init__(aggregate_id=str(key_id), occurred_at=occurred_at)
        self.code = code
        self.device_id = device_id
        self.verification_count = verification_count

    def payload(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "device_id": self.device_id,
            "verification_count": self.verification_count,
        }
