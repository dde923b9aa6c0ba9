"""
KeyRecord domain entity.

This is the core domain entity representing an activation key.
It contains business logic and is independent of infrastructure.
"""
import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Optional, Tuple

from core.domain.value_objects import DeviceId, KeyCode


def _shift(start: datetime, delta: timedelta) -> datetime:
    try:
        return start + delta
    except OverflowError as e:
        raise ValueError("Expiry is out of the supported date range") from e


@dataclass(frozen=True)
class KeyRecord:
    """
    KeyRecord domain entity.

    Binds an activation code to an expiry and a device quota.
    This is an immutable value object; every mutation returns a new
    instance. Code format and signature are not checked here: records
    loaded from the store may have been edited by hand, and the
    IntegritySigner rejects those one record at a time.
    """

    id: uuid.UUID
    code: str
    signature: str
    created_at: datetime
    expires_at: datetime
    allowed_devices: int
    bound_devices: Tuple[str, ...]
    verification_count: int = 0
    last_verified_at: Optional[datetime] = None

    def __post_init__(self):
        """Validate key record entity."""
        if not isinstance(self.code, str) or not self.code.strip():
            raise ValueError("Key code must be a non-empty string")
        if not isinstance(self.signature, str):
            raise ValueError("Key signature must be a string")
        if isinstance(self.allowed_devices, bool) or not isinstance(self.allowed_devices, int):
            raise ValueError("Allowed devices must be an integer")
        if self.allowed_devices < 1:
            raise ValueError("Allowed devices must be at least 1")
        if len(self.bound_devices) > self.allowed_devices:
            raise ValueError("Bound devices exceed allowed devices")
        if len(set(self.bound_devices)) != len(self.bound_devices):
            raise ValueError("Bound devices must be unique")
        if self.verification_count < 0:
            raise ValueError("Verification count cannot be negative")

    @classmethod
    def create(
        cls,
        code: KeyCode,
        signature: str,
        now: datetime,
        lifetime: timedelta,
        allowed_devices: int = 1,
        key_id: Optional[uuid.UUID] = None,
    ) -> "KeyRecord":
        """
        Create a new KeyRecord entity.

        Args:
            code: Normalized key code
            signature: Integrity signature over the code
            now: Creation time
            lifetime: Time until expiry
            allowed_devices: Maximum number of bound devices
            key_id: Optional UUID (generated if not provided)

        Returns:
            KeyRecord entity instance
        """
        expires_at = _shift(now, lifetime)
        if expires_at <= now:
            raise ValueError("Expiry must be after creation time")
        return cls(
            id=key_id or uuid.uuid4(),
            code=code.value,
            signature=signature,
            created_at=now,
            expires_at=expires_at,
            allowed_devices=allowed_devices,
            bound_devices=(),
        )

    @property
    def devices_used(self) -> int:
        """Number of currently bound devices."""
        return len(self.bound_devices)

    @property
    def devices_remaining(self) -> int:
        """Free device slots."""
        return max(0, self.allowed_devices - self.devices_used)

    def is_expired(self, current_time: datetime) -> bool:
        """
        Check if the key is past its expiry.

        Args:
            current_time: Time to check against

        Returns:
            True if expires_at is strictly before current_time
        """
        return self.expires_at < current_time

    def has_device(self, device_id: DeviceId) -> bool:
        """Check whether a device is already bound."""
        return device_id.value in self.bound_devices

    def bind_device(self, device_id: DeviceId) -> "KeyRecord":
        """
        Create a new KeyRecord with the device appended.

        Raises:
            ValueError: If the device is bound or no slot is free
        """
        if self.has_device(device_id):
            raise ValueError(f"Device {device_id} is already bound")
        if self.devices_used >= self.allowed_devices:
            raise ValueError("No free device slot")
        return replace(self, bound_devices=self.bound_devices + (device_id.value,))

    def record_verification(self, verified_at: datetime) -> "KeyRecord":
        """Create a new KeyRecord with the usage counters bumped."""
        return replace(
            self,
            verification_count=self.verification_count + 1,
            last_verified_at=verified_at,
        )

    def extend(self, additional: timedelta) -> "KeyRecord":
        """
        Create a new KeyRecord whose expiry is pushed out from the
        current expiry, not from the present moment.
        """
        if additional <= timedelta(0):
            raise ValueError("Extension must be positive")
        return replace(self, expires_at=_shift(self.expires_at, additional))

    def with_expiry(self, expires_at: datetime) -> "KeyRecord":
        """Create a new KeyRecord with an absolute expiry (may be in the past)."""
        return replace(self, expires_at=expires_at)

    def with_allowed_devices(self, allowed_devices: int) -> "KeyRecord":
        """
        Create a new KeyRecord with a different device quota.

        Raises:
            ValueError: If the quota would drop below the bound devices
        """
        if allowed_devices < self.devices_used:
            raise ValueError(
                f"Cannot lower allowed devices to {allowed_devices}: "
                f"{self.devices_used} device(s) currently bound"
            )
        return replace(self, allowed_devices=allowed_devices)

    def reset_devices(self) -> "KeyRecord":
        """Create a new KeyRecord with no bound devices."""
        return replace(self, bound_devices=())
