"""
Activation domain services.

Domain services contain business logic that doesn't naturally
fit within a single entity.
"""

from enum import Enum
from typing import Tuple

from core.domain.value_objects import DeviceId
from keys.domain.key_record import KeyRecord


class BindResult(Enum):
    """Outcome of trying to attach a device to a key."""

    ALREADY_BOUND = "already_bound"
    BOUND = "bound"
    LIMIT_REACHED = "limit_reached"

    def __str__(self) -> str:
        """Return result as string."""
        return self.value


class DeviceBindingPolicy:
    """
    Domain service deciding whether a device may attach to a key.

    The policy is pure: it returns the decision and the record to
    persist. Callers must evaluate it and commit the returned record
    inside the same store exclusion so two concurrent binds cannot
    both take the last slot.
    """

    @staticmethod
    def try_bind(record: KeyRecord, device_id: DeviceId) -> Tuple[BindResult, KeyRecord]:
        """
        Try to bind a device to a key.

        Args:
            record: Current key record
            device_id: Device asking for a slot

        Returns:
            Tuple of (result, record); the record is unchanged unless
            the result is BOUND
        """
        if record.has_device(device_id):
            return BindResult.ALREADY_BOUND, record

        if record.devices_used >= record.allowed_devices:
            return BindResult.LIMIT_REACHED, record

        return BindResult.BOUND, record.bind_device(device_id)
