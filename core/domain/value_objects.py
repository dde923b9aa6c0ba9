"""
Value objects for the domain.

Value objects are immutable objects that are defined by their attributes
rather than their identity. They have no identity and are compared by value.
"""
from abc import ABC
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from typing import Optional

KEY_CODE_MAX_LENGTH = 64
DEVICE_ID_MAX_LENGTH = 500
MAX_DURATION_MS = timedelta.max // timedelta(milliseconds=1)


@dataclass(frozen=True)
class ValueObject(ABC):
    """
    Base class for value objects.

    Value objects are immutable and compared by value.
    """

    def __eq__(self, other):
        """Compare value objects by their attributes."""
        if not isinstance(other, self.__class__):
            return False
        return self.__dict__ == other.__dict__

    def __hash__(self):
        """Make value objects hashable."""
        return hash(tuple(sorted(self.__dict__.items())))


class ErrorKind(Enum):
    """Stable, machine-readable failure categories."""

    INVALID_INPUT = "InvalidInput"
    KEY_NOT_FOUND = "KeyNotFound"
    DUPLICATE_CODE = "DuplicateCode"
    KEY_EXPIRED = "KeyExpired"
    DEVICE_LIMIT_REACHED = "DeviceLimitReached"
    INTEGRITY_VIOLATION = "IntegrityViolation"
    STORE_UNAVAILABLE = "StoreUnavailable"
    RATE_LIMITED = "RateLimited"

    def __str__(self) -> str:
        """Return kind as string."""
        return self.value


class DurationUnit(Enum):
    """Duration unit with its fixed length in milliseconds."""

    HOUR = "hour"
    DAY = "day"
    WEEK = "week"
    MONTH = "month"

    @property
    def milliseconds(self) -> int:
        """Nominal length of one unit (a month is always 30 days)."""
        return _UNIT_MILLISECONDS[self]

    def __str__(self) -> str:
        """Return unit as string."""
        return self.value


_UNIT_MILLISECONDS = {
    DurationUnit.HOUR: 3_600_000,
    DurationUnit.DAY: 86_400_000,
    DurationUnit.WEEK: 604_800_000,
    DurationUnit.MONTH: 2_592_000_000,
}


@dataclass(frozen=True)
class Duration(ValueObject):
    """A positive amount of time expressed in a DurationUnit."""

    value: int
    unit: DurationUnit

    def __post_init__(self):
        """Validate duration."""
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise ValueError(f"Duration must be a whole number: {self.value!r}")
        if self.value <= 0:
            raise ValueError("Duration must be greater than zero")
        if (
            isinstance(self.unit, DurationUnit)
            and self.value * self.unit.milliseconds > MAX_DURATION_MS
        ):
            raise ValueError(f"Duration is too large: {self.value} {self.unit.value}")

    @classmethod
    def of(cls, value, unit) -> "Duration":
        """
        Build a duration from raw input.

        Args:
            value: Number of units
            unit: DurationUnit or its string name

        Returns:
            Duration value object
        """
        if not isinstance(unit, DurationUnit):
            try:
                unit = DurationUnit(str(unit).lower())
            except ValueError:
                allowed = ", ".join(u.value for u in DurationUnit)
                raise ValueError(f"Invalid duration unit: {unit!r} (expected one of {allowed})")
        return cls(value, unit)

    def as_timedelta(self) -> timedelta:
        """Return the duration as a timedelta."""
        return timedelta(milliseconds=self.value * self.unit.milliseconds)

    def __str__(self) -> str:
        """Return duration as string."""
        return f"{self.value} {self.unit.value}"


@dataclass(frozen=True)
class KeyCode(ValueObject):
    """Case-normalized key code used as the external lookup key."""

    value: str

    def __post_init__(self):
        """Validate key code format."""
        if not self.value:
            raise ValueError("Key code cannot be empty")
        if len(self.value) > KEY_CODE_MAX_LENGTH:
            raise ValueError("Key code too long")
        if self.value != self.value.upper() or any(ch.isspace() for ch in self.value):
            raise ValueError(f"Invalid key code format: {self.value}")

    @classmethod
    def normalize(cls, raw: Optional[str]) -> "KeyCode":
        """Strip and upper-case a raw code before validating it."""
        if not isinstance(raw, str):
            raise ValueError("Key code must be a string")
        return cls(raw.strip().upper())

    def __str__(self) -> str:
        """Return code as string."""
        return self.value


@dataclass(frozen=True)
class DeviceId(ValueObject):
    """Opaque device identifier supplied by the caller."""

    value: str

    def __post_init__(self):
        """Validate device identifier."""
        if not isinstance(self.value, str) or len(self.value.strip()) == 0:
            raise ValueError("Device identifier cannot be empty")
        if len(self.value) > DEVICE_ID_MAX_LENGTH:
            raise ValueError("Device identifier too long")

    def __str__(self) -> str:
        """Return identifier as string."""
        return self.value
