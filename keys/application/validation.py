"""
Input parsing for key commands.

Turns raw command fields into value objects, reporting any problem as
InvalidInputError so it reaches the caller as a typed outcome.
"""
from datetime import datetime, timedelta, timezone

from core.domain.exceptions import InvalidInputError
from core.domain.value_objects import Duration, KeyCode
from keys.domain.key_code import normalize_prefix


def parse_code(raw) -> KeyCode:
    """Normalize a caller-supplied key code."""
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        raise InvalidInputError("Key code is required")
    try:
        return KeyCode.normalize(raw)
    except ValueError as e:
        raise InvalidInputError(str(e)) from e


def parse_duration(value, unit) -> Duration:
    """Build a positive Duration from a value and unit name."""
    try:
        return Duration.of(value, unit)
    except ValueError as e:
        raise InvalidInputError(str(e), code="INVALID_DURATION") from e


def parse_expiry(start: datetime, lifetime: timedelta) -> datetime:
    """Add a lifetime to a start time, rejecting expiries past the calendar's range."""
    try:
        return start + lifetime
    except OverflowError as e:
        raise InvalidInputError(
            "Duration puts the expiry out of the supported date range", code="INVALID_DURATION"
        ) from e


def parse_allowed_devices(value) -> int:
    """Validate a device quota."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInputError(
            f"Allowed devices must be a whole number: {value!r}", code="INVALID_DEVICE_LIMIT"
        )
    if value < 1:
        raise InvalidInputError("Allowed devices must be at least 1", code="INVALID_DEVICE_LIMIT")
    return value


def parse_prefix(prefix) -> str:
    """Validate a key type tag."""
    if prefix is not None and not isinstance(prefix, str):
        raise InvalidInputError("Key prefix must be a string")
    try:
        return normalize_prefix(prefix)
    except ValueError as e:
        raise InvalidInputError(str(e)) from e


def parse_timestamp(value) -> datetime:
    """Require a datetime; naive values are taken as UTC."""
    if not isinstance(value, datetime):
        raise InvalidInputError("Expiry must be a datetime", code="INVALID_TIMESTAMP")
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
