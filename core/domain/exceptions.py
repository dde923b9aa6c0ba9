"""
Domain exceptions.

Domain exceptions represent business rule violations
and domain-specific error conditions. Every exception carries a
stable ``kind`` (see ErrorKind) that callers switch on, a more
specific machine-readable ``code`` and optional diagnostic ``details``.
"""
from datetime import datetime
from typing import Any, Dict, Optional

from core.domain.value_objects import ErrorKind


class DomainException(Exception):
    """Base exception for all domain exceptions."""

    kind: ErrorKind = ErrorKind.INVALID_INPUT

    def __init__(
        self,
        message: str,
        code: str = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        """
        Initialize domain exception.

        Args:
            message: Human-readable error message
            code: Machine-readable error code
            details: Diagnostic fields surfaced to the caller
        """
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}


class InvalidInputError(DomainException):
    """Raised when a request is malformed or misses required fields."""

    kind = ErrorKind.INVALID_INPUT

    def __init__(
        self,
        message: str = "Invalid input",
        code: str = "INVALID_INPUT",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, code=code, details=details)


class MissingParamsError(InvalidInputError):
    """Raised when verification is attempted without a key or device."""

    def __init__(self, message: str = "Key and device ID are required"):
        super().__init__(message, code="MISSING_PARAMS")


class KeyException(DomainException):
    """Base exception for key-related errors."""

    pass


class KeyNotFoundError(KeyException):
    """Raised when a key code is not present in the store."""

    kind = ErrorKind.KEY_NOT_FOUND

    def __init__(self, message: str = "Key not found"):
        super().__init__(message, code="KEY_NOT_FOUND")


class DuplicateCodeError(KeyException):
    """Raised when a key code is already taken."""

    kind = ErrorKind.DUPLICATE_CODE

    def __init__(self, message: str = "Key code already exists"):
        super().__init__(message, code="DUPLICATE_CODE")


class KeyExpiredError(KeyException):
    """Raised when a key is past its expiry."""

    kind = ErrorKind.KEY_EXPIRED

    def __init__(self, expires_at: datetime, message: str = "Key has expired"):
        super().__init__(
            message,
            code="KEY_EXPIRED",
            details={"expires_at": expires_at.isoformat()},
        )
        self.expires_at = expires_at


class DeviceLimitReachedError(KeyException):
    """Raised when a new device would exceed the key's device quota."""

    kind = ErrorKind.DEVICE_LIMIT_REACHED

    def __init__(
        self,
        devices_used: int,
        devices_allowed: int,
        message: str = "Device limit reached",
    ):
        super().__init__(
            message,
            code="DEVICE_LIMIT_REACHED",
            details={
                "devices_used": devices_used,
                "devices_allowed": devices_allowed,
            },
        )
        self.devices_used = devices_used
        self.devices_allowed = devices_allowed


class IntegrityViolationError(KeyException):
    """Raised when a stored record's signature does not match its code."""

    kind = ErrorKind.INTEGRITY_VIOLATION

    def __init__(self, message: str = "Key record failed integrity check"):
        super().__init__(message, code="INTEGRITY_VIOLATION")


class RateLimitedError(KeyException):
    """Raised when a key is verified again before the minimum interval."""

    kind = ErrorKind.RATE_LIMITED

    def __init__(self, retry_after: float, message: str = "Verification rate limit exceeded"):
        super().__init__(
            message,
            code="RATE_LIMITED",
            details={"retry_after_seconds": round(retry_after, 3)},
        )
        self.retry_after = retry_after


class StoreUnavailableError(DomainException):
    """Raised when the key store cannot be read or written."""

    kind = ErrorKind.STORE_UNAVAILABLE

    def __init__(self, message: str = "Key store unavailable"):
        super().__init__(message, code="STORE_UNAVAILABLE")
