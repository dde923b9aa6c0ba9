"""
Unit tests for Outcome and domain exceptions.
"""
import uuid
from datetime import datetime, timezone

from core.domain.exceptions import (
    DeviceLimitReachedError,
    KeyExpiredError,
    KeyNotFoundError,
    MissingParamsError,
)
from core.domain.value_objects import ErrorKind
from keys.application.results import Outcome, to_primitive


class TestOutcome:
    """Tests for Outcome."""

    def test_success_shape(self):
        """Test successful outcome serialization."""
        outcome = Outcome.success({"code": "ABC", "at": datetime(2026, 1, 1, tzinfo=timezone.utc)})

        assert outcome.to_dict() == {
            "ok": True,
            "payload": {"code": "ABC", "at": "2026-01-01T00:00:00+00:00"},
        }

    def test_failure_shape(self):
        """Test failed outcome carries kind, code and message."""
        outcome = Outcome.failure(KeyNotFoundError("Key ABC not found"))

        assert outcome.ok is False
        assert outcome.kind is ErrorKind.KEY_NOT_FOUND
        assert outcome.to_dict() == {
            "ok": False,
            "kind": "KeyNotFound",
            "code": "KEY_NOT_FOUND",
            "message": "Key ABC not found",
            "details": {},
        }

    def test_expired_failure_surfaces_expiry(self):
        """Test expired outcome includes the stale expiry."""
        expires_at = datetime(2025, 6, 1, tzinfo=timezone.utc)
        outcome = Outcome.failure(KeyExpiredError(expires_at))

        assert outcome.kind is ErrorKind.KEY_EXPIRED
        assert outcome.details == {"expires_at": expires_at.isoformat()}

    def test_device_limit_failure_surfaces_counts(self):
        """Test limit outcome includes device counts."""
        outcome = Outcome.failure(DeviceLimitReachedError(2, 2))

        assert outcome.details == {"devices_used": 2, "devices_allowed": 2}

    def test_missing_params_is_invalid_input(self):
        """Test missing parameters map to InvalidInput."""
        outcome = Outcome.failure(MissingParamsError())

        assert outcome.kind is ErrorKind.INVALID_INPUT
        assert outcome.code == "MISSING_PARAMS"


class TestToPrimitive:
    """Tests for to_primitive."""

    def test_nested_values(self):
        """Test UUIDs, enums and tuples are converted."""
        key_id = uuid.uuid4()
        value = {"id": key_id, "kind": ErrorKind.RATE_LIMITED, "devices": ("a", "b")}

        assert to_primitive(value) == {
            "id": str(key_id),
            "kind": "RateLimited",
            "devices": ["a", "b"],
        }
