"""
Unit tests for key request serializers.
"""
from datetime import datetime, timezone

import pytest

from activations.application.commands.verify_key import VerifyKeyCommand
from api.v1.keys.serializers import (
    BulkCreateKeysRequestSerializer,
    CreateKeyRequestSerializer,
    ExtendKeyExpiryRequestSerializer,
    KeyCodeRequestSerializer,
    SetKeyExpiryRequestSerializer,
    UpdateAllowedDevicesRequestSerializer,
    VerifyKeyRequestSerializer,
    apply_aliases,
)
from core.domain.exceptions import InvalidInputError
from keys.application.commands.delete_key import DeleteKeyCommand
from keys.application.commands.reset_devices import ResetDevicesCommand
from keys.application.queries.get_key_info import GetKeyInfoQuery


class TestApplyAliases:
    """Tests for apply_aliases."""

    def test_first_non_null_spelling_wins(self):
        """Test alias precedence and pass-through."""
        data = {"key": None, "apiKey": "abc", "extra": 1}

        assert apply_aliases(data, {"code": ("code", "key", "apiKey")}) == {
            "code": "abc",
            "extra": 1,
        }


class TestVerifyKeyRequestSerializer:
    """Tests for VerifyKeyRequestSerializer."""

    @pytest.mark.parametrize(
        "data",
        [
            {"key": "abc123", "deviceId": "dev-1"},
            {"apiKey": "abc123", "device_id": "dev-1"},
            {"code": "abc123", "deviceId": "dev-1"},
        ],
    )
    def test_spellings_normalize_to_one_command(self, data):
        """Test legacy spellings produce the same command."""
        command = VerifyKeyRequestSerializer.normalize(data)

        assert command == VerifyKeyCommand(code="abc123", device_id="dev-1")

    def test_missing_fields_pass_through(self):
        """Test the engine decides about missing parameters."""
        command = VerifyKeyRequestSerializer.normalize({})

        assert command == VerifyKeyCommand(code=None, device_id=None)


class TestCreateKeyRequestSerializer:
    """Tests for CreateKeyRequestSerializer."""

    def test_camel_case_body(self):
        """Test camelCase body with custom key."""
        command = CreateKeyRequestSerializer.normalize(
            {"durationValue": "3", "durationUnit": "week", "deviceLimit": 2, "customKey": "my-key"},
            is_admin=True,
        )

        assert command.duration_value == 3
        assert command.duration_unit == "week"
        assert command.allowed_devices == 2
        assert command.custom_code == "my-key"
        assert command.is_admin is True

    def test_defaults(self):
        """Test unit and device defaults."""
        command = CreateKeyRequestSerializer.normalize({"duration": 1})

        assert command.duration_unit == "day"
        assert command.allowed_devices == 1
        assert command.custom_code is None
        assert command.is_admin is False

    def test_wrong_type_rejected(self):
        """Test type errors surface as InvalidInput with field details."""
        with pytest.raises(InvalidInputError) as exc_info:
            CreateKeyRequestSerializer.normalize({"duration": "soon"})

        assert "duration_value" in exc_info.value.details["fields"]

    def test_bulk_ignores_custom_code(self):
        """Test bulk requests always generate codes."""
        command = BulkCreateKeysRequestSerializer.normalize(
            {"count": 5, "duration": 2, "allowedDevices": 3, "customCode": "X"}
        )

        assert command.count == 5
        assert command.allowed_devices == 3
        assert not hasattr(command, "custom_code")


class TestKeyCodeRequestSerializer:
    """Tests for KeyCodeRequestSerializer."""

    def test_actions(self):
        """Test one body maps to reset, delete or info."""
        data = {"apiKey": "abc"}

        assert KeyCodeRequestSerializer.normalize(data, action="reset") == ResetDevicesCommand("abc")
        assert KeyCodeRequestSerializer.normalize(data, action="delete") == DeleteKeyCommand("abc")
        assert KeyCodeRequestSerializer.normalize(data) == GetKeyInfoQuery("abc")


class TestExpirySerializers:
    """Tests for extend and set expiry serializers."""

    def test_extend(self):
        """Test extend aliases."""
        command = ExtendKeyExpiryRequestSerializer.normalize(
            {"key": "abc", "durationValue": 2, "unit": "month"}
        )

        assert (command.code, command.duration_value, command.duration_unit) == ("abc", 2, "month")

    def test_set_expiry_epoch_milliseconds(self):
        """Test epoch milliseconds, as number or string."""
        expected = datetime(2026, 1, 1, tzinfo=timezone.utc)

        assert SetKeyExpiryRequestSerializer.normalize(
            {"key": "abc", "expiresAt": 1767225600000}
        ).expires_at == expected
        assert SetKeyExpiryRequestSerializer.normalize(
            {"key": "abc", "expiresAt": "1767225600000"}
        ).expires_at == expected

    def test_set_expiry_iso(self):
        """Test ISO-8601, with and without offset."""
        assert SetKeyExpiryRequestSerializer.normalize(
            {"code": "abc", "expires_at": "2026-01-01T02:00:00+02:00"}
        ).expires_at == datetime(2026, 1, 1, tzinfo=timezone.utc)
        assert SetKeyExpiryRequestSerializer.normalize(
            {"code": "abc", "expiresAt": "2026-01-01T00:00:00"}
        ).expires_at == datetime(2026, 1, 1, tzinfo=timezone.utc)

    @pytest.mark.parametrize("value", ["next tuesday", True, [], None])
    def test_set_expiry_invalid(self, value):
        """Test unparseable timestamps."""
        with pytest.raises(InvalidInputError):
            SetKeyExpiryRequestSerializer.normalize({"code": "abc", "expiresAt": value})


class TestUpdateAllowedDevicesRequestSerializer:
    """Tests for UpdateAllowedDevicesRequestSerializer."""

    def test_device_limit_aliases(self):
        """Test snake and camel spellings."""
        command = UpdateAllowedDevicesRequestSerializer.normalize({"key": "abc", "device_limit": 4})

        assert command.allowed_devices == 4
