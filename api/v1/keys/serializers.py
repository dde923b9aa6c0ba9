"""
Serializers for key API requests.

Clients send several spellings of the same field (``key``/``apiKey``,
``deviceId``/``device_id`` and so on). Each request serializer maps
those aliases onto one canonical field before validation and builds the
typed engine command with ``to_command()``. Range and semantic checks
stay in the engine; serializers only coerce types.
"""

from collections.abc import Mapping
from datetime import datetime, timezone

from django.utils.dateparse import parse_datetime
from rest_framework import serializers

from activations.application.commands.verify_key import VerifyKeyCommand
from core.domain.exceptions import InvalidInputError
from keys.application.commands.bulk_create_keys import BulkCreateKeysCommand
from keys.application.commands.create_key import CreateKeyCommand
from keys.application.commands.delete_key import DeleteKeyCommand
from keys.application.commands.extend_key_expiry import ExtendKeyExpiryCommand
from keys.application.commands.reset_devices import ResetDevicesCommand
from keys.application.commands.set_key_expiry import SetKeyExpiryCommand
from keys.application.commands.update_allowed_devices import UpdateAllowedDevicesCommand
from keys.application.queries.get_key_info import GetKeyInfoQuery

CODE_ALIASES = ("code", "key", "apiKey")
DEVICE_ALIASES = ("device_id", "deviceId")
DURATION_ALIASES = ("duration_value", "duration", "durationValue")
UNIT_ALIASES = ("duration_unit", "unit", "durationUnit")
DEVICE_LIMIT_ALIASES = ("allowed_devices", "deviceLimit", "allowedDevices", "device_limit")
CUSTOM_CODE_ALIASES = ("custom_code", "customKey", "customCode")
EXPIRES_AT_ALIASES = ("expires_at", "expiresAt")


def apply_aliases(data: Mapping, aliases: dict) -> dict:
    """
    Rename aliased keys to their canonical field name.

    The first non-null spelling in alias order wins; alias keys are
    dropped from the result and unrelated keys pass through.
    """
    alias_names = {name for names in aliases.values() for name in names}
    normalized = {key: value for key, value in data.items() if key not in alias_names}
    for canonical, names in aliases.items():
        for name in names:
            if data.get(name) is not None:
                normalized[canonical] = data[name]
                break
    return normalized


class FlexibleTimestampField(serializers.Field):
    """Timestamp given as ISO-8601 text or as epoch milliseconds."""

    default_error_messages = {
        "invalid": "Timestamp must be ISO-8601 or epoch milliseconds.",
    }

    def to_internal_value(self, data):
        if isinstance(data, bool):
            self.fail("invalid")
        if isinstance(data, (int, float)):
            return self._from_epoch_ms(data)
        if isinstance(data, str):
            text = data.strip()
            if text.lstrip("-").isdigit():
                return self._from_epoch_ms(int(text))
            try:
                parsed = parse_datetime(text)
            except ValueError:
                parsed = None
            if parsed is None:
                self.fail("invalid")
            if parsed.tzinfo is None:
                parsed = parsed.replace(tzinfo=timezone.utc)
            return parsed
        self.fail("invalid")

    def _from_epoch_ms(self, value):
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            self.fail("invalid")

    def to_representation(self, value):
        return value.isoformat()


class KeyRequestSerializer(serializers.Serializer):
    """Base serializer applying ``field_aliases`` before validation."""

    field_aliases = {}

    def to_internal_value(self, data):
        if isinstance(data, Mapping):
            data = apply_aliases(data, self.field_aliases)
        return super().to_internal_value(data)

    @classmethod
    def normalize(cls, data, **command_kwargs):
        """
        Validate ``data`` and build the engine command.

        Raises:
            InvalidInputError: If a field has the wrong type
        """
        serializer = cls(data=data)
        if not serializer.is_valid():
            raise InvalidInputError(
                "Invalid request",
                details={"fields": serializer.errors},
            )
        return serializer.to_command(**command_kwargs)

    def to_command(self, **kwargs):
        raise NotImplementedError


class CreateKeyRequestSerializer(KeyRequestSerializer):
    """Serializer for create key request."""

    field_aliases = {
        "duration_value": DURATION_ALIASES,
        "duration_unit": UNIT_ALIASES,
        "allowed_devices": DEVICE_LIMIT_ALIASES,
        "custom_code": CUSTOM_CODE_ALIASES,
    }

    duration_value = serializers.IntegerField(required=True)
    duration_unit = serializers.CharField(required=False, default="day")
    allowed_devices = serializers.IntegerField(required=False, default=1)
    custom_code = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    prefix = serializers.CharField(required=False, allow_null=True, allow_blank=True)

    def to_command(self, is_admin: bool = False) -> CreateKeyCommand:
        data = self.validated_data
        return CreateKeyCommand(
            duration_value=data["duration_value"],
            duration_unit=data["duration_unit"],
            allowed_devices=data["allowed_devices"],
            custom_code=data.get("custom_code") or None,
            prefix=data.get("prefix") or None,
            is_admin=is_admin,
        )


class BulkCreateKeysRequestSerializer(CreateKeyRequestSerializer):
    """Serializer for bulk create request; every code is generated."""

    custom_code = None
    count = serializers.IntegerField(required=True)

    def to_command(self, is_admin: bool = False) -> BulkCreateKeysCommand:
        data = self.validated_data
        return BulkCreateKeysCommand(
            count=data["count"],
            duration_value=data["duration_value"],
            duration_unit=data["duration_unit"],
            allowed_devices=data["allowed_devices"],
            prefix=data.get("prefix") or None,
            is_admin=is_admin,
        )


class KeyCodeRequestSerializer(KeyRequestSerializer):
    """Serializer for requests addressing one key by code."""

    field_aliases = {"code": CODE_ALIASES}

    code = serializers.CharField(required=False, allow_null=True, allow_blank=True)

    def to_command(self, action: str = "info"):
        code = self.validated_data.get("code")
        if action == "reset":
            return ResetDevicesCommand(code=code)
        if action == "delete":
            return DeleteKeyCommand(code=code)
        return GetKeyInfoQuery(code=code)


class VerifyKeyRequestSerializer(KeyRequestSerializer):
    """Serializer for verify request."""

    field_aliases = {"code": CODE_ALIASES, "device_id": DEVICE_ALIASES}

    code = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    device_id = serializers.CharField(required=False, allow_null=True, allow_blank=True)

    def to_command(self) -> VerifyKeyCommand:
        data = self.validated_data
        return VerifyKeyCommand(code=data.get("code"), device_id=data.get("device_id"))


class ExtendKeyExpiryRequestSerializer(KeyRequestSerializer):
    """Serializer for extend expiry request."""

    field_aliases = {
        "code": CODE_ALIASES,
        "duration_value": DURATION_ALIASES,
        "duration_unit": UNIT_ALIASES,
    }

    code = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    duration_value = serializers.IntegerField(required=True)
    duration_unit = serializers.CharField(required=False, default="day")

    def to_command(self) -> ExtendKeyExpiryCommand:
        data = self.validated_data
        return ExtendKeyExpiryCommand(
            code=data.get("code"),
            duration_value=data["duration_value"],
            duration_unit=data["duration_unit"],
        )


class SetKeyExpiryRequestSerializer(KeyRequestSerializer):
    """Serializer for absolute expiry update."""

    field_aliases = {"code": CODE_ALIASES, "expires_at": EXPIRES_AT_ALIASES}

    code = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    expires_at = FlexibleTimestampField(required=True)

    def to_command(self) -> SetKeyExpiryCommand:
        data = self.validated_data
        return SetKeyExpiryCommand(code=data.get("code"), expires_at=data["expires_at"])


class UpdateAllowedDevicesRequestSerializer(KeyRequestSerializer):
    """Serializer for device quota update."""

    field_aliases = {"code": CODE_ALIASES, "allowed_devices": DEVICE_LIMIT_ALIASES}

    code = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    allowed_devices = serializers.IntegerField(required=True)

    def to_command(self) -> UpdateAllowedDevicesCommand:
        data = self.validated_data
        return UpdateAllowedDevicesCommand(
            code=data.get("code"), allowed_devices=data["allowed_devices"]
        )
