"""
Mapping between KeyRecord entities and stored JSON documents.
"""
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from keys.domain.key_record import KeyRecord


def _dump_time(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return value.astimezone(timezone.utc).isoformat()


def _load_time(value: Optional[str]) -> Optional[datetime]:
    if value is None:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _load_signature(value: Any) -> str:
    # A missing signature fails verification for this record only.
    return "" if value is None else str(value)


def to_document(record: KeyRecord) -> Dict[str, Any]:
    """
    Convert a domain entity to a JSON-serializable document.

    Args:
        record: KeyRecord domain entity

    Returns:
        Document dictionary
    """
    return {
        "id": str(record.id),
        "code": record.code,
        "signature": record.signature,
        "createdAt": _dump_time(record.created_at),
        "expiresAt": _dump_time(record.expires_at),
        "allowedDevices": record.allowed_devices,
        "devices": list(record.bound_devices),
        "verificationCount": record.verification_count,
        "lastVerifiedAt": _dump_time(record.last_verified_at),
    }


def to_domain(document: Dict[str, Any]) -> KeyRecord:
    """
    Convert a stored document to a domain entity.

    Args:
        document: Document dictionary

    Returns:
        KeyRecord domain entity

    Raises:
        KeyError, TypeError, ValueError: If the document is malformed
    """
    return KeyRecord(
        id=uuid.UUID(document["id"]),
        code=document["code"],
        signature=_load_signature(document.get("signature")),
        created_at=_load_time(document["createdAt"]),
        expires_at=_load_time(document["expiresAt"]),
        allowed_devices=document["allowedDevices"],
        bound_devices=tuple(document.get("devices") or ()),
        verification_count=document.get("verificationCount", 0),
        last_verified_at=_load_time(document.get("lastVerifiedAt")),
    )
