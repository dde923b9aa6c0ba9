"""
Tagged operation outcomes.

Every KeyService operation returns an Outcome instead of raising for
expected conditions: ``{ok: true, payload}`` on success or
``{ok: false, kind, code, message, details}`` on failure.
"""
import dataclasses
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from core.domain.exceptions import DomainException
from core.domain.value_objects import ErrorKind


def to_primitive(value: Any) -> Any:
    """Convert DTOs and domain values into JSON-compatible primitives."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_primitive(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {key: to_primitive(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_primitive(item) for item in value]
    return value


@dataclass(frozen=True)
class Outcome:
    """Result of one engine operation."""

    ok: bool
    payload: Any = None
    kind: Optional[ErrorKind] = None
    code: Optional[str] = None
    message: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def success(cls, payload: Any = None) -> "Outcome":
        return cls(ok=True, payload=payload)

    @classmethod
    def failure(cls, exc: DomainException) -> "Outcome":
        """
        Build a failed outcome from a domain exception.

        Args:
            exc: The exception describing the failure

        Returns:
            Outcome with ok=False
        """
        return cls(
            ok=False,
            kind=exc.kind,
            code=exc.code,
            message=exc.message,
            details=dict(exc.details),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the shape exposed to the HTTP layer."""
        if self.ok:
            return {"ok": True, "payload": to_primitive(self.payload)}
        return {
            "ok": False,
            "kind": self.kind.value,
            "code": self.code,
            "message": self.message,
            "details": to_primitive(self.details),
        }
