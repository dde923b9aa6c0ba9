"""
Engine configuration.

The engine receives a KeyServiceConfig at construction and never reads
Django settings itself; ``from_settings`` is the single bridge.
"""
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from keys.domain.key_code import DEFAULT_CODE_LENGTH, MAX_CODE_LENGTH, MIN_CODE_LENGTH


@dataclass(frozen=True)
class KeyServiceConfig:
    """Tunable limits of the key lifecycle and verification engine."""

    signing_secret: str
    code_length: int = DEFAULT_CODE_LENGTH
    code_prefix: str = ""
    max_duration: Optional[timedelta] = timedelta(days=365)
    bulk_create_limit: int = 100
    min_verify_interval: Optional[timedelta] = None
    sweep_interval: float = 60.0

    def __post_init__(self):
        """Validate configuration."""
        if not self.signing_secret:
            raise ValueError("A signing secret is required")
        if not MIN_CODE_LENGTH <= self.code_length <= MAX_CODE_LENGTH:
            raise ValueError(
                f"Key code length must be between {MIN_CODE_LENGTH} and {MAX_CODE_LENGTH}"
            )
        if self.bulk_create_limit < 1:
            raise ValueError("Bulk create limit must be at least 1")
        if self.sweep_interval <= 0:
            raise ValueError("Sweep interval must be positive")

    @classmethod
    def from_settings(cls, settings=None) -> "KeyServiceConfig":
        """
        Build a config from Django settings.

        Args:
            settings: Settings object (defaults to django.conf.settings)

        Returns:
            KeyServiceConfig instance
        """
        if settings is None:
            from django.conf import settings

        max_days = getattr(settings, "KEY_MAX_DURATION_DAYS", 365)
        min_interval = getattr(settings, "KEY_MIN_VERIFY_INTERVAL_SECONDS", 0)

        return cls(
            signing_secret=getattr(settings, "KEY_SIGNING_SECRET", None) or settings.SECRET_KEY,
            code_length=getattr(settings, "KEY_CODE_LENGTH", DEFAULT_CODE_LENGTH),
            code_prefix=getattr(settings, "KEY_CODE_PREFIX", ""),
            max_duration=timedelta(days=max_days) if max_days else None,
            bulk_create_limit=getattr(settings, "KEY_BULK_CREATE_LIMIT", 100),
            min_verify_interval=timedelta(seconds=min_interval) if min_interval else None,
            sweep_interval=getattr(settings, "KEY_SWEEP_INTERVAL_SECONDS", 60),
        )
