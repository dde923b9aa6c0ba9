"""
Admin credential check.

The engine only receives an ``is_admin`` flag; this helper is how the
boundary decides it.
"""

import hmac
import logging
from typing import Optional

logger = logging.getLogger(__name__)


def is_admin_credential(candidate: Optional[str], settings=None) -> bool:
    """
    Check a caller-supplied admin password.

    Comparison is constant-time. When no admin password is configured
    nothing matches.

    Args:
        candidate: Password supplied by the caller
        settings: Settings object (defaults to django.conf.settings)

    Returns:
        True if the candidate equals KEY_ADMIN_PASSWORD
    """
    if settings is None:
        from django.conf import settings

    expected = getattr(settings, "KEY_ADMIN_PASSWORD", "") or ""
    if not expected:
        logger.debug("Admin password not configured; rejecting admin credential")
        return False
    if not isinstance(candidate, str) or not candidate:
        return False

    matched = hmac.compare_digest(candidate.encode("utf-8"), expected.encode("utf-8"))
    if not matched:
        logger.warning("Rejected invalid admin credential")
    return matched
