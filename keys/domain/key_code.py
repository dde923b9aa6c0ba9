"""
Key code generation.

Codes are drawn from uppercase letters and digits using the
``secrets`` module so they cannot be predicted from earlier codes.
"""

import secrets
import string
from typing import Optional

from core.domain.value_objects import KeyCode

KEY_CODE_ALPHABET = string.ascii_uppercase + string.digits
MIN_CODE_LENGTH = 8
MAX_CODE_LENGTH = 16
DEFAULT_CODE_LENGTH = 12
MAX_PREFIX_LENGTH = 16


def normalize_prefix(prefix: Optional[str]) -> str:
    """
    Validate and upper-case a key type tag such as ``KEY-``.

    Args:
        prefix: Raw prefix or None

    Returns:
        Normalized prefix ("" when none was given)
    """
    if not prefix:
        return ""
    prefix = prefix.strip().upper()
    if len(prefix) > MAX_PREFIX_LENGTH:
        raise ValueError("Key prefix too long")
    if not prefix.replace("-", "").replace("_", "").isalnum():
        raise ValueError(f"Invalid key prefix format: {prefix}")
    return prefix


def generate_key_code(prefix: Optional[str] = None, length: int = DEFAULT_CODE_LENGTH) -> KeyCode:
    """
    Generate a key code in format: [PREFIX]XXXXXXXXXXXX.

    Args:
        prefix: Optional type tag (e.g., 'KEY-')
        length: Number of random characters

    Returns:
        Generated KeyCode
    """
    if not MIN_CODE_LENGTH <= length <= MAX_CODE_LENGTH:
        raise ValueError(
            f"Key code length must be between {MIN_CODE_LENGTH} and {MAX_CODE_LENGTH}"
        )
    body = "".join(secrets.choice(KEY_CODE_ALPHABET) for _ in range(length))
    return KeyCode(f"{normalize_prefix(prefix)}{body}")
