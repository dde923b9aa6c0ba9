"""
Key domain services.

Domain services contain business logic that doesn't naturally
fit within a single entity.
"""
from typing import Collection, Optional

from core.domain.exceptions import DuplicateCodeError
from core.domain.value_objects import KeyCode
from keys.domain.key_code import DEFAULT_CODE_LENGTH, generate_key_code

MAX_GENERATION_ATTEMPTS = 10


class KeyCodeGenerator:
    """Domain service for unique key code generation."""

    def __init__(self, length: int = DEFAULT_CODE_LENGTH, max_attempts: int = MAX_GENERATION_ATTEMPTS):
        self.length = length
        self.max_attempts = max_attempts

    def generate(self, prefix: Optional[str] = None) -> KeyCode:
        """
        Generate a key code.

        Args:
            prefix: Optional type tag

        Returns:
            Generated KeyCode (not checked for uniqueness)
        """
        return generate_key_code(prefix, self.length)

    def generate_unique(self, taken: Collection[str], prefix: Optional[str] = None) -> KeyCode:
        """
        Generate a key code that is not in ``taken``.

        Args:
            taken: Codes already present in the store
            prefix: Optional type tag

        Returns:
            Unused KeyCode

        Raises:
            DuplicateCodeError: If every attempt collided
        """
        for _ in range(self.max_attempts):
            code = self.generate(prefix)
            if code.value not in taken:
                return code
        raise DuplicateCodeError(
            f"Could not generate a unique key code after {self.max_attempts} attempts"
        )
