"""
Integrity signer for key records.

A keyed HMAC over the key code, held by the server, lets verification
detect records that were inserted or edited in the store out-of-band.
"""
import hashlib
import hmac

from core.domain.value_objects import KeyCode


class IntegritySigner:
    """Domain service computing and checking key code signatures."""

    def __init__(self, secret: str):
        """
        Initialize the signer.

        Args:
            secret: Server-held signing secret
        """
        if not secret:
            raise ValueError("Signing secret cannot be empty")
        self._secret = secret.encode()

    def sign(self, code: str) -> str:
        """
        Generate the HMAC signature for a key code.

        Args:
            code: Normalized key code

        Returns:
            HMAC SHA-256 signature (hex)
        """
        return hmac.new(self._secret, code.encode(), hashlib.sha256).hexdigest()

    def verify(self, code: str, signature: str) -> bool:
        """
        Verify a key code signature in constant time.

        Codes that are not in normalized form never verify: the engine
        only ever signs normalized codes, so such a record was written
        by something else.

        Args:
            code: Stored key code
            signature: Stored signature

        Returns:
            True if signature is valid
        """
        if not isinstance(signature, str) or not signature:
            return False
        try:
            KeyCode(code)
        except (TypeError, ValueError):
            return False
        return hmac.compare_digest(self.sign(code).encode(), signature.encode("utf-8", "replace"))
