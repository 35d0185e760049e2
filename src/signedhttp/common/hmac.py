"""HMAC sign/verify functions for shared-secret signatures."""

from __future__ import annotations

import hashlib
import hmac
from collections.abc import Mapping

from signedhttp.common.logging import get_logger

logger = get_logger(__name__)

HMAC_SHA256 = "hmac-sha256"


def sign(secret: str, message: bytes) -> bytes:
    """Create a raw HMAC-SHA256 signature."""
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).digest()


def verify(secret: str, message: bytes, signature: bytes) -> bool:
    """Verify HMAC signature in constant time."""
    expected = sign(secret, message)
    return hmac.compare_digest(expected, signature)


class HmacKeyRing:
    """Shared secrets by key id, usable as sign and verify callables."""

    algorithms = (HMAC_SHA256,)

    def __init__(self, secrets: Mapping[str, str] | None = None) -> None:
        self._secrets = dict(secrets or {})

    def add(self, key_id: str, secret: str) -> None:
        self._secrets[key_id] = secret

    def __contains__(self, key_id: object) -> bool:
        return key_id in self._secrets

    def sign(self, message: bytes, key_id: str, algorithm: str) -> bytes:
        """
        Sign a message with the secret registered for `key_id`.

        Raises:
            KeyError: If the key id is unknown
            ValueError: If the algorithm is not hmac-sha256
        """
        if algorithm != HMAC_SHA256:
            raise ValueError(f"Unsupported algorithm for HMAC key ring: {algorithm}")
        return sign(self._secrets[key_id], message)

    def verify(self, message: bytes, signature: bytes, key_id: str, algorithm: str) -> bool:
        secret = self._secrets.get(key_id)
        if secret is None or algorithm != HMAC_SHA256:
            logger.warning("Unknown HMAC key or algorithm", key_id=key_id, algorithm=algorithm)
            return False
        return verify(secret, message, signature)
