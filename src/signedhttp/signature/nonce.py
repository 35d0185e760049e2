"""Monotonic nonce counter for signed requests."""

from __future__ import annotations

import threading

from signedhttp.common.errors import SignatureConfigError

NONCE_MAX = 0xFFFF


class NonceCounter:
    """Thread-safe 16-bit counter, wrapping to 0 after NONCE_MAX."""

    def __init__(self, seed: int = 0) -> None:
        if not 0 <= seed <= NONCE_MAX:
            raise SignatureConfigError(f"Nonce seed must be between 0 and {NONCE_MAX}")
        self._seed = seed
        self._value = seed
        self._lock = threading.Lock()

    @property
    def seed(self) -> int:
        return self._seed

    @property
    def current(self) -> int:
        """Last issued value (the seed before the first call)."""
        with self._lock:
            return self._value

    def next(self) -> int:
        """Advance the counter and return the new value."""
        with self._lock:
            self._value = (self._value + 1) & NONCE_MAX
            return self._value
