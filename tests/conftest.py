"""Pytest configuration and fixtures."""

import base64
from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from signedhttp.common.hmac import HmacKeyRing
from signedhttp.common.settings import Settings
from signedhttp.signature.engine import HttpSignature

FIXED_NOW = datetime(1981, 8, 22, 20, 51, 35, tzinfo=timezone.utc)

PUBLIC_KEY = "AVXUh6yvPG8XYqjbUgvKeEJQDQM7DggboFjtGKS8ETRG"
SIGNATURE_B64 = (
    "PIw+8VW129YY/6tRfThI3ZA0VygH4cYWxIayUZbdA3I9CKUdmqttvVZvOXN5BX2Z9jfO3f1vD1/R2jxwd3BHBw=="
)
DATE = "Sat, 22 Aug 1981 20:52:00 +0000"


def fixed_clock() -> datetime:
    return FIXED_NOW


@pytest.fixture
def signer() -> MagicMock:
    """Sign function mock returning a fixed signature."""
    return MagicMock(return_value=base64.b64decode(SIGNATURE_B64))


@pytest.fixture
def verifier() -> MagicMock:
    """Verify function mock accepting every signature."""
    return MagicMock(return_value=True)


@pytest.fixture
def service(signer: MagicMock, verifier: MagicMock) -> HttpSignature:
    """Service supporting two algorithms with a fixed clock."""
    return HttpSignature(["ed25519", "ed25519-sha256"], signer, verifier, clock=fixed_clock)


@pytest.fixture
def hmac_ring() -> HmacKeyRing:
    return HmacKeyRing({"client-1": "s3cr3t", "client-2": "other-secret"})


@pytest.fixture
def hmac_service(hmac_ring: HmacKeyRing) -> HttpSignature:
    """Service backed by real HMAC-SHA256 keys."""
    return HttpSignature("hmac-sha256", hmac_ring.sign, hmac_ring.verify)


@pytest.fixture
def settings() -> Settings:
    """Create test settings."""
    return Settings(
        algorithms=["hmac-sha256"],
        hmac_secrets={"client-1": "s3cr3t"},
        key_id="client-1",
    )
