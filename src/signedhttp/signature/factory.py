"""Build signature services from settings."""

from __future__ import annotations

from signedhttp.common.hmac import HmacKeyRing
from signedhttp.common.logging import get_logger
from signedhttp.common.settings import Settings
from signedhttp.signature.engine import HttpSignature, Signer, Verifier
from signedhttp.signature.keys import Ed25519KeyRing

logger = get_logger(__name__)


class AlgorithmRouter:
    """Dispatch sign/verify calls to the key ring handling the algorithm."""

    def __init__(self) -> None:
        self._signers: dict[str, Signer] = {}
        self._verifiers: dict[str, Verifier] = {}

    def register(self, algorithm: str, signer: Signer, verifier: Verifier) -> None:
        self._signers[algorithm] = signer
        self._verifiers[algorithm] = verifier

    @property
    def algorithms(self) -> tuple[str, ...]:
        return tuple(self._signers)

    def sign(self, message: bytes, key_id: str, algorithm: str) -> bytes:
        try:
            signer = self._signers[algorithm]
        except KeyError:
            raise ValueError(f"No signer registered for algorithm: {algorithm}") from None
        return signer(message, key_id, algorithm)

    def verify(self, message: bytes, signature: bytes, key_id: str, algorithm: str) -> bool:
        verifier = self._verifiers.get(algorithm)
        if verifier is None:
            return False
        return verifier(message, signature, key_id, algorithm)


def create_router(settings: Settings) -> AlgorithmRouter:
    """Create a router with the HMAC secrets and Ed25519 public keys from settings."""
    router = AlgorithmRouter()

    hmac_ring = HmacKeyRing(settings.hmac_secrets)
    for algorithm in hmac_ring.algorithms:
        router.register(algorithm, hmac_ring.sign, hmac_ring.verify)

    ed25519_ring = Ed25519KeyRing()
    for key_id, public_key_pem in settings.ed25519_public_keys.items():
        ed25519_ring.add_public_key(key_id, public_key_pem)
    for algorithm in ed25519_ring.algorithms:
        router.register(algorithm, ed25519_ring.sign, ed25519_ring.verify)

    logger.debug(
        "Key router created",
        hmac_keys=len(settings.hmac_secrets),
        ed25519_keys=len(settings.ed25519_public_keys),
    )
    return router


def create_signature_service(
    settings: Settings,
    signer: Signer | None = None,
    verifier: Verifier | None = None,
) -> HttpSignature:
    """
    Create a signature service configured from settings.

    Args:
        settings: Application settings
        signer: Sign function; defaults to a router over the configured keys
        verifier: Verify function; defaults to a router over the configured keys

    Returns:
        Configured HttpSignature
    """
    if signer is None or verifier is None:
        router = create_router(settings)
        signer = signer or router.sign
        verifier = verifier or router.verify

    service = HttpSignature(settings.algorithms, signer, verifier)
    service = service.with_clock_skew(settings.clock_skew)

    for method, headers in settings.required_headers.items():
        service = service.with_required_headers(method, headers)

    if settings.nonce_seed is not None:
        service = service.with_nonce(settings.nonce_seed)

    return service
