"""Ed25519 keys for signing requests."""

from __future__ import annotations

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ed25519

from signedhttp.common.logging import get_logger

logger = get_logger(__name__)

ED25519 = "ed25519"


def load_private_key(private_key_pem: str) -> ed25519.Ed25519PrivateKey:
    """
    Load a PEM-encoded Ed25519 private key.

    Raises:
        ValueError: If the key is not an Ed25519 key
    """
    private_key = serialization.load_pem_private_key(
        private_key_pem.encode("utf-8"),
        password=None,
    )
    if not isinstance(private_key, ed25519.Ed25519PrivateKey):
        raise ValueError("Key is not Ed25519")
    return private_key


def load_public_key(public_key_pem: str) -> ed25519.Ed25519PublicKey:
    """
    Load a PEM-encoded Ed25519 public key.

    Raises:
        ValueError: If the key is not an Ed25519 key
    """
    public_key = serialization.load_pem_public_key(public_key_pem.encode("utf-8"))
    if not isinstance(public_key, ed25519.Ed25519PublicKey):
        raise ValueError("Key is not Ed25519")
    return public_key


def generate_keypair() -> tuple[str, str]:
    """
    Generate a new Ed25519 key pair.

    Returns:
        Tuple of (private_key_pem, public_key_pem)
    """
    private_key = ed25519.Ed25519PrivateKey.generate()
    public_key = private_key.public_key()

    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("utf-8")

    public_pem = public_key.public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode("utf-8")

    return private_pem, public_pem


class Ed25519KeyRing:
    """Ed25519 keys by key id, usable as sign and verify callables."""

    algorithms = (ED25519,)

    def __init__(self) -> None:
        self._private: dict[str, ed25519.Ed25519PrivateKey] = {}
        self._public: dict[str, ed25519.Ed25519PublicKey] = {}

    def add_private_key(self, key_id: str, private_key_pem: str) -> None:
        """Register a private key; its public key is registered as well."""
        private_key = load_private_key(private_key_pem)
        self._private[key_id] = private_key
        self._public[key_id] = private_key.public_key()

    def add_public_key(self, key_id: str, public_key_pem: str) -> None:
        self._public[key_id] = load_public_key(public_key_pem)

    def __contains__(self, key_id: object) -> bool:
        return key_id in self._public

    def sign(self, message: bytes, key_id: str, algorithm: str) -> bytes:
        """
        Sign a message with the private key registered for `key_id`.

        Raises:
            KeyError: If no private key is registered for the key id
            ValueError: If the algorithm is not ed25519
        """
        if algorithm != ED25519:
            raise ValueError(f"Unsupported algorithm for Ed25519 key ring: {algorithm}")
        return self._private[key_id].sign(message)

    def verify(self, message: bytes, signature: bytes, key_id: str, algorithm: str) -> bool:
        public_key = self._public.get(key_id)
        if public_key is None or algorithm != ED25519:
            logger.warning("Unknown Ed25519 key or algorithm", key_id=key_id, algorithm=algorithm)
            return False

        try:
            public_key.verify(signature, message)
        except InvalidSignature:
            return False
        return True
