"""HTTP Signatures: canonical messages, signing and verification."""

from signedhttp.signature.engine import HttpSignature, Signer, Verifier
from signedhttp.signature.message import build_message, request_target
from signedhttp.signature.nonce import NonceCounter
from signedhttp.signature.params import format_authorization, parse_authorization

__all__ = [
    "HttpSignature",
    "NonceCounter",
    "Signer",
    "Verifier",
    "build_message",
    "format_authorization",
    "parse_authorization",
    "request_target",
]
