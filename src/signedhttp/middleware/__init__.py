"""HTTP middleware adapters for the signature service."""

from signedhttp.middleware.client import ClientMiddleware
from signedhttp.middleware.server import SignatureAuthMiddleware, is_request_signed

__all__ = [
    "ClientMiddleware",
    "SignatureAuthMiddleware",
    "is_request_signed",
]
