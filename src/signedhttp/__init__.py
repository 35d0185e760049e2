"""
signedhttp: HTTP Signatures for Python services.

Sign outgoing requests and verify incoming ones using the `Signature`
authorization scheme, with pluggable cryptography.
"""

__version__ = "1.0.0"
