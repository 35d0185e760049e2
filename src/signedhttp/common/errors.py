"""Shared error types and codes."""

from __future__ import annotations


class ErrorCode:
    MISSING_AUTHORIZATION = "missing_authorization"
    WRONG_SCHEME = "wrong_scheme"
    CORRUPT_HEADER = "corrupt_header"
    MISSING_PARAMETER = "missing_parameter"
    UNSUPPORTED_ALGORITHM = "unsupported_algorithm"
    MISSING_HEADERS = "missing_headers"
    INVALID_DATE = "invalid_date"
    EXPIRED = "expired"
    INVALID_SIGNATURE = "invalid_signature"
    UNAUTHORIZED = "unauthorized"


class SignatureError(Exception):
    """Error creating or verifying an HTTP signature."""

    def __init__(self, message: str, code: str = ErrorCode.UNAUTHORIZED) -> None:
        super().__init__(message)
        self.message = message
        self.code = code


class SignatureConfigError(ValueError):
    """Invalid configuration of the signature service."""

    pass
