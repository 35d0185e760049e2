"""Common utilities for signedhttp."""

from signedhttp.common.errors import SignatureConfigError, SignatureError
from signedhttp.common.http import HttpRequest, HttpResponse
from signedhttp.common.settings import Settings, get_settings

__all__ = [
    "HttpRequest",
    "HttpResponse",
    "Settings",
    "SignatureConfigError",
    "SignatureError",
    "get_settings",
]
