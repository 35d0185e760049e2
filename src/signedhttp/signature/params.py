"""Parsing and serialization of `Signature` authorization parameters."""

from __future__ import annotations

import re

from signedhttp.common.errors import ErrorCode, SignatureError

SCHEME = "Signature"

REQUIRED_PARAMS = ("keyId", "algorithm", "headers", "signature")

# Order in which known parameters are written to the header.
PARAM_ORDER = ("keyId", "algorithm", "headers", "clientId", "nonce", "signature")

_VALUE = r'"(?:[^"\\]|\\.)*"'
_PAIR = rf"\w+\s*=\s*{_VALUE}"
_PARAMS_RE = re.compile(rf"^\s*(?:{_PAIR}(?:\s*,\s*{_PAIR})*)?\s*,?\s*$")
_PAIR_RE = re.compile(rf"(\w+)\s*=\s*({_VALUE})")
_ESCAPE_RE = re.compile(r"\\(.)")


def _unquote(value: str) -> str:
    return _ESCAPE_RE.sub(r"\1", value[1:-1])


def _quote(value: str) -> str:
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


def parse_authorization(header: str) -> dict[str, str]:
    """
    Parse the value of a `Signature` Authorization header.

    Args:
        header: Raw Authorization header value

    Returns:
        Parameters in header order; a repeated key keeps its last value

    Raises:
        SignatureError: If the scheme is not `Signature` or the parameters are malformed
    """
    scheme, _, param_string = header.partition(" ")

    if scheme.lower() != SCHEME.lower():
        raise SignatureError(
            f'authorization scheme should be "{SCHEME}" not "{scheme}"',
            ErrorCode.WRONG_SCHEME,
        )

    if not _PARAMS_RE.match(param_string):
        raise SignatureError('corrupt "Authorization" header', ErrorCode.CORRUPT_HEADER)

    params: dict[str, str] = {}
    for match in _PAIR_RE.finditer(param_string):
        key = match.group(1)
        params.pop(key, None)
        params[key] = _unquote(match.group(2))
    return params


def assert_params(params: dict[str, str]) -> None:
    """Raise if any of the required parameters is missing."""
    for key in REQUIRED_PARAMS:
        if key not in params:
            raise SignatureError(
                f"{key} not specified in Authorization header",
                ErrorCode.MISSING_PARAMETER,
            )


def format_params(params: dict[str, str]) -> str:
    """Serialize parameters as `key="value"` pairs in canonical order."""
    keys = [key for key in PARAM_ORDER if key in params]
    keys += [key for key in params if key not in PARAM_ORDER]
    return ",".join(f"{key}={_quote(params[key])}" for key in keys)


def format_authorization(params: dict[str, str]) -> str:
    """Build a complete `Signature ...` Authorization header value."""
    return f"{SCHEME} {format_params(params)}"


def split_headers(value: str) -> list[str]:
    """Split the space-joined `headers` parameter into lower-cased names."""
    return [name.lower() for name in value.split(" ") if name]
