"""Canonical signing message construction."""

from __future__ import annotations

import re
from collections.abc import Iterable
from datetime import datetime, timezone
from email.utils import format_datetime, parsedate_to_datetime

from signedhttp.common.errors import ErrorCode, SignatureError
from signedhttp.common.http import RequestLike

REQUEST_TARGET = "(request-target)"

# scheme://user:pw@host:port
_AUTHORITY_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*://[^/?#]*")


def request_target(method: str, url: str) -> str:
    """
    Build the `(request-target)` value for a request.

    Scheme, host, port and user info are stripped; path, query and fragment
    are kept byte for byte, percent-encoding included.

    Example:
        >>> request_target("GET", "https://user:pw@example.com:443/foos?a=1")
        'get /foos?a=1'
    """
    target = _AUTHORITY_RE.sub("", url, count=1)
    if not target.startswith("/"):
        target = "/" + target
    return f"{method.lower()} {target}"


def build_message(request: RequestLike, headers: Iterable[str]) -> bytes:
    """Build the canonical message for the given ordered header names."""
    lines: list[str] = []
    for header in headers:
        name = header.lower()
        if name == REQUEST_TARGET:
            value = request_target(request.method, request.url)
        else:
            value = request.get_header_line(name)
        lines.append(f"{name}: {value}")
    return "\n".join(lines).encode("utf-8")


def format_date(moment: datetime) -> str:
    """Format a timestamp as RFC 1123 with a numeric offset."""
    return format_datetime(moment.astimezone(timezone.utc))


def parse_date(value: str) -> datetime:
    """
    Parse a `Date` / `X-Date` header value.

    Accepts RFC 1123 / RFC 2822 dates and ISO 8601 timestamps. Naive
    timestamps are taken as UTC.

    Raises:
        SignatureError: If the value is not a recognizable date
    """
    try:
        moment = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        try:
            moment = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            raise SignatureError(f"invalid date header: {value}", ErrorCode.INVALID_DATE) from None

    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment
