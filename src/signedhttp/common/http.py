"""Immutable HTTP request and response values."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, replace
from typing import Protocol, TypeVar, Union

from starlette.requests import Request
from starlette.responses import Response

HeaderInput = Union[Mapping[str, str], Iterable[tuple[str, str]], None]

R = TypeVar("R", bound="RequestLike")
S = TypeVar("S", bound="ResponseLike")


class RequestLike(Protocol):
    """Request abstraction used by the signature service."""

    @property
    def method(self) -> str: ...

    @property
    def url(self) -> str: ...

    def has_header(self, name: str) -> bool: ...

    def get_header_line(self, name: str) -> str: ...

    def with_header(self: R, name: str, value: str) -> R: ...


class ResponseLike(Protocol):
    """Response abstraction used for authentication challenges."""

    def with_added_header(self: S, name: str, value: str) -> S: ...


def _normalize_headers(headers: HeaderInput) -> tuple[tuple[str, str], ...]:
    if headers is None:
        return ()
    items = headers.items() if isinstance(headers, Mapping) else headers
    return tuple((str(name), str(value)) for name, value in items)


def _raw_url(request: Request) -> str:
    raw_path = request.scope.get("raw_path")
    if raw_path is None:
        path = request.url.path
    else:
        # Some servers include the query string in raw_path
        path = raw_path.split(b"?", 1)[0].decode("latin-1")

    url = f"{request.url.scheme}://{request.url.netloc}{path}"
    query_string = request.scope.get("query_string", b"")
    if query_string:
        url += "?" + query_string.decode("latin-1")
    return url


class _HeaderMixin:
    headers: tuple[tuple[str, str], ...]

    def get_header(self, name: str) -> list[str]:
        """Get all values of a header (case-insensitive)."""
        key = name.lower()
        return [value for header, value in self.headers if header.lower() == key]

    def has_header(self, name: str) -> bool:
        key = name.lower()
        return any(header.lower() == key for header, _ in self.headers)

    def get_header_line(self, name: str) -> str:
        """Get the comma-joined values of a header, empty if absent."""
        return ", ".join(self.get_header(name))

    def _replaced_headers(self, name: str, value: str) -> tuple[tuple[str, str], ...]:
        key = name.lower()
        kept = tuple((h, v) for h, v in self.headers if h.lower() != key)
        return kept + ((name, value),)


@dataclass(frozen=True)
class HttpRequest(_HeaderMixin):
    """An HTTP request as an immutable value."""

    method: str
    url: str
    headers: tuple[tuple[str, str], ...] = ()
    body: bytes = b""

    @classmethod
    def create(
        cls,
        method: str,
        url: str,
        headers: HeaderInput = None,
        body: bytes = b"",
    ) -> HttpRequest:
        return cls(method=method, url=url, headers=_normalize_headers(headers), body=body)

    @classmethod
    def from_starlette(cls, request: Request) -> HttpRequest:
        """
        Build a request value from an incoming Starlette request.

        The URL keeps the path and query exactly as sent (`raw_path` and
        `query_string` from the ASGI scope), since `request.url` is built
        from the percent-decoded path.
        """
        headers = [
            (name.decode("latin-1"), value.decode("latin-1"))
            for name, value in request.headers.raw
        ]
        return cls.create(request.method, _raw_url(request), headers)

    def with_header(self, name: str, value: str) -> HttpRequest:
        """Return a copy with the header set, replacing existing values."""
        return replace(self, headers=self._replaced_headers(name, value))


@dataclass(frozen=True)
class HttpResponse(_HeaderMixin):
    """An HTTP response as an immutable value."""

    status_code: int = 200
    headers: tuple[tuple[str, str], ...] = ()
    body: bytes = b""

    def with_body(self, body: bytes | str) -> HttpResponse:
        if isinstance(body, str):
            body = body.encode("utf-8")
        return replace(self, body=body)

    def with_header(self, name: str, value: str) -> HttpResponse:
        return replace(self, headers=self._replaced_headers(name, value))

    def with_added_header(self, name: str, value: str) -> HttpResponse:
        """Return a copy with an extra header value appended."""
        return replace(self, headers=self.headers + ((name, value),))

    def to_starlette(self) -> Response:
        """Convert into a Starlette response, keeping repeated headers."""
        response = Response(content=self.body, status_code=self.status_code)
        for name, value in self.headers:
            response.raw_headers.append(
                (name.lower().encode("latin-1"), value.encode("latin-1"))
            )
        return response
