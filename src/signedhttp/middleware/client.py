"""Middleware to sign outgoing HTTP requests."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TypeVar

from aiohttp import ClientRequest, ClientResponse

from signedhttp.common.http import HttpRequest, RequestLike
from signedhttp.common.logging import get_logger
from signedhttp.common.metrics import record_signature
from signedhttp.signature.engine import HttpSignature

logger = get_logger(__name__)

R = TypeVar("R", bound=RequestLike)

AiohttpHandler = Callable[[ClientRequest], Awaitable[ClientResponse]]
AiohttpMiddleware = Callable[[ClientRequest, AiohttpHandler], Awaitable[ClientResponse]]

# Headers the signature service may add to a request
SIGNATURE_HEADERS = ("Date", "Authorization")


class ClientMiddleware:
    """Sign requests with a default key id."""

    def __init__(
        self,
        service: HttpSignature,
        key_id: str,
        algorithm: str | None = None,
        client_id: str | None = None,
    ) -> None:
        self._service = service
        self._key_id = key_id
        self._algorithm = algorithm
        self._client_id = client_id

    @property
    def key_id(self) -> str:
        return self._key_id

    def with_key_id(self, key_id: str) -> ClientMiddleware:
        """Get a middleware signing with another key id."""
        if key_id == self._key_id:
            return self
        return ClientMiddleware(self._service, key_id, self._algorithm, self._client_id)

    def sign(self, request: R) -> R:
        signed = self._service.sign(
            request,
            self._key_id,
            self._algorithm,
            client_id=self._client_id,
        )
        record_signature(self._algorithm or self._service.supported_algorithms[0])
        return signed

    def as_callable(self) -> Callable[[R], R]:
        """Return a function that signs a request value."""
        return self.sign

    def for_aiohttp(self) -> AiohttpMiddleware:
        """
        Return an aiohttp client middleware signing every outgoing request.

        Example:
            >>> session = aiohttp.ClientSession(middlewares=(signer.for_aiohttp(),))
        """

        async def middleware(request: ClientRequest, handler: AiohttpHandler) -> ClientResponse:
            unsigned = HttpRequest.create(
                request.method,
                str(request.url),
                list(request.headers.items()),
            )
            signed = self.sign(unsigned)

            for name in SIGNATURE_HEADERS:
                if signed.has_header(name):
                    request.headers[name] = signed.get_header_line(name)

            logger.debug("Signed outgoing request", method=request.method, key_id=self._key_id)
            return await handler(request)

        return middleware
