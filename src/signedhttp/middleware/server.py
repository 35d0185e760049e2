"""Middleware to verify HTTP Signature authentication."""

from __future__ import annotations

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from signedhttp.common.errors import ErrorCode, SignatureError
from signedhttp.common.http import HttpRequest, HttpResponse
from signedhttp.common.logging import get_logger
from signedhttp.common.metrics import record_verification
from signedhttp.signature.engine import HttpSignature
from signedhttp.signature.params import SCHEME

logger = get_logger(__name__)


def is_request_signed(request: Request) -> bool:
    """Check if the request carries a `Signature` Authorization header."""
    authorization = request.headers.get("authorization", "")
    return authorization[: len(SCHEME) + 1].lower() == f"{SCHEME.lower()} "


def unauthorized_response(service: HttpSignature, method: str, message: str) -> Response:
    """Create a `401 Unauthorized` response with the signature challenges."""
    response = HttpResponse(status_code=401).with_body(message)
    response = service.set_authenticate_response_header(method, response)
    response = response.with_header("Content-Type", "text/plain")
    return response.to_starlette()


class SignatureAuthMiddleware(BaseHTTPMiddleware):
    """
    Verify signed requests.

    Requests with a `Signature` Authorization header are verified; the key id
    is stored as `request.state.signature_key_id`. Unsigned requests pass
    through unless `require_signature` is set.
    """

    def __init__(
        self,
        app: ASGIApp,
        service: HttpSignature,
        require_signature: bool = False,
        exempt_paths: tuple[str, ...] | list[str] = (),
    ) -> None:
        super().__init__(app)
        self._service = service
        self._require_signature = require_signature
        self._exempt_paths = set(exempt_paths)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.url.path in self._exempt_paths:
            return await call_next(request)

        if not is_request_signed(request):
            if self._require_signature:
                record_verification("rejected", ErrorCode.MISSING_AUTHORIZATION)
                return unauthorized_response(
                    self._service,
                    request.method,
                    'missing "Authorization" header',
                )
            record_verification("unsigned")
            return await call_next(request)

        try:
            params = self._service.verify_params(HttpRequest.from_starlette(request))
        except SignatureError as exc:
            logger.info(
                "Signature rejected",
                path=request.url.path,
                reason=exc.code,
                error=exc.message,
            )
            record_verification("rejected", exc.code)
            return unauthorized_response(self._service, request.method, exc.message)

        record_verification("verified")
        request.state.signature_key_id = params["keyId"]
        request.state.signature_params = params
        return await call_next(request)
