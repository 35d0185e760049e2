"""Signature verification service."""

from __future__ import annotations

import uvicorn
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from signedhttp.common.logging import get_logger, setup_logging
from signedhttp.common.metrics import metrics_endpoint
from signedhttp.common.settings import Settings, get_settings
from signedhttp.middleware.server import SignatureAuthMiddleware
from signedhttp.signature.engine import HttpSignature
from signedhttp.signature.factory import create_signature_service

logger = get_logger(__name__)

ECHO_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


async def handle_health(request: Request) -> JSONResponse:
    """Health check."""
    return JSONResponse({"status": "healthy"})


async def handle_echo(request: Request) -> JSONResponse:
    """Echo the request line and the verified signature parameters."""
    return JSONResponse({
        "method": request.method,
        "path": request.url.path,
        "query": request.url.query,
        "signature": getattr(request.state, "signature_params", None),
    })


def create_app(
    settings: Settings | None = None,
    service: HttpSignature | None = None,
) -> Starlette:
    """Create the Starlette application."""
    settings = settings or get_settings()
    service = service or create_signature_service(settings)

    routes = [
        Route("/echo", handle_echo, methods=ECHO_METHODS),
        Route("/health", handle_health, methods=["GET"]),
        Route("/metrics", metrics_endpoint, methods=["GET"]),
    ]

    app = Starlette(routes=routes)

    app.add_middleware(
        SignatureAuthMiddleware,
        service=service,
        require_signature=settings.require_signature,
        exempt_paths=settings.auth_exempt_paths,
    )

    logger.info(
        "Verification service configured",
        algorithms=list(service.supported_algorithms),
        require_signature=settings.require_signature,
    )
    return app


def main() -> None:
    """Entry point for the verification service."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_json)
    app = create_app(settings)

    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
