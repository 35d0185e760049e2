"""Prometheus metrics for signature authentication."""

import os

from prometheus_client import (
    CollectorRegistry,
    Counter,
    generate_latest,
    multiprocess,
)
from starlette.requests import Request
from starlette.responses import Response

# === Counters ===

VERIFICATIONS_TOTAL = Counter(
    "signedhttp_verifications_total",
    "Total signature verifications",
    ["outcome"],  # outcome: verified, rejected, unsigned
)

VERIFICATION_FAILURES_TOTAL = Counter(
    "signedhttp_verification_failures_total",
    "Rejected signatures by reason",
    ["reason"],
)

SIGNATURES_TOTAL = Counter(
    "signedhttp_signatures_total",
    "Total outgoing requests signed",
    ["algorithm"],
)


# === Helper Functions ===


def record_verification(outcome: str, reason: str | None = None) -> None:
    """Record a verification outcome."""
    VERIFICATIONS_TOTAL.labels(outcome=outcome).inc()
    if reason is not None:
        VERIFICATION_FAILURES_TOTAL.labels(reason=reason).inc()


def record_signature(algorithm: str) -> None:
    """Record a signed outgoing request."""
    SIGNATURES_TOTAL.labels(algorithm=algorithm).inc()


# === HTTP Endpoint ===


async def metrics_endpoint(_request: Request) -> Response:
    """
    Prometheus metrics endpoint.

    Returns metrics in Prometheus text format.
    """
    multiproc_dir = os.environ.get("PROMETHEUS_MULTIPROC_DIR")
    if multiproc_dir:
        registry = CollectorRegistry()
        multiprocess.MultiProcessCollector(registry)  # type: ignore[no-untyped-call]
        return Response(
            generate_latest(registry),
            media_type="text/plain; version=0.0.4; charset=utf-8",
        )

    return Response(
        generate_latest(),
        media_type="text/plain; version=0.0.4; charset=utf-8",
    )
