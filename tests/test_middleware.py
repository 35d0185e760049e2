"""Tests for the server and client signature middleware."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from prometheus_client import REGISTRY
from starlette.applications import Starlette
from starlette.responses import Response
from starlette.routing import Route
from starlette.testclient import TestClient

from signedhttp.common.http import HttpRequest
from signedhttp.middleware.client import ClientMiddleware
from signedhttp.middleware.server import SignatureAuthMiddleware
from signedhttp.signature.params import parse_authorization


def _create_app(service, **options) -> Starlette:
    async def homepage(request):
        key_id = getattr(request.state, "signature_key_id", "anonymous")
        return Response(key_id, media_type="text/plain")

    async def health(request):
        return Response("healthy", media_type="text/plain")

    app = Starlette(
        routes=[
            Route("/foos", homepage, methods=["GET", "POST"]),
            Route("/files/{name}", homepage),
            Route("/health", health),
        ]
    )
    app.add_middleware(SignatureAuthMiddleware, service=service, **options)
    return app


def _signed_headers(service, method, url, key_id="client-1", headers=None) -> dict[str, str]:
    signed = service.sign(HttpRequest.create(method, url, headers), key_id)
    return dict(signed.headers)


class TestSignatureAuthMiddleware:
    """Tests for verifying incoming requests."""

    def test_signed_request_passes(self, hmac_service):
        client = TestClient(_create_app(hmac_service))
        headers = _signed_headers(hmac_service, "GET", "http://testserver/foos?a=1")

        response = client.get("/foos?a=1", headers=headers)

        assert response.status_code == 200
        assert response.text == "client-1"

    @pytest.mark.parametrize(
        "path",
        ["/files/a%20b", "/files/a%20b?q=x%20y%2Fz", "/files/caf%C3%A9"],
    )
    def test_signed_request_with_encoded_path_passes(self, hmac_service, path):
        client = TestClient(_create_app(hmac_service))
        headers = _signed_headers(hmac_service, "GET", f"http://testserver{path}")

        response = client.get(path, headers=headers)

        assert response.status_code == 200
        assert response.text == "client-1"

    def test_unsigned_request_passes_through(self, hmac_service):
        client = TestClient(_create_app(hmac_service))

        response = client.get("/foos")

        assert response.status_code == 200
        assert response.text == "anonymous"

    def test_other_scheme_passes_through(self, hmac_service):
        client = TestClient(_create_app(hmac_service))

        response = client.get("/foos", headers={"Authorization": "Bearer abc"})

        assert response.status_code == 200
        assert response.text == "anonymous"

    def test_unsigned_request_rejected_when_required(self, hmac_service):
        client = TestClient(_create_app(hmac_service, require_signature=True))

        response = client.get("/foos")

        assert response.status_code == 401
        assert response.text == 'missing "Authorization" header'
        assert response.headers.get_list("www-authenticate") == [
            'Signature algorithm="hmac-sha256",headers="(request-target) date"'
        ]

    def test_invalid_signature_rejected(self, hmac_service):
        client = TestClient(_create_app(hmac_service))
        headers = _signed_headers(hmac_service, "GET", "http://testserver/foos?a=1")

        response = client.get("/foos?a=2", headers=headers)

        assert response.status_code == 401
        assert response.text == "invalid signature"
        assert response.headers["content-type"] == "text/plain"

    def test_missing_required_header_rejected(self, hmac_service):
        server_service = hmac_service.with_required_headers("POST", ["(request-target)", "date", "digest"])
        client = TestClient(_create_app(server_service))
        headers = _signed_headers(hmac_service, "POST", "http://testserver/foos")

        response = client.post("/foos", headers=headers)

        assert response.status_code == 401
        assert response.text == "digest is not part of signature"
        assert response.headers.get_list("www-authenticate") == [
            'Signature algorithm="hmac-sha256",headers="(request-target) date digest"'
        ]

    def test_challenge_per_algorithm(self, hmac_ring):
        from signedhttp.signature.engine import HttpSignature

        service = HttpSignature(["hmac-sha256", "ed25519"], hmac_ring.sign, hmac_ring.verify)
        client = TestClient(_create_app(service, require_signature=True))

        response = client.get("/foos")

        assert response.headers.get_list("www-authenticate") == [
            'Signature algorithm="hmac-sha256",headers="(request-target) date"',
            'Signature algorithm="ed25519",headers="(request-target) date"',
        ]

    def test_exempt_paths(self, hmac_service):
        client = TestClient(
            _create_app(hmac_service, require_signature=True, exempt_paths=["/health"])
        )

        assert client.get("/health").status_code == 200
        assert client.get("/foos").status_code == 401


class TestClientMiddleware:
    """Tests for signing outgoing requests."""

    def test_sign(self, hmac_service):
        middleware = ClientMiddleware(hmac_service, "client-1")

        signed = middleware.sign(HttpRequest.create("GET", "https://example.com/foos"))

        assert signed.has_header("Date")
        assert parse_authorization(signed.get_header_line("Authorization"))["keyId"] == "client-1"
        assert hmac_service.verify(signed) == "client-1"

    def test_sign_records_algorithm(self, hmac_service):
        labels = {"algorithm": "hmac-sha256"}
        before = REGISTRY.get_sample_value("signedhttp_signatures_total", labels) or 0.0

        ClientMiddleware(hmac_service, "client-1").sign(HttpRequest.create("GET", "/foos"))

        assert REGISTRY.get_sample_value("signedhttp_signatures_total", labels) == before + 1

    def test_as_callable(self, hmac_service):
        sign = ClientMiddleware(hmac_service, "client-2").as_callable()

        signed = sign(HttpRequest.create("GET", "/foos"))

        assert hmac_service.verify(signed) == "client-2"

    def test_with_key_id(self, hmac_service):
        middleware = ClientMiddleware(hmac_service, "client-1")

        assert middleware.with_key_id("client-1") is middleware
        other = middleware.with_key_id("client-2")
        assert other.key_id == "client-2"
        assert middleware.key_id == "client-1"

    def test_client_id_and_nonce(self, hmac_service):
        middleware = ClientMiddleware(hmac_service.with_nonce(0), "client-1", client_id="app-1")

        signed = middleware.sign(HttpRequest.create("GET", "/foos"))

        params = parse_authorization(signed.get_header_line("Authorization"))
        assert params["clientId"] == "app-1"
        assert params["nonce"] == "1"

    @pytest.mark.asyncio
    async def test_for_aiohttp(self, hmac_service):
        request = MagicMock()
        request.method = "POST"
        request.url = "https://example.com/foos?a=1"
        request.headers = {"Content-Type": "application/json"}
        handler = AsyncMock(return_value="response")

        result = await ClientMiddleware(hmac_service, "client-1").for_aiohttp()(request, handler)

        assert result == "response"
        handler.assert_awaited_once_with(request)
        assert "Date" in request.headers
        assert request.headers["Authorization"].startswith('Signature keyId="client-1"')

        signed = HttpRequest.create("POST", "https://example.com/foos?a=1", request.headers)
        assert hmac_service.verify(signed) == "client-1"
