"""Create and verify HTTP Signatures."""

from __future__ import annotations

import base64
import binascii
import copy
from collections.abc import Callable, Iterable, Sequence
from datetime import datetime, timezone
from typing import Any, Protocol, TypeVar

from signedhttp.common.errors import ErrorCode, SignatureConfigError, SignatureError
from signedhttp.common.http import RequestLike, ResponseLike
from signedhttp.signature.message import build_message, format_date, parse_date
from signedhttp.signature.nonce import NonceCounter
from signedhttp.signature.params import (
    assert_params,
    format_authorization,
    parse_authorization,
    split_headers,
)

R = TypeVar("R", bound=RequestLike)
S = TypeVar("S", bound=ResponseLike)

DEFAULT_CLOCK_SKEW = 300
DEFAULT_REQUIRED_HEADERS: dict[str, tuple[str, ...]] = {
    "default": ("(request-target)", "date"),
}


class Signer(Protocol):
    """Sign a canonical message with the key named by `key_id`."""

    def __call__(self, message: bytes, key_id: str, algorithm: str) -> bytes: ...


class Verifier(Protocol):
    """Check a signature; must return False (not raise) for unknown keys."""

    def __call__(self, message: bytes, signature: bytes, key_id: str, algorithm: str) -> bool: ...


Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class HttpSignature:
    """
    Signature service for the `Signature` authorization scheme.

    Instances are immutable: every `with_*` method returns a modified copy
    and leaves the original untouched. The cryptography is supplied through
    the `sign` and `verify` callables.

    The nonce counter attached by `with_nonce()` is shared by all copies
    derived from that service, so they never hand out the same nonce.
    """

    def __init__(
        self,
        algorithm: str | Sequence[str],
        sign: Signer,
        verify: Verifier,
        *,
        clock: Clock | None = None,
    ) -> None:
        """
        Initialize the service.

        Args:
            algorithm: Supported algorithm or ordered algorithms
            sign: Function to sign a message
            verify: Function to verify a signed message
            clock: Returns the current time (UTC aware); defaults to system time

        Raises:
            SignatureConfigError: If no algorithms are given
        """
        algorithms = (algorithm,) if isinstance(algorithm, str) else tuple(algorithm)
        if not algorithms:
            raise SignatureConfigError("No supported algorithms specified")

        self._algorithms: tuple[str, ...] = algorithms
        self._sign = sign
        self._verify = verify
        self._clock: Clock = clock or _utcnow
        self._clock_skew = DEFAULT_CLOCK_SKEW
        self._required_headers = dict(DEFAULT_REQUIRED_HEADERS)
        self._nonce: NonceCounter | None = None

    def _clone(self, **changes: Any) -> HttpSignature:
        clone = copy.copy(self)
        for name, value in changes.items():
            setattr(clone, name, value)
        return clone

    # === Configuration ===

    @property
    def supported_algorithms(self) -> tuple[str, ...]:
        return self._algorithms

    def with_algorithm(self, algorithm: str) -> HttpSignature:
        """Get a copy of the service that only supports one of its algorithms."""
        if self._algorithms == (algorithm,):
            return self

        if algorithm not in self._algorithms:
            raise SignatureConfigError(f"Unsupported algorithm: {algorithm}")

        return self._clone(_algorithms=(algorithm,))

    @property
    def clock_skew(self) -> int:
        """Maximum age of a signature in seconds."""
        return self._clock_skew

    def with_clock_skew(self, clock_skew: int = DEFAULT_CLOCK_SKEW) -> HttpSignature:
        if clock_skew < 0:
            raise SignatureConfigError("Clock skew must not be negative")
        if clock_skew == self._clock_skew:
            return self
        return self._clone(_clock_skew=clock_skew)

    def with_clock(self, clock: Clock) -> HttpSignature:
        if clock is self._clock:
            return self
        return self._clone(_clock=clock)

    def with_required_headers(self, method: str, headers: Iterable[str]) -> HttpSignature:
        """
        Set the headers that must be part of the signature.

        Args:
            method: HTTP request method or 'default'
            headers: Header names, may include `(request-target)`
        """
        method = method.lower()
        normalized = tuple(header.lower() for header in headers)

        if self._required_headers.get(method) == normalized:
            return self

        required = dict(self._required_headers)
        required[method] = normalized
        return self._clone(_required_headers=required)

    def get_required_headers(self, method: str) -> tuple[str, ...]:
        method = method.lower()
        return self._required_headers.get(method, self._required_headers["default"])

    @property
    def nonce(self) -> NonceCounter | None:
        return self._nonce

    def with_nonce(self, seed: int) -> HttpSignature:
        """Get a copy that embeds an increasing nonce in each signature."""
        if self._nonce is not None and self._nonce.seed == seed:
            return self
        return self._clone(_nonce=NonceCounter(seed))

    # === Signing ===

    def sign(
        self,
        request: R,
        key_id: str,
        algorithm: str | None = None,
        *,
        client_id: str | None = None,
    ) -> R:
        """
        Sign a request.

        A `Date` header is added if the request has neither `Date` nor
        `X-Date`. The input request is not modified.

        Args:
            request: Request to sign
            key_id: Public key or key reference
            algorithm: Signing algorithm, required if more than one is supported
            client_id: Client identifier; with a nonce counter configured,
                `clientId` and the next `nonce` are added to the parameters

        Returns:
            Request with an `Authorization` header

        Raises:
            SignatureError: For an unsupported or unspecified algorithm
            TypeError: If the sign function doesn't return bytes
        """
        algorithm = self._get_sign_algorithm(algorithm)

        if not request.has_header("Date") and not request.has_header("X-Date"):
            request = request.with_header("Date", format_date(self._clock()))

        headers = self._get_sign_headers(request)
        message = build_message(request, headers)

        raw_signature = self._sign(message, key_id, algorithm)
        if not isinstance(raw_signature, bytes):
            raise TypeError(f"Expected bytes, {type(raw_signature).__name__} given")

        params = {
            "keyId": key_id,
            "algorithm": algorithm,
            "headers": " ".join(headers),
        }
        if self._nonce is not None and client_id is not None:
            params["clientId"] = client_id
            params["nonce"] = str(self._nonce.next())
        params["signature"] = base64.b64encode(raw_signature).decode("ascii")

        return request.with_header("Authorization", format_authorization(params))

    def _get_sign_algorithm(self, algorithm: str | None) -> str:
        if algorithm is None:
            if len(self._algorithms) > 1:
                raise SignatureError(
                    "Multiple algorithms available; no algorithm specified",
                    ErrorCode.UNSUPPORTED_ALGORITHM,
                )
            return self._algorithms[0]

        if algorithm not in self._algorithms:
            raise SignatureError(
                f"Unsupported algorithm: {algorithm}",
                ErrorCode.UNSUPPORTED_ALGORITHM,
            )
        return algorithm

    def _get_sign_headers(self, request: RequestLike) -> list[str]:
        headers = list(self.get_required_headers(request.method))

        # Sign X-Date in place of Date when that's what the request carries
        if "date" in headers and "x-date" not in headers and request.has_header("X-Date"):
            headers[headers.index("date")] = "x-date"

        return headers

    # === Verification ===

    def verify(self, request: RequestLike) -> str:
        """
        Verify the signature of a request.

        Returns:
            The `keyId` parameter

        Raises:
            SignatureError: If the request isn't signed or the signature is not valid
        """
        return self.verify_params(request)["keyId"]

    def verify_params(self, request: RequestLike) -> dict[str, str]:
        """Verify the signature of a request and return all its parameters."""
        if not request.has_header("Authorization"):
            raise SignatureError(
                'missing "Authorization" header',
                ErrorCode.MISSING_AUTHORIZATION,
            )

        params = parse_authorization(request.get_header_line("Authorization"))
        self._assert_params(params)

        headers = split_headers(params["headers"])
        self._assert_required_headers(request.method, headers)
        self._assert_signature_age(request)

        message = build_message(request, headers)
        signature = self._decode_signature(params["signature"])

        if not self._verify(message, signature, params["keyId"], params["algorithm"]):
            raise SignatureError("invalid signature", ErrorCode.INVALID_SIGNATURE)

        return params

    def _assert_params(self, params: dict[str, str]) -> None:
        assert_params(params)

        if params["algorithm"] not in self._algorithms:
            raise SignatureError(
                f"signed with unsupported algorithm: {params['algorithm']}",
                ErrorCode.UNSUPPORTED_ALGORITHM,
            )

    def _assert_required_headers(self, method: str, headers: list[str]) -> None:
        signed = set(headers)
        if "x-date" in signed:
            signed.add("date")

        missing = [header for header in self.get_required_headers(method) if header not in signed]
        if missing:
            verb = "is" if len(missing) == 1 else "are"
            raise SignatureError(
                f"{', '.join(missing)} {verb} not part of signature",
                ErrorCode.MISSING_HEADERS,
            )

    def _assert_signature_age(self, request: RequestLike) -> None:
        if request.has_header("X-Date"):
            date_string = request.get_header_line("X-Date")
        elif request.has_header("Date"):
            date_string = request.get_header_line("Date")
        else:
            # Date should be a required header, so this is not reached for a sane config
            return

        date = parse_date(date_string)
        age = abs((self._clock() - date).total_seconds())

        if age > self._clock_skew:
            raise SignatureError(
                "signature to old or system clocks out of sync",
                ErrorCode.EXPIRED,
            )

    @staticmethod
    def _decode_signature(value: str) -> bytes:
        try:
            return base64.b64decode(value, validate=True)
        except (binascii.Error, ValueError):
            raise SignatureError(
                "signature is not valid base64",
                ErrorCode.INVALID_SIGNATURE,
            ) from None

    # === Challenge ===

    def set_authenticate_response_header(self, method: str, response: S) -> S:
        """Add a `WWW-Authenticate` header per supported algorithm (for a 401 response)."""
        headers = " ".join(self.get_required_headers(method))

        for algorithm in self._algorithms:
            challenge = format_authorization({"algorithm": algorithm, "headers": headers})
            response = response.with_added_header("WWW-Authenticate", challenge)

        return response
