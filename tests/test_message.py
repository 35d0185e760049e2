"""Tests for canonical message construction."""

from datetime import datetime, timedelta, timezone

import pytest

from signedhttp.common.errors import SignatureError
from signedhttp.common.http import HttpRequest
from signedhttp.signature.message import build_message, format_date, parse_date, request_target


class TestRequestTarget:
    """Test `(request-target)` values."""

    @pytest.mark.parametrize(
        "method,url,expected",
        [
            ("GET", "https://user:pw@host:443/foos?a=1", "get /foos?a=1"),
            ("POST", "http://example.com/foo", "post /foo"),
            ("get", "/foos?a=1&b=2", "get /foos?a=1&b=2"),
            ("PUT", "https://example.com/a/b#frag", "put /a/b#frag"),
            ("DELETE", "https://example.com", "delete /"),
            ("GET", "https://example.com?a=1", "get /?a=1"),
            ("GET", "http://testserver/files/a%20b?q=%2F", "get /files/a%20b?q=%2F"),
            ("GET", "https://example.com/foos?", "get /foos?"),
            ("GET", "https://example.com//double/slash", "get //double/slash"),
            ("GET", "//double/slash", "get //double/slash"),
        ],
    )
    def test_request_target(self, method, url, expected):
        assert request_target(method, url) == expected


class TestBuildMessage:
    """Test message lines and ordering."""

    def test_lines_follow_header_order(self):
        request = HttpRequest.create(
            "POST",
            "/foo",
            {"Date": "Sat, 22 Aug 1981 20:52:00 +0000", "Digest": "SHA-256=abc"},
        )

        message = build_message(request, ["digest", "(request-target)", "Date"])

        assert message == (
            b"digest: SHA-256=abc\n"
            b"(request-target): post /foo\n"
            b"date: Sat, 22 Aug 1981 20:52:00 +0000"
        )

    def test_missing_header_is_empty(self):
        request = HttpRequest.create("GET", "/foo")

        assert build_message(request, ["(request-target)", "digest"]) == (
            b"(request-target): get /foo\ndigest: "
        )

    def test_repeated_header_values_joined(self):
        request = HttpRequest.create("GET", "/", [("X-Tag", "a"), ("x-tag", "b")])

        assert build_message(request, ["x-tag"]) == b"x-tag: a, b"

    def test_deterministic(self):
        request = HttpRequest.create("GET", "/foos?a=1", {"Date": "Sat, 22 Aug 1981 20:52:00 +0000"})
        headers = ["(request-target)", "date"]

        assert build_message(request, headers) == build_message(request, headers)

    def test_empty_header_list(self):
        assert build_message(HttpRequest.create("GET", "/"), []) == b""


class TestDates:
    """Test Date header formatting and parsing."""

    def test_format_date(self):
        moment = datetime(1981, 8, 22, 20, 52, 0, tzinfo=timezone.utc)
        assert format_date(moment) == "Sat, 22 Aug 1981 20:52:00 +0000"

    def test_format_date_converts_to_utc(self):
        moment = datetime(1981, 8, 22, 22, 52, 0, tzinfo=timezone(timedelta(hours=2)))
        assert format_date(moment) == "Sat, 22 Aug 1981 20:52:00 +0000"

    @pytest.mark.parametrize(
        "value",
        [
            "Sat, 22 Aug 1981 20:52:00 +0000",
            "Sat, 22 Aug 1981 20:52:00 GMT",
            "Sat, 22 Aug 1981 22:52:00 +0200",
            "1981-08-22T20:52:00Z",
            "1981-08-22T20:52:00+00:00",
        ],
    )
    def test_parse_date(self, value):
        assert parse_date(value) == datetime(1981, 8, 22, 20, 52, 0, tzinfo=timezone.utc)

    def test_parse_format_roundtrip(self):
        moment = datetime(2024, 2, 29, 12, 0, 1, tzinfo=timezone.utc)
        assert parse_date(format_date(moment)) == moment

    @pytest.mark.parametrize("value", ["", "yesterday", "32 Foo 2020"])
    def test_parse_invalid_date(self, value):
        with pytest.raises(SignatureError, match="invalid date header"):
            parse_date(value)
