"""
Unit tests for RequestHandler.
"""

import logging
import re
from pathlib import Path

import pytest

from conftest import FakeInboundRequest, end_misc_error
from onionserve.core.interfaces import RequestKind
from onionserve.errors import FileAccessError, MalformedRequest, TransportError
from onionserve.handlers.request_handler import (
    METHOD_NOT_ALLOWED_BODY,
    NOT_FOUND_BODY,
    AccessLogRecord,
    RequestHandler,
)
from onionserve.http.codec import parse_response
from onionserve.http.router import RouteResolver


CLF_LINE = re.compile(
    r'^- - - \[\d{2}/[A-Z][a-z]{2}/\d{4}:\d{2}:\d{2}:\d{2} \+0000\] "(\S*) (\S+) HTTP/1\.1" (\d{3}) (\d+)$'
)


@pytest.fixture
def handler(docroot: Path, access_log: logging.Logger) -> RequestHandler:
    return RequestHandler(RouteResolver(docroot), access_log=access_log)


def get(path: str) -> FakeInboundRequest:
    return FakeInboundRequest([f"GET {path} HTTP/1.1\r\nHost: x.onion\r\n\r\n".encode()])


def split_response(request: FakeInboundRequest):
    raw = bytes(request.stream.written)
    head, _, body = raw.partition(b"\r\n\r\n")
    return head.decode(), body


class TestResponses:
    """Tests for the status/body choice."""

    def test_index_html(self, handler: RequestHandler, docroot: Path):
        """Test "/" serves index.html byte for byte."""
        request = get("/")

        record = handler.handle(request)

        head, body = split_response(request)
        assert head.startswith("HTTP/1.1 200 OK")
        assert "Content-Type: text/html" in head
        assert body == (docroot / "index.html").read_bytes()
        assert record.status == 200

    def test_literal_txt_route(self, handler: RequestHandler):
        """Test /index.txt is served as text/plain."""
        request = get("/index.txt")

        handler.handle(request)

        head, body = split_response(request)
        assert "Content-Type: text/plain" in head
        assert body == b"hello"

    def test_body_parses_with_client_codec(self, handler: RequestHandler, docroot: Path):
        """Test the client side decodes what the server wrote."""
        request = get("/index.html")

        handler.handle(request)

        assert parse_response(bytes(request.stream.written)) == (docroot / "index.html").read_bytes()

    def test_unmatched_path(self, handler: RequestHandler):
        """Test unknown paths get the 9-byte 404 body."""
        request = get("/secret")

        record = handler.handle(request)

        head, body = split_response(request)
        assert head.startswith("HTTP/1.1 404 Not Found")
        assert "Content-Length: 9" in head
        assert body == NOT_FOUND_BODY == b"Not Found"
        assert record.body_length == 9

    @pytest.mark.parametrize("method", ["POST", "HEAD", "DELETE", "get"])
    def test_non_get(self, handler: RequestHandler, method: str):
        """Test any other method gets the 18-byte 405 body, whatever the path."""
        request = FakeInboundRequest([f"{method} / HTTP/1.1\r\n\r\n".encode()])

        record = handler.handle(request)

        head, body = split_response(request)
        assert head.startswith("HTTP/1.1 405 Method Not Allowed")
        assert "Content-Type: text/plain" in head
        assert body == METHOD_NOT_ALLOWED_BODY
        assert len(body) == 18
        assert record.status == 405

    def test_stream_half_closed_then_closed(self, handler: RequestHandler):
        """Test the exchange ends with a half-close and a close."""
        request = get("/")

        handler.handle(request)

        assert request.stream.write_closed
        assert request.stream.closed


class TestRequestKinds:
    """Tests for non-data requests."""

    def test_other_kind_is_rejected(self, handler: RequestHandler, caplog):
        """Test control requests are rejected without a response or log line."""
        request = FakeInboundRequest([b"GET / HTTP/1.1\r\n\r\n"], kind=RequestKind.OTHER)

        with caplog.at_level(logging.INFO, logger="tests.access"):
            result = handler.handle(request)

        assert result is None
        assert request.rejected_with == "misc"
        assert not request.accepted
        assert [r for r in caplog.records if r.name == "tests.access"] == []


class TestAccessLog:
    """Tests for the access log line."""

    def test_one_clf_line_per_exchange(self, handler: RequestHandler, caplog):
        """Test a completed exchange logs exactly one CLF line."""
        with caplog.at_level(logging.INFO, logger="tests.access"):
            handler.handle(get("/index.txt"))

        lines = [r.getMessage() for r in caplog.records if r.name == "tests.access"]
        assert len(lines) == 1
        match = CLF_LINE.match(lines[0])
        assert match is not None
        assert match.groups() == ("GET", "/index.txt", "200", "5")

    def test_record_text(self):
        """Test AccessLogRecord renders the redacted host."""
        record = AccessLogRecord("GET", "/", 404, 9, "18/Oct/2026:09:01:05 +0000")

        assert record.to_text() == '- - - [18/Oct/2026:09:01:05 +0000] "GET / HTTP/1.1" 404 9'


class TestFailures:
    """Tests for errors left to the caller."""

    def test_empty_request(self, handler: RequestHandler):
        """Test an empty read raises and still closes the stream."""
        request = FakeInboundRequest([])

        with pytest.raises(MalformedRequest):
            handler.handle(request)
        assert request.stream.closed
        assert request.stream.written == bytearray()

    def test_read_error(self, handler: RequestHandler):
        """Test transport errors propagate."""
        request = FakeInboundRequest([end_misc_error()])

        with pytest.raises(TransportError):
            handler.handle(request)

    def test_missing_literal_file(self, tmp_path: Path, access_log: logging.Logger, caplog):
        """Test a routed file that cannot be read logs no access line."""
        handler = RequestHandler(RouteResolver(tmp_path), access_log=access_log)
        request = get("/index.html")

        with caplog.at_level(logging.INFO, logger="tests.access"):
            with pytest.raises(FileAccessError):
                handler.handle(request)

        assert request.stream.written == bytearray()
        assert request.stream.closed
        assert [r for r in caplog.records if r.name == "tests.access"] == []
