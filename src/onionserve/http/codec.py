"""
=============================================================================
MINIMAL HTTP/1.1 CODEC
=============================================================================

Encodes and decodes the small slice of HTTP/1.1 this tool needs, over
any Stream. The same module serves both directions:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        WHO CALLS WHAT                               │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   SERVER (RequestHandler)          CLIENT (FetchOrchestrator)       │
    │                                                                      │
    │   read_request_line(stream)        fetch(connect, host, path)       │
    │   write_response(stream, ...)        ├── build_request()            │
    │                                      ├── read_to_end()              │
    │                                      └── parse_response()           │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
WIRE FORMAT
=============================================================================

    Request:                          Response:

    GET <path> HTTP/1.1\r\n           HTTP/1.1 <status> <reason>\r\n
    Host: <host>\r\n                  Content-Length: <n>\r\n
    Connection: close\r\n             Content-Type: <mime>\r\n
    \r\n                              Connection: close\r\n
                                      \r\n
                                      <body, n bytes>

=============================================================================
WHAT IS DELIBERATELY MISSING
=============================================================================

- read_request_line() performs ONE read. A request line split across two
  reads is not reassembled, and headers and body are ignored. The only
  client is a single small GET with no body, so one read is enough.

- The client trusts end-of-stream as the body terminator. It does not
  reconcile the body against Content-Length. No chunked encoding, no
  keep-alive.

=============================================================================
THE END-MISC TOLERANCE
=============================================================================

Tor requires stream originators to close with END reason MISC, and some
stream readers report that close as an error rather than as EOF. By then
every response byte has already been delivered. read_to_end() therefore
treats StreamClosedMisc as end-of-stream IF AND ONLY IF at least one byte
was read; with nothing read it is still a failure, as is any other
transport error.

=============================================================================
"""

import logging
from typing import Callable, Tuple

from ..config import READ_BUFFER_SIZE
from ..core.interfaces import Stream
from ..errors import MalformedRequest, MalformedResponse, StreamClosedMisc, UnexpectedStatus
from .status_codes import reason_phrase


logger = logging.getLogger(__name__)

HEADER_TERMINATOR = b"\r\n\r\n"
HTTP_VERSION = "HTTP/1.1"


# =============================================================================
# SERVER SIDE
# =============================================================================

def read_request_line(stream: Stream, buffer_size: int = READ_BUFFER_SIZE) -> Tuple[str, str]:
    """
    Read the request line and return (method, path).

    Args:
        stream: An accepted inbound stream.
        buffer_size: Upper bound on the single read.

    Returns:
        (method, path). Method is "" for an empty first line; path
        defaults to "/" when absent.

    Raises:
        MalformedRequest: Nothing was read, or the bytes are not UTF-8.
    """
    data = stream.read(buffer_size)
    if not data:
        raise MalformedRequest("empty request")

    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise MalformedRequest(f"request not valid UTF-8: {e}") from e

    # ─────────────────────────────────────────────────────────────────────
    # FIRST LINE ONLY
    # ─────────────────────────────────────────────────────────────────────
    #   "GET /foo HTTP/1.1\r\nHost: x\r\n\r\n"
    #    ─┬─ ─┬──
    #     │   └── path
    #     └────── method
    lines = text.splitlines()
    first_line = lines[0] if lines else ""

    parts = first_line.split()
    method = parts[0] if parts else ""
    path = parts[1] if len(parts) > 1 else "/"
    return method, path


def encode_response_head(status: int, content_type: str, content_length: int) -> bytes:
    """Status line and headers, up to and including the blank line."""
    return (
        f"{HTTP_VERSION} {status} {reason_phrase(status)}\r\n"
        f"Content-Length: {content_length}\r\n"
        f"Content-Type: {content_type}\r\n"
        "Connection: close\r\n"
        "\r\n"
    ).encode("utf-8")


def write_response(stream: Stream, status: int, content_type: str, body: bytes) -> None:
    """
    Write a complete response, then half-close the write direction.

    Content-Length always equals len(body). The half-close lets the peer
    see a clean end-of-stream rather than an abrupt disconnect.
    """
    stream.write(encode_response_head(status, content_type, len(body)))
    stream.write(body)
    stream.flush()
    stream.close_write()


# =============================================================================
# CLIENT SIDE
# =============================================================================

def build_request(host: str, path: str) -> bytes:
    """Minimal GET for `path` on `host`."""
    return (
        f"GET {path} {HTTP_VERSION}\r\n"
        f"Host: {host}\r\n"
        "Connection: close\r\n"
        "\r\n"
    ).encode("utf-8")


def read_to_end(stream: Stream, buffer_size: int = READ_BUFFER_SIZE) -> bytes:
    """
    Read until end-of-stream.

    StreamClosedMisc counts as end-of-stream once data has arrived;
    see the module docstring.

    Raises:
        TransportError: Any other transport failure, or END MISC before
                        the first byte.
    """
    response = bytearray()
    while True:
        try:
            chunk = stream.read(buffer_size)
        except StreamClosedMisc:
            if not response:
                raise
            logger.debug("Peer closed with END MISC after %d bytes; treating as EOF", len(response))
            break

        if not chunk:
            break
        response += chunk

    return bytes(response)


def parse_response(response: bytes) -> bytes:
    """
    Validate a raw response and return its body.

    ┌─────────────────────────────────────────────────────────────────┐
    │   HTTP/1.1 200 OK\r\n            ← status line: token 2 = code    │
    │   Content-Length: 5\r\n                                          │
    │   \r\n                           ← first CRLFCRLF ends the head  │
    │   hello                          ← body (raw bytes, to EOF)      │
    └─────────────────────────────────────────────────────────────────┘

    Raises:
        MalformedResponse: Empty response, bad status code, or no
                           header/body separator.
        UnexpectedStatus: A well-formed status other than 200.
    """
    lines = response.decode("utf-8", errors="replace").splitlines()
    if not lines:
        raise MalformedResponse("empty response")
    status_line = lines[0]

    parts = status_line.split()
    if len(parts) < 2:
        raise MalformedResponse(f"malformed status line: {status_line}")

    # Must fit an unsigned 16-bit integer
    token = parts[1]
    if not token.isdigit() or not token.isascii() or int(token) > 0xFFFF:
        raise MalformedResponse(f"malformed status code in: {status_line}")
    status_code = int(token)

    if status_code != 200:
        raise UnexpectedStatus(status_code, status_line)

    header_end = response.find(HEADER_TERMINATOR)
    if header_end == -1:
        raise MalformedResponse("no header/body separator found")

    return response[header_end + len(HEADER_TERMINATOR):]


def fetch(
    connect: Callable[[str, int], Stream],
    host: str,
    path: str,
    port: int = 80,
) -> bytes:
    """
    GET `path` from `host` and return the body.

    Args:
        connect: Opens an outbound stream, e.g. TorConnector.connect.
        host: The xxxx.onion host.
        path: Absolute path, starting with "/".
        port: Virtual port of the service.

    Returns:
        The raw response body.
    """
    stream = connect(host, port)
    try:
        stream.write(build_request(host, path))
        stream.flush()
        response = read_to_end(stream)
    finally:
        stream.close()

    return parse_response(response)
