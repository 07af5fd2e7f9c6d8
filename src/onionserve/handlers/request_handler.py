"""
=============================================================================
REQUEST HANDLER
=============================================================================

One call = one inbound request = at most one HTTP exchange.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                       handle(request)                                │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   kind != DATA_BEGIN ──► reject("misc"), done (probe dropped)       │
    │          │                                                           │
    │          ▼                                                           │
    │   accept() ──► Stream (peer gets the "connected" ack)                │
    │          │                                                           │
    │          ▼                                                           │
    │   read_request_line() ──► (method, path)                            │
    │          │                                                           │
    │          ├── method != GET      ──► 405  "Method Not Allowed" (18B) │
    │          ├── route matches      ──► 200  file bytes, guessed type   │
    │          └── no route           ──► 404  "Not Found" (9B)           │
    │          │                                                           │
    │          ▼                                                           │
    │   write_response() + half-close, then close                         │
    │          │                                                           │
    │          ▼                                                           │
    │   one CLF access line                                               │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
ACCESS LOG
=============================================================================

    - - - [18/Oct/2026:09:01:05 +0000] "GET / HTTP/1.1" 200 1234
    ─┬─
     └── client host is ALWAYS "-": the onion transport hides the peer,
         and there is nothing to log even if we wanted to.

If the matched file cannot be read, FileAccessError propagates and no
access line is written: that exchange never produced a response, and
the failure is already reported as a stream error by the acceptor.

=============================================================================
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..config import READ_BUFFER_SIZE
from ..core.interfaces import InboundRequest, RequestKind
from ..errors import FileAccessError
from ..http.codec import read_request_line, write_response
from ..http.mime_types import get_mime_type
from ..http.router import RouteResolver
from ..http.status_codes import HTTPStatus
from ..ui import ACCESS_LOGGER_NAME, clf_timestamp


logger = logging.getLogger(__name__)
access_logger = logging.getLogger(ACCESS_LOGGER_NAME)

NOT_FOUND_BODY = b"Not Found"
METHOD_NOT_ALLOWED_BODY = b"Method Not Allowed"
PLAIN_TEXT = "text/plain"


@dataclass
class AccessLogRecord:
    """One completed exchange, as it appears in the access log."""

    method: str
    path: str
    status: int
    body_length: int
    timestamp: str

    def to_text(self) -> str:
        """Format as a Common Log Format line with a redacted host."""
        return (
            f'- - - [{self.timestamp}] '
            f'"{self.method} {self.path} HTTP/1.1" {self.status} {self.body_length}'
        )


class RequestHandler:
    """
    Serves whitelisted files to inbound onion-service streams.

    Shares nothing writable between calls: the route table is read-only
    and the access logger serialises its own writes. One instance can
    therefore be called from any number of threads at once.
    """

    def __init__(
        self,
        routes: RouteResolver,
        buffer_size: int = READ_BUFFER_SIZE,
        access_log: Optional[logging.Logger] = None,
    ):
        self.routes = routes
        self.buffer_size = buffer_size
        self.access_log = access_log or access_logger

    def handle(self, request: InboundRequest) -> Optional[AccessLogRecord]:
        """
        Run one exchange.

        Returns:
            The access record, or None if the request was rejected.

        Raises:
            MalformedRequest, TransportError, FileAccessError: left for
            the caller (the acceptor) to log.
        """
        if request.kind is not RequestKind.DATA_BEGIN:
            request.reject("misc")
            return None

        stream = request.accept()
        try:
            method, path = read_request_line(stream, self.buffer_size)

            # ─────────────────────────────────────────────────────────────
            # PICK THE RESPONSE
            # ─────────────────────────────────────────────────────────────
            if method != "GET":
                status = HTTPStatus.METHOD_NOT_ALLOWED
                content_type, body = PLAIN_TEXT, METHOD_NOT_ALLOWED_BODY
            else:
                file_path = self.routes.resolve(path)
                if file_path is None:
                    status = HTTPStatus.NOT_FOUND
                    content_type, body = PLAIN_TEXT, NOT_FOUND_BODY
                else:
                    body = self._read_file(file_path)
                    status = HTTPStatus.OK
                    content_type = get_mime_type(file_path)

            write_response(stream, int(status), content_type, body)
        finally:
            stream.close()

        record = AccessLogRecord(
            method=method,
            path=path,
            status=int(status),
            body_length=len(body),
            timestamp=clf_timestamp(),
        )
        self.access_log.info(record.to_text())
        return record

    @staticmethod
    def _read_file(file_path: Path) -> bytes:
        try:
            return file_path.read_bytes()
        except OSError as e:
            raise FileAccessError(str(file_path), e) from e
