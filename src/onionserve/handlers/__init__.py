"""
=============================================================================
HANDLERS MODULE
=============================================================================

    RequestHandler   InboundRequest → one HTTP exchange → AccessLogRecord

The handler holds the only application logic on the server side: which
bytes to send back for which request line. Everything around it (Tor,
publication, concurrency) lives in core/ and tor/.

=============================================================================
"""

from .request_handler import (
    AccessLogRecord,
    RequestHandler,
    METHOD_NOT_ALLOWED_BODY,
    NOT_FOUND_BODY,
)

__all__ = [
    "AccessLogRecord",
    "RequestHandler",
    "METHOD_NOT_ALLOWED_BODY",
    "NOT_FOUND_BODY",
]
