"""
=============================================================================
HTTP PROTOCOL COMPONENTS
=============================================================================

    http/
    ├── codec.py         # Request line parsing, response framing, fetch
    ├── router.py        # Path → file whitelist
    ├── status_codes.py  # The three statuses the server writes
    └── mime_types.py    # Content-Type from file extension

=============================================================================
"""

from .codec import (
    read_request_line,
    write_response,
    build_request,
    read_to_end,
    parse_response,
    fetch,
)
from .router import RouteResolver
from .status_codes import HTTPStatus, reason_phrase
from .mime_types import get_mime_type

__all__ = [
    # Codec
    "read_request_line",
    "write_response",
    "build_request",
    "read_to_end",
    "parse_response",
    "fetch",

    # Routing
    "RouteResolver",

    # Status codes
    "HTTPStatus",
    "reason_phrase",

    # MIME types
    "get_mime_type",
]
