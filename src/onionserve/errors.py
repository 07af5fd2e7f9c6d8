"""
=============================================================================
ERROR TAXONOMY
=============================================================================

Every failure this package raises on purpose is an OnionServeError.
Where the error is raised decides how fatal it is:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                      ERROR PROPAGATION                              │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   SERVER BOOTSTRAP        ServiceDisabled, ServiceBroken            │
    │   └── fatal: process prints "error: ..." and exits 1                │
    │                                                                      │
    │   PER CONNECTION          MalformedRequest, TransportError,         │
    │                           FileAccessError                            │
    │   └── caught at the handler boundary, logged, connection dropped    │
    │                                                                      │
    │   CLIENT FETCH            MalformedResponse, UnexpectedStatus,       │
    │                           InvalidHost, TransportError                │
    │   └── aborts the whole batch, surfaced as the process error         │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The one error that is not always an error is StreamClosedMisc. Tor asks
stream originators to close with END reason MISC, and some stream readers
surface that perfectly normal close as an I/O error. The transport adapter
tags it once (see classify_transport_error) so the fetch code can decide
with an isinstance() check instead of matching strings everywhere.

=============================================================================
"""

from typing import Optional


class OnionServeError(Exception):
    """Base class for all errors raised by this package."""


class MalformedRequest(OnionServeError):
    """The request line could not be read or decoded."""


class MalformedResponse(OnionServeError):
    """The status line or the header/body separator is missing or invalid."""


class UnexpectedStatus(OnionServeError):
    """
    A fetch got a response other than 200.

    Carries the numeric status and the full status line so the caller can
    show exactly what the server said.
    """

    def __init__(self, status_code: int, status_line: str):
        super().__init__(f"server returned HTTP {status_code}: {status_line}")
        self.status_code = status_code
        self.status_line = status_line


class InvalidHost(OnionServeError):
    """The target host does not end in the onion-service suffix."""

    def __init__(self, host: str):
        super().__init__(f"expected a .onion address, got: {host}")
        self.host = host


class ServiceDisabled(OnionServeError):
    """The Tor client refused to launch an onion service."""


class ServiceBroken(OnionServeError):
    """The onion service reported a terminal failure while publishing."""

    def __init__(self, reason: str):
        super().__init__(f"Onion service failed: {reason}")
        self.reason = reason


class TransportError(OnionServeError):
    """I/O failure on the underlying anonymity-network stream."""


class StreamClosedMisc(TransportError):
    """
    The peer closed the stream with END reason MISC.

    This is a valid close that the stream layer reports as an error. Readers
    may treat it as end-of-stream once they have received data.
    """


class FileAccessError(OnionServeError):
    """A routed file could not be read."""

    def __init__(self, path: str, cause: Optional[BaseException] = None):
        message = f"reading {path!r}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)
        self.path = path


class KeyFormatError(OnionServeError):
    """Key or onion address text could not be decoded."""


# The one place the tolerated close is recognised by its description.
END_MISC_MARKER = "END cell with reason MISC"


def classify_transport_error(exc: BaseException) -> TransportError:
    """
    Convert an exception raised by the stream layer into a TransportError.

    Call this only where the stream layer's exception is first caught.
    Everything downstream works with the tagged result.

    Args:
        exc: The original exception (usually an OSError).

    Returns:
        StreamClosedMisc if the description carries the END MISC marker,
        otherwise a plain TransportError.
    """
    if isinstance(exc, TransportError):
        return exc

    if END_MISC_MARKER in str(exc):
        return StreamClosedMisc(str(exc))
    return TransportError(str(exc) or type(exc).__name__)
