"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The server only ever produces three statuses:

    ┌────────┬──────────────────────┬───────────────────────────────────┐
    │  Code  │ Reason               │ When                              │
    ├────────┼──────────────────────┼───────────────────────────────────┤
    │  200   │ OK                   │ GET on a whitelisted path         │
    │  404   │ Not Found            │ GET on anything else              │
    │  405   │ Method Not Allowed   │ any method other than GET         │
    └────────┴──────────────────────┴───────────────────────────────────┘

This is not a general reason-phrase table. Any other code is written
with the phrase "OK", a known limitation kept on purpose: the client
only ever checks the numeric code.

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    Status codes the server writes.

        >>> HTTPStatus.NOT_FOUND == 404
        True
        >>> HTTPStatus.NOT_FOUND.phrase
        'Not Found'
    """

    OK = 200
    NOT_FOUND = 404
    METHOD_NOT_ALLOWED = 405

    @property
    def phrase(self) -> str:
        return _STATUS_PHRASES[self]


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.METHOD_NOT_ALLOWED: "Method Not Allowed",
}


def reason_phrase(status: int) -> str:
    """Reason phrase for `status`, defaulting to "OK" for unlisted codes."""
    try:
        return HTTPStatus(status).phrase
    except ValueError:
        return "OK"
