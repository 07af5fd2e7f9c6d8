"""
=============================================================================
ONIONSERVE - Static Files Over Tor Onion Services
=============================================================================

A minimal static-file HTTP server reachable only at an onion address,
plus a client that fetches from such addresses. Tor does the hard parts
(circuits, rendezvous, descriptor publication); this package is the
layer on top.

=============================================================================
PROJECT OVERVIEW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                      ONIONSERVE ARCHITECTURE                        │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   SERVER                                                             │
    │   ServiceLifecycle ──► ConnectionAcceptor ──► RequestHandler        │
    │   (launch, publish)    (one task/stream)      (route, respond, log) │
    │                                                                      │
    │   CLIENT                                                             │
    │   FetchOrchestrator ──► codec.fetch() per target, one connector     │
    │                                                                      │
    │   BOTH                                                               │
    │   http.codec over the narrow Stream interface                       │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    onionserve/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m onionserve)
    ├── server.py            # OnionServer: wires everything for `server`
    ├── config.py            # ServerConfig / ClientConfig dataclasses
    ├── errors.py            # Error taxonomy
    ├── ui.py                # Logging setup, TTY detection, error output
    ├── core/                # Interfaces, lifecycle, acceptor, thread pool
    ├── http/                # Codec, routes, status codes, MIME types
    ├── handlers/            # RequestHandler + access log record
    ├── client/              # FetchOrchestrator
    └── tor/                 # stem / PySocks / cryptography adapters

=============================================================================
"""

from .config import ClientConfig, ServerConfig
from .errors import (
    FileAccessError,
    InvalidHost,
    KeyFormatError,
    MalformedRequest,
    MalformedResponse,
    OnionServeError,
    ServiceBroken,
    ServiceDisabled,
    StreamClosedMisc,
    TransportError,
    UnexpectedStatus,
)
from .server import OnionServer

__version__ = "1.0.0"

__all__ = [
    "OnionServer",
    "ServerConfig",
    "ClientConfig",

    # Errors
    "OnionServeError",
    "MalformedRequest",
    "MalformedResponse",
    "UnexpectedStatus",
    "InvalidHost",
    "ServiceDisabled",
    "ServiceBroken",
    "TransportError",
    "StreamClosedMisc",
    "FileAccessError",
    "KeyFormatError",
]
