"""
=============================================================================
COLLABORATOR INTERFACES
=============================================================================

The anonymity network is consumed as a capability, not as a class
hierarchy. The core only ever sees these narrow protocols:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                      WHAT THE CORE USES                             │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Stream              read / write / flush / close_write / close    │
    │                                                                      │
    │   InboundRequest      kind, accept() -> Stream, reject(reason)      │
    │                                                                      │
    │   ServiceHandle       address, status_events()                      │
    │                                                                      │
    │   ServiceTransport    launch_service(config, key)                   │
    │                                                                      │
    │   Connector           connect(host, port) -> Stream                 │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The Tor adapters in onionserve.tor implement them for real; the tests
implement them with in-memory fakes.

=============================================================================
"""

from enum import Enum
from typing import Any, Iterable, Iterator, Optional, Protocol, Tuple

from .status import BootstrapStatus


class RequestKind(Enum):
    """What an inbound request asks for."""
    DATA_BEGIN = "begin"    # Open a data stream to the service port
    OTHER = "other"         # Directory/resolve/control requests


class Stream(Protocol):
    """A bidirectional byte stream."""

    def read(self, size: int) -> bytes:
        """Read up to `size` bytes. b"" means end-of-stream."""

    def write(self, data: bytes) -> None:
        """Write all of `data`."""

    def flush(self) -> None:
        ...

    def close_write(self) -> None:
        """Half-close: the peer sees end-of-stream, reading still works."""

    def close(self) -> None:
        ...


class InboundRequest(Protocol):
    """
    One pending connection attempt on the published service.

    Must be accepted or rejected exactly once.
    """

    kind: RequestKind

    def accept(self) -> Stream:
        """Promote to a byte stream and acknowledge the connection."""

    def reject(self, reason: str) -> None:
        """Refuse with a closing signal."""


class ServiceHandle(Protocol):
    """A launched onion service."""

    @property
    def address(self) -> Optional[str]:
        """The xxxx.onion host, or None if it cannot be determined."""

    def status_events(self) -> Iterator[BootstrapStatus]:
        """Publication status, in order. May repeat states."""


class ServiceTransport(Protocol):
    """The bootstrapped client able to launch onion services."""

    def launch_service(
        self,
        config: Any,
        key: Optional[Any],
    ) -> Optional[Tuple[ServiceHandle, Iterable[InboundRequest]]]:
        """Launch a service. None means onion services are disabled."""


class Connector(Protocol):
    """The bootstrapped client able to open outbound streams."""

    def connect(self, host: str, port: int) -> Stream:
        ...
