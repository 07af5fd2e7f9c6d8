"""
=============================================================================
SOCKET-BACKED STREAMS
=============================================================================

Both Tor adapters end up holding a plain socket:

    SERVER: tor ──(rendezvous)──► HiddenServicePort ──► 127.0.0.1:<port>
                                                        accepted socket

    CLIENT: us ──► SOCKS5 (tor) ──(circuit)──► xxxx.onion:80
                   connected socket

SocketStream wraps that socket in the narrow Stream interface the core
uses (read / write / flush / close_write / close) and converts every
OSError into a TransportError at this single boundary.

=============================================================================
HALF-CLOSE
=============================================================================

    ┌─────────────────────────────────────────────────────────────────┐
    │                  close_write() then close()                      │
    ├─────────────────────────────────────────────────────────────────┤
    │                                                                  │
    │   Server                              Client                     │
    │      │   ...response bytes...  ──────► │                         │
    │      │   FIN ────────────────────────► │  (shutdown SHUT_WR)     │
    │      │                                 │  read() -> b"" : EOF    │
    │      │ ◄──────────────────────── FIN   │  (client closes)        │
    │   (socket closed)                (socket closed)                  │
    │                                                                  │
    └─────────────────────────────────────────────────────────────────┘

Tor turns our FIN into a clean END cell, so the peer observes a normal
end-of-stream instead of an abrupt disconnect.

=============================================================================
"""

import logging
import socket
import uuid
from dataclasses import dataclass, field

from ..errors import classify_transport_error


logger = logging.getLogger(__name__)


@dataclass
class SocketStream:
    """
    Stream over a connected socket.

    Attributes:
        sock: The connected socket.
        id: Short identifier for log lines.
    """

    sock: socket.socket
    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    _closed: bool = field(default=False, repr=False)

    def read(self, size: int) -> bytes:
        try:
            return self.sock.recv(size)
        except OSError as e:
            raise classify_transport_error(e) from e

    def write(self, data: bytes) -> None:
        try:
            # sendall() loops until every byte is handed to the kernel
            self.sock.sendall(data)
        except OSError as e:
            raise classify_transport_error(e) from e

    def flush(self) -> None:
        """Sockets are unbuffered on our side; sendall() already pushed everything."""

    def close_write(self) -> None:
        try:
            self.sock.shutdown(socket.SHUT_WR)
        except OSError as e:
            raise classify_transport_error(e) from e

    def close(self) -> None:
        if self._closed:
            return

        try:
            self.sock.close()
        except OSError:
            pass  # Already gone
        self._closed = True
        logger.debug(f"[{self.id}] Stream closed")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
