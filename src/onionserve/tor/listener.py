"""
=============================================================================
LOCAL LISTENER
=============================================================================

Tor delivers each client stream of an onion service as a TCP connection
to the HiddenServicePort target. That target is this listener, bound to
loopback on a port picked by the OS:

    client ──(rendezvous)──► tor ──► 127.0.0.1:<port> ──► requests()

=============================================================================
ACCEPT LOOP
=============================================================================

accept() waits at most one second at a time so the loop can notice
stop() promptly:

    while running:
        try:
            accept()            # 1 s max
        except timeout:
            continue            # check running, loop again

SIGINT and SIGTERM call stop() while requests() is being iterated; the
previous handlers are restored afterwards. When the loop ends the
request sequence simply ends, which the acceptor treats as a clean
shutdown.

=============================================================================
"""

import logging
import signal
import socket
import threading
from typing import Dict, Iterator, Optional

from ..core.interfaces import RequestKind
from ..core.stream import SocketStream


logger = logging.getLogger(__name__)

ACCEPT_POLL_INTERVAL = 1.0


class SocketInboundRequest:
    """
    One accepted loopback connection, presented as an inbound request.

    Tor only forwards data streams to the service port, so every request
    from the listener is DATA_BEGIN. Tor already sent the "connected"
    acknowledgement to the client when it opened this connection.
    """

    kind = RequestKind.DATA_BEGIN

    def __init__(self, sock: socket.socket):
        self._sock = sock
        self._consumed = False

    def _consume(self) -> None:
        if self._consumed:
            raise RuntimeError("inbound request already accepted or rejected")
        self._consumed = True

    def accept(self) -> SocketStream:
        self._consume()
        return SocketStream(self._sock)

    def reject(self, reason: str) -> None:
        self._consume()
        logger.debug(f"Rejecting inbound request: {reason}")
        try:
            self._sock.close()
        except OSError:
            pass


class LocalListener:
    """
    Loopback accept loop feeding an onion service.

    Usage:
        listener = LocalListener()
        port = listener.open()
        for request in listener.requests():
            ...
    """

    def __init__(self, host: str = "127.0.0.1", port: int = 0, backlog: int = 128):
        self.host = host
        self.port = port
        self.backlog = backlog

        self._socket: Optional[socket.socket] = None
        self._running = False
        self._stopped = threading.Event()
        self._original_handlers: Dict[int, object] = {}

    @property
    def address(self):
        if self._socket is None:
            return (self.host, self.port)
        return self._socket.getsockname()

    def open(self) -> int:
        """Bind and listen. Returns the bound port."""
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind((self.host, self.port))
        sock.listen(self.backlog)
        sock.settimeout(ACCEPT_POLL_INTERVAL)

        self._socket = sock
        self._running = True
        self.port = sock.getsockname()[1]
        logger.debug(f"Listening on {self.host}:{self.port}")
        return self.port

    def _setup_signals(self) -> None:
        # signal.signal() only works on the main thread
        if threading.current_thread() is not threading.main_thread():
            return

        def shutdown_handler(signum, frame):
            signal_name = signal.Signals(signum).name
            logger.info(f"Received {signal_name}, shutting down...")
            self.stop()

        self._original_handlers[signal.SIGTERM] = signal.signal(signal.SIGTERM, shutdown_handler)
        self._original_handlers[signal.SIGINT] = signal.signal(signal.SIGINT, shutdown_handler)

    def _restore_signals(self) -> None:
        for sig, handler in self._original_handlers.items():
            signal.signal(sig, handler)
        self._original_handlers.clear()

    def requests(self) -> Iterator[SocketInboundRequest]:
        """Yield one inbound request per accepted connection until stopped."""
        if self._socket is None:
            self.open()

        self._setup_signals()
        try:
            while self._running:
                try:
                    client_socket, _ = self._socket.accept()
                except socket.timeout:
                    continue
                except OSError as e:
                    if self._running:
                        logger.error(f"Accept error: {e}")
                    break

                # The accepted socket must not inherit the poll timeout
                client_socket.settimeout(None)
                yield SocketInboundRequest(client_socket)
        finally:
            self._cleanup()

    def stop(self) -> None:
        """Stop the loop within one poll interval. Safe to call repeatedly."""
        self._running = False

    def _cleanup(self) -> None:
        self._restore_signals()

        if self._socket is not None:
            try:
                self._socket.close()
            except OSError:
                pass
            self._socket = None

        self._stopped.set()
        logger.debug("Listener stopped")

    def close(self) -> None:
        self.stop()
        if self._socket is not None:
            self._cleanup()

    def wait_stopped(self, timeout: Optional[float] = None) -> bool:
        return self._stopped.wait(timeout)
