"""
Outbound streams to onion services through tor's SOCKS5 port.

The .onion name is handed to tor unresolved (remote DNS); resolving it
locally is both impossible and a leak.
"""

import logging

import socks

from ..config import DEFAULT_CONNECT_TIMEOUT
from ..core.stream import SocketStream
from ..errors import classify_transport_error


logger = logging.getLogger(__name__)


class TorConnector:
    """Connector that dials through a SOCKS5 proxy, normally a local tor."""

    def __init__(
        self,
        socks_port: int,
        socks_host: str = "127.0.0.1",
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
    ):
        self.socks_host = socks_host
        self.socks_port = socks_port
        self.connect_timeout = connect_timeout

    def connect(self, host: str, port: int) -> SocketStream:
        """
        Open a stream to host:port.

        Only establishing the circuit is bounded by connect_timeout; the
        returned stream has no timeout at all.

        Raises:
            TransportError: The proxy refused, or the connect timed out.
        """
        logger.debug(f"Connecting to {host}:{port} via socks5://{self.socks_host}:{self.socks_port}")
        try:
            sock = socks.create_connection(
                (host, port),
                timeout=self.connect_timeout,
                proxy_type=socks.SOCKS5,
                proxy_addr=self.socks_host,
                proxy_port=self.socks_port,
                proxy_rdns=True,
            )
        except OSError as e:
            # socks.ProxyError is an OSError too
            raise classify_transport_error(e) from e

        sock.settimeout(None)
        return SocketStream(sock)
