"""
=============================================================================
ONION SERVER
=============================================================================

Wires the pieces together for `onionserve server`:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                         OnionServer.run()                            │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   validate config, parse key, build RouteResolver                   │
    │          │                                                           │
    │          ▼                                                           │
    │   launched_tor()  ──►  tor_service_transport()                      │
    │          │                                                           │
    │          ▼                                                           │
    │   ServiceLifecycle.run()                                            │
    │      ├── on_address  ──► "Onion service address: http://xxxx.onion/"│
    │      ├── on_status   ──► one line per status change                 │
    │      └── returns when published                                     │
    │          │                                                           │
    │          ▼                                                           │
    │   "Serving http://xxxx.onion/ (started in 42s)"                     │
    │          │                                                           │
    │          ▼                                                           │
    │   ConnectionAcceptor.run(requests)   ◄── blocks until SIGINT/TERM   │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Everything before the acceptor is fatal on error. Everything inside it is
per connection and never stops the server.

=============================================================================
"""

import logging
import sys
from typing import Callable, ContextManager, Optional, TextIO

from .config import ServerConfig
from .core.acceptor import ConnectionAcceptor
from .core.interfaces import ServiceTransport
from .core.lifecycle import LaunchedService, ServiceLifecycle
from .core.status import BootstrapStatus
from .core.thread_pool import ThreadPool
from .handlers.request_handler import RequestHandler
from .http.router import RouteResolver
from .tor.keys import parse_private_key
from .tor.process import TorRuntime, launched_tor
from .tor.service import tor_service_transport
from .ui import is_interactive


logger = logging.getLogger(__name__)


class OnionServer:
    """
    Static-file server published as an onion service.

    Usage:
        server = OnionServer(ServerConfig(docroot="./site"))
        server.run()
    """

    def __init__(
        self,
        config: Optional[ServerConfig] = None,
        runtime_factory: Callable[[str], ContextManager[TorRuntime]] = launched_tor,
        transport_factory: Callable[[TorRuntime], ContextManager[ServiceTransport]] = tor_service_transport,
        stdout: Optional[TextIO] = None,
    ):
        self.config = config or ServerConfig()
        self._runtime_factory = runtime_factory
        self._transport_factory = transport_factory
        self._stdout = stdout if stdout is not None else sys.stdout

        self.launched: Optional[LaunchedService] = None

    def run(self) -> None:
        """
        Publish the service and serve until the request source ends.

        Raises:
            ValueError: Invalid configuration.
            KeyFormatError: The private key text could not be decoded.
            ServiceDisabled, ServiceBroken, TransportError: Bootstrap failed.
        """
        self.config.validate()

        # Fixed for the whole run
        routes = RouteResolver(self.config.docroot_path)
        key = parse_private_key(self.config.key) if self.config.key else None

        lifecycle = ServiceLifecycle(
            self.config,
            key,
            on_address=self._announce_address,
            on_status=self._announce_status,
        )

        with self._runtime_factory(self.config.tor_cmd) as runtime:
            with self._transport_factory(runtime) as transport:
                self.launched = lifecycle.run(transport)
                self._announce_ready(self.launched)

                handler = RequestHandler(routes, buffer_size=self.config.buffer_size)
                acceptor = ConnectionAcceptor(handler, ThreadPool(max_workers=self.config.max_workers))
                acceptor.run(self.launched.requests)

        logger.info("Server stopped")

    # =========================================================================
    # OUTPUT
    # =========================================================================

    def _announce_address(self, address: str) -> None:
        logger.info(f"Onion service address: http://{address}/")

    def _announce_status(self, status: BootstrapStatus) -> None:
        logger.info(f"Onion service {status.describe()}")

    def _announce_ready(self, launched: LaunchedService) -> None:
        url = f"http://{launched.address}/"
        logger.info(f"Serving {url} (started in {launched.elapsed:.0f}s)")

        # Piped output gets the bare URL for scripts
        if not is_interactive(self._stdout):
            print(url, file=self._stdout, flush=True)
