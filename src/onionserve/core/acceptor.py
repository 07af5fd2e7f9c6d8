"""
=============================================================================
CONNECTION ACCEPTOR
=============================================================================

Turns the service's endless sequence of inbound requests into
independently handled HTTP exchanges.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                          run(requests)                               │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   for request in requests:          ◄── blocks on the next arrival  │
    │       pool.submit(_handle_isolated, request)                        │
    │                                                                      │
    │   sequence exhausted  ──►  return (clean shutdown, not an error)    │
    │                                                                      │
    │   _handle_isolated(request):                                         │
    │       try:    handler.handle(request)                               │
    │       except: log "stream error: ...", drop the connection          │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Dispatched handlers are not drained on the way out. Anything still in
flight when the loop ends is left to its daemon thread.

=============================================================================
"""

import logging
from typing import TYPE_CHECKING, Iterable, Optional

from .interfaces import InboundRequest
from .thread_pool import ThreadPool

if TYPE_CHECKING:
    from ..handlers.request_handler import RequestHandler


logger = logging.getLogger(__name__)


class ConnectionAcceptor:
    """Feeds inbound requests to a RequestHandler, one pool task each."""

    def __init__(self, handler: "RequestHandler", pool: Optional[ThreadPool] = None):
        self.handler = handler
        self.pool = pool if pool is not None else ThreadPool()
        self.dispatched = 0

    def run(self, requests: Iterable[InboundRequest]) -> int:
        """
        Dispatch every request until the sequence ends.

        Returns:
            Number of requests dispatched.
        """
        self.pool.start()
        try:
            for request in requests:
                self.pool.submit(self._handle_isolated, args=(request,))
                self.dispatched += 1
        finally:
            self.pool.shutdown(wait=False)

        logger.debug(f"Request source exhausted after {self.dispatched} requests")
        return self.dispatched

    def _handle_isolated(self, request: InboundRequest) -> None:
        # Nothing raised here may reach the pool, the loop, or other connections
        try:
            self.handler.handle(request)
        except Exception as e:
            logger.error(f"stream error: {e}")
