"""
=============================================================================
SERVICE LIFECYCLE
=============================================================================

Takes a freshly launched onion service from "starting" to "publicly
reachable", or fails with an error that says why.

=============================================================================
STATE MACHINE
=============================================================================

    ┌──────────┐  launch_service()  ┌───────────┐  handle + requests
    │ STARTING │ ─────────────────► │ LAUNCHING │ ───────────────────┐
    └──────────┘                    └─────┬─────┘                    │
                                          │ None                     ▼
                                          ▼             ┌──────────────────────┐
                                   ServiceDisabled      │ AWAITING_PUBLICATION │◄─┐
                                                        └──────────┬───────────┘  │
                                                                   │   transient  │
                              ┌────────────────────┬───────────────┼──────────────┘
                              ▼                    ▼               ▼
                       ┌───────────┐  ┌────────────────────┐  ┌────────┐
                       │ REACHABLE │  │ DEGRADED_REACHABLE │  │ BROKEN │
                       └───────────┘  └────────────────────┘  └────────┘
                          success          success              ServiceBroken

Every move goes through _transition(), which refuses anything not listed
in ALLOWED_TRANSITIONS. The wait for publication has no timeout here:
repeated transient states keep it waiting for as long as they arrive.

=============================================================================
ADDRESS BEFORE PUBLICATION
=============================================================================

The onion address is a function of the key, not of publication, so the
on_address callback fires right after launch. The user can copy the URL
while the descriptor is still being uploaded.

=============================================================================
"""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterable, Optional

from ..errors import OnionServeError, ServiceBroken, ServiceDisabled
from .interfaces import InboundRequest, ServiceTransport
from .status import BootstrapStatus, StatusKind, StatusPartition


logger = logging.getLogger(__name__)


class ServiceState(Enum):
    STARTING = "starting"
    LAUNCHING = "launching"
    AWAITING_PUBLICATION = "awaiting_publication"
    REACHABLE = "reachable"
    DEGRADED_REACHABLE = "degraded_reachable"
    BROKEN = "broken"


ALLOWED_TRANSITIONS = {
    ServiceState.STARTING: {ServiceState.LAUNCHING, ServiceState.BROKEN},
    ServiceState.LAUNCHING: {ServiceState.AWAITING_PUBLICATION, ServiceState.BROKEN},
    ServiceState.AWAITING_PUBLICATION: {
        ServiceState.REACHABLE,
        ServiceState.DEGRADED_REACHABLE,
        ServiceState.BROKEN,
    },
    ServiceState.REACHABLE: set(),
    ServiceState.DEGRADED_REACHABLE: set(),
    ServiceState.BROKEN: set(),
}

TERMINAL_STATES = frozenset(
    state for state, targets in ALLOWED_TRANSITIONS.items() if not targets
)


@dataclass
class LaunchedService:
    """What a successful run hands to the acceptor."""

    address: str
    requests: Iterable[InboundRequest]
    state: ServiceState
    elapsed: float


class ServiceLifecycle:
    """
    Drives one onion service through bootstrap.

    The clock starts when the lifecycle is created, so create it before
    bootstrapping the Tor client if that time should count.

    Usage:
        lifecycle = ServiceLifecycle(config, key, on_address=print_url)
        with tor_service_transport(...) as transport:
            launched = lifecycle.run(transport)
    """

    def __init__(
        self,
        config: Any,
        key: Optional[Any] = None,
        on_address: Optional[Callable[[str], None]] = None,
        on_status: Optional[Callable[[BootstrapStatus], None]] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config
        self.key = key
        self._on_address = on_address
        self._on_status = on_status
        self._clock = clock

        self._state = ServiceState.STARTING
        self._started_at = clock()
        self._last_status: Optional[BootstrapStatus] = None

    @property
    def state(self) -> ServiceState:
        return self._state

    def _transition(self, new_state: ServiceState) -> None:
        if new_state not in ALLOWED_TRANSITIONS[self._state]:
            raise RuntimeError(
                f"Invalid lifecycle transition: {self._state.value} -> {new_state.value}"
            )
        logger.debug(f"Lifecycle: {self._state.value} -> {new_state.value}")
        self._state = new_state

    def run(self, transport: ServiceTransport) -> LaunchedService:
        """
        Launch the service and wait until it is published.

        Returns:
            The address, the inbound request source, the terminal state
            and the seconds elapsed since the lifecycle was created.

        Raises:
            ServiceDisabled: The transport refused to launch a service.
            ServiceBroken: Publication failed, or the address is unknown.
        """
        self._transition(ServiceState.LAUNCHING)

        try:
            launched = transport.launch_service(self.config, self.key)
        except OnionServeError:
            self._transition(ServiceState.BROKEN)
            raise

        if launched is None:
            self._transition(ServiceState.BROKEN)
            raise ServiceDisabled("onion services are disabled in the Tor client")

        handle, requests = launched

        address = handle.address
        if not address:
            self._transition(ServiceState.BROKEN)
            raise ServiceBroken("Couldn't determine onion address")

        if self._on_address is not None:
            self._on_address(address)

        self._transition(ServiceState.AWAITING_PUBLICATION)
        self._await_publication(handle.status_events())

        elapsed = self._clock() - self._started_at
        logger.debug(f"Service {address} {self._state.value} after {elapsed:.1f}s")
        return LaunchedService(
            address=address,
            requests=requests,
            state=self._state,
            elapsed=elapsed,
        )

    def _await_publication(self, events: Iterable[BootstrapStatus]) -> None:
        for status in events:
            self._report(status)

            partition = status.partition
            if partition is StatusPartition.SUCCESS:
                if status.kind is StatusKind.DEGRADED_REACHABLE:
                    self._transition(ServiceState.DEGRADED_REACHABLE)
                else:
                    self._transition(ServiceState.REACHABLE)
                return

            if partition is StatusPartition.FAILURE:
                self._transition(ServiceState.BROKEN)
                raise ServiceBroken(status.detail or "unknown")

        # The transport stopped reporting without ever settling
        self._transition(ServiceState.BROKEN)
        raise ServiceBroken("status stream ended before the service was reachable")

    def _report(self, status: BootstrapStatus) -> None:
        """Pass each distinct status on once; identical repeats are dropped."""
        if status == self._last_status:
            return
        self._last_status = status

        logger.debug(f"Publication status: {status.describe()}")
        if self._on_status is not None:
            self._on_status(status)
