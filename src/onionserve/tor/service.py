"""
=============================================================================
ONION SERVICE TRANSPORT
=============================================================================

Launches an ephemeral onion service through tor's control port and turns
tor's HS_DESC events into the BootstrapStatus sequence the lifecycle
consumes.

=============================================================================
HS_DESC → BootstrapStatus
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │   tor event (our service only)      status                           │
    ├─────────────────────────────────────────────────────────────────────┤
    │   CREATED                           Publishing("descriptor created") │
    │   UPLOAD                            Publishing("uploading")          │
    │   FAILED                            Publishing("upload failed: ...") │
    │   first UPLOADED                    Reachable                        │
    │   first UPLOADED after a FAILED     DegradedReachable                │
    │   control connection gone           Broken                           │
    └─────────────────────────────────────────────────────────────────────┘

tor uploads the descriptor to several directories; one successful
upload is enough for clients to find the service.

The event listener is registered BEFORE the service is created, since
tor can emit CREATED before create_ephemeral_hidden_service() returns.
Events for other services are filtered out by address. tor may leave the
address off UPLOADED and FAILED, so those are also matched by the
directory fingerprints this service's UPLOAD events named.

=============================================================================
"""

import logging
import queue
from contextlib import contextmanager
from typing import Any, Iterable, Iterator, Optional, Tuple

import stem
import stem.connection
from stem.control import Controller, EventType

from ..core.status import BootstrapStatus
from ..errors import TransportError
from .keys import ONION_SUFFIX, ServiceKey
from .listener import LocalListener, SocketInboundRequest
from .process import LOOPBACK, TorRuntime


logger = logging.getLogger(__name__)

EVENT_POLL_INTERVAL = 1.0

# tor's reply code for a command it does not know
UNRECOGNIZED_COMMAND = "510"


def onion_services_unsupported(error: stem.ControllerError) -> bool:
    """True if tor refused ADD_ONION because it cannot run onion services."""
    if isinstance(error, stem.UnsatisfiableRequest):
        return True
    if getattr(error, "code", None) == UNRECOGNIZED_COMMAND:
        return True
    return "Unrecognized command" in str(error)


class TorServiceHandle:
    """A running ephemeral onion service."""

    def __init__(
        self,
        controller: Controller,
        service_id: Optional[str],
        events: "queue.Queue[Any]",
        listener: LocalListener,
    ):
        self._controller = controller
        self.service_id = service_id
        self._events = events
        self.listener = listener

    @property
    def address(self) -> Optional[str]:
        if not self.service_id:
            return None
        return self.service_id + ONION_SUFFIX

    def status_events(self) -> Iterator[BootstrapStatus]:
        upload_failed = False
        uploaded_to = set()

        while True:
            try:
                event = self._events.get(timeout=EVENT_POLL_INTERVAL)
            except queue.Empty:
                if not self._controller.is_alive():
                    yield BootstrapStatus.broken("tor control connection closed")
                    return
                continue

            action = event.action
            if event.address == self.service_id:
                if action == stem.HSDescAction.UPLOAD and event.directory_fingerprint:
                    uploaded_to.add(event.directory_fingerprint)
            elif action not in (stem.HSDescAction.UPLOADED, stem.HSDescAction.FAILED):
                continue
            elif event.directory_fingerprint not in uploaded_to:
                continue

            if action == stem.HSDescAction.CREATED:
                yield BootstrapStatus.publishing("descriptor created")
            elif action == stem.HSDescAction.UPLOAD:
                yield BootstrapStatus.publishing("uploading")
            elif action == stem.HSDescAction.FAILED:
                upload_failed = True
                yield BootstrapStatus.publishing(f"upload failed: {event.reason or 'unknown'}")
            elif action == stem.HSDescAction.UPLOADED:
                if upload_failed:
                    yield BootstrapStatus.degraded("some descriptor uploads failed")
                else:
                    yield BootstrapStatus.reachable()
                return

    def close(self) -> None:
        self.listener.close()
        if self.service_id and self._controller.is_alive():
            try:
                self._controller.remove_ephemeral_hidden_service(self.service_id)
            except stem.ControllerError as e:
                logger.debug(f"Could not remove service {self.service_id}: {e}")


class TorServiceTransport:
    """ServiceTransport over an authenticated stem Controller."""

    def __init__(self, controller: Controller, bind_host: str = LOOPBACK):
        self._controller = controller
        self.bind_host = bind_host
        self._handles = []

    def launch_service(
        self,
        config: Any,
        key: Optional[ServiceKey],
    ) -> Optional[Tuple[TorServiceHandle, Iterable[SocketInboundRequest]]]:
        """
        Create the onion service and its loopback listener.

        Returns:
            (handle, inbound requests), or None if tor refuses to create
            onion services.

        Raises:
            TransportError: Any other control-port failure.
        """
        listener = LocalListener(host=self.bind_host)
        local_port = listener.open()

        events: "queue.Queue[Any]" = queue.Queue()
        self._controller.add_event_listener(events.put, EventType.HS_DESC)

        if key is not None:
            key_type, key_content = "ED25519-V3", key.tor_key_blob()
        else:
            key_type, key_content = "NEW", "ED25519-V3"

        logger.debug(f"Creating onion service {config.nickname} -> {self.bind_host}:{local_port}")
        try:
            response = self._controller.create_ephemeral_hidden_service(
                {config.virtual_port: local_port},
                key_type=key_type,
                key_content=key_content,
                discard_key=True,
                await_publication=False,
            )
        except stem.ControllerError as e:
            self._controller.remove_event_listener(events.put)
            listener.close()
            if onion_services_unsupported(e):
                logger.debug(f"tor refused ADD_ONION: {e}")
                return None
            raise TransportError(f"failed to create onion service: {e}") from e

        handle = TorServiceHandle(self._controller, response.service_id, events, listener)
        self._handles.append((handle, events.put))
        return handle, listener.requests()

    def close(self) -> None:
        for handle, event_listener in self._handles:
            if self._controller.is_alive():
                self._controller.remove_event_listener(event_listener)
            handle.close()
        self._handles.clear()


@contextmanager
def tor_service_transport(runtime: TorRuntime) -> Iterator[TorServiceTransport]:
    """Connect to a launched tor's control port and yield a transport."""
    try:
        controller = Controller.from_port(address=LOOPBACK, port=runtime.control_port)
    except stem.SocketError as e:
        raise TransportError(f"cannot reach tor control port: {e}") from e

    try:
        controller.authenticate()
    except stem.connection.AuthenticationFailure as e:
        controller.close()
        raise TransportError(f"cannot use tor control port: {e}") from e

    transport = TorServiceTransport(controller)
    try:
        yield transport
    finally:
        transport.close()
        controller.close()
