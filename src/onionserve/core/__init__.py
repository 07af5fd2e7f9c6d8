"""
=============================================================================
CORE MODULE
=============================================================================

    core/
    ├── interfaces.py   # Stream, InboundRequest, ServiceHandle, ... protocols
    ├── status.py       # BootstrapStatus and its success/failure partition
    ├── stream.py       # SocketStream: Stream over a connected socket
    ├── lifecycle.py    # Launch → publication state machine
    ├── acceptor.py     # Inbound requests → pool tasks
    └── thread_pool.py  # Workers that grow with demand

=============================================================================
"""

from .interfaces import (
    Connector,
    InboundRequest,
    RequestKind,
    ServiceHandle,
    ServiceTransport,
    Stream,
)
from .status import BootstrapStatus, StatusKind, StatusPartition
from .stream import SocketStream
from .lifecycle import LaunchedService, ServiceLifecycle, ServiceState
from .acceptor import ConnectionAcceptor
from .thread_pool import ThreadPool

__all__ = [
    # Interfaces
    "Connector",
    "InboundRequest",
    "RequestKind",
    "ServiceHandle",
    "ServiceTransport",
    "Stream",

    # Status
    "BootstrapStatus",
    "StatusKind",
    "StatusPartition",

    # Runtime
    "SocketStream",
    "LaunchedService",
    "ServiceLifecycle",
    "ServiceState",
    "ConnectionAcceptor",
    "ThreadPool",
]
