"""
=============================================================================
TOR ADAPTERS
=============================================================================

Concrete implementations of the core's collaborator interfaces, backed by
a private tor process:

    tor/
    ├── keys.py       # Ed25519 service keys ↔ onion v3 addresses
    ├── process.py    # launched_tor(): tor in a temporary DataDirectory
    ├── service.py    # ServiceTransport over the control port (stem)
    ├── listener.py   # Loopback accept loop → InboundRequest sequence
    └── client.py     # Connector over the SOCKS5 port (PySocks)

=============================================================================
"""

from .keys import (
    ServiceKey,
    address_from_key_text,
    generate_keypair,
    onion_address_from_public_key,
    parse_private_key,
    parse_public_key,
    public_key_from_onion_address,
)
from .process import TorRuntime, launched_tor
from .service import TorServiceHandle, TorServiceTransport, tor_service_transport
from .listener import LocalListener, SocketInboundRequest
from .client import TorConnector

__all__ = [
    # Keys
    "ServiceKey",
    "address_from_key_text",
    "generate_keypair",
    "onion_address_from_public_key",
    "parse_private_key",
    "parse_public_key",
    "public_key_from_onion_address",

    # Process
    "TorRuntime",
    "launched_tor",

    # Service side
    "TorServiceHandle",
    "TorServiceTransport",
    "tor_service_transport",
    "LocalListener",
    "SocketInboundRequest",

    # Client side
    "TorConnector",
]
