"""
=============================================================================
FETCH ORCHESTRATION
=============================================================================

Fetches one or more resources from onion services over a single
bootstrapped connector.

=============================================================================
TARGET RESOLUTION
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        WHICH HOST?                                   │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   1. address derived from --key        ─┐                           │
    │   2. explicit --address                 ├─► host known:             │
    │                                         │   "a"  → host + "/a"      │
    │                                        ─┘   "/b" → host + "/b"      │
    │   3. neither                           ──► each target is a full    │
    │                                            http://xxxx.onion/ URL   │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Every target is parsed and checked for the .onion suffix BEFORE the
first connection is made, so a typo in the third URL fails the batch
without touching the network.

=============================================================================
OUTPUT
=============================================================================

Bodies are written in input order, with exactly one newline BETWEEN
bodies and none after the last. Fetches are strictly sequential and the
first failure aborts the batch; bodies already written stay written.

=============================================================================
"""

import logging
from dataclasses import dataclass
from typing import BinaryIO, Iterable, List, Optional, Sequence

from ..config import VIRTUAL_PORT
from ..core.interfaces import Connector
from ..errors import InvalidHost
from ..http.codec import fetch


logger = logging.getLogger(__name__)

ONION_SUFFIX = ".onion"
HTTP_SCHEME = "http://"
BODY_SEPARATOR = b"\n"


@dataclass(frozen=True)
class FetchTarget:
    host: str
    path: str

    @property
    def url(self) -> str:
        return f"{HTTP_SCHEME}{self.host}{self.path}"


def normalize_host(host: str) -> str:
    """Strip a leading http:// and any trailing slashes: "http://x.onion/" → "x.onion"."""
    if host.startswith(HTTP_SCHEME):
        host = host[len(HTTP_SCHEME):]
    return host.rstrip("/")


def parse_target(url: str) -> FetchTarget:
    """
    Split `[http://]host[/path]` into a FetchTarget.

    Raises:
        InvalidHost: The host does not end in ".onion".
    """
    if url.startswith(HTTP_SCHEME):
        url = url[len(HTTP_SCHEME):]

    host, slash, rest = url.partition("/")
    path = slash + rest if slash else "/"

    if not host.lower().endswith(ONION_SUFFIX):
        raise InvalidHost(host)
    return FetchTarget(host=host, path=path)


def resolve_host(key_address: Optional[str] = None, address: Optional[str] = None) -> Optional[str]:
    """Key-derived address wins over an explicit one; None if neither is given."""
    if key_address:
        return key_address
    if address:
        return normalize_host(address)
    return None


def resolve_targets(targets: Iterable[str], host: Optional[str] = None) -> List[FetchTarget]:
    """
    Turn raw target strings into validated FetchTargets.

    With a host, each target is a path on that host (a leading "/" is
    added if missing). Without one, each target must be a full URL.
    """
    resolved = []
    for target in targets:
        if host is not None:
            path = target if target.startswith("/") else "/" + target
            target = host + path
        resolved.append(parse_target(target))
    return resolved


class FetchOrchestrator:
    """
    Runs a batch of fetches over one connector.

    The connector is the expensive part (a bootstrapped Tor client), so
    it is created once by the caller and reused for every target.
    """

    def __init__(self, connector: Connector, output: BinaryIO, port: int = VIRTUAL_PORT):
        self.connector = connector
        self.output = output
        self.port = port

    def fetch_all(self, targets: Sequence[FetchTarget]) -> int:
        """
        Fetch already-validated targets and write their bodies.

        Returns:
            Number of bodies written.
        """
        for index, target in enumerate(targets):
            logger.info(f"Fetching {target.url}")
            body = fetch(self.connector.connect, target.host, target.path, port=self.port)

            if index > 0:
                self.output.write(BODY_SEPARATOR)
            self.output.write(body)
            self.output.flush()

        return len(targets)
