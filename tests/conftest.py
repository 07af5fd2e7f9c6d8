"""
pytest configuration and fixtures.

Every Tor collaborator is replaced by an in-memory fake, so no test needs
a tor binary or network access.
"""

import logging
from pathlib import Path
from typing import Iterable, List, Optional, Union

import pytest

# Add src to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from onionserve.core.interfaces import RequestKind
from onionserve.core.status import BootstrapStatus
from onionserve.errors import classify_transport_error


# =============================================================================
# FAKE COLLABORATORS
# =============================================================================

class FakeStream:
    """
    Stream that replays scripted reads.

    Each script item is either bytes (returned by one read) or an exception
    (raised by that read). Once the script is used up, reads return b"".
    """

    def __init__(self, script: Iterable[Union[bytes, BaseException]] = ()):
        self.script: List[Union[bytes, BaseException]] = list(script)
        self.written = bytearray()
        self.flushes = 0
        self.write_closed = False
        self.closed = False
        self.read_sizes: List[int] = []

    def read(self, size: int) -> bytes:
        self.read_sizes.append(size)
        if not self.script:
            return b""
        item = self.script.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item[:size]

    def write(self, data: bytes) -> None:
        self.written += data

    def flush(self) -> None:
        self.flushes += 1

    def close_write(self) -> None:
        self.write_closed = True

    def close(self) -> None:
        self.closed = True


class FakeInboundRequest:
    """Inbound request whose accepted stream replays `script`."""

    def __init__(self, script: Iterable[Union[bytes, BaseException]] = (), kind: RequestKind = RequestKind.DATA_BEGIN):
        self.kind = kind
        self.stream = FakeStream(script)
        self.accepted = False
        self.rejected_with: Optional[str] = None

    def accept(self) -> FakeStream:
        assert not self.accepted and self.rejected_with is None, "request consumed twice"
        self.accepted = True
        return self.stream

    def reject(self, reason: str) -> None:
        assert not self.accepted and self.rejected_with is None, "request consumed twice"
        self.rejected_with = reason


class FakeServiceHandle:
    def __init__(self, address: Optional[str], statuses: Iterable[BootstrapStatus] = ()):
        self._address = address
        self.statuses = list(statuses)
        self.consumed = 0

    @property
    def address(self) -> Optional[str]:
        return self._address

    def status_events(self):
        for status in self.statuses:
            self.consumed += 1
            yield status


class FakeTransport:
    """ServiceTransport returning a prepared handle, or None when disabled."""

    def __init__(self, handle: Optional[FakeServiceHandle] = None, requests: Iterable = (), disabled: bool = False):
        self.handle = handle
        self.requests = requests
        self.disabled = disabled
        self.launches = []

    def launch_service(self, config, key):
        self.launches.append((config, key))
        if self.disabled:
            return None
        return self.handle, self.requests


class FakeConnector:
    """
    Connector serving canned responses per (host, path).

    Records every connect() so tests can assert nothing was dialled.
    """

    def __init__(self, responses: Optional[dict] = None):
        self.responses = responses or {}
        self.connections = []
        self.streams: List[FakeStream] = []

    def connect(self, host: str, port: int) -> FakeStream:
        self.connections.append((host, port))
        connector = self

        class _RoutedStream(FakeStream):
            def flush(self):
                super().flush()
                request_line = bytes(self.written).split(b"\r\n", 1)[0].decode()
                path = request_line.split()[1]
                script = connector.responses[(host, path)]
                self.script = list(script) if isinstance(script, list) else [script]

        stream = _RoutedStream()
        self.streams.append(stream)
        return stream


class InlinePool:
    """Pool stand-in that runs each task immediately on the caller's thread."""

    def __init__(self):
        self.started = False
        self.shutdown_calls = []
        self.submitted = 0

    def start(self):
        self.started = True

    def submit(self, func, args=(), kwargs=None):
        self.submitted += 1
        func(*args, **(kwargs or {}))

    def shutdown(self, wait=True, timeout=None):
        self.shutdown_calls.append(wait)


def ok_response(body: bytes, content_type: str = "text/plain") -> bytes:
    return (
        b"HTTP/1.1 200 OK\r\n"
        + f"Content-Length: {len(body)}\r\n".encode()
        + f"Content-Type: {content_type}\r\n".encode()
        + b"Connection: close\r\n\r\n"
        + body
    )


def end_misc_error() -> BaseException:
    """What the stream adapter raises when the peer closes with END MISC."""
    return classify_transport_error(OSError("stream closed: END cell with reason MISC"))


# =============================================================================
# FIXTURES
# =============================================================================

ONION_HOST = "pg6mmjiyjmcrsslvykfwnntlaru7p5svn6y2ymmju6nubxndf4pscryd.onion"


@pytest.fixture
def onion_host() -> str:
    return ONION_HOST


@pytest.fixture
def docroot(tmp_path: Path) -> Path:
    """Document root holding both index files."""
    (tmp_path / "index.html").write_bytes(b"<h1>hello</h1>")
    (tmp_path / "index.txt").write_bytes(b"hello")
    return tmp_path


@pytest.fixture
def access_log() -> logging.Logger:
    """Isolated logger for access lines, so tests can capture them with caplog."""
    logger = logging.getLogger("tests.access")
    logger.setLevel(logging.INFO)
    logger.propagate = True
    return logger

