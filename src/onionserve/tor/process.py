"""
=============================================================================
TOR PROCESS
=============================================================================

Each run gets its own tor process with its own DataDirectory, so two
copies of this tool on one machine never fight over a lock file.

=============================================================================
CLEANUP ORDER
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │   with TemporaryDirectory() as data_dir:        ◄── removed LAST    │
    │       process = launch tor(DataDirectory=data_dir)                  │
    │       try:                                                          │
    │           yield runtime                                              │
    │       finally:                                                      │
    │           process.terminate(); process.wait()   ◄── lock released   │
    └─────────────────────────────────────────────────────────────────────┘

tor holds a lock inside its DataDirectory, so the process must be gone
before the directory is removed. Nesting the two context managers this
way gives that order on every exit path, errors included.

=============================================================================
"""

import logging
import socket
import subprocess
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator

import stem.process

from ..errors import TransportError


logger = logging.getLogger(__name__)

LOOPBACK = "127.0.0.1"


@dataclass
class TorRuntime:
    """A running tor process and where to reach it."""

    socks_port: int
    control_port: int
    data_dir: str
    process: subprocess.Popen


def free_port(host: str = LOOPBACK) -> int:
    """Ask the OS for a currently unused TCP port."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind((host, 0))
        return s.getsockname()[1]


def _log_bootstrap(line: str) -> None:
    if "Bootstrapped" in line:
        logger.info(f"tor: {line.split('] ', 1)[-1]}")
    else:
        logger.debug(f"tor: {line}")


@contextmanager
def launched_tor(tor_cmd: str = "tor") -> Iterator[TorRuntime]:
    """
    Start a private tor instance and stop it on exit.

    Raises:
        TransportError: tor could not be started or did not bootstrap.
    """
    with tempfile.TemporaryDirectory(prefix="onionserve-") as data_dir:
        socks_port = free_port()
        control_port = free_port()

        logger.debug(f"Launching {tor_cmd} (socks {socks_port}, control {control_port})")
        try:
            process = stem.process.launch_tor_with_config(
                config={
                    "DataDirectory": data_dir,
                    "SocksPort": f"{LOOPBACK}:{socks_port}",
                    "ControlPort": f"{LOOPBACK}:{control_port}",
                    "CookieAuthentication": "1",
                },
                tor_cmd=tor_cmd,
                init_msg_handler=_log_bootstrap,
                take_ownership=True,
            )
        except OSError as e:
            raise TransportError(f"failed to start tor: {e}") from e

        try:
            yield TorRuntime(
                socks_port=socks_port,
                control_port=control_port,
                data_dir=data_dir,
                process=process,
            )
        finally:
            process.terminate()
            process.wait()
            logger.debug("tor stopped")
