"""
=============================================================================
CONFIGURATION
=============================================================================

Centralized configuration for both halves of the tool: the onion-service
server and the fetch client.

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION HIERARCHY                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Priority (highest to lowest):                                     │
    │                                                                      │
    │   1. Command-line arguments                                         │
    │      └── onionserve server --docroot ./site                         │
    │                                                                      │
    │   2. Environment variables                                          │
    │      └── ONIONSERVE_DOCROOT=./site onionserve server                │
    │                                                                      │
    │   3. Default values (in these dataclasses)                          │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Keys are secrets, so ONIONSERVE_KEY is the recommended way to pass one:
it keeps the key out of shell history and `ps` output.

=============================================================================
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


# Fixed protocol constants shared by server and client
SERVICE_NICKNAME = "onionserve"
VIRTUAL_PORT = 80
READ_BUFFER_SIZE = 8192
DEFAULT_CONNECT_TIMEOUT = 120.0

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _validate_log_level(level: str) -> None:
    if level.upper() not in _LOG_LEVELS:
        raise ValueError(f"Invalid log level: {level}. Must be one of {', '.join(_LOG_LEVELS)}.")


@dataclass
class ServerConfig:
    """
    Configuration for the onion-service server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    SERVICE IDENTITY
    - key (optional private key text, deterministic address)
    - nickname, virtual_port

    CONTENT
    - docroot

    RUNTIME
    - tor_cmd, buffer_size, max_workers, log_level

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # SERVICE IDENTITY
    # ─────────────────────────────────────────────────────────────────────

    key: Optional[str] = None
    """
    Private key text (ed25519-sk:<hex>).
    None = a fresh ephemeral key, so a new address on every run.
    """

    nickname: str = SERVICE_NICKNAME

    virtual_port: int = VIRTUAL_PORT
    """Port clients dial on the onion address."""

    # ─────────────────────────────────────────────────────────────────────
    # CONTENT
    # ─────────────────────────────────────────────────────────────────────

    docroot: str = "public"
    """
    Directory holding index.html / index.txt.
    Fixed at startup, never re-read as configuration afterwards.
    """

    # ─────────────────────────────────────────────────────────────────────
    # RUNTIME
    # ─────────────────────────────────────────────────────────────────────

    tor_cmd: str = "tor"
    """Tor executable launched for this run."""

    buffer_size: int = READ_BUFFER_SIZE
    """Size of the single read used to get the request line."""

    max_workers: Optional[int] = None
    """Upper bound on handler threads. None = grow with demand."""

    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        ONIONSERVE_KEY        Private key for a deterministic address
        ONIONSERVE_DOCROOT    Directory to serve (default: public)
        ONIONSERVE_TOR_CMD    Tor executable (default: tor)
        ONIONSERVE_LOG_LEVEL  Logging level (default: INFO)

        =====================================================================
        """
        return cls(
            key=os.getenv("ONIONSERVE_KEY") or None,
            docroot=os.getenv("ONIONSERVE_DOCROOT", "public"),
            tor_cmd=os.getenv("ONIONSERVE_TOR_CMD", "tor"),
            log_level=os.getenv("ONIONSERVE_LOG_LEVEL", "INFO"),
        )

    @property
    def docroot_path(self) -> Path:
        return Path(self.docroot)

    def validate(self) -> None:
        """
        Validate configuration values.

        Runs at startup, before Tor is launched, so a typo in the docroot
        costs nothing instead of a full bootstrap.
        """
        if not self.docroot_path.is_dir():
            raise ValueError(f"docroot is not a directory: {self.docroot}")

        if not 0 < self.virtual_port < 65536:
            raise ValueError(f"Invalid virtual port: {self.virtual_port}. Must be 1-65535.")

        if self.buffer_size < 1024:
            raise ValueError("buffer_size must be >= 1024")

        if self.max_workers is not None and self.max_workers < 1:
            raise ValueError("max_workers must be >= 1")

        _validate_log_level(self.log_level)


@dataclass
class ClientConfig:
    """
    Configuration for the fetch client.

    Host precedence when resolving targets: the address derived from `key`,
    then `address`, then none (targets must be full URLs).
    """

    key: Optional[str] = None
    """Public key text (ed25519-pk:<hex>) or a bare .onion address."""

    address: Optional[str] = None
    """Explicit host such as xxxx.onion."""

    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT
    """
    Upper bound on establishing each outbound stream, in seconds.
    Reading an open stream is never bounded.
    """

    tor_cmd: str = "tor"

    log_level: str = "WARNING"

    @classmethod
    def from_env(cls) -> "ClientConfig":
        """
        Create configuration from environment variables.

        ONIONSERVE_KEY              Public key to derive the host from
        ONIONSERVE_CONNECT_TIMEOUT  Connect timeout in seconds (default: 120)
        ONIONSERVE_TOR_CMD          Tor executable (default: tor)
        ONIONSERVE_LOG_LEVEL        Logging level (default: WARNING)
        """
        return cls(
            key=os.getenv("ONIONSERVE_KEY") or None,
            connect_timeout=float(os.getenv("ONIONSERVE_CONNECT_TIMEOUT", str(DEFAULT_CONNECT_TIMEOUT))),
            tor_cmd=os.getenv("ONIONSERVE_TOR_CMD", "tor"),
            log_level=os.getenv("ONIONSERVE_LOG_LEVEL", "WARNING"),
        )

    def validate(self) -> None:
        if self.connect_timeout <= 0:
            raise ValueError("connect_timeout must be > 0")

        _validate_log_level(self.log_level)


def log_level_number(level: str) -> int:
    """Translate a level name into the logging module's integer."""
    return getattr(logging, level.upper(), logging.INFO)


# =============================================================================
# MODULE SUMMARY
# =============================================================================
#
# 1. ServerConfig / ClientConfig dataclasses with typed defaults
# 2. from_env() for ONIONSERVE_* environment variables
# 3. validate() at startup (fail-fast, before Tor is launched)
# =============================================================================
