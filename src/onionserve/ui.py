"""
Terminal-facing helpers: TTY detection, log setup, timestamps, error output.
"""

import logging
import sys
from datetime import datetime, timezone
from typing import Optional, TextIO


ACCESS_LOGGER_NAME = "onionserve.access"

_RED_BOLD = "\x1b[1;31m"
_RESET = "\x1b[0m"


def is_interactive(stream: Optional[TextIO] = None) -> bool:
    """True when `stream` (stderr by default) is a terminal."""
    stream = stream if stream is not None else sys.stderr
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


def clf_timestamp(now: Optional[datetime] = None) -> str:
    """Common Log Format timestamp: DD/Mon/YYYY:HH:MM:SS +0000 (always UTC)."""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).strftime("%d/%b/%Y:%H:%M:%S +0000")


class _UTCFormatter(logging.Formatter):
    """ISO-8601 UTC timestamps with milliseconds, e.g. 2026-10-18T09:01:02.345Z."""

    def formatTime(self, record, datefmt=None):
        moment = datetime.fromtimestamp(record.created, tz=timezone.utc)
        return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{int(record.msecs):03d}Z"


def setup_logging(level: int = logging.INFO, stream: Optional[TextIO] = None) -> None:
    """
    Configure logging for the CLI.

    ┌─────────────────────────────────────────────────────────────────────┐
    │  root               [2026-10-18T09:01:02.345Z] Serving http://...   │
    │  onionserve.access  - - - [18/Oct/2026:09:01:05 +0000] "GET / ..."  │
    └─────────────────────────────────────────────────────────────────────┘

    The access logger gets its own bare handler and does not propagate,
    so every access record is exactly one CLF line. logging.Handler
    serialises emits with its own lock, so lines from concurrent
    connections never interleave.
    """
    stream = stream if stream is not None else sys.stderr

    handler = logging.StreamHandler(stream)
    handler.setFormatter(_UTCFormatter("[%(asctime)s] %(message)s"))
    logging.basicConfig(level=level, handlers=[handler], force=True)
    logging.getLogger("onionserve").setLevel(level)

    access = logging.getLogger(ACCESS_LOGGER_NAME)
    for existing in list(access.handlers):
        access.removeHandler(existing)
    access_handler = logging.StreamHandler(stream)
    access_handler.setFormatter(logging.Formatter("%(message)s"))
    access.addHandler(access_handler)
    access.setLevel(logging.INFO)
    access.propagate = False


def print_error(error: BaseException, stream: Optional[TextIO] = None) -> None:
    """Print `error: <message>`, highlighted in bold red on a terminal."""
    stream = stream if stream is not None else sys.stderr
    message = f"error: {error}"
    if is_interactive(stream):
        message = f"{_RED_BOLD}{message}{_RESET}"
    print(message, file=stream)
