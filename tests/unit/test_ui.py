"""
Unit tests for terminal helpers and logging setup.
"""

import io
import logging
from datetime import datetime, timedelta, timezone

import pytest

from onionserve.ui import ACCESS_LOGGER_NAME, clf_timestamp, is_interactive, print_error, setup_logging


class FakeTTY(io.StringIO):
    def isatty(self):
        return True


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    access = logging.getLogger(ACCESS_LOGGER_NAME)
    package = logging.getLogger("onionserve")
    saved = (list(root.handlers), root.level, list(access.handlers), access.level, access.propagate)
    package_level = package.level
    yield
    package.setLevel(package_level)
    root.handlers[:], root.level = saved[0], saved[1]
    access.handlers[:], access.level, access.propagate = saved[2], saved[3], saved[4]


class TestTimestamps:
    """Tests for clf_timestamp()."""

    def test_format(self):
        """Test DD/Mon/YYYY:HH:MM:SS +0000."""
        moment = datetime(2026, 3, 7, 9, 5, 1, tzinfo=timezone.utc)

        assert clf_timestamp(moment) == "07/Mar/2026:09:05:01 +0000"

    def test_converted_to_utc(self):
        """Test other offsets are shown as UTC."""
        moment = datetime(2026, 3, 7, 11, 0, 0, tzinfo=timezone(timedelta(hours=2)))

        assert clf_timestamp(moment) == "07/Mar/2026:09:00:00 +0000"


class TestErrorOutput:
    """Tests for print_error()."""

    def test_plain_when_piped(self):
        """Test no escape codes off a terminal."""
        stream = io.StringIO()

        print_error(ValueError("bad docroot"), stream)

        assert stream.getvalue() == "error: bad docroot\n"

    def test_red_on_terminal(self):
        """Test the message is highlighted on a TTY."""
        stream = FakeTTY()

        print_error(ValueError("bad docroot"), stream)

        assert "\x1b[1;31merror: bad docroot\x1b[0m" in stream.getvalue()

    def test_is_interactive(self):
        """Test TTY detection."""
        assert is_interactive(FakeTTY())
        assert not is_interactive(io.StringIO())


class TestSetupLogging:
    """Tests for setup_logging()."""

    def test_status_and_access_formats(self, restore_logging):
        """Test status lines get a timestamp and access lines stay bare."""
        stream = io.StringIO()
        setup_logging(logging.INFO, stream)

        logging.getLogger("onionserve.server").info("Serving http://x.onion/")
        logging.getLogger(ACCESS_LOGGER_NAME).info('- - - [x] "GET / HTTP/1.1" 200 5')

        lines = stream.getvalue().splitlines()
        assert len(lines) == 2
        assert lines[0].startswith("[") and lines[0].endswith("Z] Serving http://x.onion/")
        assert lines[1] == '- - - [x] "GET / HTTP/1.1" 200 5'

    def test_access_logger_does_not_propagate(self, restore_logging):
        """Test access lines are written once."""
        setup_logging(logging.INFO, io.StringIO())

        assert logging.getLogger(ACCESS_LOGGER_NAME).propagate is False

    def test_repeated_setup_keeps_one_handler(self, restore_logging):
        """Test calling setup twice does not duplicate access lines."""
        stream = io.StringIO()
        setup_logging(logging.INFO, stream)
        setup_logging(logging.INFO, stream)

        logging.getLogger(ACCESS_LOGGER_NAME).info("line")

        assert stream.getvalue() == "line\n"
