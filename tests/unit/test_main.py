"""
Unit tests for the command-line interface.
"""

import pytest

from onionserve import __main__ as cli
from onionserve.tor.keys import address_from_key_text, parse_private_key


@pytest.fixture(autouse=True)
def no_logging_setup(monkeypatch):
    """Keep the CLI from reconfiguring the test run's logging."""
    monkeypatch.setattr(cli, "setup_logging", lambda *args, **kwargs: None)
    monkeypatch.delenv("ONIONSERVE_KEY", raising=False)


@pytest.fixture
def no_tor(monkeypatch):
    """Fail the test if anything tries to start tor."""
    def launched_tor(*args, **kwargs):
        raise AssertionError("tor must not be started")

    monkeypatch.setattr(cli, "launched_tor", launched_tor)


class TestGenerate:
    """Tests for `generate keypair`."""

    def test_prints_private_public_address(self, capsys):
        """Test three lines that belong to the same key."""
        assert cli.main(["generate", "keypair"]) == 0

        private_text, public_text, address = capsys.readouterr().out.splitlines()
        assert parse_private_key(private_text).onion_address == address
        assert address_from_key_text(public_text) == address


class TestGet:
    """Tests for `get`."""

    def test_invalid_url_rejected_before_tor(self, capsys, no_tor):
        """Test a non-onion target exits 1 without starting tor."""
        assert cli.main(["get", "http://example.com/"]) == 1

        assert "error: expected a .onion address, got: example.com" in capsys.readouterr().err

    def test_bad_address_option(self, capsys, no_tor):
        """Test a non-onion --address is rejected."""
        assert cli.main(["get", "--address", "example.com", "/"]) == 1

        assert "error:" in capsys.readouterr().err

    def test_bad_key(self, capsys, no_tor):
        """Test an undecodable public key is rejected."""
        assert cli.main(["get", "--key", "ed25519-pk:00", "/"]) == 1

        assert "error:" in capsys.readouterr().err

    def test_requires_urls(self):
        """Test argparse refuses `get` with no targets."""
        with pytest.raises(SystemExit):
            cli.main(["get"])


class TestServer:
    """Tests for `server`."""

    def test_missing_docroot(self, tmp_path, capsys, monkeypatch):
        """Test a bad docroot exits 1 with the message on stderr."""
        assert cli.main(["server", "--docroot", str(tmp_path / "missing")]) == 1

        err = capsys.readouterr().err
        assert err.startswith("error: docroot is not a directory")

    def test_options_override_env(self, tmp_path, monkeypatch):
        """Test --docroot beats ONIONSERVE_DOCROOT."""
        seen = {}

        def fake_run(server):
            seen["docroot"] = server.config.docroot

        monkeypatch.setenv("ONIONSERVE_DOCROOT", "/from/env")
        monkeypatch.setattr(cli.OnionServer, "run", fake_run)

        assert cli.main(["server", "--docroot", str(tmp_path)]) == 0
        assert seen["docroot"] == str(tmp_path)

    def test_interrupt_exits_130(self, monkeypatch):
        """Test Ctrl+C during bootstrap."""
        def interrupted(server):
            raise KeyboardInterrupt

        monkeypatch.setattr(cli.OnionServer, "run", interrupted)

        assert cli.main(["server"]) == 130
