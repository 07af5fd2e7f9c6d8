"""
Unit tests for the private tor process and its temporary DataDirectory.
"""

import os

import pytest
import stem.process

from onionserve.errors import TransportError
from onionserve.tor.process import launched_tor


class FakeTorProcess:
    """Records whether the DataDirectory still existed at each step."""

    def __init__(self, data_dir):
        self.data_dir = data_dir
        self.calls = []

    def terminate(self):
        self.calls.append(("terminate", os.path.isdir(self.data_dir)))

    def wait(self):
        self.calls.append(("wait", os.path.isdir(self.data_dir)))
        return 0


@pytest.fixture
def fake_launch(monkeypatch):
    launched = []

    def launch_tor_with_config(config, tor_cmd, init_msg_handler, take_ownership):
        process = FakeTorProcess(config["DataDirectory"])
        launched.append((config, tor_cmd, process))
        return process

    monkeypatch.setattr(stem.process, "launch_tor_with_config", launch_tor_with_config)
    return launched


class TestLaunchedTor:
    """Tests for launched_tor()."""

    def test_runtime_ports_and_config(self, fake_launch):
        """Test tor gets loopback ports and a private DataDirectory."""
        with launched_tor("/opt/tor") as runtime:
            config, tor_cmd, _ = fake_launch[0]

            assert tor_cmd == "/opt/tor"
            assert config["DataDirectory"] == runtime.data_dir
            assert config["SocksPort"] == f"127.0.0.1:{runtime.socks_port}"
            assert config["ControlPort"] == f"127.0.0.1:{runtime.control_port}"
            assert os.path.isdir(runtime.data_dir)

    def test_process_stopped_before_directory_removed(self, fake_launch):
        """Test terminate and wait happen while the directory still exists."""
        with launched_tor() as runtime:
            data_dir = runtime.data_dir

        process = fake_launch[0][2]
        assert process.calls == [("terminate", True), ("wait", True)]
        assert not os.path.exists(data_dir)

    def test_cleanup_order_on_error(self, fake_launch):
        """Test the same order when the body raises."""
        with pytest.raises(RuntimeError, match="boom"):
            with launched_tor() as runtime:
                data_dir = runtime.data_dir
                raise RuntimeError("boom")

        process = fake_launch[0][2]
        assert process.calls == [("terminate", True), ("wait", True)]
        assert not os.path.exists(data_dir)

    def test_launch_failure(self, monkeypatch):
        """Test a missing tor binary becomes a TransportError and leaves nothing behind."""
        seen = []

        def launch_tor_with_config(config, **kwargs):
            seen.append(config["DataDirectory"])
            raise OSError("tor: not found")

        monkeypatch.setattr(stem.process, "launch_tor_with_config", launch_tor_with_config)

        with pytest.raises(TransportError, match="failed to start tor"):
            with launched_tor():
                pass

        assert not os.path.exists(seen[0])
