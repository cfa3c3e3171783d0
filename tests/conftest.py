"""
Shared test fixtures for pi3g-netconf tests.
"""

import subprocess
from pathlib import Path

import pytest
import structlog

from netconf.core import commands
from netconf.core.config import DEFAULT_INTERFACES, Config

TORRC = """\
## Configuration file for a typical Tor user
SocksPort 9050
VirtualAddrNetworkIPv4 10.192.0.0/10
AutomapHostsOnResolve 1
#TransPort 192.168.42.1:9040
#DNSPort 192.168.42.1:5353
#TransPort 192.168.43.1:9040
#DNSPort 192.168.43.1:5353
"""


@pytest.fixture(autouse=True)
def reset_logging():
    """Undo configure_logging() between tests."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def torrc_file(tmp_path):
    """A torrc with both subnets unbound."""
    path = tmp_path / "torrc"
    path.write_text(TORRC)
    return path


@pytest.fixture
def make_config(tmp_path, torrc_file):
    """Factory for a Config that only touches tmp_path and never sleeps."""

    def _make(**overrides) -> Config:
        settings = {
            "interfaces": dict(DEFAULT_INTERFACES),
            "torrc": torrc_file,
            "lock": tmp_path / "lock",
            "log": tmp_path / "netconf.log",
            "settle_delay": 0,
        }
        settings.update(overrides)
        return Config(**settings)

    return _make


class CommandRecorder:
    """Stands in for subprocess.run, recording argv lists."""

    def __init__(self):
        self.calls: list[list[str]] = []
        self.failing: set[str] = set()

    def __call__(self, argv, **kwargs):
        self.calls.append(list(argv))
        joined = " ".join(argv)
        if any(f in joined for f in self.failing):
            return subprocess.CompletedProcess(argv, 1, stdout="boom\n")
        return subprocess.CompletedProcess(argv, 0, stdout="")

    def fail(self, fragment: str) -> None:
        """Make every command containing fragment exit 1."""
        self.failing.add(fragment)

    @property
    def commands(self) -> list[str]:
        """Calls as strings with the binary reduced to its basename."""
        return [" ".join([Path(c[0]).name, *c[1:]]) for c in self.calls]


@pytest.fixture
def recorder(monkeypatch):
    """Record service/ip invocations instead of running them."""
    rec = CommandRecorder()
    monkeypatch.setattr(commands.subprocess, "run", rec)
    return rec
