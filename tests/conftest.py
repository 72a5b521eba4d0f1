"""
Shared fixtures: an in-memory ledger, a sqlite-backed store in a temp dir,
and launch gates wired to fake device signals and transports.
"""
import pytest

import db
from launch_gate import LaunchGate
from ledger import ScoreLedger
from models import DeviceSignals, ProbeResult


class FakeTransport:
    """Records every probe and answers with a fixed status or raises."""

    def __init__(self, status_code=None, error=None):
        self.status_code = status_code
        self.error = error
        self.calls = []

    def __call__(self, url):
        self.calls.append(url)
        if self.error is not None:
            raise self.error
        return ProbeResult(status_code=self.status_code)


def signals(battery_level=50, vpn_active=False):
    return lambda: DeviceSignals(battery_level=battery_level, vpn_active=vpn_active)


@pytest.fixture
def ledger():
    return ScoreLedger()


@pytest.fixture
def store(tmp_path, monkeypatch):
    monkeypatch.setattr(db, "DB_PATH", tmp_path / "test.db")
    db.init_db()
    return db


@pytest.fixture
def make_gate():
    def _make(battery_level=50, vpn_active=False, status_code=None, error=None,
              probe_url="https://example.com/probe"):
        transport = FakeTransport(status_code=status_code, error=error)
        gate = LaunchGate(signals(battery_level, vpn_active), probe_url, transport=transport)
        return gate, transport
    return _make
