import json
from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

import pytest

from freebox_status.models import CallEntry, LanHost, LanHostL3Connectivity, PhoneStatus
from freebox_status.publisher import InMemoryStatePublisher
from freebox_status.scheduler import PollScheduler

T0 = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_call(number="0612345678", call_type="accepted", start=T0, duration=30, name=None):
    """Build a CallEntry starting at ``start`` (datetime or seconds offset from T0)."""
    if not isinstance(start, datetime):
        start = T0 + timedelta(seconds=start)
    return CallEntry(number=number, name=name or number, call_type=call_type, timestamp=start, duration=duration)


def api_response(result=None, success=True, status_code=200, **extra):
    """Mock requests.Response carrying a Freebox OS envelope."""
    envelope = {"success": success}
    if result is not None:
        envelope["result"] = result
    envelope.update(extra)
    return Mock(status_code=status_code, text=json.dumps(envelope))


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def scheduler(fake_clock):
    """Scheduler driven by the fake clock through run_pending()."""
    return PollScheduler(clock=fake_clock)


@pytest.fixture
def publisher():
    return InMemoryStatePublisher("test-thing", clock=lambda: 1714564800.0)


@pytest.fixture
def lan_hosts():
    """LAN snapshot: a laptop with two addresses and a phone that is offline."""
    return [
        LanHost(
            mac="00:24:D4:AA:BB:CC",
            vendor_name="Freebox SAS",
            reachable=True,
            l3connectivities=(
                LanHostL3Connectivity(addr="192.168.1.10", reachable=True, af="ipv4"),
                LanHostL3Connectivity(addr="192.168.1.11", reachable=False, af="ipv4"),
            ),
            primary_name="laptop",
        ),
        LanHost(
            mac="3C:22:FB:11:22:33",
            vendor_name="Apple, Inc.",
            reachable=False,
            l3connectivities=(LanHostL3Connectivity(addr="192.168.1.20", reachable=False, af="ipv4"),),
            primary_name="phone",
        ),
    ]


@pytest.fixture
def mock_client(lan_hosts):
    """Vendor client double with one idle phone line and an empty call log."""
    client = Mock()
    client.login.return_value = "session-token"
    client.get_phone_status.return_value = [PhoneStatus(on_hook=True, is_ringing=False, line_id=1)]
    client.get_call_entries.return_value = []
    client.get_lan_hosts.return_value = lan_hosts
    return client


@pytest.fixture
def mock_api_payloads():
    """Raw Freebox OS API results."""
    return {
        "login": {"logged_in": False, "challenge": "VzhbtpR4r8CLaJle2QgJBEkyd8JPb0zL"},
        "session": {
            "session_token": "35JYdQSvkcBYK84IFMU7H86clfhS75OzwlQrKlQN1gBch\\/Dd62RGzDpgC7YB9jB2",
            "challenge": "jdGL6CtuJ3Dm7p9nkcIQ8pjB+eLwr4Ya",
            "permissions": {"calls": True, "settings": False},
        },
        "phone": [{"id": 1, "is_ringing": False, "on_hook": True, "type": "fxs", "hardware_defect": False}],
        "call_log": [
            {
                "number": "0612345678",
                "type": "missed",
                "id": 11,
                "duration": 0,
                "datetime": 1714564800,
                "contact_id": 0,
                "line_id": 0,
                "name": "0612345678",
                "new": True,
            },
            {
                "number": "0145678901",
                "type": "accepted",
                "id": 12,
                "duration": 125,
                "datetime": 1714568400,
                "contact_id": 3,
                "line_id": 0,
                "name": "Alice",
                "new": False,
            },
        ],
        "lan_hosts": [
            {
                "id": "ether-00:24:d4:aa:bb:cc",
                "primary_name": "laptop",
                "host_type": "workstation",
                "l2ident": {"id": "00:24:d4:aa:bb:cc", "type": "mac_address"},
                "vendor_name": "Freebox SAS",
                "reachable": True,
                "l3connectivities": [
                    {"addr": "192.168.1.10", "af": "ipv4", "active": True, "reachable": True},
                    {"addr": "fe80::224:d4ff:feaa:bbcc", "af": "ipv6", "active": False, "reachable": False},
                ],
            }
        ],
    }
