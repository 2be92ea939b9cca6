"""Tests for FreeboxMonitor, the bridge between client and adapters."""

from unittest.mock import Mock, patch

import pytest
import requests

from conftest import T0, api_response
from freebox_status.adapter import AdapterState, BridgeStatus, NetDeviceAdapter, NetInterfaceAdapter, PhoneAdapter
from freebox_status.client import FreeboxClient
from freebox_status.exceptions import FreeboxAuthenticationError, FreeboxConnectionError, FreeboxHTTPError
from freebox_status.monitor import FreeboxMonitor
from freebox_status.publisher import InMemoryStatePublisher


@pytest.fixture
def monitor(mock_client, scheduler):
    return FreeboxMonitor(mock_client, scheduler=scheduler, refresh_interval=30)


def add_net_device(monitor, mac="00:24:D4:AA:BB:CC"):
    return monitor.add_adapter(
        NetDeviceAdapter(f"netdevice:{mac}", InMemoryStatePublisher(mac), config={"macAddress": mac})
    )


@pytest.mark.unit
class TestFreeboxMonitor:
    """Bridge status propagation and LAN host fan-out."""

    def test_adapter_waits_for_bridge_status(self, monitor):
        adapter = add_net_device(monitor)

        assert adapter.state is AdapterState.UNINITIALIZED

    def test_connect_brings_adapters_online(self, monitor, mock_client):
        adapter = add_net_device(monitor)

        status = monitor.connect()

        assert status is BridgeStatus.ONLINE
        assert monitor.bridge_status is BridgeStatus.ONLINE
        assert adapter.state is AdapterState.ONLINE
        mock_client.login.assert_called_once_with()

    def test_login_failure_takes_bridge_offline(self, monitor, mock_client):
        mock_client.login.side_effect = FreeboxAuthenticationError("Login refused: invalid token")
        adapter = add_net_device(monitor)

        status = monitor.connect()

        assert status is BridgeStatus.OFFLINE
        assert adapter.state is AdapterState.OFFLINE_BRIDGE

    def test_adapter_added_after_connect_is_initialized(self, monitor, mock_client):
        monitor.connect()

        adapter = add_net_device(monitor)

        assert adapter.state is AdapterState.ONLINE
        assert adapter.client is mock_client

    def test_lan_hosts_fan_out(self, monitor, scheduler, fake_clock):
        """Test each net adapter receives the LAN host snapshot."""
        device = add_net_device(monitor)
        interface = monitor.add_adapter(
            NetInterfaceAdapter("netinterface", InMemoryStatePublisher("if"), config={"ipAddress": "192.168.1.20"})
        )
        monitor.connect()

        fake_clock.advance(1)
        scheduler.run_pending()

        assert device.publisher.get("reachable") is True
        assert interface.publisher.get("reachable") is False
        assert len(monitor.last_hosts) == 2

    def test_lan_hosts_polled_at_refresh_interval(self, monitor, scheduler, fake_clock, mock_client):
        monitor.connect()

        fake_clock.advance(1)
        scheduler.run_pending()
        fake_clock.advance(30)
        scheduler.run_pending()

        assert mock_client.get_lan_hosts.call_count == 2

    def test_zero_refresh_interval_disables_lan_poll(self, mock_client, scheduler):
        monitor = FreeboxMonitor(mock_client, scheduler=scheduler, refresh_interval=0)

        monitor.connect()

        assert scheduler.tasks == []

    def test_lan_poll_failure_and_recovery(self, monitor, scheduler, fake_clock, mock_client, lan_hosts):
        """Test a failed LAN poll takes every adapter offline until the router answers again."""
        mock_client.get_lan_hosts.side_effect = [FreeboxConnectionError("Failed to connect"), lan_hosts]
        adapter = add_net_device(monitor)
        monitor.connect()

        fake_clock.advance(1)
        scheduler.run_pending()

        assert monitor.bridge_status is BridgeStatus.OFFLINE
        assert adapter.state is AdapterState.OFFLINE_BRIDGE
        assert adapter.publisher.get("reachable") is None

        fake_clock.advance(30)
        scheduler.run_pending()

        assert monitor.bridge_status is BridgeStatus.ONLINE
        assert adapter.state is AdapterState.ONLINE
        assert adapter.publisher.get("reachable") is True

    def test_bridge_recovery_does_not_duplicate_phone_polls(self, monitor, scheduler, fake_clock, mock_client, lan_hosts):
        mock_client.get_lan_hosts.side_effect = [FreeboxConnectionError("Failed to connect"), lan_hosts]
        phone = monitor.add_adapter(
            PhoneAdapter("phone", InMemoryStatePublisher("phone"), scheduler, clock=lambda: T0)
        )
        monitor.connect()

        fake_clock.advance(1)
        scheduler.run_pending()
        fake_clock.advance(30)
        scheduler.run_pending()

        assert phone.state is AdapterState.ONLINE
        assert sorted(t.task_id for t in scheduler.tasks) == [
            "bridge:lan-hosts",
            "phone:phone-calls",
            "phone:phone-state",
        ]

    def test_stop_disposes_adapters(self, monitor, scheduler, fake_clock):
        phone = monitor.add_adapter(
            PhoneAdapter("phone", InMemoryStatePublisher("phone"), scheduler, clock=lambda: T0)
        )
        monitor.connect()

        monitor.stop()
        fake_clock.advance(100)

        assert scheduler.run_pending() == 0
        assert phone.phone_job is None
        assert scheduler.tasks == []
        monitor.client.close.assert_called_once_with()


@pytest.mark.unit
@pytest.mark.client
class TestMonitorWithHttpClient:
    """Gateway errors from the HTTP layer reach the bridge status."""

    def test_exhausted_gateway_retries_take_bridge_offline(self, scheduler, mock_api_payloads):
        client = FreeboxClient(app_token="app-token")
        monitor = FreeboxMonitor(client, scheduler=scheduler)
        adapter = add_net_device(monitor)
        responses = [
            api_response(mock_api_payloads["login"]),
            api_response(mock_api_payloads["session"]),
            requests.exceptions.RetryError("Max retries exceeded (too many 503 error responses)"),
        ]

        with patch("requests.Session.request", side_effect=responses):
            assert monitor.connect() is BridgeStatus.ONLINE
            with pytest.raises(FreeboxHTTPError):
                monitor.poll_lan_hosts()

        assert monitor.bridge_status is BridgeStatus.OFFLINE
        assert adapter.state is AdapterState.OFFLINE_BRIDGE

    def test_gateway_error_during_login(self, scheduler):
        client = FreeboxClient(app_token="app-token")
        monitor = FreeboxMonitor(client, scheduler=scheduler)
        adapter = add_net_device(monitor)

        with patch("requests.Session.request", return_value=Mock(status_code=503, text="Service Unavailable")):
            status = monitor.connect()

        assert status is BridgeStatus.OFFLINE
        assert adapter.state is AdapterState.OFFLINE_BRIDGE
