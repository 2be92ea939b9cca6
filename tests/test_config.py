"""Tests for configuration dataclasses."""

import pytest

from freebox_status.config import BridgeConfig, NetDeviceConfig, NetInterfaceConfig, PhoneConfig
from freebox_status.exceptions import FreeboxConfigurationError


@pytest.mark.unit
class TestBridgeConfig:
    def test_defaults(self):
        config = BridgeConfig(app_token="token")

        assert config.host == "mafreebox.freebox.fr"
        assert config.refresh_interval == 30
        assert config.base_url == "https://mafreebox.freebox.fr:443"

    def test_plain_http(self):
        assert BridgeConfig(app_token="token", port=80, use_https=False).base_url == "http://mafreebox.freebox.fr:80"

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"app_token": ""},
            {"app_token": "t", "host": ""},
            {"app_token": "t", "port": 0},
            {"app_token": "t", "port": 70000},
            {"app_token": "t", "max_retries": -1},
            {"app_token": "t", "refresh_interval": "30"},
        ],
    )
    def test_invalid(self, kwargs):
        with pytest.raises(FreeboxConfigurationError):
            BridgeConfig(**kwargs)


@pytest.mark.unit
class TestPhoneConfig:
    def test_from_mapping_defaults(self):
        config = PhoneConfig.from_mapping({})

        assert config.refresh_phone_interval == 2
        assert config.refresh_phone_calls_interval == 60

    def test_from_mapping(self):
        config = PhoneConfig.from_mapping({"refreshPhoneInterval": 5, "refreshPhoneCallsInterval": 0})

        assert config.refresh_phone_interval == 5
        assert config.refresh_phone_calls_interval == 0

    @pytest.mark.parametrize("value", ["5", 2.5, None, True])
    def test_non_integer_interval(self, value):
        with pytest.raises(FreeboxConfigurationError) as exc_info:
            PhoneConfig.from_mapping({"refreshPhoneInterval": value})

        assert exc_info.value.details["parameter"] == "refresh_phone_interval"


@pytest.mark.unit
class TestNetConfigs:
    def test_mac_normalized(self):
        config = NetDeviceConfig.from_mapping({"macAddress": "3c-22-fb-11-22-33"})

        assert config.tracked_address == "3C:22:FB:11:22:33"

    @pytest.mark.parametrize("mac", ["", "3C:22:FB:11:22", "ZZ:22:FB:11:22:33", None])
    def test_invalid_mac(self, mac):
        with pytest.raises(FreeboxConfigurationError):
            NetDeviceConfig.from_mapping({"macAddress": mac})

    @pytest.mark.parametrize("ip", ["192.168.1.20", "fe80::224:d4ff:feaa:bbcc"])
    def test_ip(self, ip):
        assert NetInterfaceConfig.from_mapping({"ipAddress": ip}).tracked_address == ip

    def test_ipv6_normalized(self):
        config = NetInterfaceConfig.from_mapping({"ipAddress": " FE80:0:0:0:224:D4FF:FEAA:BBCC "})

        assert config.tracked_address == "fe80::224:d4ff:feaa:bbcc"

    @pytest.mark.parametrize("ip", ["", "192.168.1.300", "printer.lan"])
    def test_invalid_ip(self, ip):
        with pytest.raises(FreeboxConfigurationError):
            NetInterfaceConfig.from_mapping({"ipAddress": ip})
