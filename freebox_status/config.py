"""
Configuration for Freebox Status Monitor
========================================

Each thing kind has its own configuration dataclass, validated once when it
is built. Invalid values raise FreeboxConfigurationError so that a task which
could never succeed is not scheduled.

License: MIT
"""

import ipaddress
import re
from dataclasses import dataclass
from typing import Any, Mapping

from .exceptions import FreeboxConfigurationError
from .reachability import normalize_mac

MAC_PATTERN = re.compile(r"^([0-9A-F]{2}:){5}[0-9A-F]{2}$")

DEFAULT_HOST = "mafreebox.freebox.fr"
DEFAULT_APP_ID = "freebox-status"
DEFAULT_REFRESH_INTERVAL = 30
DEFAULT_PHONE_INTERVAL = 2
DEFAULT_PHONE_CALLS_INTERVAL = 60


def _require_interval(name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise FreeboxConfigurationError(
            f"{name} must be an integer number of seconds",
            details={"parameter": name, "value": value},
        )
    return value


@dataclass(frozen=True)
class BridgeConfig:
    """
    Connection settings for the router API.

    Attributes:
        host: Router hostname or IP address
        port: API port
        app_id: Application id the token was registered with
        app_token: Token granted on the router's front panel
        use_https: Use https (default) or plain http
        verify_ssl: Verify the router certificate
        timeout: (connect, read) timeout in seconds
        max_retries: Retry attempts for connection errors
        refresh_interval: LAN host poll period in seconds, 0 disables
    """

    app_token: str
    host: str = DEFAULT_HOST
    port: int = 443
    app_id: str = DEFAULT_APP_ID
    use_https: bool = True
    verify_ssl: bool = False
    timeout: tuple = (3, 10)
    max_retries: int = 2
    refresh_interval: int = DEFAULT_REFRESH_INTERVAL

    def __post_init__(self) -> None:
        if not self.app_token:
            raise FreeboxConfigurationError("An app token is required", details={"parameter": "app_token"})
        if not self.host:
            raise FreeboxConfigurationError("A router host is required", details={"parameter": "host"})
        if self.port < 1 or self.port > 65535:
            raise FreeboxConfigurationError(
                "Port must be between 1 and 65535", details={"parameter": "port", "value": self.port}
            )
        if self.max_retries < 0:
            raise FreeboxConfigurationError(
                "Retries cannot be negative", details={"parameter": "max_retries", "value": self.max_retries}
            )
        _require_interval("refresh_interval", self.refresh_interval)

    @property
    def base_url(self) -> str:
        scheme = "https" if self.use_https else "http"
        return f"{scheme}://{self.host}:{self.port}"


@dataclass(frozen=True)
class PhoneConfig:
    """Poll periods of a phone thing, in seconds. 0 or less disables a poll."""

    refresh_phone_interval: int = DEFAULT_PHONE_INTERVAL
    refresh_phone_calls_interval: int = DEFAULT_PHONE_CALLS_INTERVAL

    def __post_init__(self) -> None:
        _require_interval("refresh_phone_interval", self.refresh_phone_interval)
        _require_interval("refresh_phone_calls_interval", self.refresh_phone_calls_interval)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "PhoneConfig":
        """Build from thing configuration keys ``refreshPhoneInterval`` and ``refreshPhoneCallsInterval``."""
        return cls(
            refresh_phone_interval=raw.get("refreshPhoneInterval", DEFAULT_PHONE_INTERVAL),
            refresh_phone_calls_interval=raw.get("refreshPhoneCallsInterval", DEFAULT_PHONE_CALLS_INTERVAL),
        )


@dataclass(frozen=True)
class NetDeviceConfig:
    """A LAN device tracked by MAC address."""

    mac_address: str

    def __post_init__(self) -> None:
        if not self.mac_address:
            raise FreeboxConfigurationError("A MAC address is required", details={"parameter": "mac_address"})
        mac = normalize_mac(self.mac_address)
        if not MAC_PATTERN.match(mac):
            raise FreeboxConfigurationError(
                f"Invalid MAC address: {self.mac_address}",
                details={"parameter": "mac_address", "value": self.mac_address},
            )
        object.__setattr__(self, "mac_address", mac)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "NetDeviceConfig":
        return cls(mac_address=raw.get("macAddress") or "")

    @property
    def tracked_address(self) -> str:
        return self.mac_address


@dataclass(frozen=True)
class NetInterfaceConfig:
    """A LAN network interface tracked by IP address."""

    ip_address: str

    def __post_init__(self) -> None:
        if not self.ip_address:
            raise FreeboxConfigurationError("An IP address is required", details={"parameter": "ip_address"})
        try:
            address = ipaddress.ip_address(self.ip_address.strip())
        except ValueError as e:
            raise FreeboxConfigurationError(
                f"Invalid IP address: {self.ip_address}",
                details={"parameter": "ip_address", "value": self.ip_address},
            ) from e
        object.__setattr__(self, "ip_address", str(address))

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "NetInterfaceConfig":
        return cls(ip_address=raw.get("ipAddress") or "")

    @property
    def tracked_address(self) -> str:
        return self.ip_address


__all__ = [
    "BridgeConfig",
    "DEFAULT_HOST",
    "NetDeviceConfig",
    "NetInterfaceConfig",
    "PhoneConfig",
]
