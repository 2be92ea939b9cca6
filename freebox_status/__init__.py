"""
Freebox Status Monitor
======================

Polls a Freebox router's management API for phone-line state, call history
and LAN hosts, and republishes that state as named channel values.

Quick Start:
    >>> from freebox_status import FreeboxClient, FreeboxMonitor, InMemoryStatePublisher, PhoneAdapter
    >>> client = FreeboxClient(app_token="your_app_token")
    >>> monitor = FreeboxMonitor(client)
    >>> publisher = InMemoryStatePublisher("phone")
    >>> monitor.add_adapter(PhoneAdapter("phone", publisher, monitor.scheduler))
    >>> with monitor:
    ...     time.sleep(120)
    >>> publisher.get("any.callnumber")

Polling:
    * Every poll runs at a fixed rate on a shared worker pool
    * A failed poll marks its device offline and is retried at its next
      nominal time; the next success brings the device back online
    * New calls are detected with a single end-time watermark per line

Error Handling:
    >>> from freebox_status import FreeboxAuthenticationError
    >>> try:
    ...     client.login()
    ... except FreeboxAuthenticationError as e:
    ...     print(f"Authentication failed: {e}")

License: MIT
"""

from .adapter import (
    AdapterState,
    BridgeStatus,
    NetDeviceAdapter,
    NetInterfaceAdapter,
    PhoneAdapter,
    PollingTask,
    StatusReason,
)
from .calls import CallHistoryTracker, process_new_calls
from .client.main import FreeboxClient
from .config import BridgeConfig, NetDeviceConfig, NetInterfaceConfig, PhoneConfig
from .exceptions import (
    FreeboxAPIError,
    FreeboxAuthenticationError,
    FreeboxConfigurationError,
    FreeboxConnectionError,
    FreeboxError,
    FreeboxHTTPError,
    FreeboxParsingError,
    FreeboxTimeoutError,
    FreeboxTransportError,
)
from .models import CallEntry, ChannelUpdate, LanHost, LanHostL3Connectivity, PhoneStatus
from .monitor import FreeboxMonitor
from .publisher import InMemoryStatePublisher, StatePublisher
from .reachability import MatchMode, ReachabilityMatch, match_host
from .scheduler import PollScheduler, ScheduledPoll

__version__ = "1.0.0"
__license__ = "MIT"

__all__ = [
    "AdapterState",
    "BridgeConfig",
    "BridgeStatus",
    "CallEntry",
    "CallHistoryTracker",
    "ChannelUpdate",
    "FreeboxAPIError",
    "FreeboxAuthenticationError",
    "FreeboxClient",
    "FreeboxConfigurationError",
    "FreeboxConnectionError",
    "FreeboxError",
    "FreeboxHTTPError",
    "FreeboxMonitor",
    "FreeboxParsingError",
    "FreeboxTimeoutError",
    "FreeboxTransportError",
    "InMemoryStatePublisher",
    "LanHost",
    "LanHostL3Connectivity",
    "MatchMode",
    "NetDeviceAdapter",
    "NetDeviceConfig",
    "NetInterfaceAdapter",
    "NetInterfaceConfig",
    "PhoneAdapter",
    "PhoneConfig",
    "PhoneStatus",
    "PollScheduler",
    "PollingTask",
    "ReachabilityMatch",
    "ScheduledPoll",
    "StatePublisher",
    "StatusReason",
    "__license__",
    "__version__",
    "match_host",
    "process_new_calls",
]
