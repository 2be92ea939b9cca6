"""
Device Adapters for Freebox Status Monitor
==========================================

An adapter turns one configured thing (a phone line, a LAN device tracked by
MAC, a LAN interface tracked by IP) into channel values on its publisher.

Lifecycle is an explicit state machine:

    UNINITIALIZED --bridge online--> ONLINE
    any           --bridge offline--> OFFLINE_BRIDGE
    any           --no bridge------> OFFLINE_ERROR (BRIDGE_MISSING)
    any           --bad config-----> OFFLINE_ERROR (CONFIGURATION_ERROR)
    ONLINE        --poll failed----> OFFLINE_ERROR (COMMUNICATION_ERROR)
    OFFLINE_ERROR (COMMUNICATION_ERROR) --poll succeeded--> ONLINE

"""

import enum
import logging
import threading
from typing import Any, Callable, Dict, Generic, Mapping, Optional, TypeVar

from .calls import CallHistoryTracker
from .config import NetDeviceConfig, NetInterfaceConfig, PhoneConfig
from .exceptions import FreeboxConfigurationError, FreeboxError, FreeboxParsingError
from .models import LanHost, PhoneStatus
from .publisher import ONHOOK, RINGING, STATE_GROUP, StatePublisher, channel_id
from .reachability import MatchMode, ReachabilityMatch, ReachabilityTracker
from .scheduler import PollScheduler, ScheduledPoll
from .time_utils import utc_now

logger = logging.getLogger("freebox-status")

T = TypeVar("T")

INITIAL_DELAY = 1


class AdapterState(enum.Enum):
    UNINITIALIZED = "uninitialized"
    ONLINE = "online"
    OFFLINE_BRIDGE = "offline_bridge"
    OFFLINE_ERROR = "offline_error"


class StatusReason(enum.Enum):
    NONE = "NONE"
    BRIDGE_OFFLINE = "BRIDGE_OFFLINE"
    BRIDGE_MISSING = "BRIDGE_MISSING"
    COMMUNICATION_ERROR = "COMMUNICATION_ERROR"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"


class BridgeStatus(enum.Enum):
    ONLINE = "online"
    OFFLINE = "offline"


class DeviceAdapter:
    """
    Base class holding the lifecycle state machine.

    Subclasses implement ``_configure`` (build typed configuration, may raise
    FreeboxConfigurationError) and ``_on_bridge_online`` (start polling).

    Args:
        thing_id: Identifier used in logs and task names
        publisher: Where values and status go
        config: Raw thing configuration
    """

    def __init__(self, thing_id: str, publisher: StatePublisher, config: Optional[Mapping[str, Any]] = None) -> None:
        self.thing_id = thing_id
        self.publisher = publisher
        self.raw_config: Dict[str, Any] = dict(config or {})
        self.state = AdapterState.UNINITIALIZED
        self.reason = StatusReason.NONE
        self.client: Optional[Any] = None
        self._lock = threading.RLock()

    @property
    def online(self) -> bool:
        return self.state is AdapterState.ONLINE

    def initialize(self, bridge_status: Optional[BridgeStatus], client: Optional[Any] = None) -> None:
        """Called once when the thing is created."""
        logger.debug(f"initialize {self.thing_id}")
        self._apply_bridge_status(bridge_status, client)

    def bridge_status_changed(self, bridge_status: Optional[BridgeStatus], client: Optional[Any] = None) -> None:
        logger.debug(f"bridgeStatusChanged {self.thing_id}: {bridge_status}")
        self._apply_bridge_status(bridge_status, client)

    def _apply_bridge_status(self, bridge_status: Optional[BridgeStatus], client: Optional[Any]) -> None:
        if bridge_status is None or client is None:
            self._transition(AdapterState.OFFLINE_ERROR, StatusReason.BRIDGE_MISSING)
            return

        if bridge_status is not BridgeStatus.ONLINE:
            self._transition(AdapterState.OFFLINE_BRIDGE, StatusReason.BRIDGE_OFFLINE)
            return

        try:
            self._configure()
        except FreeboxConfigurationError as e:
            logger.error(f"⚙️ {self.thing_id} configuration error: {e}")
            self._transition(AdapterState.OFFLINE_ERROR, StatusReason.CONFIGURATION_ERROR)
            return

        self.client = client
        self._transition(AdapterState.ONLINE, StatusReason.NONE)
        self._on_bridge_online()

    def poll_succeeded(self, task_id: str) -> None:
        with self._lock:
            recovering = (
                self.state is AdapterState.OFFLINE_ERROR and self.reason is StatusReason.COMMUNICATION_ERROR
            )
            if recovering:
                logger.info(f"✅ {task_id} recovered, {self.thing_id} back online")
                self._transition(AdapterState.ONLINE, StatusReason.NONE)

    def poll_failed(self, task_id: str, error: Exception) -> None:
        with self._lock:
            if self.state is AdapterState.ONLINE:
                self._transition(AdapterState.OFFLINE_ERROR, StatusReason.COMMUNICATION_ERROR)

    def _transition(self, state: AdapterState, reason: StatusReason) -> None:
        with self._lock:
            if (self.state, self.reason) == (state, reason):
                return
            logger.debug(f"{self.thing_id}: {self.state.name} -> {state.name} ({reason.value})")
            self.state = state
            self.reason = reason
            self.publisher.set_online_status(state is AdapterState.ONLINE, reason.value)

    def _configure(self) -> None:
        pass

    def _on_bridge_online(self) -> None:
        pass

    def dispose(self) -> None:
        logger.debug(f"dispose {self.thing_id}")


class PollingTask(Generic[T]):
    """
    A periodic poll: fetch a value from the router, then emit it.

    Success and failure are reported to the owning adapter. Failures are
    re-raised so the scheduler logs them at the task boundary.
    """

    def __init__(
        self,
        task_id: str,
        adapter: DeviceAdapter,
        fetch: Callable[[], T],
        emit: Callable[[T], Any],
    ) -> None:
        self.task_id = task_id
        self.adapter = adapter
        self.fetch = fetch
        self.emit = emit

    def __call__(self) -> None:
        logger.debug(f"Polling {self.task_id}...")
        try:
            self.emit(self.fetch())
        except Exception as e:
            self.adapter.poll_failed(self.task_id, e)
            raise
        self.adapter.poll_succeeded(self.task_id)


class PhoneAdapter(DeviceAdapter):
    """
    Phone line thing: hook/ringing state and call history.

    Two tasks are scheduled when the bridge first comes online, each at its
    own configured period; a period of 0 disables that task.
    """

    def __init__(
        self,
        thing_id: str,
        publisher: StatePublisher,
        scheduler: PollScheduler,
        config: Optional[Mapping[str, Any]] = None,
        clock: Callable = utc_now,
    ) -> None:
        super().__init__(thing_id, publisher, config)
        self.scheduler = scheduler
        self.config: Optional[PhoneConfig] = None
        self.call_tracker: Optional[CallHistoryTracker] = None
        self.phone_job: Optional[ScheduledPoll] = None
        self.calls_job: Optional[ScheduledPoll] = None
        self._clock = clock

    def _configure(self) -> None:
        if self.config is None:
            self.config = PhoneConfig.from_mapping(self.raw_config)

    def _on_bridge_online(self) -> None:
        if self.config is None:
            raise FreeboxConfigurationError(
                f"{self.thing_id} has no phone configuration", details={"parameter": "config"}
            )
        if self.call_tracker is None:
            self.call_tracker = CallHistoryTracker(clock=self._clock)

        if self.phone_job is None or self.phone_job.cancelled:
            interval = self.config.refresh_phone_interval
            if interval > 0:
                logger.debug(f"Scheduling phone state job every {interval} seconds...")
            self.phone_job = self.scheduler.schedule(
                f"{self.thing_id}:phone-state",
                INITIAL_DELAY,
                interval,
                PollingTask(f"{self.thing_id}:phone-state", self, self.fetch_phone, self.publish_phone),
            )

        if self.calls_job is None or self.calls_job.cancelled:
            interval = self.config.refresh_phone_calls_interval
            if interval > 0:
                logger.debug(f"Scheduling phone calls job every {interval} seconds...")
            self.calls_job = self.scheduler.schedule(
                f"{self.thing_id}:phone-calls",
                INITIAL_DELAY,
                interval,
                PollingTask(f"{self.thing_id}:phone-calls", self, self.fetch_calls, self.publish_calls),
            )

    def fetch_phone(self) -> PhoneStatus:
        lines = self.client.get_phone_status()
        if not lines:
            raise FreeboxParsingError("Router reported no phone line", details={"payload_type": "phone_status"})
        return lines[0]

    def publish_phone(self, status: PhoneStatus) -> None:
        self.publisher.publish(channel_id(STATE_GROUP, ONHOOK), status.on_hook)
        self.publisher.publish(channel_id(STATE_GROUP, RINGING), status.is_ringing)

    def fetch_calls(self) -> list:
        return self.client.get_call_entries()

    def publish_calls(self, entries: list) -> list:
        if self.call_tracker is None:
            raise FreeboxError(f"{self.thing_id} has no call history yet; the bridge never came online")
        return self.call_tracker.update(entries, self.publisher)

    def dispose(self) -> None:
        logger.debug(f"dispose {self.thing_id}")
        self.scheduler.cancel(self.phone_job)
        self.scheduler.cancel(self.calls_job)
        self.phone_job = None
        self.calls_job = None


class NetAdapter(DeviceAdapter):
    """
    LAN thing whose reachability is looked up in the bridge's host snapshots.

    The tracked address is bound from configuration on first bridge-online and
    is never changed afterwards.
    """

    match_mode = MatchMode.BY_MAC
    config_class: Any = NetDeviceConfig

    def __init__(self, thing_id: str, publisher: StatePublisher, config: Optional[Mapping[str, Any]] = None) -> None:
        super().__init__(thing_id, publisher, config)
        self.tracker: Optional[ReachabilityTracker] = None

    @property
    def tracked_address(self) -> Optional[str]:
        return self.tracker.tracked_address if self.tracker else None

    def _configure(self) -> None:
        if self.tracker is None:
            config = self.config_class.from_mapping(self.raw_config)
            self.tracker = ReachabilityTracker(config.tracked_address, self.match_mode)

    def update_net_info(self, hosts: Optional[list[LanHost]]) -> Optional[ReachabilityMatch]:
        """Apply a LAN host snapshot. Ignored unless the adapter is online."""
        if hosts is None or not self.online or self.tracker is None:
            return None
        logger.debug(f"netAddress {self.tracker.tracked_address}")
        return self.tracker.update(hosts, self.publisher)


class NetDeviceAdapter(NetAdapter):
    match_mode = MatchMode.BY_MAC
    config_class = NetDeviceConfig


class NetInterfaceAdapter(NetAdapter):
    match_mode = MatchMode.BY_IP
    config_class = NetInterfaceConfig


__all__ = [
    "AdapterState",
    "BridgeStatus",
    "DeviceAdapter",
    "NetAdapter",
    "NetDeviceAdapter",
    "NetInterfaceAdapter",
    "PhoneAdapter",
    "PollingTask",
    "StatusReason",
]
