"""
Bridge Monitor for Freebox Status Monitor
=========================================

FreeboxMonitor plays the bridge: it owns the API client and the scheduler,
tracks whether the router answers, and fans LAN host snapshots out to the
net adapters.

"""

import logging
from typing import Dict, List, Optional

from .adapter import BridgeStatus, DeviceAdapter, NetAdapter
from .client import FreeboxClient
from .exceptions import FreeboxError
from .instrumentation import PerformanceInstrumentation
from .models import LanHost
from .scheduler import PollScheduler, ScheduledPoll

logger = logging.getLogger("freebox-status")


class FreeboxMonitor:
    """
    Connects a FreeboxClient to a set of device adapters.

    Args:
        client: Vendor client
        scheduler: Scheduler shared by all adapters (created if omitted)
        refresh_interval: LAN host poll period in seconds, 0 disables
        instrumentation: Passed to a scheduler created here

    Example:
        >>> monitor = FreeboxMonitor(client)
        >>> monitor.add_adapter(PhoneAdapter("phone", publisher, monitor.scheduler))
        >>> with monitor:
        ...     time.sleep(60)
    """

    def __init__(
        self,
        client: FreeboxClient,
        scheduler: Optional[PollScheduler] = None,
        refresh_interval: int = 30,
        instrumentation: Optional[PerformanceInstrumentation] = None,
    ) -> None:
        self.client = client
        self.scheduler = scheduler or PollScheduler(instrumentation=instrumentation)
        self.refresh_interval = refresh_interval
        self.adapters: Dict[str, DeviceAdapter] = {}
        self.bridge_status: Optional[BridgeStatus] = None
        self.last_hosts: List[LanHost] = []
        self._lan_job: Optional[ScheduledPoll] = None

    def add_adapter(self, adapter: DeviceAdapter) -> DeviceAdapter:
        """Register an adapter; it is initialized against the current bridge status."""
        self.adapters[adapter.thing_id] = adapter
        if self.bridge_status is not None:
            adapter.initialize(self.bridge_status, self.client)
        return adapter

    @property
    def net_adapters(self) -> List[NetAdapter]:
        return [a for a in self.adapters.values() if isinstance(a, NetAdapter)]

    def connect(self) -> BridgeStatus:
        """
        Log in, propagate the bridge status and schedule the LAN host poll.

        Does not start the scheduler thread; see ``start``.
        """
        try:
            self.client.login()
            status = BridgeStatus.ONLINE
        except FreeboxError as e:
            logger.error(f"❌ Cannot open Freebox session: {e}")
            status = BridgeStatus.OFFLINE

        self._set_bridge_status(status)

        if self._lan_job is None or self._lan_job.cancelled:
            self._lan_job = self.scheduler.schedule("bridge:lan-hosts", 1, self.refresh_interval, self.poll_lan_hosts)
        return status

    def start(self) -> None:
        self.connect()
        self.scheduler.start()

    def poll_lan_hosts(self) -> List[LanHost]:
        """
        Fetch LAN hosts and hand them to every net adapter.

        A failure takes the bridge offline; the next success brings it back.
        """
        logger.debug("Polling LAN hosts...")
        try:
            hosts = self.client.get_lan_hosts()
        except FreeboxError:
            self._set_bridge_status(BridgeStatus.OFFLINE)
            raise

        self._set_bridge_status(BridgeStatus.ONLINE)
        self.last_hosts = hosts
        for adapter in self.net_adapters:
            adapter.update_net_info(hosts)
        return hosts

    def _set_bridge_status(self, status: BridgeStatus) -> None:
        if status is self.bridge_status:
            return
        logger.info(f"🌉 Bridge {self.bridge_status.name if self.bridge_status else 'UNKNOWN'} -> {status.name}")
        self.bridge_status = status
        for adapter in list(self.adapters.values()):
            adapter.bridge_status_changed(status, self.client)

    def stop(self) -> None:
        """Dispose every adapter, stop polling and close the client."""
        for adapter in list(self.adapters.values()):
            adapter.dispose()
        self.scheduler.cancel(self._lan_job)
        self._lan_job = None
        self.scheduler.shutdown()
        self.client.close()

    def __enter__(self) -> "FreeboxMonitor":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop()


__all__ = ["FreeboxMonitor"]
