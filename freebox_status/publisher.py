"""
State Publisher for Freebox Status Monitor
==========================================

Adapters never talk to the host framework directly: they push decoded
values through a StatePublisher. Publishing the same channel value twice is
harmless; properties go through ``publish_if_changed`` so that downstream
listeners only see real changes.

"""

import logging
import threading
import time
from abc import ABC, abstractmethod
from collections import deque
from typing import Any, Callable, Deque, Dict, List, Optional

from .models import ChannelUpdate

logger = logging.getLogger("freebox-status")

# Channel namespace
STATE_GROUP = "state"
ONHOOK = "onhook"
RINGING = "ringing"

ANY = "any"
ACCEPTED = "accepted"
MISSED = "missed"
OUTGOING = "outgoing"
CALL_GROUPS = (ANY, ACCEPTED, MISSED, OUTGOING)

CALLNUMBER = "callnumber"
CALLDURATION = "callduration"
CALLTIMESTAMP = "calltimestamp"
CALLNAME = "callname"
CALLSTATUS = "callstatus"

REACHABLE = "reachable"
PROPERTY_VENDOR = "vendor"

DEFAULT_HISTORY_SIZE = 1000


def channel_id(group: Optional[str], name: str) -> str:
    """Build a channel id such as ``missed.callnumber`` (or ``reachable`` without a group)."""
    return f"{group}.{name}" if group else name


class StatePublisher(ABC):
    """Outbound side of an adapter: channel values, properties and online status."""

    @abstractmethod
    def publish(self, channel: str, value: Any) -> None:
        """Publish a channel value. Must be safe to call redundantly."""

    @abstractmethod
    def publish_if_changed(self, property_key: str, value: Any) -> bool:
        """Publish a property only if it differs from the last published value."""

    @abstractmethod
    def set_online_status(self, online: bool, reason: str) -> None:
        """Report the adapter's online status with a reason code."""


Listener = Callable[[ChannelUpdate], None]


class InMemoryStatePublisher(StatePublisher):
    """
    StatePublisher keeping the latest values in memory and notifying listeners.

    Both poll tasks of an adapter may publish concurrently, so all state is
    guarded by a lock. Listeners are called outside the lock.

    Args:
        name: Label used in log messages (typically the thing id)
        clock: Wall clock used to timestamp updates
        history_size: Number of most recent updates kept in ``history``
    """

    def __init__(
        self,
        name: str = "freebox",
        clock: Callable[[], float] = time.time,
        history_size: int = DEFAULT_HISTORY_SIZE,
    ) -> None:
        self.name = name
        self._clock = clock
        self._lock = threading.Lock()
        self._listeners: List[Listener] = []
        self.channels: Dict[str, Any] = {}
        self.properties: Dict[str, Any] = {}
        self.history: Deque[ChannelUpdate] = deque(maxlen=history_size)
        self.online: Optional[bool] = None
        self.status_reason: Optional[str] = None

    def add_listener(self, listener: Listener) -> None:
        with self._lock:
            self._listeners.append(listener)

    def publish(self, channel: str, value: Any) -> None:
        update = ChannelUpdate(channel=channel, value=value, timestamp=self._clock())
        with self._lock:
            self.channels[channel] = value
            self.history.append(update)
            listeners = list(self._listeners)

        logger.debug(f"📤 {self.name} {channel} = {value!r}")
        self._notify(listeners, update)

    def publish_if_changed(self, property_key: str, value: Any) -> bool:
        with self._lock:
            if property_key in self.properties and self.properties[property_key] == value:
                return False
            self.properties[property_key] = value
            update = ChannelUpdate(channel=property_key, value=value, timestamp=self._clock())
            self.history.append(update)
            listeners = list(self._listeners)

        logger.debug(f"📝 {self.name} property {property_key} = {value!r}")
        self._notify(listeners, update)
        return True

    def set_online_status(self, online: bool, reason: str) -> None:
        with self._lock:
            changed = (self.online, self.status_reason) != (online, reason)
            self.online = online
            self.status_reason = reason

        if changed:
            state = "ONLINE" if online else "OFFLINE"
            logger.info(f"🔌 {self.name} is {state} ({reason})")

    def get(self, channel: str, default: Any = None) -> Any:
        with self._lock:
            return self.channels.get(channel, default)

    def updates_for(self, channel: str) -> List[ChannelUpdate]:
        with self._lock:
            return [u for u in self.history if u.channel == channel]

    def _notify(self, listeners: List[Listener], update: ChannelUpdate) -> None:
        for listener in listeners:
            try:
                listener(update)
            except Exception as e:
                logger.error(f"Listener failed for {update.channel}: {e}")


__all__ = [
    "ACCEPTED",
    "ANY",
    "CALLDURATION",
    "CALLNAME",
    "CALLNUMBER",
    "CALLSTATUS",
    "CALLTIMESTAMP",
    "CALL_GROUPS",
    "InMemoryStatePublisher",
    "MISSED",
    "ONHOOK",
    "OUTGOING",
    "PROPERTY_VENDOR",
    "REACHABLE",
    "RINGING",
    "STATE_GROUP",
    "StatePublisher",
    "channel_id",
]
