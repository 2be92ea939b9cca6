"""
Data Models for Freebox Status Monitor
======================================

This module contains all dataclasses used by the Freebox Status Monitor.
Router snapshots are frozen: once decoded from the API they are never
mutated, only replaced by the next poll.

"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Optional


@dataclass(frozen=True)
class CallEntry:
    """
    A single entry of the router's call log.

    Attributes:
        number: Remote phone number
        name: Contact name as known by the router (may equal the number)
        call_type: "accepted", "missed" or "outgoing" (other values are kept as-is)
        timestamp: Call start, timezone-aware
        duration: Call duration in seconds, 0 for unanswered calls

    Examples:
        >>> from datetime import datetime, timezone
        >>> entry = CallEntry(
        ...     number="0612345678",
        ...     name="Alice",
        ...     call_type="missed",
        ...     timestamp=datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc),
        ...     duration=30,
        ... )
        >>> entry.end_time
        datetime.datetime(2024, 5, 1, 12, 0, 30, tzinfo=datetime.timezone.utc)
    """

    number: str
    name: str
    call_type: str
    timestamp: datetime
    duration: int = 0

    @property
    def end_time(self) -> datetime:
        """Start time plus duration."""
        return self.timestamp + timedelta(seconds=self.duration)


@dataclass(frozen=True)
class PhoneStatus:
    """State of one phone line."""

    on_hook: bool
    is_ringing: bool
    line_id: Optional[int] = None


@dataclass(frozen=True)
class LanHostL3Connectivity:
    """A network-layer address attached to a LAN host."""

    addr: Optional[str]
    reachable: bool
    af: Optional[str] = None


@dataclass(frozen=True)
class LanHost:
    """
    A host seen by the router on its LAN.

    Attributes:
        mac: Layer-2 address, upper case ("00:24:D4:AA:BB:CC")
        vendor_name: Manufacturer derived from the MAC prefix, may be empty
        reachable: Host-level reachability
        l3connectivities: Per-address reachability records
        primary_name: Display name assigned on the router
    """

    mac: Optional[str]
    vendor_name: str = ""
    reachable: bool = False
    l3connectivities: tuple[LanHostL3Connectivity, ...] = ()
    primary_name: Optional[str] = None


@dataclass(frozen=True)
class ChannelUpdate:
    """One value published on a channel (or property)."""

    channel: str
    value: Any
    timestamp: float


@dataclass
class TimingMetrics:
    """Timing of a single poll run."""

    operation: str
    start_time: float
    end_time: float
    duration: float
    success: bool
    error_type: Optional[str] = None
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def duration_ms(self) -> float:
        """Duration in milliseconds."""
        return self.duration * 1000


__all__ = [
    "CallEntry",
    "ChannelUpdate",
    "LanHost",
    "LanHostL3Connectivity",
    "PhoneStatus",
    "TimingMetrics",
]
