"""
Device Reachability Matching for Freebox Status Monitor
=======================================================

Finds a tracked device in the router's LAN host list, either by MAC address
(a whole host) or by IP address (one network-layer entry of a host).

"""

import enum
import ipaddress
import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from .models import LanHost
from .publisher import PROPERTY_VENDOR, REACHABLE, StatePublisher

logger = logging.getLogger("freebox-status")


class MatchMode(enum.Enum):
    BY_MAC = "mac"
    BY_IP = "ip"


@dataclass(frozen=True)
class ReachabilityMatch:
    reachable: bool
    vendor: Optional[str]


def normalize_mac(mac: str) -> str:
    return mac.strip().upper().replace("-", ":")


def normalize_ip(addr: str) -> str:
    """Canonical text form of an IP address (lower case, compressed IPv6)."""
    try:
        return str(ipaddress.ip_address(addr.strip()))
    except ValueError:
        return addr.strip()


def match_host(
    hosts: Iterable[LanHost], tracked_address: str, mode: MatchMode
) -> Optional[ReachabilityMatch]:
    """
    Look up ``tracked_address`` in a LAN host snapshot.

    BY_MAC: the first host with that MAC wins and gives its own reachability
    and vendor.

    BY_IP: every L3 entry with that address is considered. Reachability is
    per address, so a host reachable on another address does not count. The
    first reachable entry stops the scan and gives the owning host's vendor.
    Matching entries that are all unreachable give ``(False, None)``.

    Returns:
        ReachabilityMatch, or None if the address is not in the snapshot
    """
    if mode is MatchMode.BY_MAC:
        wanted = normalize_mac(tracked_address)
        for host in hosts:
            if host.mac is not None and normalize_mac(host.mac) == wanted:
                return ReachabilityMatch(reachable=host.reachable, vendor=host.vendor_name)
        return None

    wanted = normalize_ip(tracked_address)
    found = False
    for host in hosts:
        for l3 in host.l3connectivities:
            if l3.addr is None or normalize_ip(l3.addr) != wanted:
                continue
            found = True
            if l3.reachable:
                return ReachabilityMatch(reachable=True, vendor=host.vendor_name)

    if found:
        return ReachabilityMatch(reachable=False, vendor=None)
    return None


class ReachabilityTracker:
    """
    Publishes the reachability of one tracked address.

    A lookup miss leaves the last published state unchanged; repeated misses
    never turn into "unreachable".
    """

    def __init__(self, tracked_address: str, mode: MatchMode) -> None:
        self.tracked_address = tracked_address
        self.mode = mode

    def update(self, hosts: Iterable[LanHost], publisher: StatePublisher) -> Optional[ReachabilityMatch]:
        match = match_host(hosts, self.tracked_address, self.mode)
        if match is None:
            logger.debug(f"🔍 {self.tracked_address} not found in LAN hosts")
            return None

        logger.debug(f"🔍 {self.tracked_address} reachable={match.reachable} vendor={match.vendor!r}")
        publisher.publish(REACHABLE, match.reachable)
        if match.vendor:
            publisher.publish_if_changed(PROPERTY_VENDOR, match.vendor)
        return match


__all__ = [
    "MatchMode",
    "ReachabilityMatch",
    "ReachabilityTracker",
    "match_host",
    "normalize_ip",
    "normalize_mac",
]
