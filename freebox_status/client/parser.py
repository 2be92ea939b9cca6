"""
Response Parser for Freebox Status Monitor
==========================================

This module turns Freebox OS API results into model objects.

"""

import logging
from typing import Any

from freebox_status.exceptions import FreeboxParsingError
from freebox_status.models import CallEntry, LanHost, LanHostL3Connectivity, PhoneStatus
from freebox_status.time_utils import parse_epoch

logger = logging.getLogger("freebox-status")


def _as_list(result: Any, payload_type: str) -> list:
    # The router omits "result" entirely when a list is empty
    if result is None:
        return []
    if not isinstance(result, list):
        raise FreeboxParsingError(
            f"Expected a list for {payload_type}",
            details={"payload_type": payload_type, "raw_data": str(result)[:200]},
        )
    return result


class FreeboxResponseParser:
    """Parses API results into structured data."""

    def parse_phone_status(self, result: Any) -> list[PhoneStatus]:
        """
        Parse ``/phone/`` into one PhoneStatus per line.

        Raises:
            FreeboxParsingError: If a line lacks its hook or ringing flag
        """
        lines = []
        for raw in _as_list(result, "phone_status"):
            try:
                lines.append(
                    PhoneStatus(
                        on_hook=bool(raw["on_hook"]),
                        is_ringing=bool(raw["is_ringing"]),
                        line_id=raw.get("id"),
                    )
                )
            except (KeyError, TypeError, AttributeError) as e:
                raise FreeboxParsingError(
                    "Malformed phone status",
                    details={"payload_type": "phone_status", "parse_error": str(e), "raw_data": str(raw)[:200]},
                ) from e
        return lines

    def parse_call_entries(self, result: Any) -> list[CallEntry]:
        """
        Parse ``/call/log/`` into CallEntry objects.

        Entries without a usable timestamp are skipped.
        """
        entries = []
        for raw in _as_list(result, "call_log"):
            if not isinstance(raw, dict):
                logger.warning(f"Skipping malformed call log entry: {raw!r}")
                continue

            timestamp = parse_epoch(raw.get("datetime"))
            if timestamp is None:
                logger.warning(f"Skipping call log entry without timestamp: {raw.get('id')}")
                continue

            try:
                duration = int(raw.get("duration") or 0)
            except (TypeError, ValueError):
                logger.warning(f"Invalid duration {raw.get('duration')!r} for call {raw.get('id')}, using 0")
                duration = 0

            number = str(raw.get("number") or "")
            entries.append(
                CallEntry(
                    number=number,
                    name=str(raw.get("name") or number),
                    call_type=str(raw.get("type") or ""),
                    timestamp=timestamp,
                    duration=duration,
                )
            )

        logger.debug(f"Parsed {len(entries)} call log entries")
        return entries

    def parse_lan_hosts(self, result: Any) -> list[LanHost]:
        """Parse ``/lan/browser/<interface>/`` into LanHost objects."""
        hosts = []
        for raw in _as_list(result, "lan_hosts"):
            if not isinstance(raw, dict):
                logger.warning(f"Skipping malformed LAN host: {raw!r}")
                continue

            l2ident = raw.get("l2ident") or {}
            mac = l2ident.get("id") if l2ident.get("type", "mac_address") == "mac_address" else None

            hosts.append(
                LanHost(
                    mac=mac.upper() if mac else None,
                    vendor_name=str(raw.get("vendor_name") or ""),
                    reachable=bool(raw.get("reachable", False)),
                    l3connectivities=tuple(
                        LanHostL3Connectivity(
                            addr=l3.get("addr"),
                            reachable=bool(l3.get("reachable", False)),
                            af=l3.get("af"),
                        )
                        for l3 in raw.get("l3connectivities") or []
                        if isinstance(l3, dict)
                    ),
                    primary_name=raw.get("primary_name"),
                )
            )

        logger.debug(f"Parsed {len(hosts)} LAN hosts")
        return hosts


__all__ = ["FreeboxResponseParser"]
