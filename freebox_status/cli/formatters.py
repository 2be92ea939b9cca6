"""
Output Formatting Module

This module formats channel updates as JSON lines and prints the run summary.

License: MIT
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from freebox_status.adapter import DeviceAdapter
from freebox_status.models import ChannelUpdate
from freebox_status.time_utils import datetime_to_iso8601, to_json_value

logger = logging.getLogger(__name__)


def format_update(thing_id: str, update: ChannelUpdate) -> dict:
    """
    Convert a ChannelUpdate into a JSON-serializable dictionary.

    Args:
        thing_id: Thing the update belongs to
        update: Published value

    Returns:
        Dictionary with thing, channel, value and ISO8601 timestamp
    """
    return {
        "thing": thing_id,
        "channel": update.channel,
        "value": to_json_value(update.value),
        "timestamp": datetime_to_iso8601(datetime.fromtimestamp(update.timestamp, tz=timezone.utc)),
    }


def print_json_line(data: dict) -> None:
    """Print one JSON object on its own stdout line."""
    print(json.dumps(data), flush=True)


def print_summary_to_stderr(
    adapters: Iterable[DeviceAdapter], elapsed: float, performance: Optional[dict[str, Any]] = None
) -> None:
    """
    Print a human-readable summary to stderr (so JSON output to stdout is clean).

    Args:
        adapters: Adapters that ran
        elapsed: Run time in seconds
        performance: Optional PerformanceInstrumentation summary
    """
    logger.debug("Printing run summary to stderr")

    print("=" * 60, file=sys.stderr)
    print("FREEBOX STATUS SUMMARY", file=sys.stderr)
    print("=" * 60, file=sys.stderr)
    print(f"Run time: {elapsed:.1f}s", file=sys.stderr)

    for adapter in adapters:
        print(f"{adapter.thing_id}: {adapter.state.name} ({adapter.reason.value})", file=sys.stderr)

    if performance and "operation_breakdown" in performance:
        for operation, stats in performance["operation_breakdown"].items():
            print(
                f"  {operation}: {stats['count']} runs, "
                f"{stats['success_rate'] * 100:.0f}% ok, avg {stats['avg_time'] * 1000:.0f}ms",
                file=sys.stderr,
            )

    print("=" * 60, file=sys.stderr)


def print_error_suggestions(debug: bool = False) -> None:
    """
    Print helpful error suggestions.

    Args:
        debug: Whether debug mode is enabled
    """
    if debug:
        import traceback

        traceback.print_exc(file=sys.stderr)
    else:
        print("\nTroubleshooting suggestions:", file=sys.stderr)
        print("1. Verify the app token was granted on the router front panel", file=sys.stderr)
        print("2. Check that the router hostname is reachable", file=sys.stderr)
        print("3. Ensure the token has the 'calls' permission for call history", file=sys.stderr)
        print("4. Try with --debug for more detailed error information", file=sys.stderr)
