"""
Time Utilities for Freebox Status Monitor
=========================================

The Freebox API reports timestamps as Unix epoch seconds. This module turns
them into timezone-aware datetimes and back into serializable forms.

License: MIT
"""

import logging
from datetime import datetime, timezone
from typing import Any, Optional

logger = logging.getLogger(__name__)


def parse_epoch(value: Any) -> Optional[datetime]:
    """
    Parse an epoch-seconds value from the router into an aware UTC datetime.

    Args:
        value: int, float or numeric string

    Returns:
        datetime object or None if parsing fails
    """
    if value is None or isinstance(value, bool):
        return None

    try:
        return datetime.fromtimestamp(float(value), tz=timezone.utc)
    except (TypeError, ValueError, OverflowError, OSError) as e:
        logger.debug(f"Failed to parse epoch timestamp '{value}': {e}")
        return None


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def datetime_to_iso8601(dt: datetime) -> str:
    """
    Convert datetime to ISO8601 string format.

    Args:
        dt: datetime object

    Returns:
        ISO8601 formatted string (e.g., "2024-05-01T12:00:30+00:00")
    """
    return dt.isoformat()


def to_json_value(value: Any) -> Any:
    """Convert a published channel value into something json.dumps accepts."""
    if isinstance(value, datetime):
        return datetime_to_iso8601(value)
    return value


__all__ = [
    "datetime_to_iso8601",
    "parse_epoch",
    "to_json_value",
    "utc_now",
]
