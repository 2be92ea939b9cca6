"""
Call History Tracking for Freebox Status Monitor
================================================

The router only exposes its whole call log, so new calls are found by
remembering a single watermark: the end time of the last call emitted.

Only calls with a duration are considered. The duration is the only sign that
the router has finalized a call record, so a zero-duration entry is neither
emitted nor allowed to move the watermark.

"""

import logging
from datetime import datetime
from typing import Callable, Iterable, List, Optional, Tuple

from .models import CallEntry
from .publisher import (
    ACCEPTED,
    ANY,
    CALLDURATION,
    CALLNAME,
    CALLNUMBER,
    CALLSTATUS,
    CALLTIMESTAMP,
    MISSED,
    OUTGOING,
    StatePublisher,
    channel_id,
)
from .time_utils import utc_now

logger = logging.getLogger("freebox-status")

TYPED_GROUPS = {
    "accepted": ACCEPTED,
    "missed": MISSED,
    "outgoing": OUTGOING,
}


def process_new_calls(
    raw_entries: Iterable[CallEntry], watermark: datetime
) -> Tuple[List[CallEntry], datetime]:
    """
    Select the calls that ended after ``watermark``.

    Entries are sorted by end time (stable, so equal end times keep their
    fetch order). Each entry with a positive duration ending strictly after
    the running watermark is emitted and moves the watermark to its end time.

    Args:
        raw_entries: Call log as returned by the router, any order
        watermark: End time of the last emitted call

    Returns:
        Tuple of (emitted entries in end-time order, new watermark)
    """
    emitted: List[CallEntry] = []
    for entry in sorted(raw_entries, key=lambda call: call.end_time):
        end_time = entry.end_time
        if entry.duration > 0 and end_time > watermark:
            emitted.append(entry)
            watermark = end_time

    return emitted, watermark


def call_channel_groups(entry: CallEntry) -> List[str]:
    """Channel groups an emitted call is published on: always ``any``, plus its type group."""
    groups = [ANY]
    typed = TYPED_GROUPS.get((entry.call_type or "").lower())
    if typed:
        groups.append(typed)
    return groups


def publish_call(publisher: StatePublisher, entry: CallEntry, group: str) -> None:
    """Publish one call on the channels of ``group``."""
    publisher.publish(channel_id(group, CALLNUMBER), entry.number)
    publisher.publish(channel_id(group, CALLDURATION), entry.duration)
    publisher.publish(channel_id(group, CALLTIMESTAMP), entry.timestamp)
    publisher.publish(channel_id(group, CALLNAME), entry.name)
    if group == ANY:
        publisher.publish(channel_id(group, CALLSTATUS), entry.call_type)


class CallHistoryTracker:
    """
    Owns the watermark of one phone line.

    The watermark starts at tracker creation so calls already in the log are
    not replayed, and it is never reset while the tracker lives.

    Args:
        watermark: Initial watermark (default: now)
        clock: Source of "now" when no watermark is given
    """

    def __init__(
        self,
        watermark: Optional[datetime] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._watermark = watermark if watermark is not None else clock()
        self.emitted_count = 0

    @property
    def watermark(self) -> datetime:
        return self._watermark

    def poll(self, fetch: Callable[[], Iterable[CallEntry]], publisher: StatePublisher) -> List[CallEntry]:
        """
        Fetch the call log, publish new calls and advance the watermark.

        If ``fetch`` raises, the exception propagates and the watermark is
        left untouched, so the next poll retries from the same point.

        Returns:
            The calls emitted by this poll
        """
        return self.update(fetch(), publisher)

    def update(self, raw_entries: Iterable[CallEntry], publisher: StatePublisher) -> List[CallEntry]:
        """Publish the calls of an already fetched log that ended after the watermark."""
        entries = list(raw_entries)
        emitted, watermark = process_new_calls(entries, self._watermark)

        for entry in emitted:
            for group in call_channel_groups(entry):
                publish_call(publisher, entry, group)

        if emitted:
            logger.info(f"📞 {len(emitted)} new call(s), watermark {self._watermark} -> {watermark}")
        else:
            logger.debug(f"📞 No new calls in {len(entries)} log entries")

        self._watermark = watermark
        self.emitted_count += len(emitted)
        return emitted


__all__ = [
    "CallHistoryTracker",
    "call_channel_groups",
    "process_new_calls",
    "publish_call",
]
