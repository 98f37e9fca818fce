"""Reconstruct a change timeline from consecutive presence snapshots."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Iterable, Optional, Sequence

from .models import (
    Activity,
    ActivityChange,
    ChangeType,
    EntryType,
    PresenceSnapshot,
    TimelineEntry,
)
from .status import compare_statuses, has_changes

logger = logging.getLogger(__name__)


def build_timeline(snapshots: Iterable[PresenceSnapshot]) -> list[TimelineEntry]:
    """Diff each snapshot against its predecessor and return the changes.

    Every entry is stamped with the timestamp of the later snapshot of the
    pair, i.e. the moment the change was observed. The first snapshot has no
    predecessor and yields nothing. The result is sorted by timestamp; entries
    sharing a timestamp keep their scan order.
    """
    entries: list[TimelineEntry] = []
    previous: Optional[PresenceSnapshot] = None
    scanned = 0

    for current in snapshots:
        scanned += 1
        if previous is not None:
            entries.extend(_status_entries(previous, current))
            entries.extend(_activity_entries(previous.activities, current))
        previous = current

    entries.sort(key=lambda entry: entry.timestamp)
    logger.debug("Built %d timeline entries from %d snapshots.", len(entries), scanned)
    return entries


def _status_entries(
    previous: PresenceSnapshot, current: PresenceSnapshot
) -> list[TimelineEntry]:
    diff = compare_statuses(previous.status, current.status)
    if not has_changes(diff):
        return []
    return [
        TimelineEntry(
            id=_new_entry_id(),
            type=EntryType.STATUS_CHANGE,
            timestamp=current.timestamp,
            status_change=diff,
        )
    ]


def _activity_entries(
    previous_activities: Sequence[Activity], current: PresenceSnapshot
) -> list[TimelineEntry]:
    entries = [
        _activity_entry(ChangeType.ADDED, activity, current.timestamp)
        for activity in _missing_from(current.activities, previous_activities)
    ]
    entries.extend(
        _activity_entry(ChangeType.REMOVED, activity, current.timestamp)
        for activity in _missing_from(previous_activities, current.activities)
    )
    return entries


def _missing_from(
    activities: Sequence[Activity], others: Sequence[Activity]
) -> list[Activity]:
    """Activities with no identity match among ``others``."""
    other_keys = {other.key for other in others}
    return [activity for activity in activities if activity.key not in other_keys]


def _activity_entry(
    change_type: ChangeType, activity: Activity, timestamp: datetime
) -> TimelineEntry:
    return TimelineEntry(
        id=_new_entry_id(),
        type=EntryType.ACTIVITY_CHANGE,
        timestamp=timestamp,
        activity_change=ActivityChange(change_type=change_type, activity=activity),
    )


def _new_entry_id() -> str:
    return uuid.uuid4().hex
