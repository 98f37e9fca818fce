"""Aggregate how long each status and activity lasted over a snapshot window."""

from __future__ import annotations

from collections import defaultdict
from itertools import pairwise
from typing import Iterable, Iterator

from .models import (
    ActivityDuration,
    Platform,
    PresenceSnapshot,
    PresenceStatus,
    StatusDuration,
)
from .status import decode_status


def status_durations(snapshots: Iterable[PresenceSnapshot]) -> list[StatusDuration]:
    """Total minutes spent in each (platform, status), longest first.

    The interval between two consecutive snapshots is credited to the state
    decoded from the earlier one: it measures how long the prior state
    persisted. The final snapshot has no successor and contributes nothing.
    Buckets with a non-positive total are dropped.
    """
    totals: defaultdict[tuple[Platform, PresenceStatus], float] = defaultdict(float)
    for current, minutes in _intervals(snapshots):
        for platform, status in decode_status(current.status).items():
            totals[(platform, status)] += minutes
    return [
        StatusDuration(platform=platform, status=status, minutes=minutes)
        for (platform, status), minutes in _ranked(totals)
    ]


def activity_durations(
    snapshots: Iterable[PresenceSnapshot],
) -> list[ActivityDuration]:
    """Total minutes each activity name was observed running, longest first.

    Activities are merged by name alone, ignoring application id and state.
    Every interval whose starting snapshot lists the activity counts in full,
    whether or not the activity is still present in the next snapshot.
    """
    totals: defaultdict[str, float] = defaultdict(float)
    for current, minutes in _intervals(snapshots):
        for activity in current.activities:
            totals[activity.name] += minutes
    return [
        ActivityDuration(name=name, minutes=minutes)
        for name, minutes in _ranked(totals)
    ]


def _intervals(
    snapshots: Iterable[PresenceSnapshot],
) -> Iterator[tuple[PresenceSnapshot, float]]:
    for current, following in pairwise(snapshots):
        elapsed = following.timestamp - current.timestamp
        yield current, elapsed.total_seconds() / 60.0


def _ranked(totals: dict) -> list[tuple]:
    positive = [(key, minutes) for key, minutes in totals.items() if minutes > 0]
    return sorted(positive, key=lambda item: item[1], reverse=True)
