"""Daily summaries and console rendering of timelines."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional, Sequence

from .config import TimelineSettings
from .db import database_connection, fetch_snapshots
from .durations import activity_durations, status_durations
from .models import (
    ActivityDuration,
    ChangeType,
    EntryType,
    PresenceSnapshot,
    PresenceStatus,
    StatusDuration,
    TimelineEntry,
)
from .timeline import build_timeline


@dataclass(slots=True)
class DailySummary:
    """Status and activity tables trimmed for display."""

    statuses: list[StatusDuration]
    activities: list[ActivityDuration]

    def to_dict(self) -> dict:
        return {
            "statuses": [
                {
                    "platform": item.platform.value,
                    "status": item.status.value,
                    "label": item.status.label,
                    "minutes": item.minutes,
                    "formatted": format_duration(item.minutes),
                }
                for item in self.statuses
            ],
            "activities": [
                {
                    "name": item.name,
                    "minutes": item.minutes,
                    "formatted": format_duration(item.minutes),
                }
                for item in self.activities
            ],
        }


def build_daily_summary(
    snapshots: Sequence[PresenceSnapshot], settings: Optional[TimelineSettings] = None
) -> DailySummary:
    settings = settings or TimelineSettings()
    statuses = status_durations(snapshots)
    if settings.hide_offline:
        statuses = [item for item in statuses if item.status is not PresenceStatus.OFFLINE]
    return DailySummary(
        statuses=statuses[: settings.status_limit],
        activities=activity_durations(snapshots)[: settings.activity_limit],
    )


def format_duration(minutes: float) -> str:
    """Render seconds below a minute, minutes below an hour, else hours and minutes.

    Values are rounded before picking a unit, so 59.7 minutes reads "1h".
    """
    seconds = round(minutes * 60)
    if seconds < 60:
        return f"{seconds}s"
    whole_minutes = round(minutes)
    if whole_minutes < 60:
        return f"{whole_minutes}m"
    hours, remaining_minutes = divmod(whole_minutes, 60)
    if remaining_minutes == 0:
        return f"{hours}h"
    return f"{hours}h {remaining_minutes}m"


def describe_entry(entry: TimelineEntry) -> str:
    if entry.type is EntryType.STATUS_CHANGE and entry.status_change:
        changes = [
            f"{platform.value} {transition.old.value} -> {transition.new.value}"
            for platform, transition in entry.status_change.items()
            if transition is not None
        ]
        return "status: " + ", ".join(changes)
    change = entry.activity_change
    if change is None:
        return "(empty)"
    sign = "+" if change.change_type is ChangeType.ADDED else "-"
    label = change.activity.name
    if change.activity.state:
        label = f"{label} ({change.activity.state})"
    return f"activity {sign} {label}"


class SummaryPrinter:
    """Render human-readable summaries in the console."""

    def __init__(self, db_path: Path, settings: Optional[TimelineSettings] = None) -> None:
        self.db_path = Path(db_path)
        self.settings = settings or TimelineSettings()

    def print_daily_summary(self, user_id: str, day: datetime) -> None:
        with database_connection(self.db_path) as conn:
            snapshots = fetch_snapshots(conn, user_id, day)
        if len(snapshots) < 2:
            print("Not enough presence data for the selected day.")
            return

        summary = build_daily_summary(snapshots, self.settings)
        print(f"Summary for {user_id} on {day.strftime('%Y-%m-%d')}")
        print("-" * 40)
        if summary.statuses:
            print("Statuses:")
            for item in summary.statuses:
                label = f"{item.platform.value}/{item.status.value}"
                print(f"  {label:<20} {format_duration(item.minutes)}")
        else:
            print("No status data.")

        print()
        if summary.activities:
            print("Activities:")
            for item in summary.activities:
                print(f"  {item.name[:40]:<40} {format_duration(item.minutes)}")
        else:
            print("No activity data.")

    def print_timeline(self, user_id: str, day: Optional[datetime] = None) -> None:
        with database_connection(self.db_path) as conn:
            snapshots = fetch_snapshots(
                conn, user_id, day, limit=self.settings.recent_limit
            )
        entries = build_timeline(snapshots)
        if not entries:
            print("No changes recorded.")
            return
        for entry in entries:
            print(f"{entry.timestamp.strftime('%Y-%m-%d %H:%M:%S')}  {describe_entry(entry)}")
