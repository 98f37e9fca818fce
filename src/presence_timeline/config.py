"""Configuration models and helpers for the presence timeline."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class TimelineSettings:
    """Runtime configuration for fetching and summarizing snapshots."""

    recent_limit: int = 100
    status_limit: int = 6
    activity_limit: int = 8
    hide_offline: bool = True

    @classmethod
    def from_options(
        cls,
        recent_limit: int | None = None,
        status_limit: int | None = None,
        activity_limit: int | None = None,
        hide_offline: bool | None = None,
    ) -> "TimelineSettings":
        defaults = cls()
        return cls(
            recent_limit=recent_limit if recent_limit is not None else defaults.recent_limit,
            status_limit=status_limit if status_limit is not None else defaults.status_limit,
            activity_limit=(
                activity_limit if activity_limit is not None else defaults.activity_limit
            ),
            hide_offline=hide_offline if hide_offline is not None else defaults.hide_offline,
        )
