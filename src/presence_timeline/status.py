"""Decoding of the packed 6-bit presence status field.

The field packs three 2-bit platform states: mobile in bits 0-1, desktop in
bits 2-3 and web in bits 4-5. The layout is shared with the upstream producer
of snapshots and must not change.
"""

from __future__ import annotations

from .models import Platform, PresenceStatus, StatusDiff, StatusTransition

STATUS_MIN = 0
STATUS_MAX = 0b111111

_STATUS_TABLE: tuple[PresenceStatus, ...] = (
    PresenceStatus.OFFLINE,
    PresenceStatus.IDLE,
    PresenceStatus.ONLINE,
    PresenceStatus.DND,
)

_PLATFORM_SHIFTS: dict[Platform, int] = {
    Platform.WEB: 4,
    Platform.DESKTOP: 2,
    Platform.MOBILE: 0,
}


def decode_status(status: int) -> dict[Platform, PresenceStatus]:
    """Split a packed status into its web, desktop and mobile states."""
    if not STATUS_MIN <= status <= STATUS_MAX:
        raise ValueError(f"Status {status} is outside [{STATUS_MIN}, {STATUS_MAX}]")
    return {
        platform: _STATUS_TABLE[(status >> shift) & 0b11]
        for platform, shift in _PLATFORM_SHIFTS.items()
    }


def compare_statuses(old_status: int, new_status: int) -> StatusDiff:
    """Return the per-platform transitions between two packed statuses.

    Platforms whose state is unchanged map to ``None``.
    """
    old = decode_status(old_status)
    new = decode_status(new_status)
    return {
        platform: (
            StatusTransition(old=old[platform], new=new[platform])
            if old[platform] != new[platform]
            else None
        )
        for platform in _PLATFORM_SHIFTS
    }


def has_changes(diff: StatusDiff) -> bool:
    return any(transition is not None for transition in diff.values())
