"""Domain models for presence snapshots and the changes derived from them."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional, Union


class Platform(str, Enum):
    """Client platforms tracked by the packed status field."""

    WEB = "web"
    DESKTOP = "desktop"
    MOBILE = "mobile"


class PresenceStatus(str, Enum):
    """Symbolic state of a single platform."""

    OFFLINE = "OFFLINE"
    IDLE = "IDLE"
    ONLINE = "ONLINE"
    DND = "DND"

    @property
    def label(self) -> str:
        return _STATUS_LABELS[self]


_STATUS_LABELS: dict[PresenceStatus, str] = {
    PresenceStatus.OFFLINE: "오프라인",
    PresenceStatus.IDLE: "자리비움",
    PresenceStatus.ONLINE: "온라인",
    PresenceStatus.DND: "방해금지",
}


class EntryType(str, Enum):
    STATUS_CHANGE = "status_change"
    ACTIVITY_CHANGE = "activity_change"


class ChangeType(str, Enum):
    ADDED = "added"
    REMOVED = "removed"


@dataclass(frozen=True, slots=True)
class ByApplicationId:
    """Identity of an activity reported with an application id."""

    application_id: str


@dataclass(frozen=True, slots=True)
class ByNameState:
    """Identity of an activity without an application id."""

    name: str
    state: Optional[str]


ActivityKey = Union[ByApplicationId, ByNameState]


@dataclass(frozen=True, slots=True)
class Activity:
    """An application or game reported as running alongside a presence."""

    name: str
    type: int = 0
    application_id: Optional[str] = None
    state: Optional[str] = None
    details: Optional[str] = None

    @property
    def key(self) -> ActivityKey:
        # Keys of different kinds never compare equal, so an activity with an
        # application id never matches one without.
        if self.application_id:
            return ByApplicationId(self.application_id)
        return ByNameState(self.name, self.state)

    def is_same_as(self, other: "Activity") -> bool:
        return self.key == other.key

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type,
            "applicationId": self.application_id,
            "state": self.state,
            "details": self.details,
        }


@dataclass(frozen=True, slots=True)
class PresenceSnapshot:
    """A single observation of a user's presence across all platforms."""

    user_id: str
    status: int
    timestamp: datetime
    activities: tuple[Activity, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        return {
            "userId": self.user_id,
            "status": self.status,
            "timestamp": self.timestamp.isoformat(),
            "activities": [activity.to_dict() for activity in self.activities],
        }


@dataclass(frozen=True, slots=True)
class StatusTransition:
    old: PresenceStatus
    new: PresenceStatus

    def to_dict(self) -> dict[str, str]:
        return {"old": self.old.value, "new": self.new.value}


StatusDiff = dict[Platform, Optional[StatusTransition]]


@dataclass(frozen=True, slots=True)
class ActivityChange:
    change_type: ChangeType
    activity: Activity


@dataclass(frozen=True, slots=True)
class TimelineEntry:
    """A single status or activity change, stamped with the moment it was observed.

    Exactly one of ``status_change`` and ``activity_change`` is set, matching
    ``type``.
    """

    id: str
    type: EntryType
    timestamp: datetime
    status_change: Optional[StatusDiff] = None
    activity_change: Optional[ActivityChange] = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "id": self.id,
            "type": self.type.value,
            "timestamp": self.timestamp.isoformat(),
        }
        if self.status_change is not None:
            payload["statusChange"] = {
                platform.value: transition.to_dict() if transition else None
                for platform, transition in self.status_change.items()
            }
        if self.activity_change is not None:
            payload["activityChange"] = {
                "type": self.activity_change.change_type.value,
                "activity": self.activity_change.activity.to_dict(),
            }
        return payload


@dataclass(frozen=True, slots=True)
class StatusDuration:
    platform: Platform
    status: PresenceStatus
    minutes: float


@dataclass(frozen=True, slots=True)
class ActivityDuration:
    name: str
    minutes: float
