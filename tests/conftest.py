"""Shared fixtures for the presence timeline test suite."""

from __future__ import annotations

from datetime import datetime, timedelta
from pathlib import Path
from typing import Sequence

import pytest

from presence_timeline.models import Activity, PresenceSnapshot

BASE_TIME = datetime(2025, 8, 20, 9, 0, 0)
USER_ID = "532239959281893397"


def snapshot_at(
    minutes: float,
    status: int,
    activities: Sequence[Activity] = (),
    user_id: str = USER_ID,
) -> PresenceSnapshot:
    return PresenceSnapshot(
        user_id=user_id,
        status=status,
        timestamp=BASE_TIME + timedelta(minutes=minutes),
        activities=tuple(activities),
    )


@pytest.fixture()
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "presence.sqlite3"


@pytest.fixture()
def vscode() -> Activity:
    return Activity(name="Visual Studio Code", type=0, application_id="383226320970055681")


@pytest.fixture()
def spotify() -> Activity:
    return Activity(name="Spotify", type=2, state="Lo-fi Beats", details="Chill Mix")
