"""SQLite database layer for presence snapshots."""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timedelta
from pathlib import Path
from typing import Iterable, Iterator, Optional

from .models import Activity, PresenceSnapshot
from .status import STATUS_MAX, STATUS_MIN

logger = logging.getLogger(__name__)

DATETIME_FMT = "%Y-%m-%d %H:%M:%S.%f"

ACTIVITY_TYPE_MIN = 0
ACTIVITY_TYPE_MAX = 5


def open_database(path: Path, *, check_same_thread: bool = True) -> sqlite3.Connection:
    """Open (and initialize) the SQLite database."""
    conn = sqlite3.connect(
        path,
        isolation_level=None,
        check_same_thread=check_same_thread,
    )
    conn.row_factory = sqlite3.Row
    enable_foreign_keys(conn)
    initialize_schema(conn)
    return conn


@contextmanager
def database_connection(
    path: Path, *, check_same_thread: bool = True
) -> Iterator[sqlite3.Connection]:
    conn = open_database(path, check_same_thread=check_same_thread)
    try:
        yield conn
    finally:
        conn.close()


def enable_foreign_keys(conn: sqlite3.Connection) -> None:
    conn.execute("PRAGMA foreign_keys = ON;")


def initialize_schema(conn: sqlite3.Connection) -> None:
    conn.executescript(
        """
        CREATE TABLE IF NOT EXISTS presence_snapshots (
            id INTEGER PRIMARY KEY,
            user_id TEXT NOT NULL,
            status INTEGER NOT NULL CHECK (status BETWEEN 0 AND 63),
            timestamp TEXT NOT NULL
        );

        CREATE INDEX IF NOT EXISTS idx_snapshots_user_timestamp
            ON presence_snapshots(user_id, timestamp);

        CREATE TABLE IF NOT EXISTS snapshot_activities (
            snapshot_id INTEGER NOT NULL
                REFERENCES presence_snapshots(id) ON DELETE CASCADE,
            position INTEGER NOT NULL,
            name TEXT NOT NULL,
            application_id TEXT,
            state TEXT,
            details TEXT,
            type INTEGER NOT NULL DEFAULT 0,
            PRIMARY KEY (snapshot_id, position)
        );
        """
    )


def validate_snapshot(snapshot: PresenceSnapshot) -> None:
    """Reject snapshots the timeline and duration scans cannot interpret."""
    if not snapshot.user_id:
        raise ValueError("Snapshot is missing a user id")
    if not STATUS_MIN <= snapshot.status <= STATUS_MAX:
        raise ValueError(
            f"Status {snapshot.status} is outside [{STATUS_MIN}, {STATUS_MAX}]"
        )
    for activity in snapshot.activities:
        if not activity.name:
            raise ValueError("Activity is missing a name")
        if not ACTIVITY_TYPE_MIN <= activity.type <= ACTIVITY_TYPE_MAX:
            raise ValueError(
                f"Activity type {activity.type} is outside "
                f"[{ACTIVITY_TYPE_MIN}, {ACTIVITY_TYPE_MAX}]"
            )


def insert_snapshots(
    conn: sqlite3.Connection, snapshots: Iterable[PresenceSnapshot]
) -> int:
    """Validate and store snapshots in a single transaction."""
    pending = list(snapshots)
    for snapshot in pending:
        validate_snapshot(snapshot)

    conn.execute("BEGIN")
    try:
        for snapshot in pending:
            cur = conn.execute(
                """
                INSERT INTO presence_snapshots (user_id, status, timestamp)
                VALUES (?, ?, ?)
                """,
                (
                    snapshot.user_id,
                    snapshot.status,
                    _format_timestamp(snapshot.timestamp),
                ),
            )
            conn.executemany(
                """
                INSERT INTO snapshot_activities (
                    snapshot_id,
                    position,
                    name,
                    application_id,
                    state,
                    details,
                    type
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    (
                        cur.lastrowid,
                        position,
                        activity.name,
                        activity.application_id,
                        activity.state,
                        activity.details,
                        activity.type,
                    )
                    for position, activity in enumerate(snapshot.activities)
                ],
            )
    except Exception:
        conn.execute("ROLLBACK")
        raise
    conn.execute("COMMIT")
    logger.info("Stored %d presence snapshots.", len(pending))
    return len(pending)


def fetch_snapshots(
    conn: sqlite3.Connection,
    user_id: str,
    day: Optional[datetime] = None,
    limit: Optional[int] = None,
) -> list[PresenceSnapshot]:
    """Fetch one user's snapshots ordered oldest first.

    With ``day`` the window is that calendar day, ``[00:00, 24:00)``.
    Without it the most recent ``limit`` snapshots are returned.
    """
    if day is not None:
        start = day.replace(hour=0, minute=0, second=0, microsecond=0)
        end = start + timedelta(days=1)
        rows = conn.execute(
            """
            SELECT id, user_id, status, timestamp
            FROM presence_snapshots
            WHERE user_id = ? AND timestamp >= ? AND timestamp < ?
            ORDER BY timestamp, id;
            """,
            (user_id, start.strftime(DATETIME_FMT), end.strftime(DATETIME_FMT)),
        ).fetchall()
    else:
        rows = conn.execute(
            """
            SELECT id, user_id, status, timestamp
            FROM presence_snapshots
            WHERE user_id = ?
            ORDER BY timestamp DESC, id DESC
            LIMIT ?;
            """,
            (user_id, -1 if limit is None else limit),
        ).fetchall()
        rows.reverse()

    activities = _fetch_activities(conn, [row["id"] for row in rows])
    return [
        PresenceSnapshot(
            user_id=row["user_id"],
            status=row["status"],
            timestamp=datetime.strptime(row["timestamp"], DATETIME_FMT),
            activities=tuple(activities.get(row["id"], ())),
        )
        for row in rows
    ]


def fetch_user_ids(conn: sqlite3.Connection) -> list[sqlite3.Row]:
    """Return each user id with its snapshot count, busiest first."""
    return list(
        conn.execute(
            """
            SELECT user_id, COUNT(*) AS snapshots
            FROM presence_snapshots
            GROUP BY user_id
            ORDER BY snapshots DESC, user_id;
            """
        )
    )


def count_snapshots(conn: sqlite3.Connection) -> int:
    return conn.execute("SELECT COUNT(*) FROM presence_snapshots").fetchone()[0]


def _fetch_activities(
    conn: sqlite3.Connection, snapshot_ids: list[int]
) -> dict[int, list[Activity]]:
    grouped: dict[int, list[Activity]] = {}
    if not snapshot_ids:
        return grouped
    # Stay well below SQLite's bound-parameter limit.
    for offset in range(0, len(snapshot_ids), 500):
        chunk = snapshot_ids[offset : offset + 500]
        placeholders = ", ".join("?" for _ in chunk)
        rows = conn.execute(
            f"""
            SELECT snapshot_id, name, application_id, state, details, type
            FROM snapshot_activities
            WHERE snapshot_id IN ({placeholders})
            ORDER BY snapshot_id, position;
            """,
            chunk,
        )
        for row in rows:
            grouped.setdefault(row["snapshot_id"], []).append(
                Activity(
                    name=row["name"],
                    type=row["type"],
                    application_id=row["application_id"],
                    state=row["state"],
                    details=row["details"],
                )
            )
    return grouped


def _format_timestamp(value: datetime) -> str:
    if value.tzinfo is not None:
        value = value.astimezone().replace(tzinfo=None)
    return value.strftime(DATETIME_FMT)
