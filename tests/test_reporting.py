"""Tests for duration formatting and daily summaries (reporting.py)."""

from __future__ import annotations

from pathlib import Path

import pytest
from conftest import USER_ID, snapshot_at

from presence_timeline.config import TimelineSettings
from presence_timeline.db import database_connection, insert_snapshots
from presence_timeline.models import Activity, PresenceStatus
from presence_timeline.reporting import (
    SummaryPrinter,
    build_daily_summary,
    describe_entry,
    format_duration,
)
from presence_timeline.timeline import build_timeline


class TestFormatDuration:
    @pytest.mark.parametrize(
        ("minutes", "expected"),
        [
            (0.0, "0s"),
            (0.75, "45s"),
            (1.0, "1m"),
            (12.4, "12m"),
            (59.0, "59m"),
            (60.0, "1h"),
            (125.0, "2h 5m"),
            (180.0, "3h"),
            (119.8, "2h"),
            (0.995, "1m"),
            (59.7, "1h"),
        ],
    )
    def test_formats(self, minutes: float, expected: str) -> None:
        assert format_duration(minutes) == expected


class TestDailySummary:
    def test_hides_offline_and_truncates(self) -> None:
        activities = [Activity(name=f"Game {index}") for index in range(10)]
        snapshots = [
            snapshot_at(0, 0b101010, activities),
            snapshot_at(30, 0b010101, activities[:3]),
            snapshot_at(90, 0),
        ]
        summary = build_daily_summary(snapshots)

        assert all(item.status is not PresenceStatus.OFFLINE for item in summary.statuses)
        assert len(summary.statuses) == 6
        assert len(summary.activities) == 8
        assert summary.activities[0].minutes == pytest.approx(90.0)

    def test_show_offline(self) -> None:
        snapshots = [snapshot_at(0, 0), snapshot_at(10, 0)]
        summary = build_daily_summary(snapshots, TimelineSettings(hide_offline=False))
        assert {item.status for item in summary.statuses} == {PresenceStatus.OFFLINE}

    def test_payload(self) -> None:
        snapshots = [
            snapshot_at(0, 0b001000, [Activity(name="VSCode")]),
            snapshot_at(75, 0),
        ]
        payload = build_daily_summary(snapshots).to_dict()
        assert payload["statuses"] == [
            {
                "platform": "desktop",
                "status": "ONLINE",
                "label": "온라인",
                "minutes": 75.0,
                "formatted": "1h 15m",
            }
        ]
        assert payload["activities"] == [
            {"name": "VSCode", "minutes": 75.0, "formatted": "1h 15m"}
        ]


class TestDescribeEntry:
    def test_status_entry(self) -> None:
        entries = build_timeline([snapshot_at(0, 0b001000), snapshot_at(1, 0)])
        assert describe_entry(entries[0]) == "status: desktop ONLINE -> OFFLINE"

    def test_activity_entry(self) -> None:
        spotify = Activity(name="Spotify", state="Jazz")
        entries = build_timeline([snapshot_at(0, 8), snapshot_at(1, 8, [spotify])])
        assert describe_entry(entries[0]) == "activity + Spotify (Jazz)"


class TestSummaryPrinter:
    def test_prints_summary(self, db_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        with database_connection(db_path) as conn:
            insert_snapshots(
                conn,
                [
                    snapshot_at(0, 0b001000, [Activity(name="VSCode")]),
                    snapshot_at(45, 0),
                ],
            )
        printer = SummaryPrinter(db_path)
        printer.print_daily_summary(USER_ID, snapshot_at(0, 0).timestamp)
        out = capsys.readouterr().out
        assert "desktop/ONLINE" in out
        assert "VSCode" in out
        assert "45m" in out

    def test_not_enough_data(self, db_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        SummaryPrinter(db_path).print_daily_summary(USER_ID, snapshot_at(0, 0).timestamp)
        assert "Not enough presence data" in capsys.readouterr().out

    def test_prints_timeline(self, db_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        with database_connection(db_path) as conn:
            insert_snapshots(conn, [snapshot_at(0, 0), snapshot_at(1, 0b000010)])
        SummaryPrinter(db_path).print_timeline(USER_ID)
        out = capsys.readouterr().out
        assert "2025-08-20 09:01:00" in out
        assert "mobile OFFLINE -> ONLINE" in out
