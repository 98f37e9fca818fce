"""FastAPI application that exposes presence timelines and daily summaries."""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, Field

from .config import TimelineSettings
from .db import (
    count_snapshots,
    database_connection,
    fetch_snapshots,
    fetch_user_ids,
    insert_snapshots,
)
from .models import Activity, PresenceSnapshot
from .paths import get_db_path
from .reporting import build_daily_summary
from .status import STATUS_MAX, STATUS_MIN
from .timeline import build_timeline

logger = logging.getLogger(__name__)


class ActivityPayload(BaseModel):
    name: str = Field(min_length=1)
    type: int = Field(default=0, ge=0, le=5)
    application_id: Optional[str] = Field(default=None, alias="applicationId")
    state: Optional[str] = None
    details: Optional[str] = None

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    def to_activity(self) -> Activity:
        return Activity(
            name=self.name,
            type=self.type,
            application_id=self.application_id,
            state=self.state,
            details=self.details,
        )


class PresencePayload(BaseModel):
    user_id: str = Field(min_length=1, alias="userId")
    status: int = Field(ge=STATUS_MIN, le=STATUS_MAX)
    timestamp: datetime
    activities: List[ActivityPayload] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    def to_snapshot(self) -> PresenceSnapshot:
        return PresenceSnapshot(
            user_id=self.user_id,
            status=self.status,
            timestamp=self.timestamp,
            activities=tuple(activity.to_activity() for activity in self.activities),
        )


def create_app(
    *,
    db_path: Optional[Path] = None,
    settings: Optional[TimelineSettings] = None,
) -> FastAPI:
    """Instantiate the FastAPI application."""
    resolved_db_path = Path(db_path or get_db_path())
    resolved_settings = settings or TimelineSettings()

    app = FastAPI(title="Presence Timeline", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.db_path = resolved_db_path
    app.state.settings = resolved_settings

    @app.on_event("startup")
    async def _startup() -> None:
        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s %(levelname)s %(name)s %(message)s",
        )

    @app.get("/api/status")
    def status(request: Request) -> Dict[str, Any]:
        try:
            with database_connection(request.app.state.db_path) as conn:
                total = count_snapshots(conn)
        except sqlite3.Error as exc:
            logger.exception("Error counting snapshots")
            raise HTTPException(status_code=500, detail="Failed to fetch status") from exc
        return {
            "database_path": str(request.app.state.db_path),
            "snapshots": total,
            "recent_limit": resolved_settings.recent_limit,
        }

    @app.get("/api/users")
    def users(request: Request) -> List[Dict[str, Any]]:
        try:
            with database_connection(request.app.state.db_path) as conn:
                rows = fetch_user_ids(conn)
        except sqlite3.Error as exc:
            logger.exception("Error fetching user ids")
            raise HTTPException(status_code=500, detail="Failed to fetch users") from exc
        return [{"user_id": row["user_id"], "snapshots": row["snapshots"]} for row in rows]

    @app.post("/api/presences", status_code=201)
    def ingest_presences(
        payload: List[PresencePayload], request: Request
    ) -> Dict[str, Any]:
        snapshots = [item.to_snapshot() for item in payload]
        try:
            with database_connection(request.app.state.db_path) as conn:
                stored = insert_snapshots(conn, snapshots)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except sqlite3.Error as exc:
            logger.exception("Error storing presences")
            raise HTTPException(status_code=500, detail="Failed to store presences") from exc
        return {"stored": stored}

    @app.get("/api/presences/user/{user_id}")
    def user_presences(user_id: str, request: Request) -> List[Dict[str, Any]]:
        snapshots = _load_snapshots(
            request, user_id, None, failure="Failed to fetch user presences"
        )
        return [snapshot.to_dict() for snapshot in snapshots]

    @app.get("/api/presences/user/{user_id}/date/{date}")
    def user_presences_for_date(
        user_id: str, date: str, request: Request
    ) -> List[Dict[str, Any]]:
        day = _parse_date(date)
        snapshots = _load_snapshots(
            request, user_id, day, failure="Failed to fetch user presences for date"
        )
        return [snapshot.to_dict() for snapshot in snapshots]

    @app.get("/api/timeline/{user_id}")
    def timeline(
        user_id: str,
        request: Request,
        date: Optional[str] = Query(
            default=None,
            description="Target date in YYYY-MM-DD format. Defaults to the most recent snapshots.",
        ),
    ) -> List[Dict[str, Any]]:
        day = _parse_date(date) if date else None
        snapshots = _load_snapshots(
            request, user_id, day, failure="Failed to fetch timeline for user"
        )
        entries = build_timeline(snapshots)
        logger.info(
            "Timeline for %s (%s): %d entries",
            user_id,
            date or "recent",
            len(entries),
        )
        return [entry.to_dict() for entry in entries]

    @app.get("/api/summary/{user_id}")
    def summary(
        user_id: str,
        request: Request,
        date: Optional[str] = Query(
            default=None,
            description="Target date in YYYY-MM-DD format. Defaults to today.",
        ),
    ) -> Dict[str, Any]:
        target_day = _parse_date(date) if date else _start_of_day(datetime.now())
        snapshots = _load_snapshots(
            request, user_id, target_day, failure="Failed to fetch summary for user"
        )
        payload = build_daily_summary(snapshots, request.app.state.settings).to_dict()
        return {
            "user_id": user_id,
            "date": target_day.strftime("%Y-%m-%d"),
            **payload,
        }

    return app


def _load_snapshots(
    request: Request, user_id: str, day: Optional[datetime], *, failure: str
) -> list[PresenceSnapshot]:
    settings: TimelineSettings = request.app.state.settings
    try:
        with database_connection(request.app.state.db_path) as conn:
            return fetch_snapshots(conn, user_id, day, limit=settings.recent_limit)
    except sqlite3.Error as exc:
        logger.exception("Error fetching snapshots for %s", user_id)
        raise HTTPException(status_code=500, detail=failure) from exc


def _parse_date(value: str) -> datetime:
    try:
        parsed = datetime.strptime(value, "%Y-%m-%d")
    except ValueError as exc:
        raise HTTPException(status_code=400, detail="Invalid date format") from exc
    return _start_of_day(parsed)


def _start_of_day(value: datetime) -> datetime:
    return value.replace(hour=0, minute=0, second=0, microsecond=0)
