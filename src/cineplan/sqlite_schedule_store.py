# src/cineplan/sqlite_schedule_store.py

from __future__ import annotations

import os
import sqlite3
import uuid
from datetime import datetime, date, timezone
from typing import Any, Dict, Optional

import pandas as pd

from cineplan.core.config import DEFAULT_DB_PATH
from cineplan.core.models import ScheduledItinerary


def _ensure_parent_dir(path: str) -> None:
    parent = os.path.dirname(path)
    if parent and not os.path.exists(parent):
        os.makedirs(parent, exist_ok=True)


class SqliteScheduleStore:
    """
    SQLite-backed store for schedules users chose to keep.
    Designed to be swapped later for Postgres with the same interface.
    """

    def __init__(self, db_path: str = DEFAULT_DB_PATH):
        self.db_path = db_path
        _ensure_parent_dir(self.db_path)
        self._init_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.execute("PRAGMA journal_mode=WAL;")
        conn.execute("PRAGMA synchronous=NORMAL;")
        conn.execute("PRAGMA foreign_keys=ON;")
        return conn

    def _init_schema(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS schedules (
                    id TEXT PRIMARY KEY,
                    itinerary_id TEXT NOT NULL,
                    user_id TEXT NOT NULL,
                    cinema_code TEXT NOT NULL,
                    play_date TEXT NOT NULL,          -- YYYY-MM-DD
                    name TEXT NOT NULL,
                    start_time TEXT NOT NULL,         -- HH:MM
                    end_time TEXT NOT NULL,
                    total_duration INTEGER NOT NULL,  -- minutes
                    feasible INTEGER NOT NULL,
                    score REAL,
                    created_at_utc TEXT NOT NULL
                );
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS schedule_items (
                    schedule_id TEXT NOT NULL REFERENCES schedules(id) ON DELETE CASCADE,
                    item_order INTEGER NOT NULL,
                    movie_id TEXT NOT NULL,
                    movie_title TEXT,
                    showtime_id TEXT NOT NULL,
                    start_time TEXT NOT NULL,
                    end_time TEXT NOT NULL,
                    gap_to_next INTEGER NOT NULL,
                    PRIMARY KEY (schedule_id, item_order)
                );
                """
            )
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_schedules_user ON schedules(user_id, created_at_utc);"
            )

    def save_schedule(
        self,
        itinerary: ScheduledItinerary,
        *,
        user_id: str,
        cinema_code: str,
        play_date: date,
        name: Optional[str] = None,
    ) -> str:
        """
        Write the itinerary and its items in one transaction.
        Returns the new schedule id.
        """
        schedule_id = uuid.uuid4().hex
        now = datetime.now(timezone.utc).isoformat()

        items = [
            (
                schedule_id,
                it.order,
                it.movie_id,
                it.movie_title,
                it.showtime_id,
                it.start_time,
                it.end_time,
                int(it.gap_to_next),
            )
            for it in itinerary.items
        ]

        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO schedules (
                    id, itinerary_id, user_id, cinema_code, play_date, name,
                    start_time, end_time, total_duration, feasible, score, created_at_utc
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?);
                """,
                (
                    schedule_id,
                    itinerary.id,
                    user_id,
                    cinema_code,
                    play_date.isoformat(),
                    name or itinerary.name,
                    itinerary.start_time,
                    itinerary.end_time,
                    int(itinerary.total_duration),
                    1 if itinerary.feasible else 0,
                    itinerary.score,
                    now,
                ),
            )
            conn.executemany(
                """
                INSERT INTO schedule_items (
                    schedule_id, item_order, movie_id, movie_title, showtime_id,
                    start_time, end_time, gap_to_next
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?);
                """,
                items,
            )

        return schedule_id

    def get_user_schedules(self, user_id: str, limit: int = 100) -> pd.DataFrame:
        """
        Saved schedules for a user, newest first.
        """
        with self._connect() as conn:
            df = pd.read_sql_query(
                """
                SELECT
                    id, itinerary_id, name, cinema_code, play_date,
                    start_time, end_time, total_duration, feasible, score,
                    created_at_utc
                FROM schedules
                WHERE user_id = ?
                ORDER BY created_at_utc DESC
                LIMIT ?;
                """,
                conn,
                params=(user_id, int(limit)),
            )
        df["feasible"] = df["feasible"].astype(bool)
        return df

    def get_schedule(self, schedule_id: str, user_id: str) -> Optional[Dict[str, Any]]:
        """
        One saved schedule as a dict (play_date as a date), or None if the
        user has no schedule with that id.
        """
        with self._connect() as conn:
            conn.row_factory = sqlite3.Row
            row = conn.execute(
                """
                SELECT
                    id, itinerary_id, name, cinema_code, play_date,
                    start_time, end_time, total_duration, feasible, score,
                    created_at_utc
                FROM schedules
                WHERE id = ? AND user_id = ?;
                """,
                (schedule_id, user_id),
            ).fetchone()
        if row is None:
            return None
        schedule = dict(row)
        schedule["play_date"] = date.fromisoformat(schedule["play_date"])
        schedule["feasible"] = bool(schedule["feasible"])
        return schedule

    def get_schedule_items(self, schedule_id: str, user_id: str) -> pd.DataFrame:
        """
        Items of one schedule in viewing order; empty if it is not the user's.
        """
        with self._connect() as conn:
            df = pd.read_sql_query(
                """
                SELECT
                    i.item_order, i.movie_id, i.movie_title, i.showtime_id,
                    i.start_time, i.end_time, i.gap_to_next
                FROM schedule_items i
                JOIN schedules s ON s.id = i.schedule_id
                WHERE s.id = ? AND s.user_id = ?
                ORDER BY i.item_order ASC;
                """,
                conn,
                params=(schedule_id, user_id),
            )
        return df

    def delete_schedule(self, schedule_id: str, user_id: str) -> bool:
        with self._connect() as conn:
            cur = conn.execute(
                "DELETE FROM schedules WHERE id = ? AND user_id = ?;",
                (schedule_id, user_id),
            )
            return cur.rowcount > 0
