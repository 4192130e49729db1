"""SQLite-backed storage for search records and water level readings."""

from __future__ import annotations

import sqlite3
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from damwatch.schemas import ReadingPoint, SearchRecord


class SQLiteStore:
    """Append-only store for analyses (``searches``) and their readings."""

    def __init__(self, db_path: str) -> None:
        self._db_path = Path(db_path)
        if self._db_path.parent and not self._db_path.parent.exists():
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        return conn

    def _ensure_schema(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS searches (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    dam_name TEXT NOT NULL,
                    lat REAL NOT NULL,
                    lon REAL NOT NULL,
                    created_at TEXT NOT NULL
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS water_level_readings (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    search_id INTEGER NOT NULL REFERENCES searches(id),
                    timestamp TEXT NOT NULL,
                    water_level REAL NOT NULL
                )
                """
            )
            conn.execute(
                """
                CREATE INDEX IF NOT EXISTS idx_readings_search_timestamp
                ON water_level_readings (search_id, timestamp)
                """
            )

    def insert_search(self, *, dam_name: str, lat: float, lon: float) -> SearchRecord:
        created_at = datetime.now(timezone.utc).isoformat()
        with self._connect() as conn:
            cursor = conn.execute(
                "INSERT INTO searches (dam_name, lat, lon, created_at) VALUES (?, ?, ?, ?)",
                (dam_name, lat, lon, created_at),
            )
            search_id = cursor.lastrowid
        return SearchRecord(
            id=search_id, dam_name=dam_name, lat=lat, lon=lon, created_at=created_at
        )

    def insert_readings(
        self, *, search_id: int, readings: Iterable[Tuple[date, float]]
    ) -> int:
        """Bulk insert readings in a single transaction and return the row count."""
        rows = [
            (search_id, reading_date.isoformat(), float(level))
            for reading_date, level in readings
        ]
        if not rows:
            return 0
        with self._connect() as conn:
            conn.executemany(
                """
                INSERT INTO water_level_readings (search_id, timestamp, water_level)
                VALUES (?, ?, ?)
                """,
                rows,
            )
        return len(rows)

    def list_recent_searches(self, *, limit: int = 10) -> List[SearchRecord]:
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT id, dam_name, lat, lon, created_at FROM searches
                ORDER BY created_at DESC, id DESC
                LIMIT ?
                """,
                (limit,),
            ).fetchall()
        return [SearchRecord(**dict(row)) for row in rows]

    def latest_search_for(self, dam_name: str) -> Optional[SearchRecord]:
        with self._connect() as conn:
            row = conn.execute(
                """
                SELECT id, dam_name, lat, lon, created_at FROM searches
                WHERE dam_name = ?
                ORDER BY created_at DESC, id DESC
                LIMIT 1
                """,
                (dam_name,),
            ).fetchone()
        if not row:
            return None
        return SearchRecord(**dict(row))

    def readings_between(
        self, *, search_id: int, start: date, end: date
    ) -> List[ReadingPoint]:
        """Return readings with ``start <= timestamp <= end`` in ascending order."""
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT timestamp, water_level FROM water_level_readings
                WHERE search_id = ? AND timestamp >= ? AND timestamp <= ?
                ORDER BY timestamp ASC, id ASC
                """,
                (search_id, start.isoformat(), end.isoformat()),
            ).fetchall()
        return [ReadingPoint(**dict(row)) for row in rows]

    def count_readings(self, *, search_id: int) -> int:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT COUNT(*) AS total FROM water_level_readings WHERE search_id = ?",
                (search_id,),
            ).fetchone()
        return int(row["total"])


__all__ = ["SQLiteStore"]
